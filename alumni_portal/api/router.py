from fastapi import APIRouter

from alumni_portal.api.endpoints import auth, alumni, news, events
from alumni_portal.api.endpoints.admin import admin_router

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(alumni.router, prefix="/alumni", tags=["Alumni"])
api_router.include_router(news.router, prefix="/news", tags=["News"])
api_router.include_router(events.router, prefix="/events", tags=["Events"])

# Admin panel (admin role required)
api_router.include_router(admin_router)
