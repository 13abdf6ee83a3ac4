"""
Admin panel API endpoints.
All endpoints require the admin role.
"""
from fastapi import APIRouter

from alumni_portal.api.endpoints.admin import users, news, events, institute_records

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

# Include all admin sub-routers
admin_router.include_router(users.router, tags=["Admin Users"])
admin_router.include_router(news.router, prefix="/news", tags=["Admin News"])
admin_router.include_router(events.router, prefix="/events", tags=["Admin Events"])
admin_router.include_router(institute_records.router, prefix="/institute-records", tags=["Admin Institute Records"])
