from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from alumni_portal import __version__
from alumni_portal.core.config import settings
from alumni_portal.core.database import AsyncSessionLocal, init_db, close_db
from alumni_portal.core.exceptions import AlumniPortalError, error_response, integrity_error_message
from alumni_portal.core.logging_config import logger
from alumni_portal.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from alumni_portal.core.rate_limiter import limiter, rate_limit_exceeded_handler
from alumni_portal.api.router import api_router
from alumni_portal.services.email_service import email_service

INSECURE_SECRETS = {"", "CHANGE_ME", "secret", "changeme"}


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")

    if settings.SECRET_KEY in INSECURE_SECRETS:
        errors.append("SECRET_KEY is not set or using default value")

    if settings.JWT_SECRET_KEY in INSECURE_SECRETS:
        errors.append("JWT_SECRET_KEY is not set or using default value")

    if not email_service.is_configured:
        warnings.append("Email is not configured - verification and reset emails will not be sent")

    if settings.RATE_LIMIT_ENABLED and not settings.REDIS_URL:
        warnings.append("REDIS_URL not set - rate limits are kept in process memory")

    if settings.ENVIRONMENT == "production" and settings.DEFAULT_ADMIN_PASSWORD == "admin123":
        warnings.append("DEFAULT_ADMIN_PASSWORD is using the default value")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] Critical configuration validated")
    return True


async def ensure_database_ready():
    """Create the tables when the users table is missing"""
    try:
        async with AsyncSessionLocal() as session:
            try:
                await session.execute(text("SELECT 1 FROM users LIMIT 1"))
                logger.info("[Startup] Database tables already exist")
                return True
            except SQLAlchemyError:
                logger.warning("[Startup] Database tables not found, creating...")

        await init_db()
        logger.info("[Startup] Database tables created successfully")
        return True

    except SQLAlchemyError as e:
        logger.error(f"[Startup] Failed to ensure database ready: {e}")
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME} ({settings.INSTITUTE_NAME})...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info("=" * 60)

    await validate_critical_config()

    db_ready = await ensure_database_ready()
    if not db_ready:
        logger.warning("[Startup] Database not ready - some features may fail")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description=f"Alumni portal backend for {settings.INSTITUTE_NAME}",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

# Rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Middleware (last added runs first)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(AlumniPortalError)
async def alumni_portal_error_handler(request: Request, exc: AlumniPortalError):
    logger.warning(f"{exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    message = integrity_error_message(exc)
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": message, "detail": message}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    content = {"detail": "Internal server error"}
    if settings.DEBUG:
        content["message"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


# Uploaded profile pictures
app.mount("/uploads", StaticFiles(directory=str(settings.UPLOAD_DIR)), name="uploads")


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": __version__,
        "environment": settings.ENVIRONMENT
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to the {settings.INSTITUTE_NAME} Alumni Portal API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(api_router, prefix=settings.API_PREFIX)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "alumni_portal.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )
