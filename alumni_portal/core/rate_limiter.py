"""
Rate Limiting for the Alumni Portal API
=======================================
slowapi limiter keyed by authenticated user or client IP.

- All routes: RATE_LIMIT_PER_MINUTE per key (default 100/min), via SlowAPIMiddleware
- Login / register / password reset: AUTH_RATE_LIMIT_PER_MINUTE (default 10/min)

Storage is Redis when REDIS_URL is set, in-memory otherwise.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from alumni_portal.core.config import settings
from alumni_portal.core.logging_config import logger


def get_user_identifier(request: Request) -> str:
    """Rate limit key: authenticated user id if known, else client IP"""
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.REDIS_URL or "memory://",
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Return a JSON 429 with a Retry-After header

    Plain function: SlowAPIMiddleware calls it without awaiting.
    """
    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}",
        extra={"event_type": "rate_limit", "http_path": request.url.path}
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "Too many requests from this IP, please try again later.",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": "60"}
    )


def auth_rate_limit():
    """Stricter limit for credential endpoints"""
    return limiter.limit(f"{settings.AUTH_RATE_LIMIT_PER_MINUTE}/minute", key_func=get_user_identifier)
