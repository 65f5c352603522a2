"""
Rate Limiting for Campus Connect API
====================================
slowapi with in-memory storage, keyed by client IP.

Every route gets RATE_LIMIT_PER_MINUTE. The unauthenticated auth routes
that send mail or check passwords are tighter (see the *_LIMIT values).
Setting RATE_LIMIT_ENABLED=false turns all of it off.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


SEND_OTP_LIMIT = "5/minute"
LOGIN_LIMIT = "10/minute"
REGISTER_LIMIT = "3/minute"

RETRY_AFTER_SECONDS = 60


def client_key(request: Request) -> str:
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=client_key,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    enabled=settings.RATE_LIMIT_ENABLED,
    strategy="fixed-window",
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """429 in the usual ``{"message": ...}`` shape, with Retry-After"""
    logger.warning(
        f"[RateLimit] {client_key(request)} exceeded {exc.detail} on {request.url.path}",
        extra={"event_type": "rate_limited", "http_path": request.url.path},
    )
    return JSONResponse(
        status_code=429,
        content={"message": "Too many requests. Please slow down."},
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
