"""
Rate Limiting Service

slowapi limiter shared by every router.

Limits (per client IP):
- Reads: settings.rate_limit_default
- Writes (reviews, reading list, counters): settings.rate_limit_write

Counters live in Redis when caching is enabled so that all API workers
share them; otherwise each worker counts in memory.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def get_client_ip(request: Request) -> str:
    """Client address, honouring X-Forwarded-For and X-Real-IP from a proxy."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # first entry is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    """Build the limiter from settings."""
    if settings.rate_limit_enabled and settings.cache_enabled:
        storage_uri = settings.redis_url
    else:
        storage_uri = "memory://"

    limiter = Limiter(
        key_func=get_client_ip,
        default_limits=[settings.rate_limit_default],
        storage_uri=storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"reads: {settings.rate_limit_default}, writes: {settings.rate_limit_write}"
    )
    return limiter


limiter = create_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a Retry-After header."""
    limit_detail = str(exc.detail)

    response = JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": limit_detail,
        },
    )
    response.headers["Retry-After"] = "60"
    response.headers["X-RateLimit-Limit"] = limit_detail

    logger.warning(f"Rate limit exceeded for {get_client_ip(request)}: {limit_detail}")
    return response
