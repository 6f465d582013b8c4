"""
Rate limiting setup using slowapi.

Uses Redis as storage backend when configured, in-memory otherwise.
Metadata is fetched by marketplaces and crawlers, so the global default
applies to every route except the oracle read and health check.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ..config import Settings


def make_limiter(settings: Settings) -> Limiter:
    """Create a Limiter with Redis (when configured) or in-memory storage."""
    storage_uri = f"{settings.redis_url}/1" if settings.redis_url else "memory://"

    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit_global],
        storage_uri=storage_uri,
        strategy="fixed-window",
    )


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return a clean 429 response with retry_after."""
    retry_after = getattr(exc, "retry_after", 60)
    return JSONResponse(
        status_code=429,
        content={
            "error": f"Rate limit exceeded: {exc.detail}",
        },
        headers={"Retry-After": str(retry_after)},
    )
