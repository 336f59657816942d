"""
Rate Limiting Middleware

Prevents abuse and ensures fair resource usage using SlowAPI.

Every route gets the DEFAULT limit through SlowAPIMiddleware; endpoints
that trigger recommendation regeneration opt into the tighter WRITE
limit with ``limit_write``.

Rate limit configurations (from settings):
- DEFAULT: General API endpoints (100/minute)
- WRITE: Activity logging and preference updates (60/minute)
- ANALYTICS: Stats and pattern endpoints (30/minute)
"""

import logging

from fastapi import FastAPI, Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from studyhub.config import settings
from studyhub.enums import RateLimitType

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.

    Prefers the calling user id, then X-Forwarded-For if behind a proxy,
    otherwise falls back to direct IP address.

    Args:
        request: FastAPI request object

    Returns:
        Client identifier string
    """
    user_id = request.headers.get("X-User-Id")
    if user_id:
        return f"user:{user_id}"

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP in the chain (original client)
        return forwarded_for.split(",")[0].strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.get_rate_limit(RateLimitType.DEFAULT)],
    enabled=settings.RATE_LIMIT_ENABLED,
)


def setup_rate_limiting(app: FastAPI, enabled: bool = True) -> None:
    """
    Configure rate limiting on the FastAPI app.

    Args:
        app: FastAPI application instance
        enabled: Whether to enable rate limiting
    """
    if not enabled:
        limiter.enabled = False
        app.state.limiter = limiter
        logger.info("Rate limiting disabled")
        return

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info("Rate limiting enabled")


def get_rate_limit(rate_limit_type: RateLimitType) -> str:
    """
    Get rate limit string for an endpoint type.

    Args:
        rate_limit_type: RateLimitType enum value

    Returns:
        Rate limit string (e.g., "100/minute")
    """
    return settings.get_rate_limit(rate_limit_type)


def limit_write(func):
    """Decorator for endpoints that trigger recommendation regeneration."""
    return limiter.limit(settings.get_rate_limit(RateLimitType.WRITE))(func)


def limit_analytics(func):
    """Decorator for aggregation endpoints."""
    return limiter.limit(settings.get_rate_limit(RateLimitType.ANALYTICS))(func)
