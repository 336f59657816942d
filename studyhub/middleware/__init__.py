"""
Middleware Package

Provides FastAPI middleware for:
- Rate limiting
- Error handling
"""

from studyhub.middleware.error_handling import (
    ErrorHandlingMiddleware,
    NotFoundError,
    ScoringError,
    ServiceError,
    StoreError,
    ValidationError,
    handle_endpoint_errors,
    setup_error_handling,
)
from studyhub.middleware.rate_limit import (
    get_rate_limit,
    limit_analytics,
    limit_write,
    limiter,
    setup_rate_limiting,
)

__all__ = [
    "setup_rate_limiting",
    "limiter",
    "get_rate_limit",
    "limit_write",
    "limit_analytics",
    "ErrorHandlingMiddleware",
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "ScoringError",
    "handle_endpoint_errors",
    "setup_error_handling",
]
