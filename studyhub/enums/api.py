"""
API-related enums.

Defines enums for rate limiting and other API concerns.
"""

from enum import Enum


class RateLimitType(str, Enum):
    """
    Rate limit categories for different endpoint types.

    Each category has a corresponding rate limit configured in settings.
    Usage:
        from studyhub.enums import RateLimitType
        from studyhub.config import settings

        limit = settings.get_rate_limit(RateLimitType.WRITE)
    """

    # General API endpoints
    DEFAULT = "default"

    # Endpoints that log activity or update preferences (trigger regeneration)
    WRITE = "write"

    # Aggregation endpoints (stats, patterns)
    ANALYTICS = "analytics"
