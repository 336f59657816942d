"""
Centralized enum definitions for the application.

All enums are organized by domain:
- api.py: Rate limit categories
- recommendation.py: Recommendation types, time-of-day buckets, pattern types

Usage:
    from studyhub.enums import RecommendationType, TimeOfDay

    # Or import from specific module
    from studyhub.enums.recommendation import PatternType
"""

from studyhub.enums.api import RateLimitType
from studyhub.enums.recommendation import (
    PatternType,
    RecommendationType,
    TimeOfDay,
)

__all__ = [
    "RateLimitType",
    "PatternType",
    "RecommendationType",
    "TimeOfDay",
]
