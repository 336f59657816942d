"""
Recommendation System Services

Activity tracking and rule-based recommendations.

Modules:
- similarity: Keyword similarity between an activity and preferred topics
- predictor: Next-activity ranking from recent logs
- patterns: Time-of-day / duration / type pattern analysis
- learning_path: Ordered path through unfinished subtopics
- store: Async data access for logs, preferences, catalog, recommendations
- locks: Per-user serialization of generation runs
- generator: Recommendation set orchestration
- tracking_service: Entry points for the ml-activity API

Usage:
    from studyhub.services.recommendation import (
        ActivityTrackingService,
        RecommendationGenerator,
        UserLockRegistry,
    )
"""

from studyhub.services.recommendation.generator import (
    RecommendationGenerator,
    is_valid_recommendation,
)
from studyhub.services.recommendation.learning_path import build_learning_path
from studyhub.services.recommendation.locks import UserLockRegistry
from studyhub.services.recommendation.patterns import (
    analyze_activity_patterns,
    classify_hour,
)
from studyhub.services.recommendation.predictor import (
    CategoryMatcher,
    predict_next_activities,
    title_first_word_matches,
)
from studyhub.services.recommendation.similarity import (
    activity_tokens,
    calculate_similarity,
)
from studyhub.services.recommendation.store import RecommendationStore
from studyhub.services.recommendation.tracking_service import ActivityTrackingService

__all__ = [
    # Pure components
    "calculate_similarity",
    "activity_tokens",
    "predict_next_activities",
    "title_first_word_matches",
    "CategoryMatcher",
    "analyze_activity_patterns",
    "classify_hour",
    "build_learning_path",
    # Orchestration
    "RecommendationStore",
    "UserLockRegistry",
    "RecommendationGenerator",
    "is_valid_recommendation",
    "ActivityTrackingService",
]
