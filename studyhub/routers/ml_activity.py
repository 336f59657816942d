"""
ML Activity API Router

Endpoints for activity tracking, preferences and recommendations.

Endpoints:
- POST /api/ml-activity/log - Log an interaction (refreshes recommendations)
- PUT /api/ml-activity/preferences - Update preferences (refreshes recommendations)
- GET /api/ml-activity/recommendations - Current recommendations
- GET /api/ml-activity/stats - Activity statistics
- GET /api/ml-activity/patterns - Study time / type patterns
- GET /api/ml-activity/learning-path - Ordered unfinished subtopics
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from studyhub.config import settings
from studyhub.db.base import get_db
from studyhub.dependencies import CurrentUserId, get_lock_registry
from studyhub.middleware.error_handling import handle_endpoint_errors
from studyhub.middleware.rate_limit import limit_analytics, limit_write
from studyhub.models.tracking import (
    ActivityPatterns,
    ActivityStatsResponse,
    LearningPathResponse,
    LogActivityRequest,
    LogActivityResponse,
    PreferenceUpdateRequest,
    PreferenceUpdateResponse,
    RecommendationResponse,
)
from studyhub.services.recommendation import ActivityTrackingService, UserLockRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ml-activity", tags=["ml-activity"])


# ===========================================
# Dependency Injection
# ===========================================


async def get_tracking_service(
    db: AsyncSession = Depends(get_db),
    locks: UserLockRegistry = Depends(get_lock_registry),
) -> ActivityTrackingService:
    """Get activity tracking service."""
    return ActivityTrackingService(db, locks)


# ===========================================
# Tracking Endpoints
# ===========================================


@router.post(
    "/log", response_model=LogActivityResponse, status_code=status.HTTP_201_CREATED
)
@limit_write
@handle_endpoint_errors("Log activity")
async def log_activity(
    request: Request,
    body: LogActivityRequest,
    user_id: int = CurrentUserId,
    service: ActivityTrackingService = Depends(get_tracking_service),
) -> LogActivityResponse:
    """
    Log a learner interaction.

    The entry is stored first; recommendations are then rebuilt. A failed
    rebuild is reported via ``recommendations_refreshed`` without failing
    the request.
    """
    return await service.log_activity(user_id, body)


@router.put("/preferences", response_model=PreferenceUpdateResponse)
@limit_write
@handle_endpoint_errors("Update preferences")
async def update_preferences(
    request: Request,
    body: PreferenceUpdateRequest,
    user_id: int = CurrentUserId,
    service: ActivityTrackingService = Depends(get_tracking_service),
) -> PreferenceUpdateResponse:
    """
    Update declared preferences.

    Only fields present in the body change; recommendations are rebuilt.
    """
    return await service.update_preferences(user_id, body)


# ===========================================
# Read Endpoints
# ===========================================


@router.get("/recommendations", response_model=list[RecommendationResponse])
@handle_endpoint_errors("Get recommendations")
async def get_recommendations(
    limit: int = Query(
        settings.RECOMMENDATION_RESPONSE_LIMIT,
        ge=1,
        le=50,
        description="Maximum recommendations to return",
    ),
    user_id: int = CurrentUserId,
    service: ActivityTrackingService = Depends(get_tracking_service),
) -> list[RecommendationResponse]:
    """
    Get the caller's recommendations, best score first.

    Generates a fresh set when none is stored.
    """
    return await service.get_recommendations(user_id, limit=limit)


@router.get("/stats", response_model=ActivityStatsResponse)
@limit_analytics
@handle_endpoint_errors("Get activity stats")
async def get_activity_stats(
    request: Request,
    user_id: int = CurrentUserId,
    service: ActivityTrackingService = Depends(get_tracking_service),
) -> ActivityStatsResponse:
    """
    Get activity statistics.

    Returns:
    - Log counts by activity type
    - Total time spent (seconds)
    - Average completion rate
    - Daily activity counts for the last week
    """
    return await service.get_activity_stats(user_id)


@router.get("/patterns", response_model=ActivityPatterns)
@limit_analytics
@handle_endpoint_errors("Get activity patterns")
async def get_activity_patterns(
    request: Request,
    user_id: int = CurrentUserId,
    service: ActivityTrackingService = Depends(get_tracking_service),
) -> ActivityPatterns:
    """Get preferred study time, average duration and dominant activity type."""
    return await service.get_activity_patterns(user_id)


@router.get("/learning-path", response_model=LearningPathResponse)
@handle_endpoint_errors("Get learning path")
async def get_learning_path(
    user_id: int = CurrentUserId,
    service: ActivityTrackingService = Depends(get_tracking_service),
) -> LearningPathResponse:
    """Get an ordered path through the caller's unfinished subtopics."""
    return await service.get_learning_path(user_id)
