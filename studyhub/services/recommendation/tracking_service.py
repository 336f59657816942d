"""
Activity Tracking Service

Entry points used by the /api/ml-activity routes.

Responsibilities:
- Log learner interactions and refresh recommendations
- Update declared preferences and refresh recommendations
- Serve the current recommendation set (generating it on first use)
- Aggregate activity statistics, patterns and a learning path

A refresh that fails after the triggering write was committed is logged
and reported as ``recommendations_refreshed=False``; the write stands.

Usage:
    from studyhub.services.recommendation import ActivityTrackingService

    service = ActivityTrackingService(db, locks)
    response = await service.log_activity(user_id, request)
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession

from studyhub.config import settings
from studyhub.middleware.error_handling import NotFoundError, ValidationError
from studyhub.models.tracking import (
    ActivityLogEntry,
    ActivityPatterns,
    ActivityStatsResponse,
    DailyActivityCount,
    LearningPathResponse,
    LogActivityRequest,
    LogActivityResponse,
    PreferenceUpdateRequest,
    PreferenceUpdateResponse,
    RecommendationResponse,
    UserPreferenceResponse,
)
from studyhub.services.recommendation.generator import RecommendationGenerator
from studyhub.services.recommendation.learning_path import build_learning_path
from studyhub.services.recommendation.locks import UserLockRegistry
from studyhub.services.recommendation.patterns import analyze_activity_patterns
from studyhub.services.recommendation.store import RecommendationStore

logger = logging.getLogger(__name__)


class ActivityTrackingService:
    """
    Service for activity logging, preferences and recommendations.
    """

    def __init__(self, db: AsyncSession, locks: Optional[UserLockRegistry] = None):
        """
        Initialize the tracking service.

        Args:
            db: SQLAlchemy async database session.
            locks: Process-wide per-user lock registry for generation runs.
        """
        self.store = RecommendationStore(db)
        self.generator = RecommendationGenerator(self.store, locks)

    # ===========================================
    # Writes that trigger regeneration
    # ===========================================

    async def log_activity(
        self, user_id: int, request: LogActivityRequest
    ) -> LogActivityResponse:
        """
        Record an interaction, then rebuild recommendations.

        Raises:
            ValidationError: If activity_type is missing or blank.
            NotFoundError: If a referenced activity or subtopic doesn't exist.
        """
        if not request.activity_type:
            raise ValidationError("Activity type is required")

        if request.activity_id is not None:
            if await self.store.get_activity(request.activity_id) is None:
                raise NotFoundError(f"Activity {request.activity_id} not found")

        if request.subtopic_id is not None:
            if await self.store.get_subtopic(request.subtopic_id) is None:
                raise NotFoundError(f"Subtopic {request.subtopic_id} not found")

        log = await self.store.insert_log_entry(
            user_id=user_id,
            activity_type=request.activity_type,
            activity_id=request.activity_id,
            subtopic_id=request.subtopic_id,
            duration_seconds=request.duration_seconds,
            completion_rate=request.completion_rate,
            score=request.score,
            metadata=request.metadata,
        )
        # Snapshot before regeneration; a rollback there expires ORM state
        entry = ActivityLogEntry.model_validate(log)

        refreshed = await self._refresh_recommendations(user_id)

        return LogActivityResponse(
            message="Activity logged successfully",
            activity_log=entry,
            recommendations_refreshed=refreshed,
        )

    async def update_preferences(
        self, user_id: int, request: PreferenceUpdateRequest
    ) -> PreferenceUpdateResponse:
        """Apply the fields present in ``request``, then rebuild recommendations."""
        fields = request.model_dump(exclude_unset=True)
        preference = UserPreferenceResponse.model_validate(
            await self.store.upsert_preference(user_id, fields)
        )

        refreshed = await self._refresh_recommendations(user_id)

        return PreferenceUpdateResponse(
            message="Preferences updated successfully",
            preferences=preference,
            recommendations_refreshed=refreshed,
        )

    async def _refresh_recommendations(self, user_id: int) -> bool:
        try:
            await self.generator.generate(user_id)
        except Exception as e:
            logger.error(
                f"Recommendation refresh failed for user {user_id}: {e}", exc_info=True
            )
            return False
        return True

    # ===========================================
    # Reads
    # ===========================================

    async def get_recommendations(
        self, user_id: int, limit: Optional[int] = None
    ) -> list[RecommendationResponse]:
        """
        Current recommendations, best first; generates a set if none is stored.
        """
        if limit is None:
            limit = settings.RECOMMENDATION_RESPONSE_LIMIT

        recommendations = await self.store.list_recommendations(user_id, limit)
        if recommendations:
            return recommendations

        await self.generator.generate(user_id)
        return await self.store.list_recommendations(user_id, limit)

    async def get_activity_stats(self, user_id: int) -> ActivityStatsResponse:
        """
        Activity counts by type, total time, mean completion and daily trend.
        """
        since = datetime.now(timezone.utc) - timedelta(days=settings.ACTIVITY_TREND_DAYS)

        return ActivityStatsResponse(
            activity_counts=await self.store.activity_counts_by_type(user_id),
            total_time_spent_seconds=await self.store.total_duration_seconds(user_id),
            avg_completion_rate=await self.store.average_completion_rate(user_id),
            activity_trend=self._daily_trend(
                await self.store.log_start_times_since(user_id, since)
            ),
        )

    async def get_activity_patterns(self, user_id: int) -> ActivityPatterns:
        logs = await self.store.query_recent_logs(
            user_id, limit=settings.RECOMMENDATION_LOG_WINDOW
        )
        return analyze_activity_patterns(logs)

    async def get_learning_path(self, user_id: int) -> LearningPathResponse:
        completions = await self.store.list_completions(user_id)
        catalog = await self.store.list_catalog_with_subtopics()

        steps = build_learning_path(
            {completion.subtopic_id for completion in completions}, catalog
        )
        return LearningPathResponse(user_id=user_id, steps=steps)

    @staticmethod
    def _daily_trend(start_times: list[datetime]) -> list[DailyActivityCount]:
        """
        Count log entries per UTC calendar day.

        Args:
            start_times: Log start timestamps (naive values are read as UTC).

        Returns:
            One entry per day with activity, oldest first.
        """
        if not start_times:
            return []

        frame = pd.DataFrame({"start_time": pd.to_datetime(start_times, utc=True)})
        per_day = frame.groupby(frame["start_time"].dt.date).size()

        return [
            DailyActivityCount(day=day, count=int(count)) for day, count in per_day.items()
        ]
