"""
Recommendation Store

Async data access for the tracking and recommendation components. One
store wraps one AsyncSession; services receive it explicitly instead of
reaching for a global client, so each request (and each test) gets its
own isolated handle.

Database failures are rolled back and re-raised as StoreError.

Usage:
    from studyhub.services.recommendation.store import RecommendationStore

    store = RecommendationStore(db)
    logs = await store.query_recent_logs(user_id, limit=50)
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from studyhub.db.models import Activity, Subtopic, SubtopicCompletion, User
from studyhub.db.models_tracking import MLRecommendation, UserActivityLog, UserPreference
from studyhub.middleware.error_handling import StoreError
from studyhub.models.catalog import CatalogActivity, CompletionRecord
from studyhub.models.tracking import (
    ActivityLogEntry,
    ActivityTypeCount,
    RecommendationResponse,
    UserPreferenceResponse,
)

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS = (
    "preferred_topics",
    "preferred_time",
    "learning_style",
    "difficulty_level",
)


class RecommendationStore:
    """
    Store handle over an async database session.

    Read methods return Pydantic records; write methods return ORM rows.
    Only ``insert_log_entry``, ``upsert_preference``, ``add_completion``
    and ``commit`` end a transaction.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the store.

        Args:
            db: SQLAlchemy async database session.
        """
        self.db = db

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        """Translate database errors for ``operation`` into StoreError."""
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Store operation '{operation}' failed: {e}")
            await self.db.rollback()
            raise StoreError(
                f"Store operation '{operation}' failed",
                details={"operation": operation},
            ) from e

    # ===========================================
    # Transactions
    # ===========================================

    async def commit(self) -> None:
        async with self._guard("commit"):
            await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    # ===========================================
    # Identity lookups
    # ===========================================

    async def get_user(self, user_id: int) -> Optional[User]:
        async with self._guard("get_user"):
            return await self.db.get(User, user_id)

    async def get_activity(self, activity_id: int) -> Optional[Activity]:
        async with self._guard("get_activity"):
            return await self.db.get(Activity, activity_id)

    async def get_subtopic(self, subtopic_id: int) -> Optional[Subtopic]:
        async with self._guard("get_subtopic"):
            return await self.db.get(Subtopic, subtopic_id)

    # ===========================================
    # Activity log
    # ===========================================

    async def insert_log_entry(
        self,
        user_id: int,
        activity_type: str,
        activity_id: Optional[int] = None,
        subtopic_id: Optional[int] = None,
        duration_seconds: Optional[int] = None,
        completion_rate: Optional[float] = None,
        score: Optional[float] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UserActivityLog:
        """
        Append an activity log entry and commit it.

        start_time is set now; end_time is derived when a duration is given.
        """
        start_time = datetime.now(timezone.utc)
        end_time = (
            start_time + timedelta(seconds=duration_seconds)
            if duration_seconds is not None
            else None
        )

        log = UserActivityLog(
            user_id=user_id,
            activity_type=activity_type,
            activity_id=activity_id,
            subtopic_id=subtopic_id,
            duration_seconds=duration_seconds,
            completion_rate=completion_rate,
            score=score,
            start_time=start_time,
            end_time=end_time,
            metadata_=metadata or {},
        )

        async with self._guard("insert_log_entry"):
            self.db.add(log)
            await self.db.commit()
            await self.db.refresh(log)
        return log

    async def query_recent_logs(self, user_id: int, limit: int) -> list[ActivityLogEntry]:
        """Most recent logs for a user, newest first."""
        query = (
            select(UserActivityLog)
            .where(UserActivityLog.user_id == user_id)
            .order_by(UserActivityLog.start_time.desc(), UserActivityLog.id.desc())
            .limit(limit)
        )
        async with self._guard("query_recent_logs"):
            result = await self.db.execute(query)
            rows = result.scalars().all()
        return [ActivityLogEntry.model_validate(row) for row in rows]

    async def activity_counts_by_type(self, user_id: int) -> list[ActivityTypeCount]:
        query = (
            select(UserActivityLog.activity_type, func.count(UserActivityLog.id))
            .where(UserActivityLog.user_id == user_id)
            .group_by(UserActivityLog.activity_type)
            .order_by(UserActivityLog.activity_type)
        )
        async with self._guard("activity_counts_by_type"):
            result = await self.db.execute(query)
            rows = result.all()
        return [ActivityTypeCount(activity_type=t, count=c) for t, c in rows]

    async def total_duration_seconds(self, user_id: int) -> int:
        query = select(func.sum(UserActivityLog.duration_seconds)).where(
            UserActivityLog.user_id == user_id,
            UserActivityLog.duration_seconds.isnot(None),
        )
        async with self._guard("total_duration_seconds"):
            total = await self.db.scalar(query)
        return int(total or 0)

    async def average_completion_rate(self, user_id: int) -> float:
        query = select(func.avg(UserActivityLog.completion_rate)).where(
            UserActivityLog.user_id == user_id,
            UserActivityLog.completion_rate.isnot(None),
        )
        async with self._guard("average_completion_rate"):
            average = await self.db.scalar(query)
        return float(average or 0.0)

    async def log_start_times_since(self, user_id: int, since: datetime) -> list[datetime]:
        query = (
            select(UserActivityLog.start_time)
            .where(
                UserActivityLog.user_id == user_id,
                UserActivityLog.start_time >= since,
            )
            .order_by(UserActivityLog.start_time)
        )
        async with self._guard("log_start_times_since"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    # ===========================================
    # Preferences
    # ===========================================

    async def get_preference(self, user_id: int) -> Optional[UserPreferenceResponse]:
        query = select(UserPreference).where(UserPreference.user_id == user_id)
        async with self._guard("get_preference"):
            preference = await self.db.scalar(query)
        if preference is None:
            return None
        return UserPreferenceResponse.model_validate(preference)

    async def upsert_preference(
        self, user_id: int, fields: dict[str, Any]
    ) -> UserPreference:
        """
        Create or update a user's preferences and commit.

        Only keys present in ``fields`` are written.
        """
        unknown = set(fields) - set(PREFERENCE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown preference fields: {sorted(unknown)}")

        async with self._guard("upsert_preference"):
            preference = await self.db.scalar(
                select(UserPreference).where(UserPreference.user_id == user_id)
            )
            if preference is None:
                preference = UserPreference(user_id=user_id, preferred_topics=[])
                self.db.add(preference)

            for name, value in fields.items():
                if name == "preferred_topics" and value is None:
                    value = []
                setattr(preference, name, value)

            await self.db.commit()
            await self.db.refresh(preference)
        return preference

    # ===========================================
    # Completions
    # ===========================================

    async def list_completions(self, user_id: int) -> list[CompletionRecord]:
        """Finished subtopics for a user, joined with their parent activity."""
        query = (
            select(
                SubtopicCompletion.subtopic_id,
                Subtopic.activity_id,
                SubtopicCompletion.completed_at,
            )
            .join(Subtopic, Subtopic.id == SubtopicCompletion.subtopic_id)
            .where(SubtopicCompletion.user_id == user_id)
            .order_by(SubtopicCompletion.completed_at)
        )
        async with self._guard("list_completions"):
            result = await self.db.execute(query)
            rows = result.all()
        return [
            CompletionRecord(subtopic_id=s, activity_id=a, completed_at=c)
            for s, a, c in rows
        ]

    async def add_completion(
        self, user_id: int, subtopic_id: int
    ) -> tuple[SubtopicCompletion, bool]:
        """
        Record a completion once per (user, subtopic) and commit.

        Returns:
            (completion row, whether it was newly created)
        """
        async with self._guard("add_completion"):
            existing = await self.db.scalar(
                select(SubtopicCompletion).where(
                    SubtopicCompletion.user_id == user_id,
                    SubtopicCompletion.subtopic_id == subtopic_id,
                )
            )
            if existing is not None:
                return existing, False

            completion = SubtopicCompletion(user_id=user_id, subtopic_id=subtopic_id)
            self.db.add(completion)
            await self.db.commit()
            await self.db.refresh(completion)
        return completion, True

    async def count_completed_in_activity(self, user_id: int, activity_id: int) -> int:
        query = (
            select(func.count(SubtopicCompletion.id))
            .join(Subtopic, Subtopic.id == SubtopicCompletion.subtopic_id)
            .where(
                SubtopicCompletion.user_id == user_id,
                Subtopic.activity_id == activity_id,
            )
        )
        async with self._guard("count_completed_in_activity"):
            return int(await self.db.scalar(query) or 0)

    # ===========================================
    # Catalog
    # ===========================================

    async def list_catalog_with_subtopics(self) -> list[CatalogActivity]:
        """All activities by id, each with subtopics in ``order``."""
        query = (
            select(Activity)
            .options(selectinload(Activity.subtopics))
            .order_by(Activity.id)
        )
        async with self._guard("list_catalog_with_subtopics"):
            result = await self.db.execute(query)
            activities = result.scalars().all()
        return [CatalogActivity.model_validate(activity) for activity in activities]

    async def get_catalog_activity(self, activity_id: int) -> Optional[CatalogActivity]:
        query = (
            select(Activity)
            .options(selectinload(Activity.subtopics))
            .where(Activity.id == activity_id)
        )
        async with self._guard("get_catalog_activity"):
            activity = await self.db.scalar(query)
        if activity is None:
            return None
        return CatalogActivity.model_validate(activity)

    # ===========================================
    # Recommendations
    # ===========================================

    async def delete_recommendations(self, user_id: int) -> None:
        """Delete a user's recommendation set (not committed)."""
        async with self._guard("delete_recommendations"):
            await self.db.execute(
                delete(MLRecommendation).where(MLRecommendation.user_id == user_id)
            )

    async def bulk_insert_recommendations(self, rows: list[dict[str, Any]]) -> None:
        """Stage new recommendation rows (not committed)."""
        if not rows:
            return
        async with self._guard("bulk_insert_recommendations"):
            self.db.add_all([MLRecommendation(**row) for row in rows])
            await self.db.flush()

    async def list_recommendations(
        self, user_id: int, limit: int
    ) -> list[RecommendationResponse]:
        """A user's recommendations, best score first."""
        query = (
            select(MLRecommendation)
            .where(MLRecommendation.user_id == user_id)
            .order_by(MLRecommendation.score.desc(), MLRecommendation.id)
            .limit(limit)
        )
        async with self._guard("list_recommendations"):
            result = await self.db.execute(query)
            rows = result.scalars().all()
        return [RecommendationResponse.model_validate(row) for row in rows]
