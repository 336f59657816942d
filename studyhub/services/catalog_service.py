"""
Catalog Service

Read access to activities and subtopics, and subtopic completion.

Usage:
    from studyhub.services.catalog_service import CatalogService

    service = CatalogService(db)
    detail = await service.get_activity(activity_id, user_id)
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from studyhub.middleware.error_handling import NotFoundError
from studyhub.models.catalog import (
    ActivityDetail,
    CatalogActivity,
    CompletionRecord,
    SubtopicCompletionResponse,
    SubtopicStatus,
)
from studyhub.services.recommendation.store import RecommendationStore

logger = logging.getLogger(__name__)


class CatalogService:
    """Catalog browsing and per-user completion tracking."""

    def __init__(self, db: AsyncSession):
        self.store = RecommendationStore(db)

    async def list_activities(self) -> list[CatalogActivity]:
        return await self.store.list_catalog_with_subtopics()

    async def get_activity(self, activity_id: int, user_id: int) -> ActivityDetail:
        """
        One activity with the caller's completion flag on each subtopic.

        Raises:
            NotFoundError: If the activity doesn't exist.
        """
        activity = await self.store.get_catalog_activity(activity_id)
        if activity is None:
            raise NotFoundError(f"Activity {activity_id} not found")

        completed = {
            completion.subtopic_id
            for completion in await self.store.list_completions(user_id)
        }
        subtopics = [
            SubtopicStatus(
                **subtopic.model_dump(), is_completed=subtopic.id in completed
            )
            for subtopic in activity.subtopics
        ]

        return ActivityDetail(
            id=activity.id,
            title=activity.title,
            description=activity.description,
            subtopics=subtopics,
            total_subtopics=len(subtopics),
            completed_subtopics=sum(1 for subtopic in subtopics if subtopic.is_completed),
        )

    async def complete_subtopic(
        self, user_id: int, subtopic_id: int
    ) -> SubtopicCompletionResponse:
        """
        Mark a subtopic finished (idempotent) and report activity progress.

        Raises:
            NotFoundError: If the subtopic doesn't exist.
        """
        subtopic = await self.store.get_subtopic(subtopic_id)
        if subtopic is None:
            raise NotFoundError(f"Subtopic {subtopic_id} not found")
        activity_id = subtopic.activity_id

        completion, created = await self.store.add_completion(user_id, subtopic_id)
        record = CompletionRecord(
            subtopic_id=completion.subtopic_id,
            activity_id=activity_id,
            completed_at=completion.completed_at,
        )

        activity = await self.store.get_catalog_activity(activity_id)
        total = len(activity.subtopics) if activity else 0
        done = await self.store.count_completed_in_activity(user_id, activity_id)
        progress = round(done / total * 100) if total else 0

        if created:
            logger.info(
                f"User {user_id} completed subtopic {subtopic_id} "
                f"({done}/{total} in activity {activity_id})"
            )

        return SubtopicCompletionResponse(
            message="Subtopic marked as complete" if created else "Subtopic already completed",
            completion=record,
            progress=progress,
        )
