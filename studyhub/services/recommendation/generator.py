"""
Recommendation Generator

Rebuilds a user's recommendation set from their recent activity,
declared preferences, completions and the catalog.

Run steps (all inside one store transaction, under the user's lock):
1. Delete the user's current recommendation rows
2. Load recent logs, preferences, completions and the catalog
3. next_topic rows from the next-activity predictor
4. similar_content rows for untried activities matching preferred topics
5. Drop malformed rows, insert the rest, commit

Holding the per-user lock across the whole run means concurrent triggers
for one user execute one after the other, and the committed set always
comes from a single run. A failure rolls the transaction back, leaving
the previous set in place.

Usage:
    from studyhub.services.recommendation.generator import RecommendationGenerator

    generator = RecommendationGenerator(RecommendationStore(db), locks)
    rows = await generator.generate(user_id)
"""

import logging
from numbers import Real
from typing import Any, Optional, Sequence

from studyhub.config import settings
from studyhub.enums.recommendation import RecommendationType
from studyhub.middleware.error_handling import ScoringError
from studyhub.models.catalog import CatalogActivity
from studyhub.models.tracking import ActivityLogEntry
from studyhub.services.recommendation.locks import UserLockRegistry
from studyhub.services.recommendation.predictor import (
    CategoryMatcher,
    predict_next_activities,
    title_first_word_matches,
)
from studyhub.services.recommendation.similarity import calculate_similarity
from studyhub.services.recommendation.store import RecommendationStore

logger = logging.getLogger(__name__)


def is_valid_recommendation(row: Any) -> bool:
    """Whether a candidate row is safe to persist."""
    if not isinstance(row, dict):
        return False
    score = row.get("score")
    return (
        row.get("user_id") is not None
        and bool(row.get("recommendation_type"))
        and isinstance(score, Real)
        and not isinstance(score, bool)
    )


class RecommendationGenerator:
    """
    Orchestrates one recommendation run per call.

    Combines the next-activity predictor with preference similarity and
    replaces the user's stored set.
    """

    def __init__(
        self,
        store: RecommendationStore,
        locks: Optional[UserLockRegistry] = None,
        category_matcher: CategoryMatcher = title_first_word_matches,
    ):
        """
        Initialize the generator.

        Args:
            store: Store handle for the current session.
            locks: Shared per-user lock registry. Generators that should
                serialize against each other must share one registry.
            category_matcher: Category predicate passed to the predictor.
        """
        self.store = store
        self.locks = locks if locks is not None else UserLockRegistry()
        self.category_matcher = category_matcher

    async def generate(self, user_id: int) -> list[dict[str, Any]]:
        """
        Replace the user's recommendation set.

        Args:
            user_id: User to generate for.

        Returns:
            The rows that were persisted.

        Raises:
            StoreError: If loading or persisting fails; nothing is committed.
        """
        async with self.locks.lock_for(user_id):
            try:
                return await self._run(user_id)
            except Exception:
                await self.store.rollback()
                raise

    async def _run(self, user_id: int) -> list[dict[str, Any]]:
        await self.store.delete_recommendations(user_id)

        logs = await self.store.query_recent_logs(
            user_id, limit=settings.RECOMMENDATION_LOG_WINDOW
        )
        preference = await self.store.get_preference(user_id)
        completions = await self.store.list_completions(user_id)
        catalog = await self.store.list_catalog_with_subtopics()

        completed_subtopic_ids = {completion.subtopic_id for completion in completions}

        rows: list[dict[str, Any]] = [
            {
                "user_id": user_id,
                "activity_id": candidate.activity_id,
                "subtopic_id": candidate.subtopic_id,
                "recommendation_type": RecommendationType.NEXT_TOPIC.value,
                "score": candidate.score,
                "reason": candidate.reason,
            }
            for candidate in predict_next_activities(
                logs,
                catalog,
                completed_subtopic_ids=completed_subtopic_ids,
                category_matcher=self.category_matcher,
            )
        ]

        if preference is not None and preference.preferred_topics:
            rows.extend(
                self._similar_content_rows(
                    user_id, logs, catalog, preference.preferred_topics
                )
            )

        valid_rows = [row for row in rows if is_valid_recommendation(row)]
        if len(valid_rows) != len(rows):
            logger.warning(
                f"Dropped {len(rows) - len(valid_rows)} malformed recommendations "
                f"for user {user_id}"
            )

        await self.store.bulk_insert_recommendations(valid_rows)
        await self.store.commit()

        logger.info(
            f"Generated {len(valid_rows)} recommendations for user {user_id} "
            f"from {len(logs)} logs and {len(catalog)} activities"
        )
        return valid_rows

    @staticmethod
    def _similar_content_rows(
        user_id: int,
        logs: Sequence[ActivityLogEntry],
        catalog: Sequence[CatalogActivity],
        preferred_topics: list[str],
    ) -> list[dict[str, Any]]:
        """
        Score untried activities against preferred topics.

        A candidate whose scoring raises ScoringError is logged and skipped.
        """
        tried_activity_ids = {log.activity_id for log in logs}
        reason = f"Based on your interest in {', '.join(preferred_topics)}"

        scored: list[tuple[float, CatalogActivity]] = []
        for activity in catalog:
            if activity.id in tried_activity_ids:
                continue
            try:
                similarity = calculate_similarity(activity, preferred_topics)
            except ScoringError as e:
                logger.warning(f"Skipping activity {activity.id} for user {user_id}: {e}")
                continue
            if similarity > settings.SIMILAR_CONTENT_MIN_SCORE:
                scored.append((similarity, activity))

        scored.sort(key=lambda item: item[0], reverse=True)

        return [
            {
                "user_id": user_id,
                "activity_id": activity.id,
                "subtopic_id": None,
                "recommendation_type": RecommendationType.SIMILAR_CONTENT.value,
                "score": similarity,
                "reason": reason,
            }
            for similarity, activity in scored[: settings.SIMILAR_CONTENT_MAX_RESULTS]
        ]
