"""
Integration Tests for Activity Tracking and Recommendation Generation

Runs ActivityTrackingService and RecommendationGenerator against a real
SQLite database to check end-to-end behavior:
- Logging and preference updates refresh the stored set
- Each run fully replaces the previous set
- Concurrent triggers for one user leave exactly one run's output
- Stats, patterns and learning path read the stored data
"""

import asyncio

import pytest
from sqlalchemy import func, select

from studyhub.db.models_tracking import MLRecommendation, UserActivityLog
from studyhub.enums.recommendation import RecommendationType
from studyhub.middleware.error_handling import NotFoundError, StoreError, ValidationError
from studyhub.models.tracking import LogActivityRequest, PreferenceUpdateRequest
from studyhub.services.recommendation import (
    ActivityTrackingService,
    RecommendationGenerator,
    RecommendationStore,
    UserLockRegistry,
)

pytestmark = pytest.mark.integration


async def _stored_rows(session_maker, user_id: int) -> list[MLRecommendation]:
    async with session_maker() as session:
        result = await session.execute(
            select(MLRecommendation)
            .where(MLRecommendation.user_id == user_id)
            .order_by(MLRecommendation.id)
        )
        return list(result.scalars().all())


# =============================================================================
# Logging and Preferences
# =============================================================================


class TestLogActivity:
    @pytest.mark.asyncio
    async def test_log_refreshes_recommendations(self, db_session, session_maker, seeded):
        service = ActivityTrackingService(db_session)

        response = await service.log_activity(
            1,
            LogActivityRequest(
                activity_type="quiz", activity_id=1, completion_rate=0.9, duration_seconds=300
            ),
        )

        assert response.recommendations_refreshed is True
        assert response.activity_log.activity_type == "quiz"
        assert response.activity_log.end_time is not None

        rows = await _stored_rows(session_maker, 1)
        # quiz Geometry: related (+0.3), strong performance (+0.2), untried (+0.1)
        assert [(r.activity_id, r.subtopic_id) for r in rows] == [(2, 21)]
        assert rows[0].score == pytest.approx(0.6)
        assert rows[0].recommendation_type == RecommendationType.NEXT_TOPIC.value

    @pytest.mark.asyncio
    async def test_missing_type_writes_nothing(self, db_session, session_maker, seeded):
        service = ActivityTrackingService(db_session)

        with pytest.raises(ValidationError):
            await service.log_activity(1, LogActivityRequest(activity_id=1))

        async with session_maker() as session:
            count = await session.scalar(select(func.count(UserActivityLog.id)))
        assert count == 0

    @pytest.mark.asyncio
    async def test_unknown_subtopic(self, db_session, seeded):
        with pytest.raises(NotFoundError):
            await ActivityTrackingService(db_session).log_activity(
                1, LogActivityRequest(activity_type="quiz", subtopic_id=999)
            )

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_log_and_previous_set(
        self, db_session, session_maker, seeded, monkeypatch
    ):
        service = ActivityTrackingService(db_session)
        await service.log_activity(1, LogActivityRequest(activity_type="quiz", activity_id=1))
        before = [(r.activity_id, r.score) for r in await _stored_rows(session_maker, 1)]

        async def failing_insert(rows):
            raise StoreError("Store operation 'bulk_insert_recommendations' failed")

        monkeypatch.setattr(service.store, "bulk_insert_recommendations", failing_insert)

        response = await service.log_activity(
            1, LogActivityRequest(activity_type="reading", activity_id=3)
        )

        assert response.recommendations_refreshed is False
        async with session_maker() as session:
            count = await session.scalar(select(func.count(UserActivityLog.id)))
        assert count == 2
        # the delete was rolled back with the failed run
        assert [(r.activity_id, r.score) for r in await _stored_rows(session_maker, 1)] == before


class TestUpdatePreferences:
    @pytest.mark.asyncio
    async def test_preferences_add_similar_content(self, db_session, session_maker, seeded):
        service = ActivityTrackingService(db_session)

        response = await service.update_preferences(
            1, PreferenceUpdateRequest(preferred_topics=["python", "web"])
        )

        assert response.recommendations_refreshed is True
        assert response.preferences.preferred_topics == ["python", "web"]
        rows = await _stored_rows(session_maker, 1)
        assert [(r.activity_id, r.recommendation_type) for r in rows] == [
            (4, RecommendationType.SIMILAR_CONTENT.value)
        ]
        assert rows[0].reason == "Based on your interest in python, web"

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session, seeded):
        service = ActivityTrackingService(db_session)
        await service.update_preferences(
            1,
            PreferenceUpdateRequest(preferred_topics=["python"], learning_style="visual"),
        )

        response = await service.update_preferences(
            1, PreferenceUpdateRequest(difficulty_level="beginner")
        )

        assert response.preferences.preferred_topics == ["python"]
        assert response.preferences.learning_style == "visual"
        assert response.preferences.difficulty_level == "beginner"


# =============================================================================
# Full Replace and Concurrency
# =============================================================================


class TestReplaceSemantics:
    @pytest.mark.asyncio
    async def test_rerun_replaces_instead_of_appending(
        self, db_session, session_maker, seeded
    ):
        service = ActivityTrackingService(db_session)
        await service.log_activity(1, LogActivityRequest(activity_type="quiz", activity_id=1))
        first = await _stored_rows(session_maker, 1)

        await service.update_preferences(
            1, PreferenceUpdateRequest(preferred_topics=["python", "web"])
        )

        second = await _stored_rows(session_maker, 1)
        assert [(r.activity_id, r.recommendation_type) for r in first] == [
            (2, RecommendationType.NEXT_TOPIC.value)
        ]
        assert [(r.activity_id, r.recommendation_type) for r in second] == [
            (2, RecommendationType.NEXT_TOPIC.value),
            (4, RecommendationType.SIMILAR_CONTENT.value),
        ]

    @pytest.mark.asyncio
    async def test_stale_rows_removed_when_run_yields_nothing(
        self, db_session, session_maker, seeded
    ):
        service = ActivityTrackingService(db_session)
        await service.log_activity(1, LogActivityRequest(activity_type="quiz", activity_id=1))
        assert await _stored_rows(session_maker, 1)

        # latest activity is now 2 and nothing else scores above the floor
        await service.log_activity(
            1, LogActivityRequest(activity_type="reading", activity_id=2)
        )

        assert await _stored_rows(session_maker, 1) == []

    @pytest.mark.asyncio
    async def test_other_users_untouched(self, db_session, session_maker, seeded):
        service = ActivityTrackingService(db_session)
        await service.log_activity(2, LogActivityRequest(activity_type="quiz", activity_id=1))
        bob_rows = [r.id for r in await _stored_rows(session_maker, 2)]

        await service.log_activity(1, LogActivityRequest(activity_type="quiz", activity_id=2))

        assert [r.id for r in await _stored_rows(session_maker, 2)] == bob_rows

    @pytest.mark.asyncio
    async def test_concurrent_runs_leave_one_runs_output(self, session_maker, seeded):
        async with session_maker() as session:
            await ActivityTrackingService(session).update_preferences(
                1, PreferenceUpdateRequest(preferred_topics=["python", "web"])
            )
            await RecommendationStore(session).insert_log_entry(
                user_id=1, activity_type="quiz", activity_id=1, completion_rate=0.9
            )

        locks = UserLockRegistry()

        async def run() -> list[dict]:
            async with session_maker() as session:
                return await RecommendationGenerator(
                    RecommendationStore(session), locks
                ).generate(1)

        first, second = await asyncio.gather(run(), run())

        stored = await _stored_rows(session_maker, 1)
        assert len(first) == len(second)
        assert len(stored) == len(first)
        assert len(stored) < len(first) + len(second)


# =============================================================================
# Reads
# =============================================================================


class TestReads:
    @pytest.mark.asyncio
    async def test_get_recommendations_generates_on_first_call(self, db_session, seeded):
        store = RecommendationStore(db_session)
        await store.insert_log_entry(user_id=1, activity_type="quiz", activity_id=1)

        recommendations = await ActivityTrackingService(db_session).get_recommendations(1)

        assert [r.activity_id for r in recommendations] == [2]
        assert recommendations[0].reason == (
            "Related to your recent activity and you haven't tried this yet"
        )

    @pytest.mark.asyncio
    async def test_activity_stats(self, db_session, seeded):
        service = ActivityTrackingService(db_session)
        for activity_type, duration, rate in [
            ("quiz", 60, 40.0),
            ("quiz", 120, 80.0),
            ("reading", 30, None),
        ]:
            await service.store.insert_log_entry(
                user_id=1,
                activity_type=activity_type,
                duration_seconds=duration,
                completion_rate=rate,
            )

        stats = await service.get_activity_stats(1)

        assert {c.activity_type: c.count for c in stats.activity_counts} == {
            "quiz": 2,
            "reading": 1,
        }
        assert stats.total_time_spent_seconds == 210
        assert stats.avg_completion_rate == pytest.approx(60.0)
        assert sum(day.count for day in stats.activity_trend) == 3

    @pytest.mark.asyncio
    async def test_patterns_need_five_logs(self, db_session, seeded):
        service = ActivityTrackingService(db_session)
        for _ in range(4):
            await service.store.insert_log_entry(user_id=1, activity_type="quiz")

        assert (await service.get_activity_patterns(1)).preferred_time is None

        await service.store.insert_log_entry(user_id=1, activity_type="quiz")
        patterns = await service.get_activity_patterns(1)

        assert patterns.most_frequent_type == "quiz"
        assert patterns.preferred_time is not None

    @pytest.mark.asyncio
    async def test_learning_path_uses_completions(self, db_session, seeded):
        service = ActivityTrackingService(db_session)
        await service.store.add_completion(1, 41)

        path = await service.get_learning_path(1)

        assert path.user_id == 1
        assert path.steps[0].subtopic_id == 42
        assert 41 not in [step.subtopic_id for step in path.steps]
        assert [step.step for step in path.steps] == list(range(1, len(path.steps) + 1))
