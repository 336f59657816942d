"""
Integration Tests for the ML Activity API

Tests the /api/ml-activity endpoints through the full application stack
(dependencies, error handling, rate-limit decorators, services, SQLite).

Run with: pytest tests/integration/test_ml_activity_api.py -v
"""

import asyncio

import pytest

pytestmark = pytest.mark.integration


# =============================================================================
# Caller Identity
# =============================================================================


class TestCallerIdentity:
    @pytest.mark.asyncio
    async def test_missing_header_is_401(self, client) -> None:
        response = await client.get("/api/ml-activity/recommendations")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_non_integer_header_is_401(self, client) -> None:
        response = await client.get(
            "/api/ml-activity/recommendations", headers={"X-User-Id": "alice"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self, client) -> None:
        response = await client.get(
            "/api/ml-activity/recommendations", headers={"X-User-Id": "999"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


# =============================================================================
# POST /log
# =============================================================================


class TestLogActivityEndpoint:
    @pytest.mark.asyncio
    async def test_log_returns_201(self, client, alice_headers) -> None:
        response = await client.post(
            "/api/ml-activity/log",
            json={
                "activity_type": "quiz",
                "activity_id": 1,
                "subtopic_id": 11,
                "duration_seconds": 300,
                "completion_rate": 0.9,
                "score": 8,
                "metadata": {"device": "mobile"},
            },
            headers=alice_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Activity logged successfully"
        assert data["recommendations_refreshed"] is True
        entry = data["activity_log"]
        assert entry["activity_type"] == "quiz"
        assert entry["user_id"] == 1
        assert entry["metadata"] == {"device": "mobile"}
        assert entry["end_time"] is not None

    @pytest.mark.asyncio
    async def test_missing_activity_type_is_422(self, client, alice_headers) -> None:
        response = await client.post(
            "/api/ml-activity/log", json={"activity_id": 1}, headers=alice_headers
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"
        assert response.json()["message"] == "Activity type is required"

    @pytest.mark.asyncio
    async def test_unknown_activity_is_404(self, client, alice_headers) -> None:
        response = await client.post(
            "/api/ml-activity/log",
            json={"activity_type": "quiz", "activity_id": 999},
            headers=alice_headers,
        )

        assert response.status_code == 404

    @pytest.mark.parametrize(
        "body",
        [
            pytest.param({"activity_type": "quiz", "completion_rate": 150}, id="rate>100"),
            pytest.param({"activity_type": "quiz", "duration_seconds": -5}, id="negative"),
            pytest.param({"activity_type": "quiz", "unexpected": True}, id="extra-field"),
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid_body_is_422(self, client, alice_headers, body) -> None:
        response = await client.post(
            "/api/ml-activity/log", json=body, headers=alice_headers
        )

        assert response.status_code == 422


# =============================================================================
# PUT /preferences
# =============================================================================


class TestPreferencesEndpoint:
    @pytest.mark.asyncio
    async def test_update_preferences(self, client, alice_headers) -> None:
        response = await client.put(
            "/api/ml-activity/preferences",
            json={"preferred_topics": ["python", "web"], "preferred_time": "evening"},
            headers=alice_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["preferences"]["preferred_topics"] == ["python", "web"]
        assert data["preferences"]["preferred_time"] == "evening"
        assert data["recommendations_refreshed"] is True

    @pytest.mark.asyncio
    async def test_partial_update(self, client, alice_headers) -> None:
        await client.put(
            "/api/ml-activity/preferences",
            json={"preferred_topics": ["python"], "learning_style": "visual"},
            headers=alice_headers,
        )

        response = await client.put(
            "/api/ml-activity/preferences",
            json={"difficulty_level": "advanced"},
            headers=alice_headers,
        )

        prefs = response.json()["preferences"]
        assert prefs["preferred_topics"] == ["python"]
        assert prefs["learning_style"] == "visual"
        assert prefs["difficulty_level"] == "advanced"


# =============================================================================
# GET /recommendations
# =============================================================================


class TestRecommendationsEndpoint:
    @pytest.mark.asyncio
    async def test_empty_history_gives_empty_list(self, client, alice_headers) -> None:
        response = await client.get(
            "/api/ml-activity/recommendations", headers=alice_headers
        )

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_reflects_logs_and_preferences(self, client, alice_headers) -> None:
        await client.post(
            "/api/ml-activity/log",
            json={"activity_type": "quiz", "activity_id": 1, "completion_rate": 0.9},
            headers=alice_headers,
        )
        await client.put(
            "/api/ml-activity/preferences",
            json={"preferred_topics": ["python", "web"]},
            headers=alice_headers,
        )

        response = await client.get(
            "/api/ml-activity/recommendations", headers=alice_headers
        )

        data = response.json()
        assert [(r["activity_id"], r["recommendation_type"]) for r in data] == [
            (4, "similar_content"),
            (2, "next_topic"),
        ]
        assert data[0]["score"] == 1.0
        assert data[1]["score"] == pytest.approx(0.6)
        assert data[1]["subtopic_id"] == 21

    @pytest.mark.asyncio
    async def test_limit(self, client, alice_headers) -> None:
        await client.put(
            "/api/ml-activity/preferences",
            json={"preferred_topics": ["python"]},
            headers=alice_headers,
        )
        await client.post(
            "/api/ml-activity/log",
            json={"activity_type": "quiz", "activity_id": 1, "completion_rate": 0.9},
            headers=alice_headers,
        )

        response = await client.get(
            "/api/ml-activity/recommendations",
            params={"limit": 1},
            headers=alice_headers,
        )

        assert len(response.json()) == 1

    @pytest.mark.asyncio
    async def test_users_are_isolated(self, client, alice_headers, bob_headers) -> None:
        await client.post(
            "/api/ml-activity/log",
            json={"activity_type": "quiz", "activity_id": 1},
            headers=alice_headers,
        )

        response = await client.get(
            "/api/ml-activity/recommendations", headers=bob_headers
        )

        assert response.json() == []

    @pytest.mark.asyncio
    async def test_concurrent_logs_leave_one_runs_output(
        self, client, alice_headers
    ) -> None:
        await client.put(
            "/api/ml-activity/preferences",
            json={"preferred_topics": ["python", "web"]},
            headers=alice_headers,
        )
        body = {"activity_type": "quiz", "activity_id": 1, "completion_rate": 0.9}

        responses = await asyncio.gather(
            client.post("/api/ml-activity/log", json=body, headers=alice_headers),
            client.post("/api/ml-activity/log", json=body, headers=alice_headers),
        )

        assert [r.status_code for r in responses] == [201, 201]
        recommendations = await client.get(
            "/api/ml-activity/recommendations",
            params={"limit": 50},
            headers=alice_headers,
        )
        # one next_topic (activity 2) and one similar_content (activity 4)
        assert len(recommendations.json()) == 2


# =============================================================================
# Analytics
# =============================================================================


class TestAnalyticsEndpoints:
    @pytest.mark.asyncio
    async def test_stats(self, client, alice_headers) -> None:
        for body in [
            {"activity_type": "quiz", "duration_seconds": 60, "completion_rate": 50},
            {"activity_type": "reading", "duration_seconds": 90},
        ]:
            await client.post("/api/ml-activity/log", json=body, headers=alice_headers)

        response = await client.get("/api/ml-activity/stats", headers=alice_headers)

        assert response.status_code == 200
        data = response.json()
        assert {c["activity_type"]: c["count"] for c in data["activity_counts"]} == {
            "quiz": 1,
            "reading": 1,
        }
        assert data["total_time_spent_seconds"] == 150
        assert data["avg_completion_rate"] == pytest.approx(50.0)
        assert len(data["activity_trend"]) == 1
        assert data["activity_trend"][0]["count"] == 2

    @pytest.mark.asyncio
    async def test_stats_for_new_user(self, client, bob_headers) -> None:
        response = await client.get("/api/ml-activity/stats", headers=bob_headers)

        assert response.json() == {
            "activity_counts": [],
            "total_time_spent_seconds": 0,
            "avg_completion_rate": 0.0,
            "activity_trend": [],
        }

    @pytest.mark.asyncio
    async def test_patterns(self, client, alice_headers) -> None:
        for _ in range(5):
            await client.post(
                "/api/ml-activity/log",
                json={"activity_type": "quiz", "duration_seconds": 100},
                headers=alice_headers,
            )

        response = await client.get("/api/ml-activity/patterns", headers=alice_headers)

        data = response.json()
        assert data["most_frequent_type"] == "quiz"
        assert data["average_duration"] == 100
        assert data["preferred_time"] in {"morning", "afternoon", "evening", "night"}
        assert {p["type"] for p in data["patterns"]} >= {"type_preference"}

    @pytest.mark.asyncio
    async def test_patterns_insufficient_data(self, client, alice_headers) -> None:
        response = await client.get("/api/ml-activity/patterns", headers=alice_headers)

        assert response.json() == {
            "preferred_time": None,
            "average_duration": None,
            "most_frequent_type": None,
            "patterns": [],
        }

    @pytest.mark.asyncio
    async def test_learning_path(self, client, alice_headers) -> None:
        await client.post(
            "/api/activities/subtopics/11/complete", headers=alice_headers
        )

        response = await client.get(
            "/api/ml-activity/learning-path", headers=alice_headers
        )

        data = response.json()
        assert data["user_id"] == 1
        assert data["steps"][0]["subtopic_id"] == 12
        assert data["steps"][0]["step"] == 1
        assert 11 not in [step["subtopic_id"] for step in data["steps"]]
