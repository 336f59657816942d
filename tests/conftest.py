"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across unit and integration tests.

Environment variables are set at import time, before any ``studyhub``
module is imported, so the module-level settings and engine point at a
throwaway SQLite database and rate limiting is off.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

# ============================================================================
# Environment Configuration
# ============================================================================

_scratch_dir = Path(tempfile.mkdtemp(prefix="studyhub-tests-"))

os.environ.update(
    {
        "DATABASE_URL": f"sqlite+aiosqlite:///{_scratch_dir / 'app.db'}",
        "RATE_LIMIT_ENABLED": "false",
        "DEBUG": "false",
        "LOG_LEVEL": "WARNING",
    }
)

from studyhub.models.catalog import CatalogActivity, CatalogSubtopic  # noqa: E402
from studyhub.models.tracking import ActivityLogEntry  # noqa: E402


# ============================================================================
# Catalog Factories
# ============================================================================


@pytest.fixture
def make_activity() -> Callable[..., CatalogActivity]:
    """
    Factory for catalog activities.

    Subtopics may be given as titles (ids are derived from the activity id)
    or as ready-made CatalogSubtopic objects.
    """

    def _make(
        activity_id: int,
        title: str,
        description: str = "",
        subtopics: Optional[list[Any]] = None,
    ) -> CatalogActivity:
        built: list[CatalogSubtopic] = []
        for position, subtopic in enumerate(subtopics or [], start=1):
            if isinstance(subtopic, CatalogSubtopic):
                built.append(subtopic)
            else:
                built.append(
                    CatalogSubtopic(
                        id=activity_id * 100 + position, title=subtopic, order=position
                    )
                )
        return CatalogActivity(
            id=activity_id, title=title, description=description, subtopics=built
        )

    return _make


@pytest.fixture
def make_log() -> Callable[..., ActivityLogEntry]:
    """Factory for activity log entries with sensible defaults."""
    counter = {"next_id": 1}

    def _make(
        activity_type: str = "study_session",
        activity_id: Optional[int] = None,
        completion_rate: Optional[float] = None,
        duration_seconds: Optional[int] = None,
        start_time: Optional[datetime] = None,
        **extra: Any,
    ) -> ActivityLogEntry:
        log_id = counter["next_id"]
        counter["next_id"] += 1
        return ActivityLogEntry(
            id=log_id,
            user_id=extra.pop("user_id", 1),
            activity_type=activity_type,
            activity_id=activity_id,
            completion_rate=completion_rate,
            duration_seconds=duration_seconds,
            start_time=start_time or datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc),
            **extra,
        )

    return _make


@pytest.fixture
def logs_at_hours(make_log) -> Callable[..., list[ActivityLogEntry]]:
    """Build logs starting at the given UTC hours on consecutive days."""

    def _make(hours: list[int], activity_type: str = "study_session") -> list[ActivityLogEntry]:
        base = datetime(2026, 1, 5, tzinfo=timezone.utc)
        return [
            make_log(
                activity_type=activity_type,
                start_time=base + timedelta(days=index, hours=hour),
            )
            for index, hour in enumerate(hours)
        ]

    return _make
