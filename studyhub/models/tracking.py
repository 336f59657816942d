"""
Activity Tracking API Models (Pydantic)

Request/response schemas for activity logging, preferences,
recommendations and analytics, plus the in-process records the
recommendation components operate on.

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for API validation.
    There is a corresponding SQLAlchemy file: studyhub/db/models_tracking.py

    Data flows: API Request → Pydantic → Service → SQLAlchemy → Database

API Contract:
    Request models use StrictRequest (extra="forbid") to reject unknown fields.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from pydantic import AliasChoices, Field

from studyhub.enums.recommendation import PatternType, RecommendationType, TimeOfDay
from studyhub.models.base import StrictRequest, StrictResponse


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ===========================================
# Activity Log Models
# ===========================================


class ActivityLogEntry(StrictResponse):
    """
    One logged interaction.

    Built from UserActivityLog rows (whose JSON column is mapped as
    ``metadata_``) or directly in tests.
    """

    id: Optional[int] = None
    user_id: Optional[int] = None
    activity_type: str
    activity_id: Optional[int] = None
    subtopic_id: Optional[int] = None
    duration_seconds: Optional[int] = None
    completion_rate: Optional[float] = None
    score: Optional[float] = None
    start_time: datetime = Field(default_factory=_utc_now)
    end_time: Optional[datetime] = None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )


class LogActivityRequest(StrictRequest):
    """
    Request to log a user interaction.

    ``activity_type`` is optional at the schema level so the service can
    report its absence as a ValidationError.
    """

    activity_type: Optional[str] = Field(
        None, max_length=50, description="Free-form tag, e.g. study_session or quiz"
    )
    activity_id: Optional[int] = Field(None, description="Catalog activity id")
    subtopic_id: Optional[int] = Field(None, description="Catalog subtopic id")
    duration_seconds: Optional[int] = Field(None, ge=0, description="Time spent")
    completion_rate: Optional[float] = Field(
        None, ge=0, le=100, description="Completion percentage (0-100)"
    )
    score: Optional[float] = Field(None, description="Numeric result")
    metadata: Optional[dict[str, Any]] = Field(None, description="Open key/value map")


class LogActivityResponse(StrictResponse):
    """Result of logging an interaction."""

    message: str
    activity_log: ActivityLogEntry
    recommendations_refreshed: bool = Field(
        ..., description="False when regeneration failed after the log was stored"
    )


# ===========================================
# Preference Models
# ===========================================


class PreferenceUpdateRequest(StrictRequest):
    """
    Partial preference update.

    Only fields present in the request body are written; omitted fields
    keep their stored value.
    """

    preferred_topics: Optional[list[str]] = None
    preferred_time: Optional[str] = Field(None, max_length=50)
    learning_style: Optional[str] = Field(None, max_length=50)
    difficulty_level: Optional[str] = Field(None, max_length=50)


class UserPreferenceResponse(StrictResponse):
    """Stored preferences for a user."""

    user_id: int
    preferred_topics: list[str] = Field(default_factory=list)
    preferred_time: Optional[str] = None
    learning_style: Optional[str] = None
    difficulty_level: Optional[str] = None


class PreferenceUpdateResponse(StrictResponse):
    """Result of a preference update."""

    message: str
    preferences: UserPreferenceResponse
    recommendations_refreshed: bool


# ===========================================
# Recommendation Models
# ===========================================


class NextActivityCandidate(StrictResponse):
    """Ranked output of the next-activity predictor."""

    activity_id: int
    subtopic_id: Optional[int] = None
    score: float
    reason: str


class RecommendationResponse(StrictResponse):
    """A persisted recommendation row."""

    id: int
    user_id: int
    activity_id: int
    subtopic_id: Optional[int] = None
    recommendation_type: RecommendationType
    score: float
    reason: str
    created_at: Optional[datetime] = None


# ===========================================
# Analytics Models
# ===========================================


class ActivityTypeCount(StrictResponse):
    """Number of logs for one activity type."""

    activity_type: str
    count: int


class DailyActivityCount(StrictResponse):
    """Number of logs started on one calendar day (UTC)."""

    day: date
    count: int


class ActivityStatsResponse(StrictResponse):
    """Aggregate activity statistics for a user."""

    activity_counts: list[ActivityTypeCount] = Field(default_factory=list)
    total_time_spent_seconds: int = 0
    avg_completion_rate: float = 0.0
    activity_trend: list[DailyActivityCount] = Field(default_factory=list)


class ActivityPattern(StrictResponse):
    """A qualitative pattern flag with a learner-facing description."""

    type: PatternType
    description: str


class ActivityPatterns(StrictResponse):
    """
    Output of the pattern analyzer.

    All fields are null/empty when the sample is too small.
    """

    preferred_time: Optional[TimeOfDay] = None
    average_duration: Optional[float] = None
    most_frequent_type: Optional[str] = None
    patterns: list[ActivityPattern] = Field(default_factory=list)


class LearningPathStep(StrictResponse):
    """One step in a remediation sequence."""

    step: int = Field(..., ge=1)
    subtopic_id: int
    activity_id: int
    title: str
    activity_title: str


class LearningPathResponse(StrictResponse):
    """Ordered learning path for a user."""

    user_id: int
    steps: list[LearningPathStep] = Field(default_factory=list)
