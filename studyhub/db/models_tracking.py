"""
SQLAlchemy Database Models for Activity Tracking and Recommendations

Tables:
- user_activity_logs: Append-only interaction events
- user_preferences: One row of declared preferences per user
- ml_recommendations: The current recommendation set per user

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There is a corresponding Pydantic file: studyhub/models/tracking.py

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database
"""

from datetime import datetime, timezone
from typing import Optional


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from studyhub.db.base import Base


class UserActivityLog(Base):
    """
    One logged user interaction.

    Rows are immutable once written; only bulk cleanup removes them.

    Attributes:
        id: Primary key.
        user_id: Owner of the event.
        activity_type: Free-form tag such as "study_session" or "quiz".
        activity_id: Catalog activity the event refers to, if any.
        subtopic_id: Catalog subtopic the event refers to, if any.
        duration_seconds: Time spent, if reported.
        completion_rate: 0-100 completion percentage, if reported.
        score: Numeric result (e.g. quiz correctness), if reported.
        start_time: Set when the row is created.
        end_time: start_time + duration_seconds when a duration is present.
        metadata_: Open key/value map (column name ``metadata``).
    """

    __tablename__ = "user_activity_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    activity_type: Mapped[str] = mapped_column(String(50), index=True)
    activity_id: Mapped[Optional[int]] = mapped_column(ForeignKey("activities.id"))
    subtopic_id: Mapped[Optional[int]] = mapped_column(ForeignKey("subtopics.id"))

    duration_seconds: Mapped[Optional[int]] = mapped_column(Integer)
    completion_rate: Mapped[Optional[float]] = mapped_column(Float)
    score: Mapped[Optional[float]] = mapped_column(Float)

    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, index=True
    )
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    metadata_: Mapped[dict] = mapped_column("metadata", JSON, default=dict)


class UserPreference(Base):
    """
    Declared learning preferences. At most one row per user.
    """

    __tablename__ = "user_preferences"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True)
    preferred_topics: Mapped[list] = mapped_column(JSON, default=list)
    preferred_time: Mapped[Optional[str]] = mapped_column(String(50))
    learning_style: Mapped[Optional[str]] = mapped_column(String(50))
    difficulty_level: Mapped[Optional[str]] = mapped_column(String(50))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )


class MLRecommendation(Base):
    """
    One row of a user's current recommendation set.

    The whole set for a user is replaced on every generation run.

    Attributes:
        recommendation_type: next_topic, similar_content or group_suggestion.
        score: Heuristic relevance; additive signals can push it above 1.
        reason: Human-readable explanation shown to the learner.
    """

    __tablename__ = "ml_recommendations"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    activity_id: Mapped[int] = mapped_column(
        ForeignKey("activities.id", ondelete="CASCADE")
    )
    subtopic_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("subtopics.id", ondelete="SET NULL")
    )
    recommendation_type: Mapped[str] = mapped_column(String(30))
    score: Mapped[float] = mapped_column(Float)
    reason: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
