"""
SQLAlchemy Database Models for Users and the Activity Catalog

Tables:
- users: Study Hub accounts (identity only; auth lives elsewhere)
- activities: Learning activities shown in the catalog
- subtopics: Ordered subtopics belonging to an activity
- subtopic_completions: Which subtopics a user has finished

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    The corresponding Pydantic schemas live in studyhub/models/catalog.py.
"""

from datetime import datetime, timezone
from typing import List, Optional


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studyhub.db.base import Base


class User(Base):
    """
    A platform account.

    Attributes:
        id: Primary key.
        username: Unique display handle.
        email: Unique contact address.
        created_at: Account creation timestamp.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(100), unique=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )


class Activity(Base):
    """
    A learning activity composed of ordered subtopics.

    Attributes:
        id: Primary key.
        title: Activity title. The first word doubles as a loose category
            tag for the next-activity predictor.
        description: Free-text description used by similarity scoring.
        created_by: Optional author user id.
        subtopics: Ordered subtopics (by ``order``).
    """

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    subtopics: Mapped[List["Subtopic"]] = relationship(
        back_populates="activity",
        cascade="all, delete-orphan",
        order_by="Subtopic.order",
    )


class Subtopic(Base):
    """
    One lesson inside an activity.

    Attributes:
        id: Primary key.
        activity_id: Parent activity.
        title: Subtopic title.
        content: Markdown lesson body.
        order: 1-based position inside the activity; 1 marks the
            introductory subtopic.
    """

    __tablename__ = "subtopics"

    id: Mapped[int] = mapped_column(primary_key=True)
    activity_id: Mapped[int] = mapped_column(
        ForeignKey("activities.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(200))
    content: Mapped[str] = mapped_column(Text, default="")
    order: Mapped[int] = mapped_column(Integer, default=1)

    activity: Mapped["Activity"] = relationship(back_populates="subtopics")


class SubtopicCompletion(Base):
    """
    Marks a subtopic as finished by a user. Existence is the only signal.
    """

    __tablename__ = "subtopic_completions"
    __table_args__ = (
        UniqueConstraint("user_id", "subtopic_id", name="uq_completion_user_subtopic"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    subtopic_id: Mapped[int] = mapped_column(
        ForeignKey("subtopics.id", ondelete="CASCADE")
    )
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    subtopic: Mapped["Subtopic"] = relationship()
