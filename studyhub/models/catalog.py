"""
Catalog API Models (Pydantic)

Read-side views of activities and their ordered subtopics, plus the
subtopic completion response.

ARCHITECTURE NOTE:
    There is a corresponding SQLAlchemy file: studyhub/db/models.py
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from studyhub.models.base import StrictResponse


class CatalogSubtopic(StrictResponse):
    """A subtopic as seen by the recommendation components."""

    id: int
    title: str
    content: str = ""
    order: int = 1


class CatalogActivity(StrictResponse):
    """
    An activity with its subtopics in catalog order.

    This is the unit every scorer and predictor iterates over.
    """

    id: int
    title: str
    description: str = ""
    subtopics: list[CatalogSubtopic] = Field(default_factory=list)


class SubtopicStatus(CatalogSubtopic):
    """Subtopic with the caller's completion flag."""

    is_completed: bool = False


class ActivityDetail(StrictResponse):
    """Single activity view with per-subtopic completion for the caller."""

    id: int
    title: str
    description: str = ""
    subtopics: list[SubtopicStatus] = Field(default_factory=list)
    total_subtopics: int = 0
    completed_subtopics: int = 0


class CompletionRecord(StrictResponse):
    """A finished subtopic joined with its parent activity."""

    subtopic_id: int
    activity_id: int
    completed_at: Optional[datetime] = None


class SubtopicCompletionResponse(StrictResponse):
    """Result of marking a subtopic complete."""

    message: str
    completion: CompletionRecord
    progress: int = Field(..., ge=0, le=100, description="Percent of the activity completed")
