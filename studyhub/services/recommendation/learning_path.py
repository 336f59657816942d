"""
Learning Path Builder

Orders a learner's unfinished subtopics into a short remediation
sequence.

Each unfinished subtopic scores:
- +0.5 when the learner already finished another subtopic of the same
  activity (the activity is in progress)
- +0.3 when it is an activity's introductory subtopic (order == 1)

Highest score first, ties in catalog order, capped at
LEARNING_PATH_MAX_STEPS and numbered from 1.
"""

from typing import AbstractSet, Optional, Sequence

from studyhub.config import settings
from studyhub.models.catalog import CatalogActivity
from studyhub.models.tracking import LearningPathStep

IN_PROGRESS_WEIGHT = 0.5
INTRODUCTORY_WEIGHT = 0.3


def build_learning_path(
    completed_subtopic_ids: AbstractSet[int],
    catalog: Sequence[CatalogActivity],
    max_steps: Optional[int] = None,
) -> list[LearningPathStep]:
    """
    Build an ordered list of next subtopics for a learner.

    Args:
        completed_subtopic_ids: Subtopics the learner has finished.
        catalog: Activities with subtopics in catalog order.
        max_steps: Path length cap (defaults to settings).

    Returns:
        Steps numbered 1..n, never containing a completed subtopic.
    """
    if max_steps is None:
        max_steps = settings.LEARNING_PATH_MAX_STEPS

    in_progress_activity_ids = {
        activity.id
        for activity in catalog
        if any(subtopic.id in completed_subtopic_ids for subtopic in activity.subtopics)
    }

    scored: list[tuple[float, CatalogActivity, int]] = []
    for activity in catalog:
        for index, subtopic in enumerate(activity.subtopics):
            if subtopic.id in completed_subtopic_ids:
                continue

            score = 0.0
            if activity.id in in_progress_activity_ids:
                score += IN_PROGRESS_WEIGHT
            if subtopic.order == 1:
                score += INTRODUCTORY_WEIGHT
            scored.append((score, activity, index))

    scored.sort(key=lambda item: item[0], reverse=True)

    return [
        LearningPathStep(
            step=position,
            subtopic_id=activity.subtopics[index].id,
            activity_id=activity.id,
            title=activity.subtopics[index].title,
            activity_title=activity.title,
        )
        for position, (_, activity, index) in enumerate(scored[:max_steps], start=1)
    ]
