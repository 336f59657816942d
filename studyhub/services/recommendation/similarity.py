"""
Content Similarity Scoring

Scores how well an activity's text matches a learner's declared topics.

A cheap keyword proxy rather than an NLP model: the activity's title,
description and subtopic titles are lowercased and split on runs of
non-ASCII-word characters, and a preferred topic counts as matched when it is a
substring of any token (so "py" matches "python", and "web" matches
"webdev"). The score is the fraction of preferred topics matched.

Usage:
    from studyhub.services.recommendation.similarity import calculate_similarity

    score = calculate_similarity(activity, ["python", "web"])
"""

import re
from typing import Sequence

from studyhub.middleware.error_handling import ScoringError
from studyhub.models.catalog import CatalogActivity

_NON_WORD = re.compile(r"\W+", re.ASCII)


def activity_tokens(activity: CatalogActivity) -> list[str]:
    """
    Build the lowercase token bag for an activity.

    Args:
        activity: Catalog activity with (possibly empty) subtopics.

    Returns:
        Tokens from title, description and every subtopic title.
    """
    parts = [activity.title.lower(), activity.description.lower()]
    parts.extend(subtopic.title.lower() for subtopic in activity.subtopics)
    return _NON_WORD.split(" ".join(parts))


def calculate_similarity(
    activity: CatalogActivity, preferred_topics: Sequence[str]
) -> float:
    """
    Fraction of preferred topics that occur inside the activity's tokens.

    Args:
        activity: Activity to score.
        preferred_topics: Declared topic strings, in any case.

    Returns:
        matched / len(preferred_topics), or 0.0 for an empty topic list.

    Raises:
        ScoringError: If the activity or topics have an unexpected shape.
    """
    if not preferred_topics:
        return 0.0

    try:
        tokens = activity_tokens(activity)
        needles = [topic.lower() for topic in preferred_topics]
    except (AttributeError, TypeError) as e:
        raise ScoringError(
            f"Cannot score activity {getattr(activity, 'id', None)}: {e}",
            details={"activity_id": getattr(activity, "id", None)},
        ) from e

    matched = sum(1 for needle in needles if any(needle in token for token in tokens))
    return matched / len(needles)
