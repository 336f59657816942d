"""
Next-Activity Prediction

Ranks catalog activities as plausible next steps given the learner's
recent activity log (newest first).

Scoring per candidate (the most recently logged activity is skipped):
- +0.3 if the candidate title contains the latest log's activity type
- +0.2 if logs in the candidate's category average a completion rate > 0.7
- +0.1 if the learner has never logged the candidate

Only candidates scoring above the minimum are kept; the top results are
returned in descending score order, ties in catalog order. A candidate
whose scoring raises is logged and left out.

Usage:
    from studyhub.services.recommendation.predictor import predict_next_activities

    candidates = predict_next_activities(recent_logs, catalog)
"""

import logging
from typing import AbstractSet, Callable, Optional, Sequence

from studyhub.config import settings
from studyhub.models.catalog import CatalogActivity
from studyhub.models.tracking import ActivityLogEntry, NextActivityCandidate

logger = logging.getLogger(__name__)

RELATED_ACTIVITY_WEIGHT = 0.3
STRONG_PERFORMANCE_WEIGHT = 0.2
UNTRIED_ACTIVITY_WEIGHT = 0.1

# Raw average of completion_rate values, missing treated as 0
STRONG_PERFORMANCE_THRESHOLD = 0.7

# Decides whether a log belongs to the same category as a candidate activity
CategoryMatcher = Callable[[ActivityLogEntry, CatalogActivity], bool]


def title_first_word_matches(log: ActivityLogEntry, activity: CatalogActivity) -> bool:
    """Category match: the log's activity type equals the title's first word."""
    words = activity.title.split() if activity.title else []
    return bool(log.activity_type) and bool(words) and log.activity_type == words[0]


def _append_reason(reason: str, clause: str) -> str:
    """Chain reason clauses with "and", capitalizing a leading clause."""
    if reason:
        return f"{reason} and {clause}"
    return clause[:1].upper() + clause[1:]


def _first_open_subtopic(
    activity: CatalogActivity, completed_subtopic_ids: AbstractSet[int]
) -> Optional[int]:
    for subtopic in activity.subtopics:
        if subtopic.id not in completed_subtopic_ids:
            return subtopic.id
    return None


def _score_candidate(
    activity: CatalogActivity,
    recent_logs: Sequence[ActivityLogEntry],
    tried_activity_ids: AbstractSet[int],
    category_matcher: CategoryMatcher,
) -> tuple[float, str]:
    most_recent = recent_logs[0]
    score = 0.0
    reason = ""

    if (
        most_recent.activity_type
        and activity.title
        and most_recent.activity_type in activity.title
    ):
        score += RELATED_ACTIVITY_WEIGHT
        reason = "Related to your recent activity"

    similar_logs = [log for log in recent_logs if category_matcher(log, activity)]
    if similar_logs:
        avg_completion = sum(log.completion_rate or 0 for log in similar_logs) / len(
            similar_logs
        )
        if avg_completion > STRONG_PERFORMANCE_THRESHOLD:
            score += STRONG_PERFORMANCE_WEIGHT
            reason = _append_reason(reason, "you perform well in similar activities")

    if activity.id not in tried_activity_ids:
        score += UNTRIED_ACTIVITY_WEIGHT
        reason = _append_reason(reason, "you haven't tried this yet")

    return score, reason


def predict_next_activities(
    recent_logs: Sequence[ActivityLogEntry],
    catalog: Sequence[CatalogActivity],
    completed_subtopic_ids: AbstractSet[int] = frozenset(),
    category_matcher: CategoryMatcher = title_first_word_matches,
    max_results: Optional[int] = None,
    min_score: Optional[float] = None,
) -> list[NextActivityCandidate]:
    """
    Score catalog activities against the learner's recent history.

    Args:
        recent_logs: Activity logs ordered newest first.
        catalog: Activities with subtopics in catalog order.
        completed_subtopic_ids: Subtopics to skip when picking the
            recommended entry point of an activity.
        category_matcher: Predicate pairing logs with "similar" activities.
        max_results: Result cap (defaults to settings).
        min_score: Exclusive score floor (defaults to settings).

    Returns:
        Up to max_results candidates, highest score first. Candidates whose
        scoring raises are skipped.
    """
    if not recent_logs or not catalog:
        return []

    if max_results is None:
        max_results = settings.NEXT_ACTIVITY_MAX_RESULTS
    if min_score is None:
        min_score = settings.NEXT_ACTIVITY_MIN_SCORE

    most_recent = recent_logs[0]
    tried_activity_ids = {log.activity_id for log in recent_logs}

    candidates: list[NextActivityCandidate] = []
    for activity in catalog:
        if activity.id == most_recent.activity_id:
            continue

        try:
            score, reason = _score_candidate(
                activity, recent_logs, tried_activity_ids, category_matcher
            )
        except Exception as e:
            logger.warning(f"Skipping next-activity candidate {activity.id}: {e}")
            continue

        if score > min_score:
            candidates.append(
                NextActivityCandidate(
                    activity_id=activity.id,
                    subtopic_id=_first_open_subtopic(activity, completed_subtopic_ids),
                    score=score,
                    reason=reason,
                )
            )

    # sorted() is stable, so equal scores keep catalog order
    ranked = sorted(candidates, key=lambda candidate: candidate.score, reverse=True)
    return ranked[:max_results]
