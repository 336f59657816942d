"""
Recommendation System Enums

Defines enums for recommendation categories and the qualitative
activity patterns derived from a user's log history.
"""

from enum import Enum


class RecommendationType(str, Enum):
    """
    Category of a persisted recommendation row.

    - NEXT_TOPIC: Produced by the next-activity predictor from recent logs
    - SIMILAR_CONTENT: Produced by topic similarity against declared preferences
    - GROUP_SUGGESTION: Reserved; no generator emits it yet
    """

    NEXT_TOPIC = "next_topic"
    SIMILAR_CONTENT = "similar_content"
    GROUP_SUGGESTION = "group_suggestion"


class TimeOfDay(str, Enum):
    """
    Preferred study time buckets.

    Hour ranges: morning [5, 12), afternoon [12, 17),
    evening [17, 21), night otherwise.
    """

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class PatternType(str, Enum):
    """Qualitative patterns emitted by the activity pattern analyzer."""

    TIME_CONSISTENCY = "time_consistency"  # One hour bucket holds >40% of logs
    TYPE_PREFERENCE = "type_preference"  # One activity type holds >50% of logs
