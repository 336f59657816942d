"""
Activity Pattern Analysis

Derives when and how a learner tends to study from a slice of their
activity log.

Outputs:
- preferred_time: Time-of-day bucket of the busiest start hour
- average_duration: Mean of the durations that were reported
- most_frequent_type: Most common activity type
- patterns: time_consistency (one hour holds >40% of logs) and
  type_preference (one type holds >50% of logs)

Fewer than PATTERN_MIN_LOGS entries yields an all-empty result.
Hour ties resolve to the lowest hour; type ties resolve to the first type
encountered in log order.
"""

from collections import Counter
from typing import Hashable, Optional, Sequence

from studyhub.config import settings
from studyhub.enums.recommendation import PatternType, TimeOfDay
from studyhub.models.tracking import ActivityLogEntry, ActivityPattern, ActivityPatterns

TIME_CONSISTENCY_SHARE = 0.4
TYPE_PREFERENCE_SHARE = 0.5


def classify_hour(hour: int) -> TimeOfDay:
    """
    Map an hour of day (0-23) to a time-of-day bucket.

    Args:
        hour: Hour of day.

    Returns:
        MORNING for [5, 12), AFTERNOON for [12, 17), EVENING for [17, 21),
        NIGHT otherwise.
    """
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 21:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def _busiest_hour(hour_counts: Counter) -> int:
    # Lowest hour wins a tie
    return max(sorted(hour_counts), key=hour_counts.__getitem__)


def _most_common_first_seen(counts: Counter) -> Hashable:
    # Counter keeps insertion order and max() returns the first maximal key
    return max(counts, key=counts.__getitem__)


def analyze_activity_patterns(
    logs: Sequence[ActivityLogEntry], min_logs: Optional[int] = None
) -> ActivityPatterns:
    """
    Analyze a slice of activity logs.

    Args:
        logs: Activity logs in any order (type ties follow this order).
        min_logs: Minimum sample size (defaults to settings).

    Returns:
        ActivityPatterns; empty when the sample is too small.
    """
    if min_logs is None:
        min_logs = settings.PATTERN_MIN_LOGS

    if len(logs) < min_logs or not logs:
        return ActivityPatterns()

    total = len(logs)

    hour_counts = Counter(log.start_time.hour for log in logs)
    preferred_time = classify_hour(_busiest_hour(hour_counts))

    durations = [log.duration_seconds for log in logs if log.duration_seconds is not None]
    average_duration = sum(durations) / len(durations) if durations else None

    type_counts = Counter(log.activity_type for log in logs)
    most_frequent_type = _most_common_first_seen(type_counts)

    patterns: list[ActivityPattern] = []
    if any(count > total * TIME_CONSISTENCY_SHARE for count in hour_counts.values()):
        patterns.append(
            ActivityPattern(
                type=PatternType.TIME_CONSISTENCY,
                description=f"You tend to study during the {preferred_time.value}",
            )
        )

    if any(count > total * TYPE_PREFERENCE_SHARE for count in type_counts.values()):
        patterns.append(
            ActivityPattern(
                type=PatternType.TYPE_PREFERENCE,
                description=f"You prefer {most_frequent_type} activities",
            )
        )

    return ActivityPatterns(
        preferred_time=preferred_time,
        average_duration=average_duration,
        most_frequent_type=most_frequent_type,
        patterns=patterns,
    )
