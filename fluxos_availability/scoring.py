"""
Slot quality scoring.

A slot starts at the base score and collects additive bonuses for time of
day, spacing from neighbouring events and day of week; the total is
clamped to [0, 100]. Hour and weekday are read in UTC.
"""

import math
from collections.abc import Sequence

from .config import ScoringWeights
from .models import Event, TimeInterval
from .timewindow import utc_hour, utc_weekday

MORNING_REASON = "optimal morning time"
AFTERNOON_REASON = "good afternoon slot"
MIDWEEK_REASON = "mid-week"
FALLBACK_REASON = "outside preferred hours"

# Monday is 0
MIDWEEK_DAYS = (1, 2, 3)
FRIDAY = 4

_DEFAULT_WEIGHTS = ScoringWeights()


def _in_bucket(hour: int, bucket: tuple[int, int]) -> bool:
    return bucket[0] <= hour < bucket[1]


def min_gap(interval: TimeInterval, events: Sequence[Event]) -> float:
    """Smallest distance to an event ending before or starting after the interval.

    Returns ``math.inf`` when no event lies on either side.
    """
    gap_before = min(
        (interval.start - e.end for e in events if e.end <= interval.start),
        default=math.inf,
    )
    gap_after = min(
        (e.start - interval.end for e in events if e.start >= interval.end),
        default=math.inf,
    )
    return min(gap_before, gap_after)


def score_slot(
    interval: TimeInterval,
    events: Sequence[Event],
    weights: ScoringWeights | None = None,
) -> tuple[int, str]:
    """
    Score a slot and explain the score.

    Pure function of the interval and the owner's events; participant
    busy data does not influence the score.

    Args:
        interval: Slot to score
        events: Owner calendar events
        weights: Scoring weights, defaults to ScoringWeights()

    Returns:
        (score, reason) with score an integer in [0, 100]
    """
    w = weights or _DEFAULT_WEIGHTS
    hour = utc_hour(interval.start)
    weekday = utc_weekday(interval.start)

    score = w.base_score
    reasons: list[str] = []

    if _in_bucket(hour, w.morning_hours):
        score += w.morning_bonus
        reasons.append(MORNING_REASON)
    elif _in_bucket(hour, w.early_afternoon_hours):
        score += w.early_afternoon_bonus
        reasons.append(AFTERNOON_REASON)
    elif _in_bucket(hour, w.late_afternoon_hours):
        score += w.late_afternoon_bonus

    gap = min_gap(interval, events)
    if gap > w.wide_gap_seconds:
        score += w.wide_gap_bonus
    elif gap > w.narrow_gap_seconds:
        score += w.narrow_gap_bonus

    if weekday in MIDWEEK_DAYS:
        score += w.midweek_bonus
        reasons.append(MIDWEEK_REASON)
    elif weekday == FRIDAY:
        score += w.friday_bonus

    score = int(min(100, max(0, score)))
    return score, slot_reason(score, reasons, w)


def slot_reason(score: int, reasons: Sequence[str], weights: ScoringWeights | None = None) -> str:
    """Build the human-readable explanation for a final score."""
    w = weights or _DEFAULT_WEIGHTS
    detail = ", ".join(reasons)

    if score >= w.excellent_threshold:
        return f"Excellent slot: {detail}".rstrip()
    if score >= w.good_threshold:
        return f"Good slot: {detail}".rstrip()
    return f"Available: {detail or FALLBACK_REASON}"
