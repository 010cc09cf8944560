"""Candidate slot generation."""

from .models import Candidate, TimeInterval
from .timewindow import SECONDS_PER_DAY, day_floor, offset_seconds, parse_hhmm

DEFAULT_STEP_SECONDS = 1800


def generate_candidates(
    duration_seconds: int,
    range_start: int,
    range_end: int,
    preferred_start: str = "09:00",
    preferred_end: str = "17:00",
    step_seconds: int = DEFAULT_STEP_SECONDS,
) -> list[Candidate]:
    """
    Enumerate fixed-step candidate slots inside the daily preferred window.

    Both range bounds are truncated to UTC day boundaries and every day from
    the first to the last is visited, so candidates may fall before
    ``range_start`` or after ``range_end`` on the boundary days. Callers that
    need strict range containment filter afterwards.

    Args:
        duration_seconds: Length of each candidate
        range_start: Start of the search range (epoch seconds)
        range_end: End of the search range (epoch seconds)
        preferred_start: Daily window start, "HH:MM"
        preferred_end: Daily window end, "HH:MM"
        step_seconds: Distance between consecutive candidate starts

    Returns:
        Candidates ordered by start time, day by day
    """
    start_offset = offset_seconds(*parse_hhmm(preferred_start))
    end_offset = offset_seconds(*parse_hhmm(preferred_end))

    candidates: list[Candidate] = []
    day = day_floor(range_start)
    last_day = day_floor(range_end)

    while day <= last_day:
        day_start = day + start_offset
        day_end = day + end_offset

        slot_start = day_start
        while slot_start + duration_seconds <= day_end:
            candidates.append(
                Candidate(TimeInterval(slot_start, slot_start + duration_seconds))
            )
            slot_start += step_seconds

        day += SECONDS_PER_DAY

    return candidates
