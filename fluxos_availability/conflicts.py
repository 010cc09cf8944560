"""Conflict filtering against owner events and participant busy time."""

from collections.abc import Iterable

from .models import BusyInterval, Event, TimeInterval


def blocked_by_event(interval: TimeInterval, event: Event, buffer_seconds: int = 0) -> bool:
    """True if ``interval`` overlaps ``event`` widened by ``buffer_seconds`` on each side."""
    return interval.overlaps(event.interval, padding=buffer_seconds)


def blocked_by_busy(interval: TimeInterval, busy: BusyInterval) -> bool:
    """True if ``interval`` overlaps a participant's busy block. No buffer applies."""
    return busy.is_busy and interval.overlaps(busy.interval)


def is_free(
    interval: TimeInterval,
    events: Iterable[Event],
    buffer_seconds: int = 0,
    busy_intervals: Iterable[BusyInterval] = (),
) -> bool:
    """
    Check whether an interval clears every owner event and busy block.

    Args:
        interval: Candidate or proposed interval
        events: Owner calendar events
        buffer_seconds: Margin applied around owner events only
        busy_intervals: Participant busy blocks (free blocks are ignored)

    Returns:
        True if nothing blocks the interval
    """
    if any(blocked_by_event(interval, e, buffer_seconds) for e in events):
        return False
    return not any(blocked_by_busy(interval, b) for b in busy_intervals)


def find_conflicting_events(interval: TimeInterval, events: Iterable[Event]) -> list[Event]:
    """Events whose raw interval overlaps ``interval``, in input order."""
    return [e for e in events if blocked_by_event(interval, e)]
