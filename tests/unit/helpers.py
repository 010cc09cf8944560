"""Shared helpers for unit tests."""

from datetime import datetime, timezone

# January 2026: the 5th is a Monday, the 9th a Friday, the 10th a Saturday
MONDAY = 5
TUESDAY = 6
WEDNESDAY = 7
THURSDAY = 8
FRIDAY = 9
SATURDAY = 10


def at(day: int, hour: int = 0, minute: int = 0) -> int:
    """Epoch seconds for a UTC wall-clock time in January 2026."""
    return int(datetime(2026, 1, day, hour, minute, tzinfo=timezone.utc).timestamp())
