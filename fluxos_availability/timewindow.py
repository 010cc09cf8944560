"""Time arithmetic helpers over epoch seconds.

All calendar math is UTC-anchored: day boundaries are multiples of 86400
and hour/weekday lookups use UTC.
"""

import re
from datetime import datetime, timezone

from .exceptions import InvalidInputError

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def day_floor(timestamp: int) -> int:
    """Truncate an epoch timestamp to the start of its UTC day."""
    return (timestamp // SECONDS_PER_DAY) * SECONDS_PER_DAY


def parse_hhmm(value: str) -> tuple[int, int]:
    """
    Parse a "HH:MM" wall-clock string.

    "24:00" is accepted so a window can run to the end of the day.

    Args:
        value: Time string such as "09:00"

    Returns:
        (hour, minute) tuple

    Raises:
        InvalidInputError: If the string is malformed or out of range
    """
    match = _HHMM_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidInputError(f"Invalid time '{value}', expected HH:MM")

    hour, minute = int(match.group(1)), int(match.group(2))
    if minute > 59 or hour > 24 or (hour == 24 and minute != 0):
        raise InvalidInputError(f"Invalid time '{value}', expected HH:MM")

    return hour, minute


def offset_seconds(hour: int, minute: int) -> int:
    """Seconds from midnight for an (hour, minute) pair."""
    return hour * SECONDS_PER_HOUR + minute * SECONDS_PER_MINUTE


def overlaps(start: int, end: int, other_start: int, other_end: int) -> bool:
    """Half-open overlap test; touching intervals do not overlap."""
    return not (end <= other_start or start >= other_end)


def utc_datetime(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def utc_hour(timestamp: int) -> int:
    return utc_datetime(timestamp).hour


def utc_weekday(timestamp: int) -> int:
    """Weekday of the timestamp in UTC, Monday is 0."""
    return utc_datetime(timestamp).weekday()


def to_iso(timestamp: int) -> str:
    """Format epoch seconds as ISO-8601 UTC with a Z suffix."""
    return utc_datetime(timestamp).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_iso(value: str) -> int:
    """
    Parse an ISO-8601 string into epoch seconds.

    Naive values are read as UTC.

    Raises:
        InvalidInputError: If the value is not a valid ISO-8601 datetime
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise InvalidInputError(f"Invalid datetime '{value}', expected ISO-8601")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return int(parsed.timestamp())
