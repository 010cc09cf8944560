"""
Team availability grid.

Lays a fixed grid of cells over a time range and marks every team member
free, busy or unknown in each cell. Pure functions; fetching happens in
AvailabilityEngine.team_availability.
"""

import math
from collections.abc import Mapping, Sequence

from .models import (
    AvailabilityStatus,
    AvailabilitySummary,
    Event,
    GridSlot,
    TeamAvailability,
    TeamMember,
    TimeInterval,
)
from .timewindow import utc_datetime

TEAM_EVENT_FETCH_LIMIT = 1000


def build_time_grid(start: int, end: int, slot_seconds: int) -> list[TimeInterval]:
    """Consecutive cells from ``start``; the last cell may run past ``end``."""
    count = math.ceil((end - start) / slot_seconds)
    return [
        TimeInterval(start + i * slot_seconds, start + (i + 1) * slot_seconds)
        for i in range(count)
    ]


def cell_status(cell: TimeInterval, events: Sequence[Event] | None) -> AvailabilityStatus:
    if events is None:
        return AvailabilityStatus.UNKNOWN
    if any(cell.overlaps(e.interval) for e in events):
        return AvailabilityStatus.BUSY
    return AvailabilityStatus.FREE


def summarize(slots: Sequence[GridSlot]) -> AvailabilitySummary:
    """Bucket each cell as all free, some free, all busy or unknown."""
    all_free = sum(1 for s in slots if s.all_free)
    some_free = sum(1 for s in slots if s.free_count >= 1 and not s.all_free)
    all_busy = sum(1 for s in slots if s.all_busy)
    return AvailabilitySummary(
        total_slots=len(slots),
        all_free_slots=all_free,
        some_free_slots=some_free,
        all_busy_slots=all_busy,
        unknown_slots=len(slots) - all_free - some_free - all_busy,
    )


def build_team_availability(
    members: Sequence[TeamMember],
    events_by_member: Mapping[str, Sequence[Event] | None],
    start: int,
    end: int,
    slot_seconds: int,
) -> TeamAvailability:
    """
    Build the availability grid from already fetched events.

    Args:
        members: Team members, in display order
        events_by_member: Events per profile id; None marks a failed fetch
        start: Grid start (epoch seconds)
        end: Grid end (epoch seconds)
        slot_seconds: Cell size

    Returns:
        TeamAvailability with one GridSlot per cell and summary counts
    """
    if not members:
        return TeamAvailability()

    slots = [
        GridSlot(
            interval=cell,
            availability={
                m.profile_id: cell_status(cell, events_by_member.get(m.profile_id))
                for m in members
            },
        )
        for cell in build_time_grid(start, end, slot_seconds)
    ]

    return TeamAvailability(members=list(members), slots=slots, summary=summarize(slots))


def find_optimal_slots(
    slots: Sequence[GridSlot],
    require_all_free: bool = True,
    min_free_count: int = 1,
    limit: int = 10,
) -> list[GridSlot]:
    """Cells where everyone (or at least ``min_free_count`` members) is free, in grid order."""
    if require_all_free:
        matching = [s for s in slots if s.all_free]
    else:
        matching = [s for s in slots if s.free_count >= min_free_count]
    return matching[:limit]


def group_slots_by_date(slots: Sequence[GridSlot]) -> dict[str, list[GridSlot]]:
    """Group cells by the UTC calendar date of their start, in grid order."""
    grouped: dict[str, list[GridSlot]] = {}
    for slot in slots:
        date = utc_datetime(slot.interval.start).date().isoformat()
        grouped.setdefault(date, []).append(slot)
    return grouped
