"""
Availability data models.

Every entity is created fresh per request from collaborator responses and
is immutable for the duration of one engine call. Times are epoch seconds.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import InvalidInputError
from .timewindow import overlaps, to_iso


@dataclass(frozen=True)
class TimeInterval:
    """Half-open ``[start, end)`` interval in epoch seconds."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidInputError(
                f"Interval end ({self.end}) must be after start ({self.start})"
            )

    @property
    def duration(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval", padding: int = 0) -> bool:
        """Check overlap against ``other`` expanded by ``padding`` on both sides."""
        return overlaps(self.start, self.end, other.start - padding, other.end + padding)


@dataclass(frozen=True)
class OwnerRef:
    """Opaque reference to the calendar being queried.

    The engine never inspects it; transport adapters use ``grant_id`` and
    ``calendar_id`` to address the provider.
    """

    grant_id: str
    calendar_id: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class Event:
    """An existing event on the owner's calendar."""

    id: str
    title: str
    interval: TimeInterval

    @property
    def start(self) -> int:
        return self.interval.start

    @property
    def end(self) -> int:
        return self.interval.end

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "startTime": to_iso(self.start),
            "endTime": to_iso(self.end),
        }


class BusyStatus(str, Enum):
    """Free/busy status reported by the provider."""

    BUSY = "busy"
    FREE = "free"


@dataclass(frozen=True)
class BusyInterval:
    """One free/busy block for a participant."""

    owner_email: str
    interval: TimeInterval
    status: BusyStatus = BusyStatus.BUSY

    @property
    def is_busy(self) -> bool:
        return self.status == BusyStatus.BUSY


@dataclass(frozen=True)
class Candidate:
    """A provisional slot of the requested duration, not yet filtered or scored."""

    interval: TimeInterval


@dataclass(frozen=True)
class ScoredSlot(Candidate):
    """A candidate that passed the conflict filter, with its quality score."""

    score: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "startTime": to_iso(self.interval.start),
            "endTime": to_iso(self.interval.end),
            "score": self.score,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ConflictResult:
    """Outcome of checking a proposed meeting time.

    ``alternatives`` is set only when ``has_conflict`` is true.
    """

    has_conflict: bool
    conflicting_events: list[Event] = field(default_factory=list)
    alternatives: list[ScoredSlot] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "hasConflict": self.has_conflict,
            "conflicts": [event.to_dict() for event in self.conflicting_events],
        }
        if self.alternatives is not None:
            result["alternatives"] = [slot.to_dict() for slot in self.alternatives]
        return result


# =============================================================================
# Team availability grid
# =============================================================================


class AvailabilityStatus(str, Enum):
    """Per-member status of one grid cell."""

    FREE = "free"
    BUSY = "busy"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TeamMember:
    """A calendar taking part in a team availability query."""

    profile_id: str
    label: str
    email: str
    owner: OwnerRef


@dataclass(frozen=True)
class GridSlot:
    """One cell of the availability grid, keyed by member profile id."""

    interval: TimeInterval
    availability: dict[str, AvailabilityStatus] = field(default_factory=dict)

    @property
    def free_count(self) -> int:
        return sum(1 for s in self.availability.values() if s == AvailabilityStatus.FREE)

    @property
    def all_free(self) -> bool:
        return all(s == AvailabilityStatus.FREE for s in self.availability.values())

    @property
    def all_busy(self) -> bool:
        return all(s == AvailabilityStatus.BUSY for s in self.availability.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "startIso": to_iso(self.interval.start),
            "endIso": to_iso(self.interval.end),
            "availability": {k: v.value for k, v in self.availability.items()},
        }


@dataclass(frozen=True)
class AvailabilitySummary:
    """Counts over a team availability grid.

    Every cell lands in exactly one bucket. ``unknown_slots`` holds cells
    where nobody is known to be free and at least one member is unknown.
    """

    total_slots: int = 0
    all_free_slots: int = 0
    some_free_slots: int = 0
    all_busy_slots: int = 0
    unknown_slots: int = 0


@dataclass(frozen=True)
class TeamAvailability:
    """Availability grid for a set of team members."""

    members: list[TeamMember] = field(default_factory=list)
    slots: list[GridSlot] = field(default_factory=list)
    summary: AvailabilitySummary = field(default_factory=AvailabilitySummary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "profiles": [
                {"profileId": m.profile_id, "label": m.label, "email": m.email}
                for m in self.members
            ],
            "slots": [slot.to_dict() for slot in self.slots],
            "summary": {
                "totalSlots": self.summary.total_slots,
                "allFreeSlots": self.summary.all_free_slots,
                "someFreeSlots": self.summary.some_free_slots,
                "allBusySlots": self.summary.all_busy_slots,
                "unknownSlots": self.summary.unknown_slots,
            },
        }
