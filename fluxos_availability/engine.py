"""
Availability engine.

Orchestrates the scheduling pipeline over a snapshot fetched from the
collaborators:

    generate candidates -> drop conflicts -> score -> rank

``find_available_slots`` runs the pipeline directly. ``check_conflicts``
tests one proposed interval and, on conflict, runs the same pipeline over
the search horizon to propose alternatives. The engine holds no state
between calls.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any, TypeVar

import structlog

from .candidates import generate_candidates
from .config import AvailabilityConfig
from .conflicts import find_conflicting_events, is_free
from .exceptions import InvalidInputError, UpstreamFetchError
from .models import (
    BusyInterval,
    ConflictResult,
    Event,
    OwnerRef,
    ScoredSlot,
    TeamAvailability,
    TeamMember,
    TimeInterval,
)
from .ranking import rank_slots
from .scoring import score_slot
from .sources import CalendarEventSource, FreeBusyProvider
from .team import TEAM_EVENT_FETCH_LIMIT, build_team_availability
from .timewindow import SECONDS_PER_DAY, SECONDS_PER_MINUTE, parse_hhmm

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def normalize_participants(participants: Iterable[str] | str | None) -> list[str]:
    """
    Clean a participant list.

    Accepts a list or a comma/semicolon separated string. Blank and None
    entries are dropped and duplicates removed, preserving order.

    Raises:
        InvalidInputError: If the value or any entry is not a string
    """
    if not participants:
        return []

    if isinstance(participants, str):
        participants = participants.replace(";", ",").split(",")
    elif not isinstance(participants, Iterable):
        raise InvalidInputError("participants must be a list of emails or a string")

    seen: set[str] = set()
    result: list[str] = []
    for email in participants:
        if email is None:
            continue
        if not isinstance(email, str):
            raise InvalidInputError(f"Invalid participant {email!r}, expected an email string")
        email = email.strip()
        if email and email not in seen:
            seen.add(email)
            result.append(email)
    return result


class AvailabilityEngine:
    """
    Calendar availability and conflict-resolution engine.

    Example:
        ```python
        engine = AvailabilityEngine(client, client)
        owner = OwnerRef(grant_id="grant-123")

        slots = await engine.find_available_slots(
            owner,
            duration_minutes=30,
            date_range_start=1767603600,
            date_range_end=1767862800,
            participants=["alice@example.com"],
        )

        result = await engine.check_conflicts(owner, 1767607200, 1767610800)
        if result.has_conflict:
            print(result.alternatives)
        ```
    """

    def __init__(
        self,
        event_source: CalendarEventSource,
        free_busy: FreeBusyProvider,
        config: AvailabilityConfig | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            event_source: Source of the owner's calendar events
            free_busy: Source of participant free/busy data
            config: Engine configuration. If None, uses default config.
        """
        self.event_source = event_source
        self.free_busy = free_busy
        self.config = config or AvailabilityConfig()

    # =========================================================================
    # Public operations
    # =========================================================================

    async def find_available_slots(
        self,
        owner: OwnerRef,
        duration_minutes: int,
        date_range_start: int,
        date_range_end: int,
        preferred_time_start: str | None = None,
        preferred_time_end: str | None = None,
        participants: Iterable[str] | str | None = None,
        buffer_minutes: int | None = None,
    ) -> list[ScoredSlot]:
        """
        Find and rank open meeting slots.

        Args:
            owner: Calendar owner reference
            duration_minutes: Meeting length, must be positive
            date_range_start: Start of the search range (epoch seconds)
            date_range_end: End of the search range, after the start
            preferred_time_start: Daily window start "HH:MM" (default "09:00")
            preferred_time_end: Daily window end "HH:MM" (default "17:00")
            participants: Emails whose busy time must be avoided
            buffer_minutes: Margin kept around owner events (default 15)

        Returns:
            At most ``result_limit`` slots, best first

        Raises:
            InvalidInputError: If parameters are invalid (nothing is fetched)
            UpstreamFetchError: If events or free/busy data cannot be fetched
        """
        preferred_start = preferred_time_start
        if preferred_start is None:
            preferred_start = self.config.default_preferred_start
        preferred_end = preferred_time_end
        if preferred_end is None:
            preferred_end = self.config.default_preferred_end
        if buffer_minutes is None:
            buffer_minutes = self.config.default_buffer_minutes

        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
            raise InvalidInputError("durationMinutes must be an integer")
        if duration_minutes <= 0:
            raise InvalidInputError("durationMinutes must be positive")
        if date_range_end <= date_range_start:
            raise InvalidInputError("dateRangeEnd must be after dateRangeStart")
        if buffer_minutes < 0:
            raise InvalidInputError("bufferMinutes must be non-negative")
        parse_hhmm(preferred_start)
        parse_hhmm(preferred_end)

        slots = await self._find(
            owner,
            duration_seconds=duration_minutes * SECONDS_PER_MINUTE,
            range_start=date_range_start,
            range_end=date_range_end,
            preferred_start=preferred_start,
            preferred_end=preferred_end,
            participants=normalize_participants(participants),
            buffer_seconds=buffer_minutes * SECONDS_PER_MINUTE,
        )

        logger.info(
            "Found available slots",
            grant_id=owner.grant_id,
            duration_minutes=duration_minutes,
            count=len(slots),
        )
        return slots

    async def check_conflicts(
        self,
        owner: OwnerRef,
        start_time: int,
        end_time: int,
        participants: Iterable[str] | str | None = None,
    ) -> ConflictResult:
        """
        Check a proposed meeting time against the owner's calendar.

        Only owner events decide whether there is a conflict. Participants
        constrain the alternatives searched for when there is one.

        Args:
            owner: Calendar owner reference
            start_time: Proposed start (epoch seconds)
            end_time: Proposed end, after the start
            participants: Emails whose busy time the alternatives must avoid

        Returns:
            ConflictResult, with alternatives only when conflicting

        Raises:
            InvalidInputError: If the proposed interval is invalid
            UpstreamFetchError: If calendar or free/busy data cannot be fetched
        """
        if end_time <= start_time:
            raise InvalidInputError("endTime must be after startTime")

        proposed = TimeInterval(start_time, end_time)
        participants = normalize_participants(participants)
        context = self.config.conflict_context_seconds

        events = await self._guarded(
            "events",
            self.event_source.get_events(
                owner,
                start_time - context,
                end_time + context,
                self.config.event_fetch_limit,
            ),
        )
        conflicts = find_conflicting_events(proposed, events)

        if not conflicts:
            logger.info("No calendar conflicts", grant_id=owner.grant_id)
            return ConflictResult(has_conflict=False, conflicting_events=[])

        alternatives = await self._find(
            owner,
            duration_seconds=proposed.duration,
            range_start=start_time,
            range_end=start_time + self.config.search_horizon_days * SECONDS_PER_DAY,
            preferred_start=self.config.default_preferred_start,
            preferred_end=self.config.default_preferred_end,
            participants=participants,
            buffer_seconds=self.config.default_buffer_minutes * SECONDS_PER_MINUTE,
        )

        logger.info(
            "Calendar conflicts detected",
            grant_id=owner.grant_id,
            conflict_count=len(conflicts),
            alternative_count=len(alternatives),
        )
        return ConflictResult(
            has_conflict=True,
            conflicting_events=conflicts,
            alternatives=alternatives,
        )

    async def team_availability(
        self,
        members: list[TeamMember],
        start: int,
        end: int,
        slot_minutes: int = 30,
    ) -> TeamAvailability:
        """
        Build a free/busy grid across several team calendars.

        A member whose calendar cannot be fetched is reported as ``unknown``
        in every cell instead of failing the whole grid.

        Raises:
            InvalidInputError: If the range or slot size is invalid
        """
        if end <= start:
            raise InvalidInputError("end must be after start")
        if slot_minutes <= 0:
            raise InvalidInputError("slotMinutes must be positive")

        if not members:
            return TeamAvailability()

        results = await asyncio.gather(
            *(
                self._guarded(
                    "events",
                    self.event_source.get_events(m.owner, start, end, TEAM_EVENT_FETCH_LIMIT),
                )
                for m in members
            ),
            return_exceptions=True,
        )

        events_by_member: dict[str, list[Event] | None] = {}
        for member, result in zip(members, results):
            if isinstance(result, UpstreamFetchError):
                logger.warning(
                    "Team member calendar unavailable",
                    profile_id=member.profile_id,
                    error=result.message,
                )
                events_by_member[member.profile_id] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                events_by_member[member.profile_id] = result

        availability = build_team_availability(
            members, events_by_member, start, end, slot_minutes * SECONDS_PER_MINUTE
        )
        logger.info(
            "Built team availability",
            members=len(members),
            total_slots=availability.summary.total_slots,
            all_free_slots=availability.summary.all_free_slots,
        )
        return availability

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def _find(
        self,
        owner: OwnerRef,
        duration_seconds: int,
        range_start: int,
        range_end: int,
        preferred_start: str,
        preferred_end: str,
        participants: list[str],
        buffer_seconds: int,
    ) -> list[ScoredSlot]:
        events, busy = await self._fetch_snapshot(owner, range_start, range_end, participants)
        return self.search(
            events,
            busy,
            duration_seconds=duration_seconds,
            range_start=range_start,
            range_end=range_end,
            preferred_start=preferred_start,
            preferred_end=preferred_end,
            buffer_seconds=buffer_seconds,
        )

    def search(
        self,
        events: list[Event],
        busy: list[BusyInterval],
        duration_seconds: int,
        range_start: int,
        range_end: int,
        preferred_start: str,
        preferred_end: str,
        buffer_seconds: int,
    ) -> list[ScoredSlot]:
        """Run generate -> filter -> score -> rank over an already fetched snapshot."""
        candidates = generate_candidates(
            duration_seconds,
            range_start,
            range_end,
            preferred_start,
            preferred_end,
            step_seconds=self.config.slot_step_seconds,
        )
        in_range = [c for c in candidates if range_start <= c.interval.start <= range_end]
        free = [c for c in in_range if is_free(c.interval, events, buffer_seconds, busy)]

        scored = [
            ScoredSlot(c.interval, *score_slot(c.interval, events, self.config.weights))
            for c in free
        ]

        logger.debug(
            "Slot pipeline",
            candidates=len(candidates),
            in_range=len(in_range),
            free=len(free),
        )
        return rank_slots(scored, self.config.result_limit)

    async def _fetch_snapshot(
        self,
        owner: OwnerRef,
        range_start: int,
        range_end: int,
        participants: list[str],
    ) -> tuple[list[Event], list[BusyInterval]]:
        """Fetch owner events and participant busy blocks concurrently."""
        calls: list[Awaitable[Any]] = [
            self._guarded(
                "events",
                self.event_source.get_events(
                    owner, range_start, range_end, self.config.event_fetch_limit
                ),
            )
        ]
        if participants:
            calls.append(
                self._guarded(
                    "free_busy",
                    self.free_busy.get_free_busy(owner, participants, range_start, range_end),
                )
            )

        # Collect every outcome so a failed fetch never leaves the other unawaited
        results = await asyncio.gather(*calls, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result

        events: list[Event] = results[0]
        busy: list[BusyInterval] = []
        if participants:
            free_busy: dict[str, list[BusyInterval]] = results[1]
            for email in participants:
                busy.extend(b for b in free_busy.get(email, []) if b.is_busy)

        return events, busy

    async def _guarded(self, source: str, call: Awaitable[T]) -> T:
        """Await a collaborator call under the fetch timeout.

        Any failure surfaces as UpstreamFetchError.
        """
        timeout = self.config.fetch_timeout
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except UpstreamFetchError as e:
            logger.error("Upstream fetch failed", source=source, error=e.message)
            raise
        except asyncio.TimeoutError as e:
            logger.error("Upstream fetch timed out", source=source, timeout=timeout)
            raise UpstreamFetchError(
                f"Timed out fetching {source} after {timeout}s", source=source
            ) from e
        except Exception as e:
            logger.error("Upstream fetch failed", source=source, error=str(e))
            raise UpstreamFetchError(f"Failed to fetch {source}: {e}", source=source) from e
