"""
In-memory calendar collaborators for testing.

Provides implementations of CalendarEventSource and FreeBusyProvider that
serve pre-loaded data without calling the calendar service, plus factory
functions for test data.
"""

import uuid
from typing import Any

from .exceptions import UpstreamFetchError
from .models import BusyInterval, BusyStatus, Event, OwnerRef, TimeInterval
from .sources import CalendarEventSource, FreeBusyProvider


# Factory functions for creating test data


def event_factory(start: int, end: int, **kwargs: Any) -> Event:
    """Create a test Event."""
    return Event(
        id=kwargs.get("id", f"evt_{uuid.uuid4().hex[:12]}"),
        title=kwargs.get("title", "Busy"),
        interval=TimeInterval(start, end),
    )


def busy_factory(email: str, start: int, end: int, **kwargs: Any) -> BusyInterval:
    """Create a test BusyInterval."""
    return BusyInterval(
        owner_email=email,
        interval=TimeInterval(start, end),
        status=kwargs.get("status", BusyStatus.BUSY),
    )


def owner_factory(**kwargs: Any) -> OwnerRef:
    """Create a test OwnerRef."""
    return OwnerRef(
        grant_id=kwargs.get("grant_id", f"grant-{uuid.uuid4().hex[:8]}"),
        calendar_id=kwargs.get("calendar_id"),
        email=kwargs.get("email"),
    )


class MockCalendarSource(CalendarEventSource, FreeBusyProvider):
    """In-memory calendar and free/busy source.

    Events are stored per grant id; free/busy blocks per email. Every call
    is recorded in ``calls`` so tests can assert what was fetched.

    Example:
        source = MockCalendarSource()
        source.add_event("grant-1", event_factory(start, end))
        source.add_busy(busy_factory("alice@example.com", start, end))

        engine = AvailabilityEngine(source, source)
    """

    def __init__(self) -> None:
        """Initialize the mock source."""
        self._events: dict[str, list[Event]] = {}
        self._busy: dict[str, list[BusyInterval]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

        # Failure simulation
        self.fail_events: Exception | None = None
        self.fail_free_busy: Exception | None = None
        self.failing_grants: set[str] = set()

    # Test helpers

    def add_event(self, grant_id: str, event: Event) -> None:
        self._events.setdefault(grant_id, []).append(event)

    def add_busy(self, busy: BusyInterval) -> None:
        self._busy.setdefault(busy.owner_email, []).append(busy)

    def clear(self) -> None:
        self._events.clear()
        self._busy.clear()
        self.calls.clear()

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == method]

    # CalendarEventSource

    async def get_events(
        self,
        owner: OwnerRef,
        range_start: int,
        range_end: int,
        limit: int,
    ) -> list[Event]:
        self.calls.append(
            (
                "get_events",
                {"owner": owner, "range_start": range_start, "range_end": range_end, "limit": limit},
            )
        )
        if self.fail_events:
            raise self.fail_events
        if owner.grant_id in self.failing_grants:
            raise UpstreamFetchError(f"Grant {owner.grant_id} unavailable", source="events")

        events = [
            e for e in self._events.get(owner.grant_id, [])
            if e.end >= range_start and e.start <= range_end
        ]
        events.sort(key=lambda e: e.start)
        return events[:limit]

    # FreeBusyProvider

    async def get_free_busy(
        self,
        owner: OwnerRef,
        emails: list[str],
        range_start: int,
        range_end: int,
    ) -> dict[str, list[BusyInterval]]:
        self.calls.append(
            (
                "get_free_busy",
                {"owner": owner, "emails": list(emails), "range_start": range_start, "range_end": range_end},
            )
        )
        if self.fail_free_busy:
            raise self.fail_free_busy

        return {
            email: [
                b for b in self._busy.get(email, [])
                if b.interval.end >= range_start and b.interval.start <= range_end
            ]
            for email in emails
        }
