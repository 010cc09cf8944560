"""
Collaborator interfaces consumed by the availability engine.

Concrete transports (the calendar microservice client, in-memory test
doubles) implement these; the engine depends on nothing else.
"""

from abc import ABC, abstractmethod

from .models import BusyInterval, Event, OwnerRef


class CalendarEventSource(ABC):
    """Abstract source of the owner's calendar events."""

    @abstractmethod
    async def get_events(
        self,
        owner: OwnerRef,
        range_start: int,
        range_end: int,
        limit: int,
    ) -> list[Event]:
        """Return up to ``limit`` events intersecting ``[range_start, range_end]``.

        An owner without calendars yields an empty list. Transport failures
        raise.
        """
        ...


class FreeBusyProvider(ABC):
    """Abstract source of participants' free/busy blocks."""

    @abstractmethod
    async def get_free_busy(
        self,
        owner: OwnerRef,
        emails: list[str],
        range_start: int,
        range_end: int,
    ) -> dict[str, list[BusyInterval]]:
        """Return free/busy blocks per email, queried with the owner's grant."""
        ...
