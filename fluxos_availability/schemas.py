"""Wire payloads returned by the calendar microservice."""

from pydantic import BaseModel, Field

from .models import BusyInterval, BusyStatus, Event, TimeInterval


class CalendarPayload(BaseModel):
    """A calendar attached to a grant."""

    id: str
    name: str | None = None
    is_primary: bool = False


class EventWhen(BaseModel):
    """Event timing. Date-only (all-day) events carry no epoch times."""

    start_time: int | None = None
    end_time: int | None = None


class EventPayload(BaseModel):
    """A calendar event as returned by the events endpoint."""

    id: str
    title: str | None = None
    when: EventWhen = Field(default_factory=EventWhen)

    def to_event(self) -> Event | None:
        """Convert to an Event, or None when the event has no usable interval."""
        start, end = self.when.start_time, self.when.end_time
        if start is None or end is None or end <= start:
            return None
        return Event(id=self.id, title=self.title or "", interval=TimeInterval(start, end))


class FreeBusySlotPayload(BaseModel):
    """One free/busy block for a participant."""

    start_time: int
    end_time: int
    status: str = BusyStatus.FREE.value

    def to_busy_interval(self, email: str) -> BusyInterval | None:
        if self.end_time <= self.start_time:
            return None
        status = BusyStatus.BUSY if self.status == BusyStatus.BUSY.value else BusyStatus.FREE
        return BusyInterval(
            owner_email=email,
            interval=TimeInterval(self.start_time, self.end_time),
            status=status,
        )
