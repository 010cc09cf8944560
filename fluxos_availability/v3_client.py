"""
Calendar microservice client.

httpx-backed transport implementing both collaborator interfaces against
the calendar proxy service. Failures surface as UpstreamFetchError; the
client does not retry.
"""

from typing import Any, NoReturn

import httpx
import structlog
from pydantic import ValidationError

from .config import CalendarServiceSettings
from .exceptions import UpstreamFetchError
from .models import BusyInterval, Event, OwnerRef
from .schemas import CalendarPayload, EventPayload, FreeBusySlotPayload
from .sources import CalendarEventSource, FreeBusyProvider

logger = structlog.get_logger(__name__)

CALENDARS_PATH = "/api/v1/nylas/calendar/calendars"
EVENTS_PATH = "/api/v1/nylas/calendar/events"
FREE_BUSY_PATH = "/api/v1/nylas/calendar/free-busy"


def _mask(grant_id: str) -> str:
    return f"{grant_id[:8]}..."


def _unwrap(payload: Any) -> Any:
    """Responses wrap their body in ``data``; tolerate bare bodies."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


class V3CalendarClient(CalendarEventSource, FreeBusyProvider):
    """
    Async client for the calendar proxy service.

    Example:
        ```python
        settings = CalendarServiceSettings(base_url="http://calendar-svc:8000")
        async with V3CalendarClient(settings) as client:
            engine = AvailabilityEngine(client, client)
            slots = await engine.find_available_slots(
                OwnerRef(grant_id="grant-123"), 30, start, end
            )
        ```
    """

    def __init__(self, settings: CalendarServiceSettings | None = None) -> None:
        """
        Initialize the client.

        Args:
            settings: Service settings. If None, read from the environment.
        """
        self.settings = settings or CalendarServiceSettings()
        self._client: httpx.AsyncClient | None = None
        logger.info("V3CalendarClient initialized", base_url=self.settings.base_url)

    async def __aenter__(self) -> "V3CalendarClient":
        """Async context manager entry."""
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                timeout=self.settings.timeout,
                verify=self.settings.verify_ssl,
            )
        return self._client

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["X-API-Key"] = self.settings.api_key
        return headers

    def _handle_error(self, response: httpx.Response, source: str) -> NoReturn:
        """
        Raise UpstreamFetchError for a non-2xx response.

        The message prefers the service's ``error`` field, then ``detail``,
        then the raw body.
        """
        try:
            error_data = response.json()
            message = error_data.get("error") or error_data.get("detail") or response.text
        except Exception:
            message = response.text

        raise UpstreamFetchError(
            f"Calendar service error ({source}): {message}",
            source=source,
            status_code=response.status_code,
        )

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("V3CalendarClient closed")

    # =========================================================================
    # Calendars
    # =========================================================================

    async def get_calendars(self, owner: OwnerRef) -> list[CalendarPayload]:
        """
        List the calendars attached to the owner's grant.

        Raises:
            UpstreamFetchError: If the request fails or the response is malformed
        """
        try:
            response = await self._get_client().get(
                CALENDARS_PATH,
                headers=self._get_headers(),
                params={"grantId": owner.grant_id},
                timeout=self.settings.calendars_timeout,
            )
            if not response.is_success:
                self._handle_error(response, "calendars")

            calendars = [CalendarPayload(**c) for c in _unwrap(response.json()) or []]

        except httpx.RequestError as e:
            logger.error("Calendars request failed", grant_id=_mask(owner.grant_id), error=str(e))
            raise UpstreamFetchError(
                f"Calendar service unavailable: {e}", source="calendars"
            ) from e
        except (ValueError, TypeError, ValidationError) as e:
            raise UpstreamFetchError(
                f"Malformed calendars response: {e}", source="calendars"
            ) from e

        logger.debug("Calendars listed", grant_id=_mask(owner.grant_id), count=len(calendars))
        return calendars

    async def _resolve_calendar_id(self, owner: OwnerRef) -> str | None:
        """Explicit calendar, else the primary one, else the first; None if there are none."""
        if owner.calendar_id:
            return owner.calendar_id

        calendars = await self.get_calendars(owner)
        if not calendars:
            return None

        primary = next((c for c in calendars if c.is_primary), calendars[0])
        return primary.id

    # =========================================================================
    # CalendarEventSource
    # =========================================================================

    async def get_events(
        self,
        owner: OwnerRef,
        range_start: int,
        range_end: int,
        limit: int,
    ) -> list[Event]:
        """
        Fetch events in a range from the owner's calendar.

        Events without epoch times (all-day) or with a non-positive duration
        are skipped.

        Raises:
            UpstreamFetchError: If the request fails or the response is malformed
        """
        calendar_id = await self._resolve_calendar_id(owner)
        if calendar_id is None:
            logger.info("No calendars for grant", grant_id=_mask(owner.grant_id))
            return []

        try:
            response = await self._get_client().get(
                EVENTS_PATH,
                headers=self._get_headers(),
                params={
                    "grantId": owner.grant_id,
                    "calendarId": calendar_id,
                    "limit": limit,
                    "start": range_start,
                    "end": range_end,
                },
            )
            if not response.is_success:
                self._handle_error(response, "events")

            payloads = [EventPayload(**e) for e in _unwrap(response.json()) or []]

        except httpx.RequestError as e:
            logger.error("Events request failed", grant_id=_mask(owner.grant_id), error=str(e))
            raise UpstreamFetchError(
                f"Calendar service unavailable: {e}", source="events"
            ) from e
        except (ValueError, TypeError, ValidationError) as e:
            raise UpstreamFetchError(f"Malformed events response: {e}", source="events") from e

        events = [event for event in (p.to_event() for p in payloads) if event is not None]

        logger.info(
            "Calendar events fetched",
            grant_id=_mask(owner.grant_id),
            count=len(events),
            skipped=len(payloads) - len(events),
        )
        return events

    # =========================================================================
    # FreeBusyProvider
    # =========================================================================

    async def get_free_busy(
        self,
        owner: OwnerRef,
        emails: list[str],
        range_start: int,
        range_end: int,
    ) -> dict[str, list[BusyInterval]]:
        """
        Fetch free/busy blocks for participants.

        Every requested email is present in the result, possibly with no
        blocks. Missing statuses default to free.

        Raises:
            UpstreamFetchError: If the request fails or the response is malformed
        """
        try:
            response = await self._get_client().post(
                FREE_BUSY_PATH,
                headers=self._get_headers(),
                json={
                    "grantId": owner.grant_id,
                    "emails": emails,
                    "startTime": range_start,
                    "endTime": range_end,
                },
            )
            if not response.is_success:
                self._handle_error(response, "free_busy")

            data = _unwrap(response.json()) or {}
            result: dict[str, list[BusyInterval]] = {}
            for email in emails:
                blocks = (FreeBusySlotPayload(**s) for s in data.get(email) or [])
                result[email] = [
                    b for b in (p.to_busy_interval(email) for p in blocks) if b is not None
                ]

        except httpx.RequestError as e:
            logger.error("Free/busy request failed", grant_id=_mask(owner.grant_id), error=str(e))
            raise UpstreamFetchError(
                f"Calendar service unavailable: {e}", source="free_busy"
            ) from e
        except (ValueError, TypeError, AttributeError, ValidationError) as e:
            raise UpstreamFetchError(
                f"Malformed free/busy response: {e}", source="free_busy"
            ) from e

        logger.info(
            "Free/busy fetched",
            grant_id=_mask(owner.grant_id),
            participants=len(emails),
            blocks=sum(len(v) for v in result.values()),
        )
        return result
