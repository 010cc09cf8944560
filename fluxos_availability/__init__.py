"""
    fluxos-availability - Calendar availability and conflict-resolution engine.

    Generates and ranks meeting slots from a calendar owner's events and
    participants' free/busy data, and checks proposed meeting times for
    conflicts.

Example usage:
    from fluxos_availability import (
        AvailabilityEngine,
        CalendarServiceSettings,
        OwnerRef,
        V3CalendarClient,
    )

    async with V3CalendarClient(CalendarServiceSettings()) as client:
        engine = AvailabilityEngine(client, client)
        owner = OwnerRef(grant_id="grant-123")

        # Best slots for a 30 minute meeting
        slots = await engine.find_available_slots(
            owner,
            duration_minutes=30,
            date_range_start=1767603600,
            date_range_end=1767862800,
            participants=["alice@example.com"],
        )

        # Check a proposed time
        result = await engine.check_conflicts(owner, 1767607200, 1767610800)
"""

from .candidates import generate_candidates
from .config import AvailabilityConfig, CalendarServiceSettings, ScoringWeights
from .conflicts import find_conflicting_events, is_free
from .engine import AvailabilityEngine, normalize_participants
from .exceptions import (
    AvailabilityConfigError,
    AvailabilityError,
    InvalidInputError,
    UpstreamFetchError,
)
from .handlers import (
    AVAILABILITY_PLUGIN_DEFINITIONS,
    build_plugin_definitions,
    build_plugin_handlers,
)
from .models import (
    AvailabilityStatus,
    AvailabilitySummary,
    BusyInterval,
    BusyStatus,
    Candidate,
    ConflictResult,
    Event,
    GridSlot,
    OwnerRef,
    ScoredSlot,
    TeamAvailability,
    TeamMember,
    TimeInterval,
)
from .ranking import rank_slots
from .scoring import score_slot
from .sources import CalendarEventSource, FreeBusyProvider
from .team import find_optimal_slots, group_slots_by_date
from .v3_client import V3CalendarClient

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Engine
    "AvailabilityEngine",
    "normalize_participants",
    # Pipeline stages
    "generate_candidates",
    "is_free",
    "find_conflicting_events",
    "score_slot",
    "rank_slots",
    # Team grid
    "find_optimal_slots",
    "group_slots_by_date",
    # Collaborators
    "CalendarEventSource",
    "FreeBusyProvider",
    "V3CalendarClient",
    # Configuration
    "AvailabilityConfig",
    "ScoringWeights",
    "CalendarServiceSettings",
    # Exceptions
    "AvailabilityError",
    "AvailabilityConfigError",
    "InvalidInputError",
    "UpstreamFetchError",
    # Models
    "TimeInterval",
    "OwnerRef",
    "Event",
    "BusyStatus",
    "BusyInterval",
    "Candidate",
    "ScoredSlot",
    "ConflictResult",
    "AvailabilityStatus",
    "TeamMember",
    "GridSlot",
    "AvailabilitySummary",
    "TeamAvailability",
    # Plugins
    "AVAILABILITY_PLUGIN_DEFINITIONS",
    "build_plugin_definitions",
    "build_plugin_handlers",
]
