"""Calendar availability plugin handlers."""

import re
from functools import partial
from typing import Any, Callable, Dict, List

import structlog

from .engine import AvailabilityEngine
from .exceptions import InvalidInputError
from .models import GridSlot, OwnerRef, TeamMember
from .team import find_optimal_slots, group_slots_by_date
from .timewindow import parse_iso

logger = structlog.get_logger(__name__)

_INT_RE = re.compile(r"^-?\d+$")


def _owner_from_inputs(inputs: Dict[str, Any]) -> OwnerRef:
    grant_id = inputs.get("grant_id")
    if not grant_id:
        raise InvalidInputError("'grant_id' is required")
    return OwnerRef(
        grant_id=grant_id,
        calendar_id=inputs.get("calendar_id"),
        email=inputs.get("user_email"),
    )


def _required_time(inputs: Dict[str, Any], key: str) -> int:
    value = inputs.get(key)
    if not value:
        raise InvalidInputError(f"'{key}' is required")
    return parse_iso(value)


def _optional_int(inputs: Dict[str, Any], key: str) -> int | None:
    """Integer input; digit strings are accepted, floats and booleans are not."""
    value = inputs.get(key)
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and _INT_RE.match(value.strip()):
        return int(value)
    raise InvalidInputError(f"'{key}' must be an integer")


def _optional_bool(inputs: Dict[str, Any], key: str, default: bool) -> bool:
    value = inputs.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise InvalidInputError(f"'{key}' must be a boolean")
    return value


def _positive_int(inputs: Dict[str, Any], key: str, default: int) -> int:
    value = _optional_int(inputs, key)
    if value is None:
        return default
    if value <= 0:
        raise InvalidInputError(f"'{key}' must be positive")
    return value


def _members_from_inputs(inputs: Dict[str, Any]) -> List[TeamMember]:
    members = inputs.get("members")
    if not isinstance(members, list) or not members:
        raise InvalidInputError("'members' must be a non-empty list")

    result = []
    for entry in members:
        if not isinstance(entry, dict) or not entry.get("grant_id"):
            raise InvalidInputError("Each member needs a 'grant_id'")
        profile_id = entry.get("profile_id") or entry["grant_id"]
        result.append(
            TeamMember(
                profile_id=profile_id,
                label=entry.get("label") or profile_id,
                email=entry.get("email") or "",
                owner=OwnerRef(
                    grant_id=entry["grant_id"],
                    calendar_id=entry.get("calendar_id"),
                    email=entry.get("email"),
                ),
            )
        )
    return result


def _slot_summary(slot: GridSlot) -> Dict[str, Any]:
    total = len(slot.availability)
    return {
        **slot.to_dict(),
        "freeCount": slot.free_count,
        "totalCount": total,
        "allFree": slot.all_free,
        "percentFree": round(slot.free_count * 100 / total) if total else 0,
    }


async def find_available_slots_handler(
    engine: AvailabilityEngine, inputs: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Find ranked meeting slots.

    Inputs:
        grant_id: Grant of the calendar owner (required)
        calendar_id: Calendar ID (default: primary calendar)
        duration_minutes: Meeting length in minutes (required)
        date_range_start: Range start, ISO format (required)
        date_range_end: Range end, ISO format (required)
        preferred_time_start: Daily window start "HH:MM" (default: "09:00")
        preferred_time_end: Daily window end "HH:MM" (default: "17:00")
        participants: Comma-separated emails or list (optional)
        buffer_minutes: Margin around existing events (default: 15)

    Returns:
        Dictionary with ranked slots
    """
    owner = _owner_from_inputs(inputs)
    duration_minutes = _optional_int(inputs, "duration_minutes")
    if duration_minutes is None:
        raise InvalidInputError("'duration_minutes' is required")

    slots = await engine.find_available_slots(
        owner,
        duration_minutes=duration_minutes,
        date_range_start=_required_time(inputs, "date_range_start"),
        date_range_end=_required_time(inputs, "date_range_end"),
        preferred_time_start=inputs.get("preferred_time_start"),
        preferred_time_end=inputs.get("preferred_time_end"),
        participants=inputs.get("participants"),
        buffer_minutes=_optional_int(inputs, "buffer_minutes"),
    )

    return {
        "success": True,
        "slots": [slot.to_dict() for slot in slots],
        "count": len(slots),
    }


async def check_conflicts_handler(
    engine: AvailabilityEngine, inputs: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Check a proposed meeting time for conflicts.

    Inputs:
        grant_id: Grant of the calendar owner (required)
        calendar_id: Calendar ID (default: primary calendar)
        start: Proposed start, ISO format (required)
        end: Proposed end, ISO format (required)
        participants: Comma-separated emails or list (optional)

    Returns:
        Dictionary with conflict information and alternatives
    """
    owner = _owner_from_inputs(inputs)

    result = await engine.check_conflicts(
        owner,
        start_time=_required_time(inputs, "start"),
        end_time=_required_time(inputs, "end"),
        participants=inputs.get("participants"),
    )

    return {"success": True, **result.to_dict()}


async def team_availability_handler(
    engine: AvailabilityEngine, inputs: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Build a free/busy grid across team calendars.

    Inputs:
        members: List of {grant_id, calendar_id?, profile_id?, label?, email?} (required)
        start: Grid start, ISO format (required)
        end: Grid end, ISO format (required)
        slot_minutes: Cell size in minutes (default: 30)
        group_by_date: Also return cells grouped by UTC date (default: false)

    Returns:
        Dictionary with profiles, slots and summary counts
    """
    members = _members_from_inputs(inputs)
    start = _required_time(inputs, "start")
    end = _required_time(inputs, "end")
    slot_minutes = _positive_int(inputs, "slot_minutes", 30)
    group_by_date = _optional_bool(inputs, "group_by_date", False)

    availability = await engine.team_availability(members, start, end, slot_minutes)

    result = {"success": True, **availability.to_dict()}
    if group_by_date:
        result["slotsByDate"] = {
            date: [slot.to_dict() for slot in slots]
            for date, slots in group_slots_by_date(availability.slots).items()
        }
    return result


async def find_optimal_team_slots_handler(
    engine: AvailabilityEngine, inputs: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Find grid cells where all or most team members are free.

    Inputs:
        members: List of {grant_id, calendar_id?, profile_id?, label?, email?} (required)
        start: Range start, ISO format (required)
        end: Range end, ISO format (required)
        slot_minutes: Cell size in minutes (default: 30)
        require_all_free: Only cells where everyone is free (default: true)
        min_free_count: Free members needed when not requiring all (default: 1)
        limit: Maximum number of cells (default: 10)

    Returns:
        Dictionary with optimal cells and a one-line summary
    """
    members = _members_from_inputs(inputs)
    start = _required_time(inputs, "start")
    end = _required_time(inputs, "end")
    slot_minutes = _positive_int(inputs, "slot_minutes", 30)
    require_all_free = _optional_bool(inputs, "require_all_free", True)
    min_free_count = _positive_int(inputs, "min_free_count", 1)
    limit = _positive_int(inputs, "limit", 10)

    availability = await engine.team_availability(members, start, end, slot_minutes)
    optimal = find_optimal_slots(
        availability.slots,
        require_all_free=require_all_free,
        min_free_count=min_free_count,
        limit=limit,
    )

    if optimal:
        who = "everyone" if require_all_free else f"at least {min_free_count} member(s)"
        summary = f"Found {len(optimal)} slots where {who} is free"
    else:
        summary = "No available slots found"

    return {
        "success": True,
        "optimalSlots": [_slot_summary(slot) for slot in optimal],
        "count": len(optimal),
        "summary": summary,
    }


_SLOT_SCHEMA = {
    "type": "object",
    "properties": {
        "startTime": {"type": "string"},
        "endTime": {"type": "string"},
        "score": {"type": "integer"},
        "reason": {"type": "string"},
    },
}

_PARTICIPANTS_SCHEMA = {
    "oneOf": [
        {"type": "string"},
        {"type": "array", "items": {"type": "string"}},
    ]
}

_MEMBERS_SCHEMA = {
    "type": "array",
    "minItems": 1,
    "items": {
        "type": "object",
        "properties": {
            "grant_id": {"type": "string"},
            "calendar_id": {"type": "string"},
            "profile_id": {"type": "string"},
            "label": {"type": "string"},
            "email": {"type": "string"},
        },
        "required": ["grant_id"],
    },
}

_GRID_SLOT_SCHEMA = {
    "type": "object",
    "properties": {
        "startIso": {"type": "string"},
        "endIso": {"type": "string"},
        "availability": {"type": "object"},
    },
}

# Plugin definitions; handlers take the engine first and are bound by build_plugin_definitions
AVAILABILITY_PLUGIN_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": "calendar_find_available_slots",
        "description": "Find and rank available meeting slots in a date range",
        "handler": find_available_slots_handler,
        "inputs_schema": {
            "type": "object",
            "properties": {
                "grant_id": {"type": "string"},
                "calendar_id": {"type": "string"},
                "duration_minutes": {"type": "integer", "minimum": 1},
                "date_range_start": {"type": "string"},
                "date_range_end": {"type": "string"},
                "preferred_time_start": {"type": "string", "default": "09:00"},
                "preferred_time_end": {"type": "string", "default": "17:00"},
                "participants": _PARTICIPANTS_SCHEMA,
                "buffer_minutes": {"type": "integer", "default": 15},
            },
            "required": ["grant_id", "duration_minutes", "date_range_start", "date_range_end"],
        },
        "outputs_schema": {
            "type": "object",
            "properties": {
                "success": {"type": "boolean"},
                "slots": {"type": "array", "items": _SLOT_SCHEMA},
                "count": {"type": "integer"},
            },
        },
        "category": "calendar",
    },
    {
        "name": "calendar_check_conflicts",
        "description": "Check a proposed meeting time for conflicts and suggest alternatives",
        "handler": check_conflicts_handler,
        "inputs_schema": {
            "type": "object",
            "properties": {
                "grant_id": {"type": "string"},
                "calendar_id": {"type": "string"},
                "start": {"type": "string"},
                "end": {"type": "string"},
                "participants": _PARTICIPANTS_SCHEMA,
            },
            "required": ["grant_id", "start", "end"],
        },
        "outputs_schema": {
            "type": "object",
            "properties": {
                "success": {"type": "boolean"},
                "hasConflict": {"type": "boolean"},
                "conflicts": {"type": "array"},
                "alternatives": {"type": "array", "items": _SLOT_SCHEMA},
            },
        },
        "category": "calendar",
    },
    {
        "name": "calendar_team_availability",
        "description": "Show when each team member is free, busy or unknown across a time range",
        "handler": team_availability_handler,
        "inputs_schema": {
            "type": "object",
            "properties": {
                "members": _MEMBERS_SCHEMA,
                "start": {"type": "string"},
                "end": {"type": "string"},
                "slot_minutes": {"type": "integer", "minimum": 1, "default": 30},
                "group_by_date": {"type": "boolean", "default": False},
            },
            "required": ["members", "start", "end"],
        },
        "outputs_schema": {
            "type": "object",
            "properties": {
                "success": {"type": "boolean"},
                "profiles": {"type": "array"},
                "slots": {"type": "array", "items": _GRID_SLOT_SCHEMA},
                "summary": {"type": "object"},
                "slotsByDate": {"type": "object"},
            },
        },
        "category": "calendar",
    },
    {
        "name": "calendar_find_optimal_team_slots",
        "description": "Find meeting times when all or most team members are free",
        "handler": find_optimal_team_slots_handler,
        "inputs_schema": {
            "type": "object",
            "properties": {
                "members": _MEMBERS_SCHEMA,
                "start": {"type": "string"},
                "end": {"type": "string"},
                "slot_minutes": {"type": "integer", "minimum": 1, "default": 30},
                "require_all_free": {"type": "boolean", "default": True},
                "min_free_count": {"type": "integer", "minimum": 1, "default": 1},
                "limit": {"type": "integer", "minimum": 1, "default": 10},
            },
            "required": ["members", "start", "end"],
        },
        "outputs_schema": {
            "type": "object",
            "properties": {
                "success": {"type": "boolean"},
                "optimalSlots": {"type": "array"},
                "count": {"type": "integer"},
                "summary": {"type": "string"},
            },
        },
        "category": "calendar",
    },
]


def build_plugin_definitions(engine: AvailabilityEngine) -> List[Dict[str, Any]]:
    """Plugin definitions with handlers bound to ``engine``."""
    return [
        {**definition, "handler": partial(definition["handler"], engine)}
        for definition in AVAILABILITY_PLUGIN_DEFINITIONS
    ]


def build_plugin_handlers(engine: AvailabilityEngine) -> Dict[str, Callable[..., Any]]:
    """Handlers keyed by plugin name, for explicit registration."""
    handlers = {d["name"]: d["handler"] for d in build_plugin_definitions(engine)}
    logger.debug("Availability plugin handlers built", handlers=list(handlers))
    return handlers
