"""Tests for the calendar plugin handlers."""

import pytest

from fluxos_availability import (
    AVAILABILITY_PLUGIN_DEFINITIONS,
    InvalidInputError,
    UpstreamFetchError,
    build_plugin_definitions,
    build_plugin_handlers,
)
from fluxos_availability.handlers import (
    check_conflicts_handler,
    find_available_slots_handler,
    find_optimal_team_slots_handler,
    team_availability_handler,
)
from fluxos_availability.mock import event_factory

from .helpers import TUESDAY, at

GRANT = "grant-test-0001"


def find_inputs(**overrides):
    inputs = {
        "grant_id": GRANT,
        "duration_minutes": 30,
        "date_range_start": "2026-01-06T00:00:00Z",
        "date_range_end": "2026-01-06T23:59:00Z",
    }
    inputs.update(overrides)
    return inputs


class TestFindAvailableSlotsHandler:
    """Tests for find_available_slots_handler."""

    @pytest.mark.asyncio
    async def test_returns_slots(self, engine):
        result = await find_available_slots_handler(engine, find_inputs())

        assert result["success"] is True
        assert result["count"] == 10
        assert result["slots"][0] == {
            "startTime": "2026-01-06T09:00:00Z",
            "endTime": "2026-01-06T09:30:00Z",
            "score": 100,
            "reason": "Excellent slot: optimal morning time, mid-week",
        }

    @pytest.mark.asyncio
    async def test_passes_optional_inputs(self, engine, mock_source):
        result = await find_available_slots_handler(
            engine,
            find_inputs(
                duration_minutes="60",
                preferred_time_start="13:00",
                preferred_time_end="15:00",
                participants="alice@example.com",
                buffer_minutes=0,
            ),
        )

        assert result["count"] == 3
        (call,) = mock_source.calls_to("get_free_busy")
        assert call["emails"] == ["alice@example.com"]

    @pytest.mark.asyncio
    async def test_calendar_id_forwarded(self, engine, mock_source):
        await find_available_slots_handler(engine, find_inputs(calendar_id="cal-9"))
        (call,) = mock_source.calls_to("get_events")
        assert call["owner"].calendar_id == "cal-9"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["grant_id", "duration_minutes", "date_range_start", "date_range_end"])
    async def test_missing_required(self, engine, mock_source, missing):
        inputs = find_inputs()
        del inputs[missing]

        with pytest.raises(InvalidInputError, match=missing):
            await find_available_slots_handler(engine, inputs)
        assert mock_source.calls == []

    @pytest.mark.asyncio
    async def test_bad_iso(self, engine):
        with pytest.raises(InvalidInputError, match="ISO-8601"):
            await find_available_slots_handler(engine, find_inputs(date_range_start="next week"))

    @pytest.mark.asyncio
    async def test_non_integer_buffer(self, engine):
        with pytest.raises(InvalidInputError, match="buffer_minutes"):
            await find_available_slots_handler(engine, find_inputs(buffer_minutes="soon"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("duration", [45.9, 30.0, True, "45.9", "thirty"])
    async def test_non_integral_duration_rejected(self, engine, mock_source, duration):
        """Test that floats and booleans are rejected rather than truncated."""
        with pytest.raises(InvalidInputError, match="duration_minutes"):
            await find_available_slots_handler(engine, find_inputs(duration_minutes=duration))
        assert mock_source.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["preferred_time_start", "preferred_time_end"])
    async def test_empty_preferred_time_rejected(self, engine, mock_source, field):
        with pytest.raises(InvalidInputError, match="HH:MM"):
            await find_available_slots_handler(engine, find_inputs(**{field: ""}))
        assert mock_source.calls == []


class TestCheckConflictsHandler:
    """Tests for check_conflicts_handler."""

    @pytest.mark.asyncio
    async def test_no_conflict(self, engine):
        result = await check_conflicts_handler(
            engine,
            {"grant_id": GRANT, "start": "2026-01-06T10:00:00Z", "end": "2026-01-06T11:00:00Z"},
        )
        assert result == {"success": True, "hasConflict": False, "conflicts": []}

    @pytest.mark.asyncio
    async def test_conflict(self, engine, mock_source):
        mock_source.add_event(GRANT, event_factory(at(TUESDAY, 10, 30), at(TUESDAY, 11), id="evt-1", title="Standup"))

        result = await check_conflicts_handler(
            engine,
            {"grant_id": GRANT, "start": "2026-01-06T10:00:00Z", "end": "2026-01-06T11:00:00Z"},
        )

        assert result["success"] is True
        assert result["hasConflict"] is True
        assert result["conflicts"] == [
            {
                "id": "evt-1",
                "title": "Standup",
                "startTime": "2026-01-06T10:30:00Z",
                "endTime": "2026-01-06T11:00:00Z",
            }
        ]
        assert result["alternatives"]

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(self, engine, mock_source):
        mock_source.fail_events = UpstreamFetchError("down", source="events")

        with pytest.raises(UpstreamFetchError):
            await check_conflicts_handler(
                engine,
                {"grant_id": GRANT, "start": "2026-01-06T10:00:00Z", "end": "2026-01-06T11:00:00Z"},
            )


class TestPluginDefinitions:
    """Tests for plugin registration helpers."""

    def test_definition_names(self):
        names = [d["name"] for d in AVAILABILITY_PLUGIN_DEFINITIONS]
        assert names == [
            "calendar_find_available_slots",
            "calendar_check_conflicts",
            "calendar_team_availability",
            "calendar_find_optimal_team_slots",
        ]

    def test_definitions_have_schemas(self):
        for definition in AVAILABILITY_PLUGIN_DEFINITIONS:
            assert definition["category"] == "calendar"
            assert definition["inputs_schema"]["required"]
            assert "properties" in definition["outputs_schema"]

    @pytest.mark.asyncio
    async def test_bound_handlers(self, engine):
        handlers = build_plugin_handlers(engine)

        assert set(handlers) == {d["name"] for d in AVAILABILITY_PLUGIN_DEFINITIONS}
        result = await handlers["calendar_find_available_slots"](find_inputs())
        assert result["success"] is True

    def test_build_definitions_does_not_mutate_module_list(self, engine):
        definitions = build_plugin_definitions(engine)
        assert definitions[0]["handler"] is not AVAILABILITY_PLUGIN_DEFINITIONS[0]["handler"]
        assert AVAILABILITY_PLUGIN_DEFINITIONS[0]["handler"] is find_available_slots_handler


def team_inputs(**overrides):
    inputs = {
        "members": [
            {"grant_id": "grant-alice", "profile_id": "alice", "label": "Alice", "email": "alice@example.com"},
            {"grant_id": "grant-bob"},
        ],
        "start": "2026-01-06T09:00:00Z",
        "end": "2026-01-06T10:00:00Z",
    }
    inputs.update(overrides)
    return inputs


class TestTeamAvailabilityHandler:
    """Tests for team_availability_handler."""

    @pytest.mark.asyncio
    async def test_returns_grid(self, engine, mock_source):
        mock_source.add_event("grant-alice", event_factory(at(TUESDAY, 9), at(TUESDAY, 9, 30)))

        result = await team_availability_handler(engine, team_inputs())

        assert result["success"] is True
        assert [p["profileId"] for p in result["profiles"]] == ["alice", "grant-bob"]
        assert result["profiles"][1]["label"] == "grant-bob"
        assert result["slots"][0]["availability"] == {"alice": "busy", "grant-bob": "free"}
        assert result["summary"]["someFreeSlots"] == 1
        assert result["summary"]["allFreeSlots"] == 1
        assert "slotsByDate" not in result

    @pytest.mark.asyncio
    async def test_group_by_date(self, engine):
        result = await team_availability_handler(engine, team_inputs(group_by_date=True))

        assert list(result["slotsByDate"]) == ["2026-01-06"]
        assert len(result["slotsByDate"]["2026-01-06"]) == 2

    @pytest.mark.asyncio
    async def test_slot_minutes(self, engine):
        result = await team_availability_handler(engine, team_inputs(slot_minutes="15"))
        assert result["summary"]["totalSlots"] == 4

    @pytest.mark.asyncio
    async def test_calendar_id_forwarded(self, engine, mock_source):
        members = [{"grant_id": "grant-alice", "calendar_id": "cal-7"}]
        await team_availability_handler(engine, team_inputs(members=members))

        (call,) = mock_source.calls_to("get_events")
        assert call["owner"].calendar_id == "cal-7"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"members": []}, "members"),
            ({"members": "alice"}, "members"),
            ({"members": [{"profile_id": "alice"}]}, "grant_id"),
            ({"slot_minutes": 0}, "slot_minutes"),
            ({"slot_minutes": 7.5}, "slot_minutes"),
            ({"group_by_date": "yes"}, "group_by_date"),
            ({"start": None}, "start"),
        ],
    )
    async def test_invalid_inputs(self, engine, mock_source, overrides, message):
        with pytest.raises(InvalidInputError, match=message):
            await team_availability_handler(engine, team_inputs(**overrides))
        assert mock_source.calls == []


class TestFindOptimalTeamSlotsHandler:
    """Tests for find_optimal_team_slots_handler."""

    @pytest.mark.asyncio
    async def test_everyone_free(self, engine, mock_source):
        mock_source.add_event("grant-alice", event_factory(at(TUESDAY, 9), at(TUESDAY, 9, 30)))

        result = await find_optimal_team_slots_handler(engine, team_inputs())

        assert result["count"] == 1
        assert result["summary"] == "Found 1 slots where everyone is free"
        slot = result["optimalSlots"][0]
        assert slot["startIso"] == "2026-01-06T09:30:00Z"
        assert slot["freeCount"] == 2
        assert slot["totalCount"] == 2
        assert slot["allFree"] is True
        assert slot["percentFree"] == 100

    @pytest.mark.asyncio
    async def test_most_free(self, engine, mock_source):
        mock_source.add_event("grant-alice", event_factory(at(TUESDAY, 9), at(TUESDAY, 9, 30)))

        result = await find_optimal_team_slots_handler(
            engine, team_inputs(require_all_free=False, min_free_count=1)
        )

        assert result["count"] == 2
        assert result["optimalSlots"][0]["percentFree"] == 50
        assert result["optimalSlots"][0]["allFree"] is False

    @pytest.mark.asyncio
    async def test_limit(self, engine):
        result = await find_optimal_team_slots_handler(engine, team_inputs(limit=1))
        assert result["count"] == 1

    @pytest.mark.asyncio
    async def test_nothing_free(self, engine, mock_source):
        mock_source.add_event("grant-alice", event_factory(at(TUESDAY, 8), at(TUESDAY, 11)))

        result = await find_optimal_team_slots_handler(engine, team_inputs())

        assert result == {
            "success": True,
            "optimalSlots": [],
            "count": 0,
            "summary": "No available slots found",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"limit": 0}, "limit"),
            ({"min_free_count": True}, "min_free_count"),
            ({"require_all_free": 1}, "require_all_free"),
        ],
    )
    async def test_invalid_inputs(self, engine, mock_source, overrides, message):
        with pytest.raises(InvalidInputError, match=message):
            await find_optimal_team_slots_handler(engine, team_inputs(**overrides))
        assert mock_source.calls == []
