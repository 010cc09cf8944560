"""Tests for time arithmetic helpers."""

import pytest

from fluxos_availability.exceptions import InvalidInputError
from fluxos_availability.timewindow import (
    SECONDS_PER_DAY,
    day_floor,
    offset_seconds,
    overlaps,
    parse_hhmm,
    parse_iso,
    to_iso,
    utc_hour,
    utc_weekday,
)

from .helpers import FRIDAY, MONDAY, SATURDAY, TUESDAY, at


class TestDayFloor:
    """Tests for day_floor."""

    def test_truncates_to_midnight(self):
        """Test that a mid-day timestamp truncates to UTC midnight."""
        assert day_floor(at(TUESDAY, 13, 45)) == at(TUESDAY)

    def test_midnight_is_unchanged(self):
        """Test that midnight is already a day boundary."""
        assert day_floor(at(TUESDAY)) == at(TUESDAY)

    def test_last_second_of_day(self):
        """Test the last second of a day stays on that day."""
        assert day_floor(at(TUESDAY) + SECONDS_PER_DAY - 1) == at(TUESDAY)


class TestParseHHMM:
    """Tests for parse_hhmm."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("09:00", (9, 0)),
            ("17:30", (17, 30)),
            ("9:05", (9, 5)),
            ("00:00", (0, 0)),
            ("24:00", (24, 0)),
            (" 08:15 ", (8, 15)),
        ],
    )
    def test_valid_times(self, value, expected):
        """Test parsing valid HH:MM strings."""
        assert parse_hhmm(value) == expected

    @pytest.mark.parametrize("value", ["25:00", "12:60", "24:30", "noon", "", "9", "12:5", "1200"])
    def test_invalid_times(self, value):
        """Test that malformed strings raise InvalidInputError."""
        with pytest.raises(InvalidInputError, match="expected HH:MM"):
            parse_hhmm(value)

    def test_non_string_raises(self):
        """Test that non-string input raises InvalidInputError."""
        with pytest.raises(InvalidInputError):
            parse_hhmm(None)

    def test_offset_seconds(self):
        """Test conversion of hour/minute to seconds from midnight."""
        assert offset_seconds(9, 30) == 9 * 3600 + 30 * 60


class TestOverlaps:
    """Tests for the half-open overlap test."""

    def test_overlapping(self):
        assert overlaps(10, 20, 15, 25) is True

    def test_contained(self):
        assert overlaps(10, 20, 12, 18) is True

    def test_touching_end_does_not_overlap(self):
        assert overlaps(10, 20, 20, 30) is False

    def test_touching_start_does_not_overlap(self):
        assert overlaps(20, 30, 10, 20) is False

    def test_disjoint(self):
        assert overlaps(0, 5, 10, 20) is False


class TestUtcLookups:
    """Tests for UTC hour and weekday lookups."""

    def test_utc_hour(self):
        assert utc_hour(at(TUESDAY, 14, 59)) == 14

    def test_weekdays(self):
        """Test weekday numbering with Monday as 0."""
        assert utc_weekday(at(MONDAY, 12)) == 0
        assert utc_weekday(at(TUESDAY, 12)) == 1
        assert utc_weekday(at(FRIDAY, 12)) == 4
        assert utc_weekday(at(SATURDAY, 12)) == 5


class TestIsoConversion:
    """Tests for ISO-8601 formatting and parsing."""

    def test_to_iso(self):
        assert to_iso(at(TUESDAY, 9)) == "2026-01-06T09:00:00Z"

    def test_parse_zulu(self):
        assert parse_iso("2026-01-06T09:00:00Z") == at(TUESDAY, 9)

    def test_parse_offset(self):
        """Test that offsets are converted to UTC."""
        assert parse_iso("2026-01-06T09:00:00+02:00") == at(TUESDAY, 7)

    def test_parse_naive_is_utc(self):
        assert parse_iso("2026-01-06T09:00:00") == at(TUESDAY, 9)

    @pytest.mark.parametrize("value", ["tomorrow", "2026-13-01T00:00:00", None])
    def test_parse_invalid(self, value):
        with pytest.raises(InvalidInputError, match="ISO-8601"):
            parse_iso(value)
