"""Tests for pbview.normalize (dates and priority labels)."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from pbview.models import Priority
from pbview.normalize import (
    format_date,
    parse_date,
    parse_optional_date,
    parse_priority,
    priority_label,
)


class TestParseDate:
    """parse_date: fractional seconds first, then whole seconds."""

    def test_whole_seconds_utc(self) -> None:
        """Plain RFC 3339 with Z parses to an aware UTC datetime."""
        assert parse_date("2025-01-18T16:00:00Z") == datetime(2025, 1, 18, 16, 0, 0, tzinfo=UTC)

    def test_fractional_seconds(self) -> None:
        """Microsecond fraction is kept."""
        value = parse_date("2025-01-18T16:00:00.250000Z")
        assert value.microsecond == 250000

    def test_nanosecond_fraction_truncated(self) -> None:
        """Go-style nanosecond fractions are truncated to microseconds."""
        value = parse_date("2025-01-18T16:00:00.123456789Z")
        assert value == datetime(2025, 1, 18, 16, 0, 0, 123456, tzinfo=UTC)

    def test_numeric_offset(self) -> None:
        """Numeric offsets are honoured."""
        value = parse_date("2025-01-18T18:00:00+02:00")
        assert value.tzinfo is not None
        assert value.utcoffset() == timedelta(hours=2)
        assert value == datetime(2025, 1, 18, 16, 0, 0, tzinfo=UTC)

    @pytest.mark.parametrize("text", ["", "yesterday", "2025-01-18", "2025-13-40T00:00:00Z"])
    def test_invalid_raises_value_error(self, text: str) -> None:
        """Anything that is not RFC 3339 raises ValueError."""
        with pytest.raises(ValueError):
            parse_date(text)

    def test_round_trip_full_precision(self) -> None:
        """Formatting with fractions and reparsing keeps the instant."""
        original = datetime(2025, 3, 4, 5, 6, 7, 891011, tzinfo=UTC)
        assert parse_date(format_date(original, fractional=True)) == original

    def test_round_trip_whole_seconds(self) -> None:
        """Whole-second formatting keeps the value to the second."""
        original = datetime(2025, 3, 4, 5, 6, 7, 891011, tzinfo=UTC)
        reparsed = parse_date(format_date(original))
        assert reparsed == original.replace(microsecond=0)


class TestParseOptionalDate:
    """parse_optional_date: empty means absent."""

    def test_none_and_empty_are_absent(self) -> None:
        """None and "" normalize to None, never to an epoch."""
        assert parse_optional_date(None) is None
        assert parse_optional_date("") is None

    def test_populated(self) -> None:
        """A populated value is parsed."""
        assert parse_optional_date("2025-01-18T16:00:00Z") == datetime(2025, 1, 18, 16, tzinfo=UTC)

    def test_malformed_raises(self) -> None:
        """A malformed non-empty value is an error."""
        with pytest.raises(ValueError):
            parse_optional_date("not-a-date")


class TestFormatDate:
    """format_date: UTC with Z suffix."""

    def test_converts_to_utc(self) -> None:
        """Offsets are converted to UTC."""
        value = datetime(2025, 1, 18, 18, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_date(value) == "2025-01-18T16:00:00Z"

    def test_naive_is_treated_as_utc(self) -> None:
        """Naive datetimes are assumed UTC."""
        assert format_date(datetime(2025, 1, 18, 16, 0, 0)) == "2025-01-18T16:00:00Z"

    def test_fractional(self) -> None:
        """Fractional output has six digits."""
        value = datetime(2025, 1, 18, 16, 0, 0, 5, tzinfo=UTC)
        assert format_date(value, fractional=True) == "2025-01-18T16:00:00.000005Z"


class TestPriority:
    """parse_priority / priority_label."""

    @pytest.mark.parametrize("ordinal", range(5))
    def test_round_trip_any_case(self, ordinal: int) -> None:
        """P0..P4 in either case map to the ordinal and back to uppercase."""
        for label in (f"P{ordinal}", f"p{ordinal}"):
            priority = parse_priority(label)
            assert priority == Priority(ordinal)
            assert priority_label(priority) == f"P{ordinal}"

    @pytest.mark.parametrize("label", ["", "2", "P", "P5", "P9", "PX", "P-1", "P10", "Q2", " P2", "P2\n"])
    def test_no_match_returns_none(self, label: str) -> None:
        """Other forms return None instead of raising."""
        assert parse_priority(label) is None

    def test_total_order(self) -> None:
        """P0 is the most severe and sorts first."""
        assert sorted([Priority.P3, Priority.P0, Priority.P2]) == [Priority.P0, Priority.P2, Priority.P3]
        assert Priority.P0 < Priority.P4
