"""
Tests for duration.py - Compact Duration Strings

Tests:
- parse_duration canonical values for every unit
- Rejection of empty, non-numeric, unknown-unit, signed, zero, spaced and
  compound specs
- format_duration rendering and its round trip with parse_duration
"""

import pytest

from vesting import (
    parse_duration, format_duration, is_duration,
    InvalidDurationFormat, VestingError, ErrorKind,
    SECONDS_PER_MONTH, SECONDS_PER_YEAR,
)


# ============================================================================
# parse_duration Tests
# ============================================================================

class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize("spec, seconds", [
        ("1min", 60),
        ("1d", 86400),
        ("1mon", 2592000),
        ("1yr", 31536000),
        ("30d", 2592000),
        ("45min", 2700),
        ("6mon", 15552000),
        ("2yr", 63072000),
    ])
    def test_canonical_values(self, spec, seconds):
        assert parse_duration(spec) == seconds

    def test_month_is_thirty_days(self):
        assert parse_duration("1mon") == parse_duration("30d") == SECONDS_PER_MONTH

    def test_year_is_365_days(self):
        assert parse_duration("1yr") == parse_duration("365d") == SECONDS_PER_YEAR

    def test_leading_zero_magnitude_is_still_positive(self):
        assert parse_duration("01d") == 86400

    @pytest.mark.parametrize("spec", [
        "", "abc", "1x", "-1d", "0d", "00min", "d", "1", "1 d", " 1d", "1d ",
        "1d6min", "1.5d", "+1d", "1D", "1days", "1m", "1mins", "١d",
    ])
    def test_rejects_invalid_specs(self, spec):
        with pytest.raises(InvalidDurationFormat):
            parse_duration(spec)

    def test_rejects_non_string(self):
        with pytest.raises(InvalidDurationFormat, match="must be a string"):
            parse_duration(30)

    def test_error_carries_kind(self):
        with pytest.raises(VestingError) as exc_info:
            parse_duration("1x")
        assert exc_info.value.kind is ErrorKind.INVALID_DURATION_FORMAT

    def test_error_is_value_error(self):
        """Callers that only know ValueError still catch parse failures."""
        with pytest.raises(ValueError):
            parse_duration("soon")

    def test_deterministic(self):
        assert [parse_duration("7d") for _ in range(5)] == [604800] * 5


class TestIsDuration:
    """Tests for is_duration."""

    def test_valid(self):
        assert is_duration("3mon")

    def test_invalid(self):
        assert not is_duration("3 months")


# ============================================================================
# format_duration Tests
# ============================================================================

class TestFormatDuration:
    """Tests for format_duration."""

    @pytest.mark.parametrize("seconds, text", [
        (0, "0s"),
        (60, "1min"),
        (86400, "1d"),
        (2592000, "1mon"),
        (31536000, "1yr"),
        (86400 * 45, "45d"),
        (90, "90s"),
        (150 * 60, "150min"),
    ])
    def test_renders_largest_exact_unit(self, seconds, text):
        assert format_duration(seconds) == text

    @pytest.mark.parametrize("spec", ["45min", "30d", "7d", "6mon", "2yr"])
    def test_round_trip_preserves_seconds(self, spec):
        seconds = parse_duration(spec)
        assert parse_duration(format_duration(seconds)) == seconds

    def test_rejects_negative(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            format_duration(-60)

    def test_rejects_non_int(self):
        with pytest.raises(ValueError):
            format_duration(1.5)
