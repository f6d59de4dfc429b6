"""
Tests for core.dates module.
"""
import time

import pytest
from datetime import date, datetime

from core.dates import date_key, normalize_date, parse_date, to_comparable_date


class TestNormalizeDate:
    """Tests for normalize_date function."""

    @pytest.mark.parametrize("raw,expected", [
        ("2024-03-05", "2024-03-05"),
        ("2024/03/05", "2024-03-05"),
        ("2024-03-05T10:30:00", "2024-03-05"),
        ("Mar 5, 2024", "2024-03-05"),
        ("March 5, 2024", "2024-03-05"),
        ("5 Mar 2024", "2024-03-05"),
        ("  2024-03-05  ", "2024-03-05"),
    ])
    def test_direct_formats(self, raw, expected):
        """ISO and locale formats normalize to YYYY-MM-DD."""
        assert normalize_date(raw) == expected

    def test_day_first_when_first_exceeds_12(self):
        assert normalize_date("13/03/2024") == "2024-03-13"

    def test_month_first_when_second_exceeds_12(self):
        assert normalize_date("03/13/2024") == "2024-03-13"

    def test_ambiguous_defaults_to_day_first(self):
        assert normalize_date("05/03/2024") == "2024-03-05"
        assert normalize_date("5-3-2024") == "2024-03-05"

    def test_invalid_calendar_date(self):
        """31/02 is not a real day."""
        assert normalize_date("31/02/2024") is None

    def test_both_parts_over_12(self):
        assert normalize_date("13/14/2024") is None

    @pytest.mark.parametrize("raw", ["not-a-date", "", "   ", None, 42, "2024-13-45"])
    def test_unparsable(self, raw):
        """Unparsable input returns None instead of raising."""
        assert normalize_date(raw) is None

    def test_idempotent(self):
        """Normalizing a canonical date returns it unchanged."""
        for raw in ("Mar 5, 2024", "13/03/2024", "2024-03-05"):
            canonical = normalize_date(raw)
            assert normalize_date(canonical) == canonical


@pytest.fixture
def local_zone(monkeypatch):
    """Switch the process-local time zone for one test."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    def use(name: str) -> None:
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield use
    monkeypatch.undo()
    time.tzset()


class TestTimezoneAwareInput:
    """Offsets are converted to local calendar days before truncating."""

    @pytest.mark.parametrize("raw,expected", [
        ("2024-03-05T23:30:00Z", "2024-03-06"),
        ("2024-03-05T23:30:00z", "2024-03-06"),
        ("2024-03-05T20:00:00-05:00", "2024-03-06"),
        ("2024-03-05T10:00:00+09:00", "2024-03-05"),
    ])
    def test_east_of_utc(self, local_zone, raw, expected):
        local_zone("JST-9")
        assert normalize_date(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("2024-03-05T02:00:00Z", "2024-03-04"),
        ("2024-03-05T23:30:00-05:00", "2024-03-05"),
        ("2024-03-05T01:00:00+01:00", "2024-03-04"),
    ])
    def test_west_of_utc(self, local_zone, raw, expected):
        local_zone("EST5")
        assert normalize_date(raw) == expected

    def test_utc_local_zone_keeps_day(self, local_zone):
        local_zone("UTC0")
        assert normalize_date("2024-03-05T23:30:00Z") == "2024-03-05"
        assert parse_date("2024-03-05T23:30:00Z") == date(2024, 3, 5)


class TestParseDate:
    """Tests for parse_date function."""

    def test_date_object(self):
        assert parse_date(date(2024, 1, 2)) == date(2024, 1, 2)

    def test_naive_datetime(self):
        assert parse_date(datetime(2024, 1, 2, 23, 59)) == date(2024, 1, 2)

    def test_string(self):
        assert parse_date("2024-01-02") == date(2024, 1, 2)


class TestToComparableDate:
    """Tests for to_comparable_date function."""

    def test_returns_midnight(self):
        result = to_comparable_date("Mar 5, 2024")
        assert result == datetime(2024, 3, 5, 0, 0)

    def test_unparsable(self):
        assert to_comparable_date("garbage") is None


class TestDateKey:
    """Tests for date_key function."""

    def test_canonical(self):
        assert date_key("Mar 5, 2024") == "2024-03-05"

    def test_raw_fallback(self):
        assert date_key("garbage") == "garbage"

    def test_none(self):
        assert date_key(None) == ""
