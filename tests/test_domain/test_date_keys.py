"""Tests for date-key normalization"""
from datetime import date, datetime, timezone

import pytest

from aurapulse.domain.date_keys import (
    InvalidTimezoneError,
    add_months,
    civil_date,
    date_key,
    date_parts,
    day_bounds,
    last_day_of_month,
    month_key,
    months_between,
    parse_date_key,
    validate_timezone,
)


class TestDateKey:
    def test_aware_instant_in_zone(self):
        # 23:30 UTC is already the next day in Tokyo
        instant = datetime(2024, 3, 9, 23, 30, tzinfo=timezone.utc)
        assert date_key(instant, "UTC") == "2024-03-09"
        assert date_key(instant, "Asia/Tokyo") == "2024-03-10"

    def test_behind_utc(self):
        instant = datetime(2024, 3, 10, 2, 0, tzinfo=timezone.utc)
        assert date_key(instant, "America/New_York") == "2024-03-09"

    def test_naive_datetime_is_utc(self):
        assert date_key(datetime(2024, 3, 9, 23, 30), "Asia/Tokyo") == "2024-03-10"

    def test_date_used_as_is(self):
        assert date_key(date(2024, 3, 9), "Asia/Tokyo") == "2024-03-09"

    def test_default_zone_from_settings(self):
        instant = datetime(2024, 3, 9, 23, 30, tzinfo=timezone.utc)
        assert date_key(instant) == "2024-03-09"

    def test_zero_padded(self):
        assert date_key(date(2024, 1, 5)) == "2024-01-05"

    def test_month_key(self):
        assert month_key(date(2024, 2, 29)) == "2024-02"

    def test_unknown_zone_raises(self):
        with pytest.raises(InvalidTimezoneError):
            date_key(datetime(2024, 1, 1, tzinfo=timezone.utc), "Mars/Olympus")

    def test_unknown_zone_raises_for_date_input(self):
        with pytest.raises(InvalidTimezoneError):
            civil_date(date(2024, 1, 1), "Not/AZone")

    def test_invalid_timezone_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_timezone("bogus zone")

    def test_validate_none_is_ok(self):
        validate_timezone(None)
        validate_timezone("Europe/Berlin")


class TestDateParts:
    def test_sunday_is_zero(self):
        assert date_parts(date(2024, 3, 10)).weekday == 0

    def test_saturday_is_six(self):
        assert date_parts(date(2024, 3, 9)).weekday == 6

    def test_fields(self):
        parts = date_parts(date(2024, 2, 29))
        assert (parts.year, parts.month, parts.day) == (2024, 2, 29)


class TestParseDateKey:
    def test_valid(self):
        assert parse_date_key("2024-02-29") == date(2024, 2, 29)

    def test_malformed(self):
        assert parse_date_key("2024-13-01") is None
        assert parse_date_key("yesterday") is None
        assert parse_date_key("") is None


class TestDayBounds:
    def test_bounds_in_zone(self):
        start, end = day_bounds(date(2024, 6, 1), "Europe/Berlin")
        assert start.isoformat() == "2024-06-01T00:00:00+02:00"
        assert end.hour == 23 and end.minute == 59 and end.microsecond == 999999
        assert start.astimezone(timezone.utc) == datetime(2024, 5, 31, 22, 0, tzinfo=timezone.utc)

    def test_bounds_contain_only_that_day(self):
        start, end = day_bounds(date(2024, 6, 1), "UTC")
        assert date_key(start, "UTC") == date_key(end, "UTC") == "2024-06-01"


class TestMonthArithmetic:
    def test_last_day_of_month(self):
        assert last_day_of_month(2024, 2) == 29
        assert last_day_of_month(2023, 2) == 28
        assert last_day_of_month(2024, 4) == 30

    def test_add_months_clamps(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 3, 15), -3) == date(2023, 12, 15)

    def test_months_between(self):
        assert months_between(date(2024, 1, 20), date(2024, 4, 1)) == 3
        assert months_between(date(2024, 4, 1), date(2023, 10, 31)) == -6
