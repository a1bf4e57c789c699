"""
Tests for calendar_math.

Tests cover:
1. Calendar-day comparison across DST changes and timezones
2. Day, week and month boundaries
3. Weekday name lookup in English and Turkish
"""
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from backend.errors import InvalidDateError
from backend.services.calendar_math import (
    canonical_weekday_name,
    end_of_day,
    end_of_month,
    is_same_calendar_day,
    iter_days,
    local_date,
    month_range,
    months_between,
    parse_day,
    resolve_timezone,
    start_of_day,
    start_of_week,
    sunday_based_weekday,
    week_range,
    weekday_from_name,
)

NEW_YORK = ZoneInfo("America/New_York")


class TestSameCalendarDay:
    """Tests for is_same_calendar_day"""

    def test_same_instant(self):
        """An instant is on its own day"""
        now = datetime(2024, 5, 1, 9, 30, tzinfo=NEW_YORK)
        assert is_same_calendar_day(now, now, NEW_YORK)

    def test_spring_forward_day_is_short(self):
        """Two instants 22 hours apart on the 23-hour DST day are the same day"""
        early = datetime(2024, 3, 10, 0, 30, tzinfo=NEW_YORK)
        late = datetime(2024, 3, 10, 23, 30, tzinfo=NEW_YORK)

        assert late - early == timedelta(hours=23)
        assert late.astimezone(timezone.utc) - early.astimezone(timezone.utc) == timedelta(hours=22)
        assert is_same_calendar_day(early, late, NEW_YORK)

    def test_less_than_a_day_apart_can_be_different_days(self):
        """22 elapsed hours across midnight are still different days"""
        before = datetime(2024, 3, 9, 23, 30, tzinfo=NEW_YORK)
        after = datetime(2024, 3, 10, 22, 30, tzinfo=NEW_YORK)

        assert after.astimezone(timezone.utc) - before.astimezone(timezone.utc) == timedelta(hours=22)
        assert not is_same_calendar_day(before, after, NEW_YORK)

    def test_fall_back_day_is_long(self):
        """Instants 24 real hours apart on the 25-hour day are still the same day"""
        early = datetime(2024, 11, 3, 0, 30, tzinfo=NEW_YORK)
        late = datetime(2024, 11, 3, 23, 30, tzinfo=NEW_YORK)

        assert late.astimezone(timezone.utc) - early.astimezone(timezone.utc) == timedelta(hours=24)
        assert is_same_calendar_day(early, late, NEW_YORK)

    def test_utc_strings_are_converted_to_local_days(self):
        """A UTC stamp after midnight can belong to the previous local day"""
        assert is_same_calendar_day("2024-06-01T02:00:00+00:00", date(2024, 5, 31), NEW_YORK)
        assert not is_same_calendar_day("2024-06-01T02:00:00+00:00", date(2024, 6, 1), NEW_YORK)

    def test_dates_compare_directly(self):
        assert is_same_calendar_day(date(2024, 1, 1), "2024-01-01")


class TestParsing:
    """Tests for parse_day and local_date"""

    def test_parse_day_accepts_date_strings(self):
        assert parse_day("2024-02-29") == date(2024, 2, 29)

    def test_parse_day_accepts_timestamps(self):
        assert parse_day("2024-02-29T10:00:00") == date(2024, 2, 29)

    @pytest.mark.parametrize("value", ["", "not-a-date", "2024-02-30", None, 12])
    def test_parse_day_rejects_garbage(self, value):
        with pytest.raises(InvalidDateError):
            parse_day(value)

    def test_invalid_date_is_a_value_error(self):
        with pytest.raises(ValueError):
            local_date("yesterday-ish")

    def test_naive_datetimes_are_local(self):
        """Naive values are treated as local wall time, not converted"""
        assert local_date(datetime(2024, 1, 1, 23, 59), NEW_YORK) == date(2024, 1, 1)

    def test_unknown_timezone_falls_back_to_utc(self):
        assert resolve_timezone("Mars/Olympus") is timezone.utc
        assert resolve_timezone(None) is timezone.utc


class TestBoundaries:
    """Tests for day, week and month boundaries"""

    def test_day_bounds_keep_the_zone(self):
        moment = datetime(2024, 3, 10, 15, 0, tzinfo=NEW_YORK)

        assert start_of_day(moment) == datetime(2024, 3, 10, 0, 0, tzinfo=NEW_YORK)
        assert end_of_day(moment).date() == date(2024, 3, 10)
        assert end_of_day(moment).hour == 23

    def test_week_starts_on_monday(self):
        """Wednesday and Sunday belong to the week starting that Monday"""
        assert week_range(date(2024, 3, 13)) == (date(2024, 3, 11), date(2024, 3, 17))
        assert week_range(date(2024, 3, 17)) == (date(2024, 3, 11), date(2024, 3, 17))
        assert start_of_week(date(2024, 3, 17)).date() == date(2024, 3, 11)

    def test_leap_february(self):
        assert month_range(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
        assert end_of_month(date(2023, 2, 10)).date() == date(2023, 2, 28)

    def test_iter_days_is_inclusive(self):
        days = list(iter_days(date(2024, 2, 27), date(2024, 3, 1)))
        assert days == [date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]

    def test_months_between(self):
        assert months_between(date(2023, 11, 15), date(2024, 2, 15)) == 3


class TestWeekdayNames:
    """Tests for weekday vocabulary"""

    def test_sunday_is_zero(self):
        assert sunday_based_weekday(date(2024, 3, 10)) == 0
        assert sunday_based_weekday(date(2024, 3, 16)) == 6

    @pytest.mark.parametrize(
        "name, index",
        [
            ("Monday", 1),
            ("tue", 2),
            ("PAZAR", 0),
            ("Salı", 2),
            ("sali", 2),
            ("Çarşamba", 3),
            ("persembe", 4),
            ("Cuma", 5),
            ("Cumartesi", 6),
        ],
    )
    def test_names_map_to_sunday_based_index(self, name, index):
        assert weekday_from_name(name) == index

    def test_unknown_names_are_none(self):
        assert weekday_from_name("someday") is None
        assert weekday_from_name(None) is None

    def test_canonical_name(self):
        assert canonical_weekday_name(3) == "wednesday"
