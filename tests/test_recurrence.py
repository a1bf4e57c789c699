"""
Tests for the recurrence evaluator.

Tests cover:
1. Precedence of scheduled_date, start/end bounds, rules and weekday names
2. Daily, weekly and monthly rules with intervals
3. Failing closed on malformed data
"""
import json
from datetime import date, timedelta

import pytest

from backend.services.recurrence import (
    RecurrenceRule,
    occurrences_in_range,
    should_appear_on_date,
    trackables_for_date,
)


class TestScheduledDate:
    """Tests for one-off scheduled dates"""

    def test_shown_on_its_date(self, make_trackable):
        item = make_trackable(type="ONE_TIME", scheduled_date="2024-03-12")
        assert should_appear_on_date(item, date(2024, 3, 12))

    def test_hidden_on_other_dates(self, make_trackable):
        item = make_trackable(type="ONE_TIME", scheduled_date="2024-03-12")
        assert not should_appear_on_date(item, date(2024, 3, 13))
        assert not should_appear_on_date(item, date(2024, 3, 11))

    def test_scheduled_date_wins_over_start_date(self, make_trackable):
        """A scheduled date before start_date still shows on that date"""
        item = make_trackable(type="ONE_TIME", scheduled_date="2024-03-01", start_date="2024-03-10")
        assert should_appear_on_date(item, date(2024, 3, 1))

    def test_scheduled_date_wins_over_weekday_names(self, make_trackable):
        """Non-recurring scheduled items ignore selected_days on other dates"""
        item = make_trackable(scheduled_date="2024-03-12", selected_days=json.dumps(["monday"]))
        assert not should_appear_on_date(item, date(2024, 3, 18))


class TestSelectedDays:
    """Tests for legacy weekday-name scheduling"""

    def test_tuesday_and_wednesday(self, make_trackable):
        item = make_trackable(selected_days=json.dumps(["tuesday", "wednesday"]))

        assert should_appear_on_date(item, date(2024, 3, 12))
        assert should_appear_on_date(item, date(2024, 3, 13))
        assert not should_appear_on_date(item, date(2024, 3, 14))
        assert not should_appear_on_date(item, date(2024, 3, 10))

    def test_turkish_names(self, make_trackable):
        item = make_trackable(selected_days=["Salı", "Çarşamba"])

        assert should_appear_on_date(item, date(2024, 3, 12))
        assert should_appear_on_date(item, date(2024, 3, 13))
        assert not should_appear_on_date(item, date(2024, 3, 15))

    def test_start_date_bounds_weekdays(self, make_trackable):
        item = make_trackable(selected_days=["tuesday"], start_date="2024-03-13")

        assert not should_appear_on_date(item, date(2024, 3, 12))
        assert should_appear_on_date(item, date(2024, 3, 19))

    def test_end_date_bounds_weekdays(self, make_trackable):
        item = make_trackable(selected_days=["tuesday"], end_date="2024-03-13")

        assert should_appear_on_date(item, date(2024, 3, 12))
        assert not should_appear_on_date(item, date(2024, 3, 19))

    def test_unknown_names_are_ignored(self, make_trackable):
        item = make_trackable(selected_days=["someday", "friday"])

        assert should_appear_on_date(item, date(2024, 3, 15))
        assert not should_appear_on_date(item, date(2024, 3, 14))


class TestRules:
    """Tests for recurrence rules"""

    def test_daily_rule_shows_every_day(self, make_trackable):
        item = make_trackable(is_recurring=True, recurrence_rule={"frequency": "daily"})
        start = date(2024, 1, 1)

        assert all(should_appear_on_date(item, start + timedelta(days=n)) for n in range(40))

    def test_weekly_rule_over_four_weeks(self, make_trackable):
        """Mon/Wed/Fri (1, 3, 5) match exactly those weekdays for 28 days"""
        item = make_trackable(
            is_recurring=True,
            recurrence_rule=json.dumps({"frequency": "weekly", "daysOfWeek": [1, 3, 5]}),
        )
        start = date(2024, 1, 1)

        for offset in range(28):
            day = start + timedelta(days=offset)
            assert should_appear_on_date(item, day) == (day.weekday() in (0, 2, 4)), day

    def test_monthly_rule_matches_day_of_month(self, make_trackable):
        item = make_trackable(
            type="ONE_TIME",
            scheduled_date="2024-01-15",
            recurrence_rule={"frequency": "monthly"},
        )

        assert should_appear_on_date(item, date(2024, 1, 15))
        assert should_appear_on_date(item, date(2024, 3, 15))
        assert not should_appear_on_date(item, date(2024, 3, 16))

    def test_explicitly_non_recurring_rule_is_ignored(self, make_trackable):
        item = make_trackable(
            scheduled_date="2024-01-15",
            is_recurring=False,
            recurrence_rule={"frequency": "monthly"},
        )
        assert not should_appear_on_date(item, date(2024, 3, 15))

    def test_start_date_bounds_rule(self, make_trackable):
        item = make_trackable(
            is_recurring=True,
            recurrence_rule={"frequency": "daily"},
            start_date="2024-03-10",
        )

        assert not should_appear_on_date(item, date(2024, 3, 9))
        assert should_appear_on_date(item, date(2024, 3, 10))

    def test_rule_end_date(self, make_trackable):
        item = make_trackable(
            is_recurring=True,
            recurrence_rule={"frequency": "daily", "endDate": "2024-03-10"},
        )

        assert should_appear_on_date(item, date(2024, 3, 10))
        assert not should_appear_on_date(item, date(2024, 3, 11))

    def test_biweekly_interval_from_anchor(self, make_trackable):
        """Every other Tuesday counted from the scheduled date"""
        item = make_trackable(
            scheduled_date="2024-03-05",
            is_recurring=True,
            recurrence_rule={"frequency": "weekly", "interval": 2, "daysOfWeek": [2]},
        )

        assert should_appear_on_date(item, date(2024, 3, 5))
        assert not should_appear_on_date(item, date(2024, 3, 12))
        assert should_appear_on_date(item, date(2024, 3, 19))

    def test_quarterly_interval(self, make_trackable):
        item = make_trackable(
            scheduled_date="2024-01-15",
            is_recurring=True,
            recurrence_rule={"frequency": "monthly", "interval": 3},
        )

        assert not should_appear_on_date(item, date(2024, 2, 15))
        assert should_appear_on_date(item, date(2024, 4, 15))

    def test_daily_rule_waits_for_its_anchor(self, make_trackable):
        item = make_trackable(
            scheduled_date="2024-03-10",
            is_recurring=True,
            recurrence_rule={"frequency": "daily"},
        )

        assert not should_appear_on_date(item, date(2024, 3, 5))
        assert should_appear_on_date(item, date(2024, 3, 10))
        assert should_appear_on_date(item, date(2024, 3, 11))

    def test_monthly_rule_waits_for_its_anchor(self, make_trackable):
        """A start date before the first occurrence does not pull it earlier"""
        item = make_trackable(
            scheduled_date="2024-04-15",
            start_date="2024-03-01",
            is_recurring=True,
            recurrence_rule={"frequency": "monthly"},
        )

        assert not should_appear_on_date(item, date(2024, 3, 15))
        assert should_appear_on_date(item, date(2024, 4, 15))
        assert should_appear_on_date(item, date(2024, 5, 15))

    def test_weekly_rule_waits_for_its_anchor(self, make_trackable):
        item = make_trackable(
            scheduled_date="2024-03-12",
            is_recurring=True,
            recurrence_rule={"frequency": "weekly", "daysOfWeek": [2]},
        )

        assert not should_appear_on_date(item, date(2024, 3, 5))
        assert should_appear_on_date(item, date(2024, 3, 19))

    def test_rule_wins_over_weekday_names(self, make_trackable):
        item = make_trackable(
            is_recurring=True,
            recurrence_rule={"frequency": "weekly", "daysOfWeek": [1]},
            selected_days=["friday"],
        )

        assert should_appear_on_date(item, date(2024, 3, 11))
        assert not should_appear_on_date(item, date(2024, 3, 15))


class TestFailClosed:
    """Tests for malformed scheduling data"""

    def test_nothing_scheduled_is_never_due(self, make_trackable):
        item = make_trackable()
        assert not should_appear_on_date(item, date(2024, 3, 12))

    @pytest.mark.parametrize(
        "rule",
        ["{not json", '"daily"', {"frequency": ""}, {"frequency": "weekly", "daysOfWeek": [9]}, {"frequency": "hourly"}],
    )
    def test_malformed_rule_hides_item(self, make_trackable, rule):
        item = make_trackable(is_recurring=True, recurrence_rule=rule)
        assert not should_appear_on_date(item, date(2024, 3, 12))

    def test_malformed_scheduled_date_hides_item(self, make_trackable):
        item = make_trackable(scheduled_date="2024-13-45", selected_days=["tuesday"])
        assert not should_appear_on_date(item, date(2024, 3, 12))

    def test_malformed_selected_days_json(self, make_trackable):
        item = make_trackable(selected_days="[monday")
        assert not should_appear_on_date(item, date(2024, 3, 11))


class TestRangeHelpers:
    """Tests for trackables_for_date and occurrences_in_range"""

    def test_filters_by_day(self, make_trackable):
        monday = make_trackable(id="a", selected_days=["monday"])
        friday = make_trackable(id="b", selected_days=["friday"])

        assert [item.id for item in trackables_for_date([monday, friday], date(2024, 3, 11))] == ["a"]

    def test_occurrences_cover_each_day(self, make_trackable):
        item = make_trackable(selected_days=["monday", "friday"])
        occurrences = occurrences_in_range([item], date(2024, 3, 11), date(2024, 3, 17))

        assert len(occurrences) == 7
        assert [day for day, items in occurrences.items() if items] == [date(2024, 3, 11), date(2024, 3, 15)]


class TestRuleParsing:
    """Tests for RecurrenceRule.parse"""

    def test_snake_case_keys(self):
        rule = RecurrenceRule.parse({"frequency": "Weekly", "days_of_week": [0, 6], "end_date": "2024-12-31"})

        assert rule.frequency == "weekly"
        assert rule.days_of_week == frozenset({0, 6})
        assert rule.end_date == date(2024, 12, 31)

    def test_round_trip_shape(self):
        rule = RecurrenceRule.parse('{"frequency": "weekly", "interval": 2, "daysOfWeek": [3, 1]}')
        assert rule.to_dict() == {"frequency": "weekly", "interval": 2, "daysOfWeek": [1, 3]}

    def test_rejects_non_objects(self):
        with pytest.raises(ValueError):
            RecurrenceRule.parse("[1, 2]")
