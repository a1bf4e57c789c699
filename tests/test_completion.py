"""
Tests for completion state and day buckets.

Tests cover:
1. Completed-today per trackable type
2. Toggle semantics and reversibility
3. Progress stamping and value clamping
4. Completed / upcoming / pending buckets
"""
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from backend.errors import ValidationError
from backend.models import LOG_COMPLETED, LOG_RESET
from backend.services.completion import (
    categorize,
    decrement_value,
    increment_value,
    is_completed_today,
    normalize_hhmm,
    progress_stamp_patch,
    stamp,
    toggle_completion,
)

NEW_YORK = ZoneInfo("America/New_York")


def _apply(item, change):
    for key, value in change.patch.items():
        setattr(item, key, value)


class TestCompletedToday:
    """Tests for is_completed_today"""

    def test_habit_stamped_today(self, make_trackable, utc_noon):
        item = make_trackable(last_completed_at=stamp(utc_noon))
        assert is_completed_today(item, utc_noon)

    def test_habit_stamped_yesterday_is_not_done(self, make_trackable, utc_noon):
        item = make_trackable(last_completed_at=stamp(utc_noon - timedelta(days=1)))
        assert not is_completed_today(item, utc_noon)

    def test_one_time_needs_completed_status(self, make_trackable, utc_noon):
        item = make_trackable(type="ONE_TIME", status="active", last_completed_at=stamp(utc_noon))
        assert not is_completed_today(item, utc_noon)

        item.status = "completed"
        assert is_completed_today(item, utc_noon)

    def test_progress_stamped_yesterday_is_not_done_today(self, make_trackable, utc_noon):
        """A 5/5 tracker completed yesterday is not completed today"""
        item = make_trackable(
            type="PROGRESS",
            current_value=5,
            target_value=5,
            last_completed_at=stamp(utc_noon - timedelta(days=1)),
        )

        assert not is_completed_today(item, utc_noon)
        assert is_completed_today(item, (utc_noon - timedelta(days=1)).date())

    def test_progress_below_target(self, make_trackable, utc_noon):
        item = make_trackable(type="PROGRESS", current_value=3, target_value=5, last_completed_at=stamp(utc_noon))
        assert not is_completed_today(item, utc_noon)

    def test_stamp_day_follows_local_zone(self, make_trackable):
        """A 02:00 UTC stamp belongs to the previous evening in New York"""
        item = make_trackable(last_completed_at="2024-06-01T02:00:00+00:00")
        evening = datetime(2024, 5, 31, 23, 0, tzinfo=NEW_YORK)

        assert is_completed_today(item, evening, NEW_YORK)
        assert not is_completed_today(item, evening + timedelta(hours=2), NEW_YORK)

    def test_unknown_type_is_never_done(self, make_trackable, utc_noon):
        item = make_trackable(type="SOMETHING", last_completed_at=stamp(utc_noon))
        assert not is_completed_today(item, utc_noon)


class TestToggle:
    """Tests for toggle_completion"""

    def test_habit_toggles_back_to_original(self, make_trackable, utc_noon):
        """Toggling twice on the same day restores last_completed_at"""
        item = make_trackable(current_value=2)

        first = toggle_completion(item, utc_noon)
        _apply(item, first)
        assert first.completed and first.action == LOG_COMPLETED
        assert is_completed_today(item, utc_noon)

        second = toggle_completion(item, utc_noon + timedelta(hours=1))
        _apply(item, second)
        assert not second.completed and second.action == LOG_RESET
        assert item.last_completed_at is None
        assert item.current_value == 2

    def test_habit_done_yesterday_completes_again_today(self, make_trackable, utc_noon):
        item = make_trackable(last_completed_at=stamp(utc_noon - timedelta(days=1)))
        change = toggle_completion(item, utc_noon)

        assert change.completed
        assert change.patch["last_completed_at"] == stamp(utc_noon)

    def test_one_time_round_trip(self, make_trackable, utc_noon):
        item = make_trackable(type="ONE_TIME", scheduled_date="2024-03-12")

        _apply(item, toggle_completion(item, utc_noon))
        assert item.status == "completed"

        _apply(item, toggle_completion(item, utc_noon))
        assert item.status == "active"
        assert item.last_completed_at is None

    def test_progress_needs_target(self, make_trackable, utc_noon):
        item = make_trackable(type="PROGRESS", current_value=2, target_value=5)

        with pytest.raises(ValidationError):
            toggle_completion(item, utc_noon)

    def test_progress_at_target_can_be_unmarked(self, make_trackable, utc_noon):
        item = make_trackable(type="PROGRESS", current_value=5, target_value=5, last_completed_at=stamp(utc_noon))
        change = toggle_completion(item, utc_noon)

        assert change.patch == {"last_completed_at": None}
        assert "current_value" not in change.patch

    def test_stamp_is_utc(self):
        local = datetime(2024, 3, 12, 9, 0, tzinfo=NEW_YORK)
        assert stamp(local) == "2024-03-12T13:00:00+00:00"


class TestValues:
    """Tests for value arithmetic and progress stamps"""

    def test_increment(self):
        assert increment_value(4, 3) == 7

    def test_decrement_clamps_at_zero(self):
        assert decrement_value(0, 1) == 0
        assert decrement_value(2, 5) == 0
        assert decrement_value(5, 2) == 3

    def test_reaching_target_stamps(self, make_trackable, utc_noon):
        item = make_trackable(type="PROGRESS", current_value=5, target_value=5)
        assert progress_stamp_patch(item, utc_noon) == {"last_completed_at": stamp(utc_noon)}

    def test_dropping_below_target_unstamps_today(self, make_trackable, utc_noon):
        item = make_trackable(type="PROGRESS", current_value=4, target_value=5, last_completed_at=stamp(utc_noon))
        assert progress_stamp_patch(item, utc_noon) == {"last_completed_at": None}

    def test_old_stamp_is_left_alone(self, make_trackable, utc_noon):
        item = make_trackable(
            type="PROGRESS",
            current_value=1,
            target_value=5,
            last_completed_at=stamp(utc_noon - timedelta(days=2)),
        )
        assert progress_stamp_patch(item, utc_noon) == {}

    def test_habits_are_never_stamped_by_values(self, make_trackable, utc_noon):
        item = make_trackable(current_value=10)
        assert progress_stamp_patch(item, utc_noon) == {}


class TestBuckets:
    """Tests for categorize"""

    def test_split_by_clock(self, make_trackable, utc_noon):
        done = make_trackable(id="done", last_completed_at=stamp(utc_noon))
        morning = make_trackable(id="morning", scheduled_time="09:00")
        evening = make_trackable(id="evening", scheduled_time="18:30")
        untimed = make_trackable(id="untimed")

        buckets = categorize([done, morning, evening, untimed], utc_noon, timezone.utc)

        assert [item.id for item in buckets.completed] == ["done"]
        assert [item.id for item in buckets.upcoming] == ["evening"]
        assert [item.id for item in buckets.pending] == ["morning", "untimed"]

    def test_upcoming_sorted_by_padded_time(self, make_trackable, utc_noon):
        late = make_trackable(id="late", scheduled_time="21:00")
        early = make_trackable(id="early", scheduled_time="13:05")
        unpadded = make_trackable(id="unpadded", scheduled_time="14:0")

        buckets = categorize([late, unpadded, early], utc_noon, timezone.utc)

        assert [item.id for item in buckets.upcoming] == ["early", "unpadded", "late"]

    def test_future_day_has_all_timed_items_upcoming(self, make_trackable, utc_noon):
        morning = make_trackable(id="morning", scheduled_time="08:00")
        buckets = categorize([morning], utc_noon, timezone.utc, day=date(2024, 3, 13))

        assert [item.id for item in buckets.upcoming] == ["morning"]

    def test_past_day_has_nothing_upcoming(self, make_trackable, utc_noon):
        evening = make_trackable(id="evening", scheduled_time="22:00")
        buckets = categorize([evening], utc_noon, timezone.utc, day=date(2024, 3, 11))

        assert buckets.upcoming == []
        assert [item.id for item in buckets.pending] == ["evening"]

    def test_completion_checked_against_view_day(self, make_trackable, utc_noon):
        yesterday = utc_noon - timedelta(days=1)
        item = make_trackable(last_completed_at=stamp(yesterday))

        buckets = categorize([item], utc_noon, timezone.utc, day=yesterday.date())
        assert [entry.id for entry in buckets.completed] == ["t1"]

    def test_bad_stamp_only_affects_its_own_item(self, make_trackable, utc_noon):
        good = make_trackable(id="good", last_completed_at=stamp(utc_noon))
        bad = make_trackable(id="bad", last_completed_at="not-a-date")

        buckets = categorize([good, bad], utc_noon, timezone.utc)

        assert [item.id for item in buckets.completed] == ["good"]
        assert [item.id for item in buckets.pending] == ["bad"]
        assert not is_completed_today(bad, utc_noon, timezone.utc)


class TestNormalizeTime:
    """Tests for normalize_hhmm"""

    @pytest.mark.parametrize(
        "raw, expected",
        [("9:5", "09:05"), ("09:00", "09:00"), ("23:59:59", "23:59"), ("24:00", None), ("noon", None), (None, None)],
    )
    def test_values(self, raw, expected):
        assert normalize_hhmm(raw) == expected
