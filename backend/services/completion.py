"""
Completion state per trackable type.

``completed-today`` is day-scoped and derived from ``last_completed_at``
rather than ``status``:

* DAILY_HABIT: stamped on the reference day.
* ONE_TIME: ``status == completed`` and stamped on the reference day.
* PROGRESS: target reached and stamped on the reference day.

Every function takes the reference instant explicitly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, Optional

from backend.errors import InvalidDateError, ValidationError
from backend.models import (
    DAILY_HABIT,
    LOG_COMPLETED,
    LOG_RESET,
    ONE_TIME,
    PROGRESS,
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    Trackable,
)
from backend.services.calendar_math import is_same_calendar_day, local_date

logger = logging.getLogger(__name__)


def stamp(now: datetime) -> str:
    """Storage form of a completion instant (UTC ISO-8601)."""
    if now.tzinfo is None:
        return now.isoformat()
    return now.astimezone(timezone.utc).isoformat()


def reached_target(trackable: Trackable) -> bool:
    if trackable.target_value is None:
        return False
    return trackable.current_value >= int(trackable.target_value)


def _stamped_on(trackable: Trackable, reference, tz: tzinfo | None) -> bool:
    if not trackable.last_completed_at:
        return False
    try:
        return is_same_calendar_day(trackable.last_completed_at, reference, tz)
    except InvalidDateError:
        logger.debug("Treating trackable %s as not done: bad stamp %r", trackable.id, trackable.last_completed_at)
        return False


def is_completed_today(trackable: Trackable, now, tz: tzinfo | None = None) -> bool:
    """Whether ``trackable`` counts as done on the calendar day of ``now``.

    ``now`` may also be a plain date, which is how past and future day views
    ask the same question.
    """
    if trackable.type == DAILY_HABIT:
        return _stamped_on(trackable, now, tz)
    if trackable.type == ONE_TIME:
        return trackable.status == STATUS_COMPLETED and _stamped_on(trackable, now, tz)
    if trackable.type == PROGRESS:
        return reached_target(trackable) and _stamped_on(trackable, now, tz)
    return False


@dataclass
class CompletionChange:
    patch: dict
    completed: bool
    action: str


def toggle_completion(trackable: Trackable, now: datetime, tz: tzinfo | None = None) -> CompletionChange:
    """Compute the stored fields for a completion toggle.

    Never touches ``current_value``.
    """
    done = is_completed_today(trackable, now, tz)
    if trackable.type == DAILY_HABIT:
        if done:
            return CompletionChange({"last_completed_at": None}, False, LOG_RESET)
        return CompletionChange({"last_completed_at": stamp(now)}, True, LOG_COMPLETED)

    if trackable.type == ONE_TIME:
        if done:
            return CompletionChange({"status": STATUS_ACTIVE, "last_completed_at": None}, False, LOG_RESET)
        return CompletionChange({"status": STATUS_COMPLETED, "last_completed_at": stamp(now)}, True, LOG_COMPLETED)

    if trackable.type == PROGRESS:
        if done:
            return CompletionChange({"last_completed_at": None}, False, LOG_RESET)
        if not reached_target(trackable):
            raise ValidationError(
                "current_value",
                f"{trackable.current_value}/{trackable.target_value} has not reached the target",
            )
        return CompletionChange({"last_completed_at": stamp(now)}, True, LOG_COMPLETED)

    raise ValidationError("type", f"unknown trackable type {trackable.type!r}")


def increment_value(current: int, amount: int) -> int:
    return max(0, int(current)) + int(amount)


def decrement_value(current: int, amount: int) -> int:
    return max(0, int(current) - int(amount))


def progress_stamp_patch(trackable: Trackable, now: datetime, tz: tzinfo | None = None) -> dict:
    """``last_completed_at`` change for a PROGRESS item after its value moved.

    Reaching the target stamps the item for today once; falling back below the
    target removes today's stamp. Stamps from earlier days are left alone.
    """
    if trackable.type != PROGRESS or trackable.target_value is None:
        return {}
    stamped_today = _stamped_on(trackable, now, tz)
    if reached_target(trackable) and not stamped_today:
        return {"last_completed_at": stamp(now)}
    if not reached_target(trackable) and stamped_today:
        return {"last_completed_at": None}
    return {}


def normalize_hhmm(value) -> Optional[str]:
    if not value:
        return None
    parts = str(value).strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return f"{hours:02d}:{minutes:02d}"


@dataclass
class DayBuckets:
    completed: list = field(default_factory=list)
    upcoming: list = field(default_factory=list)
    pending: list = field(default_factory=list)


def categorize(trackables: Iterable[Trackable], now: datetime, tz: tzinfo | None = None, day: Optional[date] = None) -> DayBuckets:
    """Split the items due on ``day`` (default: today) into display buckets.

    ``upcoming`` holds unfinished items whose ``scheduled_time`` is still ahead
    of the clock: later than now for today, any time for a future day, none
    for a past day. It is ordered by the zero-padded ``HH:MM`` string.
    """
    today = local_date(now, tz)
    view_day = day or today
    clock = _clock_hhmm(now, tz)
    buckets = DayBuckets()
    for item in trackables:
        if is_completed_today(item, view_day, tz):
            buckets.completed.append(item)
            continue
        slot = normalize_hhmm(item.scheduled_time)
        if slot is not None and (view_day > today or (view_day == today and slot > clock)):
            buckets.upcoming.append(item)
        else:
            buckets.pending.append(item)
    buckets.upcoming.sort(key=lambda item: normalize_hhmm(item.scheduled_time))
    return buckets


def _clock_hhmm(now: datetime, tz: tzinfo | None = None) -> str:
    if isinstance(now, datetime):
        if now.tzinfo is not None and tz is not None:
            now = now.astimezone(tz)
        return now.strftime("%H:%M")
    return "00:00"
