"""
Calendar helpers shared by the recurrence and completion logic.

Calendar-day questions are always answered by comparing local dates, never by
subtracting instants: two instants 23 hours apart can sit on different days,
and two instants 25 hours apart can sit on the same day across a DST change.
"""
from __future__ import annotations

import calendar as _calendar
import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from backend.errors import InvalidDateError

logger = logging.getLogger(__name__)


def resolve_timezone(name: str | None) -> tzinfo:
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(str(name).strip())
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return timezone.utc


def parse_day(value) -> date:
    """Coerce a ``YYYY-MM-DD`` string, date or datetime into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateError(value)
    raw = value.strip()
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        return datetime.fromisoformat(raw).date()
    except ValueError as exc:
        raise InvalidDateError(value) from exc


def parse_instant(value) -> datetime:
    """Coerce an ISO-8601 timestamp string, datetime or date into a datetime."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateError(value)
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidDateError(value) from exc


def local_date(value, tz: tzinfo | None = None) -> date:
    """Calendar date of ``value`` as seen from ``tz``.

    Aware instants are converted into ``tz`` first. Naive datetimes and plain
    dates are taken to already be local wall time.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    instant = parse_instant(value)
    if instant.tzinfo is not None and tz is not None:
        instant = instant.astimezone(tz)
    return instant.date()


def is_same_calendar_day(a, b, tz: tzinfo | None = None) -> bool:
    return local_date(a, tz) == local_date(b, tz)


def _zone_for(value, tz: tzinfo | None) -> tzinfo | None:
    if tz is not None:
        return tz
    if isinstance(value, datetime):
        return value.tzinfo
    return None


def start_of_day(value, tz: tzinfo | None = None) -> datetime:
    zone = _zone_for(value, tz)
    return datetime.combine(local_date(value, zone), time.min, tzinfo=zone)


def end_of_day(value, tz: tzinfo | None = None) -> datetime:
    zone = _zone_for(value, tz)
    return datetime.combine(local_date(value, zone), time.max, tzinfo=zone)


def week_range(value, tz: tzinfo | None = None) -> tuple[date, date]:
    """Monday..Sunday containing ``value``."""
    day = local_date(value, tz)
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def month_range(value, tz: tzinfo | None = None) -> tuple[date, date]:
    day = local_date(value, tz)
    last = _calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def start_of_week(value, tz: tzinfo | None = None) -> datetime:
    zone = _zone_for(value, tz)
    return datetime.combine(week_range(value, zone)[0], time.min, tzinfo=zone)


def end_of_week(value, tz: tzinfo | None = None) -> datetime:
    zone = _zone_for(value, tz)
    return datetime.combine(week_range(value, zone)[1], time.max, tzinfo=zone)


def start_of_month(value, tz: tzinfo | None = None) -> datetime:
    zone = _zone_for(value, tz)
    return datetime.combine(month_range(value, zone)[0], time.min, tzinfo=zone)


def end_of_month(value, tz: tzinfo | None = None) -> datetime:
    zone = _zone_for(value, tz)
    return datetime.combine(month_range(value, zone)[1], time.max, tzinfo=zone)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def sunday_based_weekday(day: date) -> int:
    """0=Sunday .. 6=Saturday, the convention stored in recurrence rules."""
    return (day.weekday() + 1) % 7


def months_between(earlier: date, later: date) -> int:
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


WEEKDAY_NAMES = {
    0: ("sunday", "sun", "pazar"),
    1: ("monday", "mon", "pazartesi"),
    2: ("tuesday", "tue", "salı", "sali"),
    3: ("wednesday", "wed", "çarşamba", "carsamba"),
    4: ("thursday", "thu", "perşembe", "persembe"),
    5: ("friday", "fri", "cuma"),
    6: ("saturday", "sat", "cumartesi"),
}

_NAME_TO_WEEKDAY = {name: index for index, names in WEEKDAY_NAMES.items() for name in names}


def weekday_from_name(name) -> int | None:
    """Sunday-based index for an English or Turkish weekday name, else None."""
    if name is None:
        return None
    key = str(name).strip().casefold()
    return _NAME_TO_WEEKDAY.get(key)


def canonical_weekday_name(index: int) -> str:
    return WEEKDAY_NAMES[index][0]
