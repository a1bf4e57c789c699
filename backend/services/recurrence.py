"""
Decides whether a trackable is due on a calendar date.

Rules are checked in a fixed order and the first decisive rule wins:

1. ``scheduled_date`` equal to the target date shows the item. A non-recurring
   item with a different ``scheduled_date`` is hidden.
2. A ``start_date`` (or ``end_date``) bound excludes dates outside it.
3. A recurring item follows its rule (daily, weekly, monthly).
4. Legacy ``selected_days`` weekday names.
5. Anything else is never due.

Malformed scheduling data hides the item instead of raising, so one bad row
cannot break a day view.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from backend.errors import InvalidDateError
from backend.models import Trackable
from backend.services.calendar_math import (
    iter_days,
    months_between,
    parse_day,
    sunday_based_weekday,
)

logger = logging.getLogger(__name__)

FREQ_DAILY = "daily"
FREQ_WEEKLY = "weekly"
FREQ_MONTHLY = "monthly"
FREQUENCIES = (FREQ_DAILY, FREQ_WEEKLY, FREQ_MONTHLY)


@dataclass(frozen=True)
class RecurrenceRule:
    frequency: str
    interval: int = 1
    days_of_week: frozenset[int] = field(default_factory=frozenset)
    end_date: Optional[date] = None

    @classmethod
    def parse(cls, raw) -> "RecurrenceRule":
        """Build a rule from its stored JSON form.

        Accepts a dict or a JSON object string with ``frequency``, ``interval``,
        ``daysOfWeek`` and ``endDate`` keys (snake_case spellings are accepted
        too). Raises ``ValueError`` when the payload cannot be a rule.
        """
        if isinstance(raw, str):
            raw = json.loads(raw)
        if not isinstance(raw, dict):
            raise ValueError(f"recurrence rule must be an object, got {type(raw).__name__}")
        frequency = str(raw.get("frequency") or "").strip().lower()
        if not frequency:
            raise ValueError("recurrence rule has no frequency")
        interval = int(raw.get("interval") or 1)
        if interval < 1:
            raise ValueError(f"recurrence interval must be positive, got {interval}")
        days_raw = raw.get("daysOfWeek", raw.get("days_of_week")) or []
        days = set()
        for item in days_raw:
            index = int(item)
            if not 0 <= index <= 6:
                raise ValueError(f"weekday index out of range: {item!r}")
            days.add(index)
        end_raw = raw.get("endDate", raw.get("end_date"))
        end = parse_day(end_raw) if end_raw else None
        return cls(frequency=frequency, interval=interval, days_of_week=frozenset(days), end_date=end)

    def to_dict(self) -> dict:
        payload = {"frequency": self.frequency, "interval": self.interval}
        if self.days_of_week:
            payload["daysOfWeek"] = sorted(self.days_of_week)
        if self.end_date:
            payload["endDate"] = self.end_date.isoformat()
        return payload


def _optional_day(value) -> Optional[date]:
    if value is None or value == "":
        return None
    return parse_day(value)


def _matches_rule(rule: RecurrenceRule, target: date, anchor: Optional[date]) -> bool:
    if rule.end_date is not None and target > rule.end_date:
        return False
    if anchor is not None and target < anchor:
        return False
    if rule.frequency == FREQ_DAILY:
        return True
    if rule.frequency == FREQ_WEEKLY:
        if rule.days_of_week:
            matches = sunday_based_weekday(target) in rule.days_of_week
        elif anchor is not None:
            matches = target.weekday() == anchor.weekday()
        else:
            return True
        if matches and anchor is not None and rule.interval > 1:
            weeks = ((target - anchor).days - target.weekday() + anchor.weekday()) // 7
            matches = weeks % rule.interval == 0
        return matches
    if rule.frequency == FREQ_MONTHLY:
        if anchor is None:
            return True
        if target.day != anchor.day:
            return False
        return rule.interval == 1 or months_between(anchor, target) % rule.interval == 0
    logger.debug("Unknown recurrence frequency %r", rule.frequency)
    return False


def should_appear_on_date(trackable: Trackable, target: date) -> bool:
    try:
        scheduled = _optional_day(trackable.scheduled_date)
    except InvalidDateError:
        logger.debug("Hiding trackable %s: bad scheduled_date %r", trackable.id, trackable.scheduled_date)
        return False

    # A rule counts unless the item was explicitly marked non-recurring.
    recurring = bool(trackable.recurrence_rule) and trackable.is_recurring is not False
    if scheduled is not None:
        if scheduled == target:
            return True
        if not recurring:
            return False

    try:
        start = _optional_day(trackable.start_date)
        end = _optional_day(trackable.end_date)
    except InvalidDateError:
        logger.debug("Hiding trackable %s: bad start/end date", trackable.id)
        return False
    if start is not None and target < start:
        return False
    if end is not None and target > end:
        return False

    if recurring:
        try:
            rule = RecurrenceRule.parse(trackable.recurrence_rule)
        except (TypeError, ValueError) as exc:
            logger.debug("Hiding trackable %s: bad recurrence rule %r (%s)", trackable.id, trackable.recurrence_rule, exc)
            return False
        return _matches_rule(rule, target, scheduled)

    if trackable.has_selected_days:
        return sunday_based_weekday(target) in trackable.selected_weekdays

    return False


def trackables_for_date(trackables: Iterable[Trackable], target: date) -> list[Trackable]:
    return [item for item in trackables if should_appear_on_date(item, target)]


def occurrences_in_range(trackables: Iterable[Trackable], start: date, end: date) -> dict[date, list[Trackable]]:
    """Map each day of ``start..end`` to the trackables due that day."""
    items = list(trackables)
    return {day: trackables_for_date(items, day) for day in iter_days(start, end)}
