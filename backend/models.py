from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from backend.services.calendar_math import weekday_from_name

logger = logging.getLogger(__name__)

DAILY_HABIT = "DAILY_HABIT"
ONE_TIME = "ONE_TIME"
PROGRESS = "PROGRESS"
TRACKABLE_TYPES = (DAILY_HABIT, ONE_TIME, PROGRESS)

STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"
STATUS_ARCHIVED = "archived"
TRACKABLE_STATUSES = (STATUS_ACTIVE, STATUS_COMPLETED, STATUS_ARCHIVED)

RESET_FREQUENCIES = ("daily", "weekly", "none")
PRIORITIES = ("low", "medium", "high")
CATEGORIES = ("task", "habit")

LOG_INCREMENTED = "incremented"
LOG_DECREMENTED = "decremented"
LOG_COMPLETED = "completed"
LOG_RESET = "reset"
LOG_ACTIONS = (LOG_INCREMENTED, LOG_DECREMENTED, LOG_COMPLETED, LOG_RESET)


def decode_json_list(value) -> list:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring malformed JSON list: %r", value)
        return []
    return decoded if isinstance(decoded, list) else []


def normalize_weekdays(names) -> frozenset[int]:
    days = set()
    for name in names or []:
        index = weekday_from_name(name)
        if index is None:
            logger.debug("Ignoring unknown weekday name: %r", name)
            continue
        days.add(index)
    return frozenset(days)


@dataclass
class Trackable:
    """In-memory view of a ``trackables`` row.

    Scheduling fields stay in their stored form so the recurrence evaluator can
    decide how to treat malformed values. ``selected_days`` is the only one
    normalized up front, into Sunday-based weekday indexes.
    """

    id: str
    title: str
    type: str
    status: str = STATUS_ACTIVE
    current_value: int = 0
    target_value: Optional[int] = None
    last_completed_at: Optional[str] = None
    reset_frequency: str = "none"
    priority: Optional[str] = None
    category: Optional[str] = None
    scheduled_time: Optional[str] = None
    selected_weekdays: frozenset[int] = field(default_factory=frozenset)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    scheduled_date: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurrence_rule: Any = None
    created_at: Optional[str] = None

    @property
    def has_selected_days(self) -> bool:
        return bool(self.selected_weekdays)

    @classmethod
    def from_row(cls, row: dict) -> "Trackable":
        return cls(
            id=str(row.get("id") or ""),
            title=row.get("title") or "",
            type=row.get("type") or DAILY_HABIT,
            status=row.get("status") or STATUS_ACTIVE,
            current_value=max(0, int(row.get("current_value") or 0)),
            target_value=row.get("target_value"),
            last_completed_at=row.get("last_completed_at"),
            reset_frequency=row.get("reset_frequency") or "none",
            priority=row.get("priority"),
            category=row.get("category"),
            scheduled_time=row.get("scheduled_time"),
            selected_weekdays=normalize_weekdays(decode_json_list(row.get("selected_days"))),
            start_date=row.get("start_date"),
            end_date=row.get("end_date"),
            scheduled_date=row.get("scheduled_date"),
            is_recurring=None if row.get("is_recurring") is None else bool(row.get("is_recurring")),
            recurrence_rule=row.get("recurrence_rule"),
            created_at=row.get("created_at"),
        )
