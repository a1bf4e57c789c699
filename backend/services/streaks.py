from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable

from backend.errors import InvalidDateError
from backend.models import LOG_COMPLETED, LOG_RESET
from backend.services.calendar_math import local_date, parse_instant

logger = logging.getLogger(__name__)


def completion_days(logs: Iterable[dict], tz: tzinfo | None = None) -> set[date]:
    """Local days whose last completion-related log is a completion.

    An undo on the same day cancels that day's completion.
    """
    latest: dict[date, tuple[datetime, str]] = {}
    for log in logs:
        action = log.get("action")
        if action not in {LOG_COMPLETED, LOG_RESET}:
            continue
        try:
            instant = parse_instant(log.get("created_at"))
        except InvalidDateError:
            logger.debug("Skipping log %s with bad created_at", log.get("id"))
            continue
        day = local_date(instant, tz)
        current = latest.get(day)
        if current is None or instant >= current[0]:
            latest[day] = (instant, action)
    return {day for day, (_, action) in latest.items() if action == LOG_COMPLETED}


def current_streak(days: set[date], today: date) -> int:
    if today in days:
        cursor = today
    elif today - timedelta(days=1) in days:
        cursor = today - timedelta(days=1)
    else:
        return 0
    count = 0
    while cursor in days:
        count += 1
        cursor -= timedelta(days=1)
    return count


def longest_streak(days: set[date]) -> int:
    best = 0
    run = 0
    previous = None
    for day in sorted(days):
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day
    return best


def habit_streaks(habits: list[dict], logs: list[dict], today: date, tz: tzinfo | None = None) -> list[dict]:
    by_trackable: dict[str, list[dict]] = {}
    for log in logs:
        by_trackable.setdefault(log.get("trackable_id"), []).append(log)

    results = []
    for habit in habits:
        days = completion_days(by_trackable.get(habit["id"], []), tz)
        results.append(
            {
                "trackable_id": habit["id"],
                "title": habit.get("title"),
                "current_streak": current_streak(days, today),
                "longest_streak": longest_streak(days),
                "total_completions": len(days),
                "last_completed_date": max(days).isoformat() if days else None,
            }
        )
    results.sort(key=lambda item: item["current_streak"], reverse=True)
    return results
