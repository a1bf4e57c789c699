"""
Read-only aggregates for the dashboard widgets.

Every table is read independently and concurrently. A failing read is logged
and replaced with no rows, so one broken table zeroes its own figures instead
of failing the whole page.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, tzinfo
from typing import Iterable

from backend import repositories
from backend.errors import StorageError
from backend.models import DAILY_HABIT, ONE_TIME, PROGRESS, Trackable
from backend.services.calendar_math import iter_days, local_date, month_range, week_range
from backend.services.completion import is_completed_today

logger = logging.getLogger(__name__)

HEALTH_TABLES = ("sleep_logs", "water_intake", "steps_logs", "exercise_logs")
MENTAL_TABLES = ("mood_logs", "motivation_logs", "meditation_sessions", "journal_entries")
PRODUCTIVITY_TABLES = ("pomodoro_sessions", "focus_sessions")
FINANCE_TABLES = ("expenses", "income")


async def _safe_rows(table_name: str, user_id: str, start: date, end: date) -> list[dict]:
    try:
        return await repositories.list_logs(table_name, user_id, start.isoformat(), end.isoformat())
    except StorageError as exc:
        logger.warning("Degrading %s to empty: %s", table_name, exc)
        return []


async def _safe_call(label: str, coro, default):
    try:
        return await coro
    except StorageError as exc:
        logger.warning("Degrading %s to default: %s", label, exc)
        return default


async def fetch_tables(user_id: str, tables: Iterable[str], start: date, end: date) -> dict[str, list[dict]]:
    names = list(tables)
    results = await asyncio.gather(*(_safe_rows(name, user_id, start, end) for name in names))
    return dict(zip(names, results))


def _within(rows: list[dict], start: date, end: date) -> list[dict]:
    start_iso, end_iso = start.isoformat(), end.isoformat()
    return [row for row in rows if start_iso <= str(row.get("log_date")) <= end_iso]


def _sum(rows: list[dict], column: str) -> float:
    return sum(float(row.get(column) or 0) for row in rows)


def _avg(rows: list[dict], column: str) -> float:
    values = [float(row[column]) for row in rows if row.get(column) is not None]
    return round(sum(values) / len(values), 1) if values else 0.0


def health_figures(data: dict[str, list[dict]], start: date, end: date) -> dict:
    sleep = _within(data.get("sleep_logs", []), start, end)
    water = _within(data.get("water_intake", []), start, end)
    steps = _within(data.get("steps_logs", []), start, end)
    exercise = _within(data.get("exercise_logs", []), start, end)
    return {
        "total_sleep_hours": round(_sum(sleep, "sleep_duration"), 1),
        "total_water_ml": int(_sum(water, "amount_ml")),
        "total_steps": int(_sum(steps, "steps_count")),
        "total_exercise_minutes": int(_sum(exercise, "duration_minutes")),
        "entries": len(sleep) + len(water) + len(steps) + len(exercise),
    }


def mental_figures(data: dict[str, list[dict]], start: date, end: date) -> dict:
    mood = _within(data.get("mood_logs", []), start, end)
    motivation = _within(data.get("motivation_logs", []), start, end)
    meditation = _within(data.get("meditation_sessions", []), start, end)
    journal = _within(data.get("journal_entries", []), start, end)
    return {
        "avg_mood": _avg(mood, "mood_score"),
        "avg_motivation": _avg(motivation, "motivation_score"),
        "total_meditation_minutes": int(_sum(meditation, "duration_minutes")),
        "journal_count": len(journal),
    }


def productivity_figures(data: dict[str, list[dict]], start: date, end: date, active_goals: int = 0) -> dict:
    pomodoro = _within(data.get("pomodoro_sessions", []), start, end)
    focus = _within(data.get("focus_sessions", []), start, end)
    return {
        "total_pomodoro_minutes": int(_sum(pomodoro, "duration_minutes")),
        "completed_pomodoros": sum(1 for row in pomodoro if row.get("completed")),
        "total_focus_minutes": int(_sum(focus, "duration_minutes")),
        "total_distractions": int(_sum(focus, "distractions")),
        "active_goals": active_goals,
    }


def finance_figures(data: dict[str, list[dict]], start: date, end: date) -> dict:
    expenses = _within(data.get("expenses", []), start, end)
    income = _within(data.get("income", []), start, end)
    total_expenses = round(_sum(expenses, "amount"), 2)
    total_income = round(_sum(income, "amount"), 2)
    return {
        "total_expenses": total_expenses,
        "total_income": total_income,
        "balance": round(total_income - total_expenses, 2),
        "expense_count": len(expenses),
        "income_count": len(income),
    }


def trackable_figures(rows: list[dict], now: datetime, tz: tzinfo | None) -> dict:
    items = [Trackable.from_row(row) for row in rows]
    return {
        "total": len(items),
        "daily_habits": sum(1 for item in items if item.type == DAILY_HABIT),
        "one_time_tasks": sum(1 for item in items if item.type == ONE_TIME),
        "progress_trackers": sum(1 for item in items if item.type == PROGRESS),
        "completed_today": sum(1 for item in items if is_completed_today(item, now, tz)),
    }


def _windows(today: date) -> dict[str, tuple[date, date]]:
    return {"today": (today, today), "week": week_range(today), "month": month_range(today)}


async def all_statistics(user_id: str, now: datetime, tz: tzinfo | None) -> dict:
    today = local_date(now, tz)
    windows = _windows(today)
    start = min(window[0] for window in windows.values())
    end = max(window[1] for window in windows.values())
    tables = HEALTH_TABLES + MENTAL_TABLES + PRODUCTIVITY_TABLES + FINANCE_TABLES
    data, trackable_rows, goals = await asyncio.gather(
        fetch_tables(user_id, tables, start, end),
        _safe_call("trackables", repositories.list_trackables(user_id), []),
        _safe_call("goals", repositories.list_goals(user_id), []),
    )
    return {
        "date": today.isoformat(),
        "trackables": trackable_figures(trackable_rows, now, tz),
        "health": {name: health_figures(data, *window) for name, window in windows.items()},
        "mental": {name: mental_figures(data, *window) for name, window in windows.items()},
        "productivity": {
            name: productivity_figures(data, *window, active_goals=len(goals)) for name, window in windows.items()
        },
        "finance": {name: finance_figures(data, *window) for name, window in windows.items()},
    }


def _last_value(rows: list[dict], column: str):
    ordered = sorted(rows, key=lambda row: row.get("created_at") or "")
    return ordered[-1].get(column) if ordered else None


async def mental_today(user_id: str, today: date) -> dict:
    data = await fetch_tables(user_id, MENTAL_TABLES, today, today)
    return {
        "date": today.isoformat(),
        "mood": _last_value(data["mood_logs"], "mood_score"),
        "motivation": _last_value(data["motivation_logs"], "motivation_score"),
        "meditation_minutes": int(_sum(data["meditation_sessions"], "duration_minutes")),
        "journal_count": len(data["journal_entries"]),
    }


def _rounded_mean(values: list) -> float | None:
    present = [float(value) for value in values if value is not None]
    return round(sum(present) / len(present), 1) if present else None


def mental_week_rows(data: dict[str, list[dict]], start: date, end: date) -> dict:
    days = []
    for day in iter_days(start, end):
        mood = _within(data.get("mood_logs", []), day, day)
        motivation = _within(data.get("motivation_logs", []), day, day)
        meditation = _within(data.get("meditation_sessions", []), day, day)
        journal = _within(data.get("journal_entries", []), day, day)
        days.append(
            {
                "date": day.isoformat(),
                "mood": _last_value(mood, "mood_score"),
                "motivation": _last_value(motivation, "motivation_score"),
                "meditation_minutes": int(_sum(meditation, "duration_minutes")),
                "journal_count": len(journal),
            }
        )
    return {
        "days": days,
        "avg_mood": _rounded_mean([day["mood"] for day in days]),
        "avg_motivation": _rounded_mean([day["motivation"] for day in days]),
        "total_meditation_minutes": sum(day["meditation_minutes"] for day in days),
        "total_journal_entries": sum(day["journal_count"] for day in days),
    }


async def mental_weekly(user_id: str, today: date) -> dict:
    start, end = week_range(today)
    data = await fetch_tables(user_id, MENTAL_TABLES, start, end)
    return {"start": start.isoformat(), "end": end.isoformat(), **mental_week_rows(data, start, end)}


async def productivity_today(user_id: str, today: date) -> dict:
    data = await fetch_tables(user_id, PRODUCTIVITY_TABLES, today, today)
    goals = await _safe_call("goals", repositories.list_goals(user_id), [])
    return {"date": today.isoformat(), **productivity_figures(data, today, today, active_goals=len(goals))}


def group_totals(rows: list[dict], key: str, fallback: str) -> dict[str, float]:
    totals: dict[str, float] = {}
    for row in rows:
        label = row.get(key) or fallback
        totals[label] = round(totals.get(label, 0.0) + float(row.get("amount") or 0), 2)
    return totals


async def finance_monthly(user_id: str, year: int, month: int) -> dict:
    start, end = month_range(date(year, month, 1))
    data = await fetch_tables(user_id, FINANCE_TABLES, start, end)
    return {
        "year": year,
        "month": month,
        **finance_figures(data, start, end),
        "expenses_by_category": group_totals(data["expenses"], "category", "Other"),
        "income_by_source": group_totals(data["income"], "source", "Other"),
    }


async def finance_weekly(user_id: str, today: date) -> dict:
    start, end = week_range(today)
    data = await fetch_tables(user_id, FINANCE_TABLES, start, end)
    days = []
    for day in iter_days(start, end):
        figures = finance_figures(data, day, day)
        days.append({"date": day.isoformat(), "expenses": figures["total_expenses"], "income": figures["total_income"]})
    return {"start": start.isoformat(), "end": end.isoformat(), "days": days, **finance_figures(data, start, end)}
