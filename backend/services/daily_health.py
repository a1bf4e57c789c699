"""
Daily health summary: one row per user and calendar day.

A new day's row never inherits yesterday's ``ongoing_conditions`` on its own.
The previous list is parked in ``carry_over_candidates`` with status
``pending`` until the user accepts (copy verbatim) or declines (start empty).
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta

from backend import repositories
from backend.errors import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

CARRY_NONE = "none"
CARRY_PENDING = "pending"
CARRY_ACCEPTED = "accepted"
CARRY_DECLINED = "declined"

# Log tables read when recalculating a day.
AGGREGATE_SOURCES = (
    "steps_logs",
    "exercise_logs",
    "water_intake",
    "nutrition_logs",
    "sleep_logs",
    "health_metrics",
    "energy_logs",
    "stress_logs",
    "smoking_logs",
    "alcohol_logs",
    "caffeine_logs",
)


def new_summary_fields(previous: dict | None) -> dict:
    """Initial fields for a new day given the previous day's summary."""
    conditions = list((previous or {}).get("ongoing_conditions") or [])
    if conditions:
        return {
            "ongoing_conditions": [],
            "carry_over_candidates": conditions,
            "carry_over_status": CARRY_PENDING,
            "carried_over_conditions": False,
        }
    return {
        "ongoing_conditions": [],
        "carry_over_candidates": [],
        "carry_over_status": CARRY_NONE,
        "carried_over_conditions": False,
    }


def carry_over_patch(summary: dict, accept: bool) -> dict:
    if summary.get("carry_over_status") != CARRY_PENDING:
        raise ValidationError("carry_over", "no carry-over decision is pending for this day")
    if accept:
        return {
            "ongoing_conditions": list(summary.get("carry_over_candidates") or []),
            "carried_over_conditions": True,
            "carry_over_status": CARRY_ACCEPTED,
        }
    return {
        "ongoing_conditions": [],
        "carried_over_conditions": False,
        "carry_over_status": CARRY_DECLINED,
    }


def _total(rows: list[dict], column: str) -> int:
    return int(sum(row.get(column) or 0 for row in rows))


def _mean(rows: list[dict], column: str):
    values = [row[column] for row in rows if row.get(column) is not None]
    if not values:
        return None
    return sum(values) / len(values)


def aggregate_day(logs: dict[str, list[dict]]) -> dict:
    """Summary totals from one day's log rows, keyed by table name."""
    sleep_rows = sorted(logs.get("sleep_logs", []), key=lambda row: row.get("created_at") or "")
    latest_sleep = sleep_rows[-1] if sleep_rows else {}
    heart_rate = _mean(logs.get("health_metrics", []), "heart_rate")
    energy = _mean(logs.get("energy_logs", []), "energy_level")
    stress = _mean(logs.get("stress_logs", []), "stress_level")
    return {
        "total_steps": _total(logs.get("steps_logs", []), "steps_count"),
        "total_exercise_minutes": _total(logs.get("exercise_logs", []), "duration_minutes"),
        "total_water_ml": _total(logs.get("water_intake", []), "amount_ml"),
        "total_calories": _total(logs.get("nutrition_logs", []), "calories"),
        "sleep_hours": latest_sleep.get("sleep_duration"),
        "sleep_quality": latest_sleep.get("sleep_quality"),
        "avg_heart_rate": round(heart_rate) if heart_rate is not None else None,
        "avg_energy_level": round(energy, 1) if energy is not None else None,
        "avg_stress_level": round(stress, 1) if stress is not None else None,
        "cigarettes_count": _total(logs.get("smoking_logs", []), "cigarettes_count"),
        "alcohol_drinks": len(logs.get("alcohol_logs", [])),
        "caffeine_mg": _total(logs.get("caffeine_logs", []), "caffeine_mg"),
    }


async def _require(user_id: str, summary_id: str) -> dict:
    summary = await repositories.get_summary_by_id(user_id, summary_id)
    if not summary:
        raise NotFoundError("Daily summary", summary_id)
    return summary


async def get_or_create_summary(user_id: str, day: date) -> dict:
    summary = await repositories.get_summary(user_id, day.isoformat())
    if summary:
        return summary
    previous = await repositories.get_summary(user_id, (day - timedelta(days=1)).isoformat())
    fields = new_summary_fields(previous)
    if fields["carry_over_status"] == CARRY_PENDING:
        logger.info("Carry-over of %d conditions pending for %s on %s", len(fields["carry_over_candidates"]), user_id, day)
    return await repositories.create_summary(user_id, day.isoformat(), fields)


async def resolve_carry_over(user_id: str, summary_id: str, accept: bool) -> dict:
    summary = await _require(user_id, summary_id)
    patch = carry_over_patch(summary, accept)
    logger.info("Carry-over %s for summary %s", patch["carry_over_status"], summary_id)
    return await repositories.update_summary(user_id, summary_id, patch)


async def update_summary(user_id: str, summary_id: str, patch: dict) -> dict:
    await _require(user_id, summary_id)
    return await repositories.update_summary(user_id, summary_id, patch)


async def delete_summary(user_id: str, summary_id: str) -> None:
    if not await repositories.delete_summary(user_id, summary_id):
        raise NotFoundError("Daily summary", summary_id)


async def _day_rows(table_name: str, user_id: str, day_iso: str) -> list[dict]:
    try:
        return await repositories.list_logs(table_name, user_id, day_iso, day_iso)
    except StorageError as exc:
        logger.warning("Skipping %s in daily totals: %s", table_name, exc)
        return []


async def calculate_summary(user_id: str, day: date) -> dict:
    summary = await get_or_create_summary(user_id, day)
    day_iso = day.isoformat()
    results = await asyncio.gather(*(_day_rows(table, user_id, day_iso) for table in AGGREGATE_SOURCES))
    totals = aggregate_day(dict(zip(AGGREGATE_SOURCES, results)))
    return await repositories.update_summary(user_id, summary["id"], totals)
