from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo

from backend import repositories
from backend.errors import NotFoundError, ValidationError
from backend.models import (
    DAILY_HABIT,
    LOG_DECREMENTED,
    LOG_INCREMENTED,
    PROGRESS,
    STATUS_ACTIVE,
    Trackable,
)
from backend.services.calendar_math import local_date
from backend.services.completion import (
    categorize,
    is_completed_today,
    progress_stamp_patch,
    reached_target,
    stamp,
    toggle_completion,
)
from backend.services.recurrence import occurrences_in_range, trackables_for_date
from backend.services.streaks import habit_streaks

logger = logging.getLogger(__name__)

SCHEDULING_FIELDS = ("scheduled_date", "recurrence_rule", "selected_days")


def annotate(row: dict, reference, tz: tzinfo | None) -> dict:
    item = Trackable.from_row(row)
    payload = dict(row)
    payload["is_completed_today"] = is_completed_today(item, reference, tz)
    payload["reached_target"] = reached_target(item)
    return payload


async def _require(user_id: str, trackable_id: str) -> dict:
    row = await repositories.get_trackable(user_id, trackable_id)
    if not row:
        raise NotFoundError("Trackable", trackable_id)
    return row


def _check_shape(payload: dict, existing: dict | None = None) -> dict:
    if payload.get("recurrence_rule") and payload.get("is_recurring") is None:
        payload["is_recurring"] = True
    merged = {**(existing or {}), **payload}
    if merged.get("is_recurring") and not merged.get("recurrence_rule"):
        raise ValidationError("recurrence_rule", "recurring items need a recurrence rule")
    if merged.get("target_value") is not None and merged.get("type") != PROGRESS:
        raise ValidationError("target_value", "only PROGRESS items have a target")
    if not any(merged.get(name) for name in SCHEDULING_FIELDS):
        raise ValidationError("selected_days", "pick at least one day, a date or a recurrence rule")
    start, end = merged.get("start_date"), merged.get("end_date")
    if start and end and str(end) < str(start):
        raise ValidationError("end_date", "must not be before start_date")
    return payload


async def get_trackable(user_id: str, trackable_id: str, now: datetime, tz: tzinfo | None) -> dict:
    return annotate(await _require(user_id, trackable_id), now, tz)


async def create_trackable(user_id: str, payload: dict, today: date) -> dict:
    clean = _check_shape(dict(payload))
    if not clean.get("start_date"):
        clean["start_date"] = today.isoformat()
    record = await repositories.create_trackable(user_id, clean)
    logger.info("Created trackable %s (%s) for %s", record["id"], record["type"], user_id)
    return record


async def update_trackable(user_id: str, trackable_id: str, patch: dict) -> dict:
    existing = await _require(user_id, trackable_id)
    patch = dict(patch)
    if patch.get("type") and patch["type"] != PROGRESS:
        patch.setdefault("target_value", None)
    clean = _check_shape(patch, existing)
    return await repositories.update_trackable(user_id, trackable_id, clean)


async def delete_trackable(user_id: str, trackable_id: str) -> None:
    if not await repositories.delete_trackable(user_id, trackable_id):
        raise NotFoundError("Trackable", trackable_id)
    logger.info("Deleted trackable %s for %s", trackable_id, user_id)


async def toggle_trackable(user_id: str, trackable_id: str, now: datetime, tz: tzinfo | None) -> dict:
    row = await _require(user_id, trackable_id)
    item = Trackable.from_row(row)
    change = toggle_completion(item, now, tz)
    updated = await repositories.update_trackable(user_id, trackable_id, change.patch)
    await repositories.insert_trackable_log(
        user_id,
        trackable_id,
        change.action,
        item.current_value,
        item.current_value,
        stamp(now),
    )
    logger.info("Trackable %s %s by %s", trackable_id, change.action, user_id)
    return annotate(updated, now, tz)


async def _adjust(user_id: str, trackable_id: str, delta: int, action: str, now: datetime, tz: tzinfo | None) -> dict:
    result = await repositories.adjust_trackable_value(user_id, trackable_id, delta, action, stamp(now))
    if result is None:
        raise NotFoundError("Trackable", trackable_id)
    previous, new_value = result
    logger.info("Trackable %s %s %s -> %s", trackable_id, action, previous, new_value)
    row = await repositories.get_trackable(user_id, trackable_id)
    patch = progress_stamp_patch(Trackable.from_row(row), now, tz)
    if patch:
        row = await repositories.update_trackable(user_id, trackable_id, patch)
    payload = annotate(row, now, tz)
    payload["previous_value"] = previous
    return payload


async def increment_trackable(user_id: str, trackable_id: str, amount: int, now: datetime, tz: tzinfo | None) -> dict:
    if amount < 1:
        raise ValidationError("amount", "must be at least 1")
    return await _adjust(user_id, trackable_id, amount, LOG_INCREMENTED, now, tz)


async def decrement_trackable(user_id: str, trackable_id: str, amount: int, now: datetime, tz: tzinfo | None) -> dict:
    if amount < 1:
        raise ValidationError("amount", "must be at least 1")
    return await _adjust(user_id, trackable_id, -amount, LOG_DECREMENTED, now, tz)


def _serialize_bucket(items: list[Trackable], rows_by_id: dict[str, dict]) -> list[dict]:
    return [rows_by_id[item.id] for item in items]


async def day_view(user_id: str, day: date, now: datetime, tz: tzinfo | None) -> dict:
    rows = await repositories.list_trackables(user_id)
    items = [Trackable.from_row(row) for row in rows]
    due = trackables_for_date(items, day)
    rows_by_id = {row["id"]: annotate(row, day, tz) for row in rows}
    buckets = categorize(due, now, tz, day=day)
    return {
        "date": day.isoformat(),
        "items": [rows_by_id[item.id] for item in due],
        "buckets": {
            "completed": _serialize_bucket(buckets.completed, rows_by_id),
            "upcoming": _serialize_bucket(buckets.upcoming, rows_by_id),
            "pending": _serialize_bucket(buckets.pending, rows_by_id),
        },
    }


async def range_view(user_id: str, start: date, end: date, tz: tzinfo | None) -> dict:
    if end < start:
        raise ValidationError("end", "must not be before start")
    if (end - start).days > 62:
        raise ValidationError("end", "range is limited to 62 days")
    rows = await repositories.list_trackables(user_id)
    items = [Trackable.from_row(row) for row in rows]
    occurrences = occurrences_in_range(items, start, end)
    seen = {item.id for day_items in occurrences.values() for item in day_items}
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "days": {
            day.isoformat(): [
                {"id": item.id, "is_completed": is_completed_today(item, day, tz)} for item in day_items
            ]
            for day, day_items in occurrences.items()
        },
        "items": [row for row in rows if row["id"] in seen],
    }


async def streaks(user_id: str, now: datetime, tz: tzinfo | None) -> list[dict]:
    rows = await repositories.list_trackables(user_id)
    habits = [row for row in rows if row.get("type") == DAILY_HABIT and row.get("status") == STATUS_ACTIVE]
    logs = await repositories.list_trackable_logs(user_id, [row["id"] for row in habits])
    return habit_streaks(habits, logs, local_date(now, tz), tz)
