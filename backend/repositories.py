from __future__ import annotations

import functools
import json
import logging
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import text as sql_text, bindparam
from sqlalchemy.exc import SQLAlchemyError

from backend.db import get_sessionmaker
from backend.db_init import (
    BOOL_COLUMNS,
    DAILY_SUMMARY_TABLE,
    GOALS_TABLE,
    JSON_COLUMNS,
    LOG_TABLES,
    TRACKABLE_LOGS_TABLE,
    TRACKABLES_TABLE,
)
from backend.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

TRACKABLE_COLUMNS = [
    "id",
    "user_id",
    "title",
    "type",
    "status",
    "current_value",
    "target_value",
    "last_completed_at",
    "reset_frequency",
    "priority",
    "category",
    "scheduled_time",
    "selected_days",
    "start_date",
    "end_date",
    "scheduled_date",
    "is_recurring",
    "recurrence_rule",
    "created_at",
    "updated_at",
]

TRACKABLE_PATCHABLE = {
    "title",
    "type",
    "status",
    "target_value",
    "last_completed_at",
    "reset_frequency",
    "priority",
    "category",
    "scheduled_time",
    "selected_days",
    "start_date",
    "end_date",
    "scheduled_date",
    "is_recurring",
    "recurrence_rule",
}

SUMMARY_COLUMNS = [
    "id",
    "user_id",
    "summary_date",
    "ongoing_conditions",
    "carry_over_candidates",
    "carry_over_status",
    "carried_over_conditions",
    "is_completed",
    "overall_wellness_score",
    "notes",
    "symptoms",
    "medications_taken",
    "total_steps",
    "total_exercise_minutes",
    "total_water_ml",
    "total_calories",
    "sleep_hours",
    "sleep_quality",
    "avg_heart_rate",
    "avg_energy_level",
    "avg_stress_level",
    "cigarettes_count",
    "alcohol_drinks",
    "caffeine_mg",
    "created_at",
    "updated_at",
]

SUMMARY_PATCHABLE = set(SUMMARY_COLUMNS) - {"id", "user_id", "summary_date", "created_at", "updated_at"}

GOAL_COLUMNS = [
    "id",
    "user_id",
    "title",
    "description",
    "goal_type",
    "target_date",
    "progress_percentage",
    "status",
    "created_at",
    "updated_at",
]

GOAL_PATCHABLE = {"title", "description", "goal_type", "target_date", "progress_percentage", "status"}


def _new_id() -> str:
    return uuid4().hex


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def storage_operation(operation: str):
    """Turn driver failures inside the wrapped coroutine into ``StorageError``."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as exc:
                logger.error("Storage failure during %s: %s", operation, exc)
                raise StorageError(operation, str(exc)) from exc

        return wrapper

    return decorator


def _encode_value(column: str, value):
    if column in JSON_COLUMNS:
        if value is None:
            return None
        return json.dumps(value, ensure_ascii=False)
    if column in BOOL_COLUMNS:
        return None if value is None else int(bool(value))
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _normalize_row(row) -> dict:
    if not row:
        return {}
    payload = dict(row)
    for key, value in payload.items():
        if key in JSON_COLUMNS and isinstance(value, str):
            try:
                payload[key] = json.loads(value)
            except ValueError:
                logger.debug("Leaving malformed JSON in %s as text", key)
        elif key in BOOL_COLUMNS and value is not None:
            payload[key] = bool(value)
    return payload


def _log_table_columns(table_name: str) -> list[str]:
    columns = LOG_TABLES.get(table_name)
    if columns is None:
        raise ValidationError("table", f"unknown log table {table_name!r}")
    return list(columns.keys())


def _assignments(patch: dict, allowed: set[str]) -> tuple[list[str], dict]:
    updates = []
    params = {}
    for key, value in patch.items():
        if key not in allowed:
            continue
        updates.append(f"{key} = :{key}")
        params[key] = _encode_value(key, value)
    return updates, params


# Trackables


@storage_operation("load trackables")
async def list_trackables(user_id: str, include_archived: bool = False) -> list[dict]:
    where = "user_id = :user_id"
    if not include_archived:
        where += " AND status <> 'archived'"
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(TRACKABLE_COLUMNS)}
                FROM {TRACKABLES_TABLE}
                WHERE {where}
                ORDER BY created_at ASC, id ASC
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


@storage_operation("load trackable")
async def get_trackable(user_id: str, trackable_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(TRACKABLE_COLUMNS)}
                FROM {TRACKABLES_TABLE}
                WHERE id = :id AND user_id = :user_id
                """
            ),
            {"id": trackable_id, "user_id": user_id},
        )).mappings().fetchone()
    return _normalize_row(row)


@storage_operation("save trackable")
async def create_trackable(user_id: str, payload: dict) -> dict:
    now_iso = _utc_now_iso()
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "title": payload["title"],
        "type": payload["type"],
        "status": payload.get("status") or "active",
        "current_value": 0,
        "target_value": payload.get("target_value"),
        "last_completed_at": None,
        "reset_frequency": payload.get("reset_frequency") or "none",
        "priority": payload.get("priority"),
        "category": payload.get("category"),
        "scheduled_time": payload.get("scheduled_time"),
        "selected_days": payload.get("selected_days"),
        "start_date": payload.get("start_date"),
        "end_date": payload.get("end_date"),
        "scheduled_date": payload.get("scheduled_date"),
        "is_recurring": bool(payload.get("is_recurring")),
        "recurrence_rule": payload.get("recurrence_rule"),
        "created_at": now_iso,
        "updated_at": now_iso,
    }
    params = {key: _encode_value(key, value) for key, value in record.items()}
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {TRACKABLES_TABLE}
                ({', '.join(TRACKABLE_COLUMNS)})
                VALUES
                ({', '.join(f':{col}' for col in TRACKABLE_COLUMNS)})
                """
            ),
            params,
        )
        await session.commit()
    return record


@storage_operation("update trackable")
async def update_trackable(user_id: str, trackable_id: str, patch: dict) -> dict:
    updates, params = _assignments(patch, TRACKABLE_PATCHABLE)
    if not updates:
        return await get_trackable(user_id, trackable_id)
    updates.append("updated_at = :updated_at")
    params.update({"id": trackable_id, "user_id": user_id, "updated_at": _utc_now_iso()})
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"UPDATE {TRACKABLES_TABLE} SET {', '.join(updates)} WHERE id = :id AND user_id = :user_id"
            ),
            params,
        )
        await session.commit()
    return await get_trackable(user_id, trackable_id)


@storage_operation("delete trackable")
async def delete_trackable(user_id: str, trackable_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"DELETE FROM {TRACKABLE_LOGS_TABLE} WHERE user_id = :user_id AND trackable_id = :trackable_id"),
            {"user_id": user_id, "trackable_id": trackable_id},
        )
        result = await session.execute(
            sql_text(f"DELETE FROM {TRACKABLES_TABLE} WHERE user_id = :user_id AND id = :trackable_id"),
            {"user_id": user_id, "trackable_id": trackable_id},
        )
        await session.commit()
    return (result.rowcount or 0) > 0


@storage_operation("change trackable value")
async def adjust_trackable_value(
    user_id: str,
    trackable_id: str,
    delta: int,
    action: str,
    logged_at: str,
) -> tuple[int, int] | None:
    """Add ``delta`` to ``current_value`` in the database, clamped at 0.

    The row is write-locked by the first UPDATE, so the previous value read,
    the arithmetic UPDATE and the audit log insert see one consistent value
    even when two sessions adjust the same trackable at once. Returns
    ``(previous, new)`` or None when the trackable does not exist.
    """
    params = {"id": trackable_id, "user_id": user_id}
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        async with session.begin():
            touched = await session.execute(
                sql_text(
                    f"UPDATE {TRACKABLES_TABLE} SET updated_at = :updated_at WHERE id = :id AND user_id = :user_id"
                ),
                {**params, "updated_at": logged_at},
            )
            if not touched.rowcount:
                return None
            select_value = sql_text(
                f"SELECT current_value FROM {TRACKABLES_TABLE} WHERE id = :id AND user_id = :user_id"
            )
            previous = int((await session.execute(select_value, params)).scalar_one())
            await session.execute(
                sql_text(
                    f"""
                    UPDATE {TRACKABLES_TABLE}
                    SET current_value = CASE
                        WHEN current_value + :delta < 0 THEN 0
                        ELSE current_value + :delta
                    END
                    WHERE id = :id AND user_id = :user_id
                    """
                ),
                {**params, "delta": int(delta)},
            )
            new_value = int((await session.execute(select_value, params)).scalar_one())
            await session.execute(
                sql_text(
                    f"""
                    INSERT INTO {TRACKABLE_LOGS_TABLE}
                    (id, user_id, trackable_id, action, previous_value, new_value, created_at)
                    VALUES (:log_id, :user_id, :id, :action, :previous_value, :new_value, :created_at)
                    """
                ),
                {
                    **params,
                    "log_id": _new_id(),
                    "action": action,
                    "previous_value": previous,
                    "new_value": new_value,
                    "created_at": logged_at,
                },
            )
    return previous, new_value


@storage_operation("write trackable log")
async def insert_trackable_log(
    user_id: str,
    trackable_id: str,
    action: str,
    previous_value: int | None,
    new_value: int | None,
    logged_at: str,
) -> dict:
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "trackable_id": trackable_id,
        "action": action,
        "previous_value": previous_value,
        "new_value": new_value,
        "created_at": logged_at,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {TRACKABLE_LOGS_TABLE}
                (id, user_id, trackable_id, action, previous_value, new_value, created_at)
                VALUES (:id, :user_id, :trackable_id, :action, :previous_value, :new_value, :created_at)
                """
            ),
            record,
        )
        await session.commit()
    return record


@storage_operation("load trackable logs")
async def list_trackable_logs(user_id: str, trackable_ids: list[str] | None = None) -> list[dict]:
    if trackable_ids is not None and not trackable_ids:
        return []
    params: dict = {"user_id": user_id}
    where = "user_id = :user_id"
    if trackable_ids is not None:
        where += " AND trackable_id IN :trackable_ids"
        params["trackable_ids"] = list(trackable_ids)
    stmt = sql_text(
        f"""
        SELECT id, user_id, trackable_id, action, previous_value, new_value, created_at
        FROM {TRACKABLE_LOGS_TABLE}
        WHERE {where}
        ORDER BY created_at DESC
        """
    )
    if trackable_ids is not None:
        stmt = stmt.bindparams(bindparam("trackable_ids", expanding=True))
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(stmt, params)).mappings().all()
    return [dict(row) for row in rows]


# Per-day log tables


@storage_operation("save log entry")
async def insert_log(table_name: str, user_id: str, log_date: str, payload: dict) -> dict:
    columns = _log_table_columns(table_name)
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "log_date": log_date,
        **{column: payload.get(column) for column in columns},
        "created_at": _utc_now_iso(),
    }
    params = {key: _encode_value(key, value) for key, value in record.items()}
    all_columns = list(record.keys())
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {table_name} ({', '.join(all_columns)})
                VALUES ({', '.join(f':{col}' for col in all_columns)})
                """
            ),
            params,
        )
        await session.commit()
    return record


@storage_operation("load log entries")
async def list_logs(table_name: str, user_id: str, start_iso: str, end_iso: str) -> list[dict]:
    columns = ["id", "user_id", "log_date", *_log_table_columns(table_name), "created_at"]
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(columns)}
                FROM {table_name}
                WHERE user_id = :user_id AND log_date >= :start AND log_date <= :end
                ORDER BY log_date ASC, created_at ASC
                """
            ),
            {"user_id": user_id, "start": start_iso, "end": end_iso},
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


@storage_operation("delete log entry")
async def delete_log(table_name: str, user_id: str, log_id: str) -> bool:
    _log_table_columns(table_name)
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {table_name} WHERE id = :id AND user_id = :user_id"),
            {"id": log_id, "user_id": user_id},
        )
        await session.commit()
    return (result.rowcount or 0) > 0


# Daily health summary


async def _select_summary(where: str, params: dict) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {', '.join(SUMMARY_COLUMNS)} FROM {DAILY_SUMMARY_TABLE} WHERE {where}"),
            params,
        )).mappings().fetchone()
    return _normalize_row(row)


@storage_operation("load daily summary")
async def get_summary(user_id: str, day_iso: str) -> dict:
    return await _select_summary(
        "user_id = :user_id AND summary_date = :summary_date",
        {"user_id": user_id, "summary_date": day_iso},
    )


@storage_operation("load daily summary")
async def get_summary_by_id(user_id: str, summary_id: str) -> dict:
    return await _select_summary("user_id = :user_id AND id = :id", {"user_id": user_id, "id": summary_id})


@storage_operation("create daily summary")
async def create_summary(user_id: str, day_iso: str, fields: dict) -> dict:
    """Insert the day's summary unless one exists, then return the stored row."""
    now_iso = _utc_now_iso()
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "summary_date": day_iso,
        **{key: value for key, value in fields.items() if key in SUMMARY_PATCHABLE},
        "created_at": now_iso,
        "updated_at": now_iso,
    }
    params = {key: _encode_value(key, value) for key, value in record.items()}
    columns = list(record.keys())
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {DAILY_SUMMARY_TABLE} ({', '.join(columns)})
                VALUES ({', '.join(f':{col}' for col in columns)})
                ON CONFLICT (user_id, summary_date) DO NOTHING
                """
            ),
            params,
        )
        await session.commit()
    return await get_summary(user_id, day_iso)


@storage_operation("update daily summary")
async def update_summary(user_id: str, summary_id: str, patch: dict) -> dict:
    updates, params = _assignments(patch, SUMMARY_PATCHABLE)
    if not updates:
        return await get_summary_by_id(user_id, summary_id)
    updates.append("updated_at = :updated_at")
    params.update({"id": summary_id, "user_id": user_id, "updated_at": _utc_now_iso()})
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"UPDATE {DAILY_SUMMARY_TABLE} SET {', '.join(updates)} WHERE id = :id AND user_id = :user_id"
            ),
            params,
        )
        await session.commit()
    return await get_summary_by_id(user_id, summary_id)


@storage_operation("delete daily summary")
async def delete_summary(user_id: str, summary_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {DAILY_SUMMARY_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": summary_id, "user_id": user_id},
        )
        await session.commit()
    return (result.rowcount or 0) > 0


@storage_operation("load daily summaries")
async def list_recent_summaries(user_id: str, limit: int = 7) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(SUMMARY_COLUMNS)}
                FROM {DAILY_SUMMARY_TABLE}
                WHERE user_id = :user_id
                ORDER BY summary_date DESC
                LIMIT :limit
                """
            ),
            {"user_id": user_id, "limit": int(limit)},
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


# Goals


@storage_operation("load goal")
async def get_goal(user_id: str, goal_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {', '.join(GOAL_COLUMNS)} FROM {GOALS_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": goal_id, "user_id": user_id},
        )).mappings().fetchone()
    return _normalize_row(row)


@storage_operation("load goals")
async def list_goals(user_id: str, status: str | None = "active") -> list[dict]:
    where = "user_id = :user_id"
    params = {"user_id": user_id}
    if status:
        where += " AND status = :status"
        params["status"] = status
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(GOAL_COLUMNS)}
                FROM {GOALS_TABLE}
                WHERE {where}
                ORDER BY target_date ASC, created_at ASC
                """
            ),
            params,
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


@storage_operation("save goal")
async def create_goal(user_id: str, payload: dict) -> dict:
    now_iso = _utc_now_iso()
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "title": payload["title"],
        "description": payload.get("description"),
        "goal_type": payload["goal_type"],
        "target_date": _encode_value("target_date", payload.get("target_date")),
        "progress_percentage": int(payload.get("progress_percentage") or 0),
        "status": payload.get("status") or "active",
        "created_at": now_iso,
        "updated_at": now_iso,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {GOALS_TABLE} ({', '.join(GOAL_COLUMNS)})
                VALUES ({', '.join(f':{col}' for col in GOAL_COLUMNS)})
                """
            ),
            record,
        )
        await session.commit()
    return record


@storage_operation("update goal")
async def update_goal(user_id: str, goal_id: str, patch: dict) -> dict:
    updates, params = _assignments(patch, GOAL_PATCHABLE)
    if not updates:
        return await get_goal(user_id, goal_id)
    updates.append("updated_at = :updated_at")
    params.update({"id": goal_id, "user_id": user_id, "updated_at": _utc_now_iso()})
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"UPDATE {GOALS_TABLE} SET {', '.join(updates)} WHERE id = :id AND user_id = :user_id"),
            params,
        )
        await session.commit()
    return await get_goal(user_id, goal_id)


@storage_operation("delete goal")
async def delete_goal(user_id: str, goal_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {GOALS_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": goal_id, "user_id": user_id},
        )
        await session.commit()
    return (result.rowcount or 0) > 0
