from __future__ import annotations

import logging

from sqlalchemy import text as sql_text

from backend.db import get_engine

logger = logging.getLogger(__name__)

TRACKABLES_TABLE = "trackables"
TRACKABLE_LOGS_TABLE = "trackable_logs"
DAILY_SUMMARY_TABLE = "daily_health_summary"
GOALS_TABLE = "goals"

# Append-only per-day log tables. Every table also gets id, user_id,
# log_date and created_at.
LOG_TABLES: dict[str, dict[str, str]] = {
    # health
    "water_intake": {"amount_ml": "INTEGER NOT NULL", "notes": "TEXT"},
    "health_metrics": {"heart_rate": "INTEGER NOT NULL", "notes": "TEXT"},
    "sleep_logs": {
        "sleep_duration": "REAL NOT NULL",
        "sleep_quality": "TEXT",
        "rem_duration": "REAL",
        "light_sleep_duration": "REAL",
        "deep_sleep_duration": "REAL",
        "sleep_efficiency": "REAL",
        "notes": "TEXT",
    },
    "nutrition_logs": {
        "food_name": "TEXT",
        "meal_type": "TEXT",
        "calories": "INTEGER",
        "protein_g": "REAL",
        "carbs_g": "REAL",
        "fat_g": "REAL",
        "notes": "TEXT",
    },
    "alcohol_logs": {
        "drink_type": "TEXT NOT NULL",
        "amount_ml": "INTEGER",
        "alcohol_percentage": "REAL",
        "notes": "TEXT",
    },
    "caffeine_logs": {"source": "TEXT NOT NULL", "caffeine_mg": "INTEGER NOT NULL", "notes": "TEXT"},
    "smoking_logs": {"cigarettes_count": "INTEGER NOT NULL", "notes": "TEXT"},
    "steps_logs": {"steps_count": "INTEGER NOT NULL", "distance_km": "REAL", "calories_burned": "INTEGER"},
    "exercise_logs": {
        "exercise_type": "TEXT NOT NULL",
        "duration_minutes": "INTEGER NOT NULL",
        "intensity": "TEXT",
        "calories_burned": "INTEGER",
        "distance_km": "REAL",
        "heart_rate_avg": "INTEGER",
        "heart_rate_max": "INTEGER",
        "notes": "TEXT",
    },
    "body_measurements": {
        "weight_kg": "REAL",
        "height_cm": "REAL",
        "bmi": "REAL",
        "body_fat_percentage": "REAL",
        "waist_cm": "REAL",
        "notes": "TEXT",
    },
    "medication_logs": {"medication_name": "TEXT NOT NULL", "dosage": "TEXT", "taken": "INTEGER DEFAULT 1", "notes": "TEXT"},
    "symptom_logs": {"symptom_name": "TEXT NOT NULL", "severity": "INTEGER", "notes": "TEXT"},
    "pain_logs": {"pain_level": "INTEGER NOT NULL", "location": "TEXT NOT NULL", "notes": "TEXT"},
    "energy_logs": {"energy_level": "INTEGER NOT NULL", "time_of_day": "TEXT", "factors": "TEXT", "notes": "TEXT"},
    "stress_logs": {"stress_level": "INTEGER NOT NULL", "source": "TEXT", "coping_method": "TEXT", "notes": "TEXT"},
    # mental
    "mood_logs": {"mood_score": "INTEGER NOT NULL", "mood_label": "TEXT", "notes": "TEXT"},
    "motivation_logs": {"motivation_score": "INTEGER NOT NULL", "notes": "TEXT"},
    "meditation_sessions": {"duration_minutes": "INTEGER NOT NULL", "meditation_type": "TEXT", "notes": "TEXT"},
    "journal_entries": {
        "title": "TEXT",
        "content": "TEXT NOT NULL",
        "mood_before": "INTEGER",
        "mood_after": "INTEGER",
        "tags": "TEXT",
    },
    # productivity
    "pomodoro_sessions": {"duration_minutes": "INTEGER NOT NULL", "task_title": "TEXT", "completed": "INTEGER DEFAULT 1"},
    "focus_sessions": {"duration_minutes": "INTEGER NOT NULL", "distractions": "INTEGER DEFAULT 0", "notes": "TEXT"},
    # finance
    "expenses": {"amount": "REAL NOT NULL", "category": "TEXT NOT NULL", "description": "TEXT"},
    "income": {"amount": "REAL NOT NULL", "source": "TEXT", "description": "TEXT"},
}

# Columns stored as JSON text.
JSON_COLUMNS = {
    "selected_days",
    "recurrence_rule",
    "factors",
    "tags",
    "ongoing_conditions",
    "carry_over_candidates",
    "symptoms",
    "medications_taken",
}

# Columns stored as 0/1 integers.
BOOL_COLUMNS = {"is_recurring", "taken", "completed", "is_completed", "carried_over_conditions"}


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {TRACKABLES_TABLE} (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    type TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'active',
                    current_value INTEGER NOT NULL DEFAULT 0,
                    target_value INTEGER,
                    last_completed_at TEXT,
                    reset_frequency TEXT NOT NULL DEFAULT 'none',
                    priority TEXT,
                    category TEXT,
                    scheduled_time TEXT,
                    selected_days TEXT,
                    start_date TEXT,
                    end_date TEXT,
                    scheduled_date TEXT,
                    is_recurring INTEGER DEFAULT 0,
                    recurrence_rule TEXT,
                    created_at TEXT,
                    updated_at TEXT,
                    CHECK (current_value >= 0)
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {TRACKABLE_LOGS_TABLE} (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    trackable_id TEXT NOT NULL,
                    action TEXT NOT NULL,
                    previous_value INTEGER,
                    new_value INTEGER,
                    created_at TEXT NOT NULL
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {DAILY_SUMMARY_TABLE} (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    summary_date TEXT NOT NULL,
                    ongoing_conditions TEXT,
                    carry_over_candidates TEXT,
                    carry_over_status TEXT DEFAULT 'none',
                    carried_over_conditions INTEGER DEFAULT 0,
                    is_completed INTEGER DEFAULT 0,
                    overall_wellness_score INTEGER,
                    notes TEXT,
                    symptoms TEXT,
                    medications_taken TEXT,
                    total_steps INTEGER DEFAULT 0,
                    total_exercise_minutes INTEGER DEFAULT 0,
                    total_water_ml INTEGER DEFAULT 0,
                    total_calories INTEGER DEFAULT 0,
                    sleep_hours REAL,
                    sleep_quality TEXT,
                    avg_heart_rate INTEGER,
                    avg_energy_level REAL,
                    avg_stress_level REAL,
                    cigarettes_count INTEGER DEFAULT 0,
                    alcohol_drinks INTEGER DEFAULT 0,
                    caffeine_mg INTEGER DEFAULT 0,
                    created_at TEXT,
                    updated_at TEXT,
                    UNIQUE (user_id, summary_date)
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {GOALS_TABLE} (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT,
                    goal_type TEXT NOT NULL,
                    target_date TEXT,
                    progress_percentage INTEGER DEFAULT 0,
                    status TEXT DEFAULT 'active',
                    created_at TEXT,
                    updated_at TEXT
                )
                """
            )
        )
        for table_name, columns in LOG_TABLES.items():
            column_ddl = ",\n".join(f"{name} {ddl}" for name, ddl in columns.items())
            await conn.execute(
                sql_text(
                    f"""
                    CREATE TABLE IF NOT EXISTS {table_name} (
                        id TEXT PRIMARY KEY,
                        user_id TEXT NOT NULL,
                        log_date TEXT NOT NULL,
                        {column_ddl},
                        created_at TEXT
                    )
                    """
                )
            )

    async def ensure_column(table_name: str, column_name: str, column_ddl: str) -> None:
        try:
            async with engine.begin() as conn:
                await conn.execute(
                    sql_text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {column_ddl}")
                )
        except Exception:
            logger.debug("Column %s.%s already present", table_name, column_name)

    async def ensure_index(index_sql: str) -> None:
        try:
            async with engine.begin() as conn:
                await conn.execute(sql_text(index_sql))
        except Exception:
            logger.warning("Could not create index: %s", index_sql)

    # Rows created before category/end_date existed.
    await ensure_column(TRACKABLES_TABLE, "category", "TEXT")
    await ensure_column(TRACKABLES_TABLE, "end_date", "TEXT")
    await ensure_column(DAILY_SUMMARY_TABLE, "carry_over_candidates", "TEXT")
    await ensure_column(DAILY_SUMMARY_TABLE, "carry_over_status", "TEXT DEFAULT 'none'")

    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{TRACKABLES_TABLE}_user_status "
        f"ON {TRACKABLES_TABLE} (user_id, status)"
    )
    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{TRACKABLE_LOGS_TABLE}_user_trackable "
        f"ON {TRACKABLE_LOGS_TABLE} (user_id, trackable_id, created_at)"
    )
    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{GOALS_TABLE}_user_status "
        f"ON {GOALS_TABLE} (user_id, status)"
    )
    for table_name in LOG_TABLES:
        await ensure_index(
            f"CREATE INDEX IF NOT EXISTS idx_{table_name}_user_date "
            f"ON {table_name} (user_id, log_date)"
        )
