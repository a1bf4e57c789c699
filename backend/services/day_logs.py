from __future__ import annotations

import logging
from datetime import date

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError as PydanticValidationError

from backend import repositories, schemas
from backend.errors import NotFoundError

logger = logging.getLogger(__name__)

# area -> kind (URL segment) -> (table, payload model)
LOG_KINDS: dict[str, dict[str, tuple[str, type[BaseModel]]]] = {
    "health": {
        "water": ("water_intake", schemas.WaterLog),
        "heart-rate": ("health_metrics", schemas.HeartRateLog),
        "sleep": ("sleep_logs", schemas.SleepLog),
        "nutrition": ("nutrition_logs", schemas.NutritionLog),
        "alcohol": ("alcohol_logs", schemas.AlcoholLog),
        "caffeine": ("caffeine_logs", schemas.CaffeineLog),
        "smoking": ("smoking_logs", schemas.SmokingLog),
        "steps": ("steps_logs", schemas.StepsLog),
        "exercise": ("exercise_logs", schemas.ExerciseLog),
        "body": ("body_measurements", schemas.BodyMeasurementLog),
        "medication": ("medication_logs", schemas.MedicationLog),
        "symptom": ("symptom_logs", schemas.SymptomLog),
        "pain": ("pain_logs", schemas.PainLog),
        "energy": ("energy_logs", schemas.EnergyLog),
        "stress": ("stress_logs", schemas.StressLog),
    },
    "mental": {
        "mood": ("mood_logs", schemas.MoodLog),
        "motivation": ("motivation_logs", schemas.MotivationLog),
        "meditation": ("meditation_sessions", schemas.MeditationLog),
        "journal": ("journal_entries", schemas.JournalEntry),
    },
    "productivity": {
        "pomodoro": ("pomodoro_sessions", schemas.PomodoroLog),
        "focus": ("focus_sessions", schemas.FocusLog),
    },
    "finance": {
        "expenses": ("expenses", schemas.ExpenseLog),
        "income": ("income", schemas.IncomeLog),
    },
}


def resolve_kind(area: str, kind: str) -> tuple[str, type[BaseModel]]:
    try:
        return LOG_KINDS[area][kind]
    except KeyError:
        raise NotFoundError("Log kind", f"{area}/{kind}") from None


def body_mass_index(weight_kg, height_cm):
    if not weight_kg or not height_cm:
        return None
    meters = float(height_cm) / 100
    return round(float(weight_kg) / (meters * meters), 1)


def _validated(model: type[BaseModel], body: dict) -> BaseModel:
    try:
        return model.model_validate(body or {})
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


async def record(area: str, kind: str, user_id: str, body: dict, today: date) -> dict:
    table, model = resolve_kind(area, kind)
    payload = _validated(model, body).model_dump(mode="json")
    log_date = payload.pop("log_date", None) or today.isoformat()
    if table == "body_measurements":
        payload["bmi"] = body_mass_index(payload.get("weight_kg"), payload.get("height_cm"))
    saved = await repositories.insert_log(table, user_id, log_date, payload)
    logger.info("Recorded %s entry %s for %s on %s", table, saved["id"], user_id, log_date)
    return saved


async def list_entries(area: str, kind: str, user_id: str, start: date, end: date) -> list[dict]:
    table, _ = resolve_kind(area, kind)
    return await repositories.list_logs(table, user_id, start.isoformat(), end.isoformat())


async def delete_entry(area: str, kind: str, user_id: str, log_id: str) -> None:
    table, _ = resolve_kind(area, kind)
    if not await repositories.delete_log(table, user_id, log_id):
        raise NotFoundError("Log entry", log_id)
