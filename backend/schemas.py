from __future__ import annotations

import re
from datetime import date
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.services.calendar_math import canonical_weekday_name, weekday_from_name

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

TrackableType = Literal["DAILY_HABIT", "ONE_TIME", "PROGRESS"]
TrackableStatus = Literal["active", "completed", "archived"]
ResetFrequency = Literal["daily", "weekly", "none"]
Priority = Literal["low", "medium", "high"]


class RecurrenceRulePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    frequency: Literal["daily", "weekly", "monthly"]
    interval: int = Field(1, ge=1, le=52)
    days_of_week: List[int] = Field(default_factory=list, alias="daysOfWeek")
    end_date: Optional[date] = Field(None, alias="endDate")

    @field_validator("days_of_week")
    @classmethod
    def _check_days(cls, value: List[int]) -> List[int]:
        for item in value:
            if not 0 <= item <= 6:
                raise ValueError("daysOfWeek entries must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(value))

    def stored(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class _TrackableFields(BaseModel):
    @field_validator("scheduled_time", check_fields=False)
    @classmethod
    def _check_time(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        value = value.strip()
        if not TIME_PATTERN.match(value):
            raise ValueError("scheduled_time must be HH:MM (24h)")
        hours, minutes = value.split(":")
        return f"{int(hours):02d}:{minutes}"

    @field_validator("selected_days", check_fields=False)
    @classmethod
    def _check_days(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        indexes = []
        for name in value:
            index = weekday_from_name(name)
            if index is None:
                raise ValueError(f"unknown weekday name: {name}")
            if index not in indexes:
                indexes.append(index)
        return [canonical_weekday_name(index) for index in sorted(indexes)]

    def storage_payload(self, **dump_kwargs) -> dict:
        payload = self.model_dump(**dump_kwargs)
        for key in ("start_date", "end_date", "scheduled_date"):
            if isinstance(payload.get(key), date):
                payload[key] = payload[key].isoformat()
        rule = getattr(self, "recurrence_rule", None)
        if "recurrence_rule" in payload:
            payload["recurrence_rule"] = rule.stored() if rule is not None else None
        return payload


class TrackableCreate(_TrackableFields):
    title: str = Field(..., min_length=1, max_length=200)
    type: TrackableType
    target_value: Optional[int] = Field(None, gt=0)
    reset_frequency: ResetFrequency = "none"
    priority: Optional[Priority] = None
    category: Optional[Literal["task", "habit"]] = None
    scheduled_time: Optional[str] = None
    selected_days: Optional[List[str]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    scheduled_date: Optional[date] = None
    is_recurring: Optional[bool] = None
    recurrence_rule: Optional[RecurrenceRulePayload] = None


class TrackablePatch(_TrackableFields):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[TrackableType] = None
    status: Optional[TrackableStatus] = None
    target_value: Optional[int] = Field(None, gt=0)
    reset_frequency: Optional[ResetFrequency] = None
    priority: Optional[Priority] = None
    category: Optional[Literal["task", "habit"]] = None
    scheduled_time: Optional[str] = None
    selected_days: Optional[List[str]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    scheduled_date: Optional[date] = None
    is_recurring: Optional[bool] = None
    recurrence_rule: Optional[RecurrenceRulePayload] = None


class AmountPayload(BaseModel):
    amount: int = Field(1, ge=1, le=100)


# Health logs


class _DayLog(BaseModel):
    log_date: Optional[date] = None


class WaterLog(_DayLog):
    amount_ml: int = Field(..., gt=0)
    notes: Optional[str] = None


class HeartRateLog(_DayLog):
    heart_rate: int = Field(..., ge=30, le=220)
    notes: Optional[str] = None


class SleepLog(_DayLog):
    sleep_duration: float = Field(..., gt=0, le=24)
    sleep_quality: Optional[Literal["poor", "fair", "good", "excellent"]] = None
    rem_duration: Optional[float] = Field(None, ge=0, le=24)
    light_sleep_duration: Optional[float] = Field(None, ge=0, le=24)
    deep_sleep_duration: Optional[float] = Field(None, ge=0, le=24)
    sleep_efficiency: Optional[float] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class NutritionLog(_DayLog):
    food_name: Optional[str] = None
    meal_type: Optional[Literal["breakfast", "lunch", "dinner", "snack"]] = None
    calories: Optional[int] = Field(None, ge=0)
    protein_g: Optional[float] = Field(None, ge=0)
    carbs_g: Optional[float] = Field(None, ge=0)
    fat_g: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class AlcoholLog(_DayLog):
    drink_type: str = Field(..., min_length=1)
    amount_ml: Optional[int] = Field(None, gt=0)
    alcohol_percentage: Optional[float] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class CaffeineLog(_DayLog):
    source: str = Field(..., min_length=1)
    caffeine_mg: int = Field(..., gt=0)
    notes: Optional[str] = None


class SmokingLog(_DayLog):
    cigarettes_count: int = Field(..., ge=1)
    notes: Optional[str] = None


class StepsLog(_DayLog):
    steps_count: int = Field(..., ge=0)
    distance_km: Optional[float] = Field(None, ge=0)
    calories_burned: Optional[int] = Field(None, ge=0)


class ExerciseLog(_DayLog):
    exercise_type: str = Field(..., min_length=1)
    duration_minutes: int = Field(..., gt=0)
    intensity: Optional[Literal["low", "moderate", "high"]] = None
    calories_burned: Optional[int] = Field(None, ge=0)
    distance_km: Optional[float] = Field(None, ge=0)
    heart_rate_avg: Optional[int] = Field(None, ge=30, le=220)
    heart_rate_max: Optional[int] = Field(None, ge=30, le=220)
    notes: Optional[str] = None


class BodyMeasurementLog(_DayLog):
    weight_kg: Optional[float] = Field(None, gt=0)
    height_cm: Optional[float] = Field(None, gt=0)
    body_fat_percentage: Optional[float] = Field(None, ge=0, le=100)
    waist_cm: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = None


class MedicationLog(_DayLog):
    medication_name: str = Field(..., min_length=1)
    dosage: Optional[str] = None
    taken: bool = True
    notes: Optional[str] = None


class SymptomLog(_DayLog):
    symptom_name: str = Field(..., min_length=1)
    severity: Optional[int] = Field(None, ge=1, le=10)
    notes: Optional[str] = None


class PainLog(_DayLog):
    pain_level: int = Field(..., ge=1, le=10)
    location: str = Field(..., min_length=1)
    notes: Optional[str] = None


class EnergyLog(_DayLog):
    energy_level: int = Field(..., ge=1, le=10)
    time_of_day: Optional[Literal["morning", "afternoon", "evening", "night"]] = None
    factors: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class StressLog(_DayLog):
    stress_level: int = Field(..., ge=1, le=10)
    source: Optional[str] = None
    coping_method: Optional[str] = None
    notes: Optional[str] = None


# Daily summary


class SummaryPatch(BaseModel):
    ongoing_conditions: Optional[List[str]] = None
    notes: Optional[str] = None
    symptoms: Optional[List[str]] = None
    medications_taken: Optional[List[str]] = None
    overall_wellness_score: Optional[int] = Field(None, ge=1, le=10)
    is_completed: Optional[bool] = None


class CarryOverDecision(BaseModel):
    accept: bool


# Mental


class MoodLog(_DayLog):
    mood_score: int = Field(..., ge=1, le=10)
    mood_label: Optional[str] = None
    notes: Optional[str] = None


class MotivationLog(_DayLog):
    motivation_score: int = Field(..., ge=1, le=10)
    notes: Optional[str] = None


class MeditationLog(_DayLog):
    duration_minutes: int = Field(..., gt=0)
    meditation_type: Literal["breathing", "mindfulness", "guided", "other"] = "other"
    notes: Optional[str] = None


class JournalEntry(_DayLog):
    title: Optional[str] = Field(None, max_length=200)
    content: str = Field(..., min_length=1)
    mood_before: Optional[int] = Field(None, ge=1, le=10)
    mood_after: Optional[int] = Field(None, ge=1, le=10)
    tags: List[str] = Field(default_factory=list)


# Productivity


class PomodoroLog(_DayLog):
    duration_minutes: int = Field(..., ge=1, le=60)
    task_title: Optional[str] = None
    completed: bool = True


class FocusLog(_DayLog):
    duration_minutes: int = Field(..., gt=0)
    distractions: int = Field(0, ge=0)
    notes: Optional[str] = None


class GoalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    goal_type: Literal["weekly", "monthly", "yearly"]
    target_date: Optional[date] = None
    progress_percentage: int = Field(0, ge=0, le=100)


class GoalPatch(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    goal_type: Optional[Literal["weekly", "monthly", "yearly"]] = None
    target_date: Optional[date] = None
    progress_percentage: Optional[int] = Field(None, ge=0, le=100)
    status: Optional[Literal["active", "completed", "archived"]] = None


# Finance


class ExpenseLog(_DayLog):
    amount: float = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    description: Optional[str] = None


class IncomeLog(_DayLog):
    amount: float = Field(..., gt=0)
    source: Optional[str] = None
    description: Optional[str] = None
