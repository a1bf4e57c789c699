from __future__ import annotations

import math


def _number(value):
    """None for missing values, including NaN cells from summary frames."""
    if value is None:
        return None
    value = float(value)
    return None if math.isnan(value) else value


def completion_percent(buckets):
    completed = len(buckets.get("completed", []) or [])
    total = completed + len(buckets.get("pending", []) or []) + len(buckets.get("upcoming", []) or [])
    return round(completed / total * 100, 1) if total > 0 else 0.0


def indicator_percent(indicators):
    """Same as completion_percent, from the bootstrap counts."""
    indicators = indicators or {}
    completed = int(indicators.get("completed", 0) or 0)
    total = completed + int(indicators.get("pending", 0) or 0) + int(indicators.get("upcoming", 0) or 0)
    return round(completed / total * 100, 1) if total > 0 else 0.0


def compute_wellness_score(summary, completion=0.0):
    """0-100 blend of sleep, hydration, movement, stress and habit completion."""
    summary = summary or {}
    sleep_hours = _number(summary.get("sleep_hours")) or 0
    water_ml = _number(summary.get("total_water_ml")) or 0
    steps = _number(summary.get("total_steps")) or 0
    stress = _number(summary.get("avg_stress_level"))

    if 7 <= sleep_hours <= 9:
        sleep_score = 100
    elif sleep_hours < 7:
        sleep_score = max(0, sleep_hours / 7 * 100)
    else:
        sleep_score = max(0, 100 - (sleep_hours - 9) * 25)
    water_score = min(water_ml, 2000) / 2000 * 100
    steps_score = min(steps, 8000) / 8000 * 100
    stress_score = 50 if stress is None else max(0, (10 - stress) / 9 * 100)

    score = (
        sleep_score * 0.3
        + water_score * 0.15
        + steps_score * 0.2
        + stress_score * 0.15
        + float(completion or 0) * 0.2
    )
    return round(score, 1)


def progress_label(item, value=None):
    current = item.get("current_value", 0) if value is None else value
    target = item.get("target_value")
    if not target:
        return str(current)
    return f"{current}/{target}"
