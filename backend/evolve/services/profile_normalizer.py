"""Normalize caller-supplied profile payloads into a canonical Profile."""
from __future__ import annotations

import math
import re
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from evolve.api.schemas.plan import DEFAULT_CALORIE_TARGET, Profile

LB_PER_KG = 2.20462
CM_PER_INCH = 2.54

# canonical field -> accepted input keys, first match wins
NUMERIC_ALIASES: Dict[str, Tuple[str, ...]] = {
    "age": ("age",),
    "calorie_target": ("calorie_target", "calories", "kcal_target", "calorieTarget"),
    "sleep_hours": ("sleep_hours", "sleep", "sleepHours"),
    "days_per_week": ("days_per_week", "training_days", "daysPerWeek"),
}
CATEGORICAL_ALIASES: Dict[str, Tuple[str, ...]] = {
    "sex": ("sex", "gender"),
    "goal": ("goal",),
    "activity_level": ("activity_level", "activity", "activityLevel"),
    "diet_style": ("diet_style", "diet", "dietStyle"),
    "equipment_access": ("equipment_access", "equipmentAccess", "gym_access"),
    "stress_level": ("stress_level", "stress", "stressLevel"),
}
SET_ALIASES: Dict[str, Tuple[str, ...]] = {
    "sports": ("sports",),
    "equipment": ("equipment",),
    "injuries": ("injuries",),
    "medical_conditions": ("medical_conditions", "conditions", "medical", "medicalConditions"),
    "allergies": ("allergies",),
    "dislikes": ("dislikes", "food_dislikes", "foodDislikes"),
}

_SPLIT_PATTERN = re.compile(r"[,;\n]")
_NONE_TOKENS = {"", "none", "n/a", "na", "no", "nil", "-"}


def normalize(raw: Any) -> Profile:
    """Map an arbitrary payload onto a Profile; unknown or invalid values fall back to defaults."""
    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    age = _positive_int(_first(data, NUMERIC_ALIASES["age"]))
    calorie_target = _positive_int(_first(data, NUMERIC_ALIASES["calorie_target"])) or DEFAULT_CALORIE_TARGET
    sleep_hours = _positive_float(_first(data, NUMERIC_ALIASES["sleep_hours"]))
    days_per_week = _positive_int(_first(data, NUMERIC_ALIASES["days_per_week"]))
    if days_per_week is not None:
        days_per_week = min(days_per_week, 7)

    categorical = {name: _category(_first(data, keys)) for name, keys in CATEGORICAL_ALIASES.items()}
    sets = {name: _string_set(_first(data, keys)) for name, keys in SET_ALIASES.items()}

    return Profile(
        age=age,
        height_cm=_height_cm(data),
        weight_kg=_weight_kg(data),
        calorie_target=calorie_target,
        sleep_hours=sleep_hours,
        days_per_week=days_per_week,
        **categorical,
        **sets,
    )


def kg_to_lb(kg: float) -> float:
    return round(kg * LB_PER_KG, 1)


def cm_to_inches(cm: float) -> float:
    return round(cm / CM_PER_INCH, 1)


def _weight_kg(data: Mapping[str, Any]) -> Optional[float]:
    kg = _positive_float(_first(data, ("weight_kg", "weightKg", "weight")))
    if kg is not None:
        return round(kg, 1)
    pounds = _positive_float(_first(data, ("weight_lb", "weight_lbs", "weightLb", "weightLbs")))
    if pounds is not None:
        return round(pounds / LB_PER_KG, 1)
    return None


def _height_cm(data: Mapping[str, Any]) -> Optional[float]:
    cm = _positive_float(_first(data, ("height_cm", "heightCm", "height")))
    if cm is not None:
        return round(cm, 1)
    feet = _positive_float(_first(data, ("height_ft", "heightFt")))
    inches = _positive_float(_first(data, ("height_in", "heightIn")))
    if feet is None and inches is None:
        return None
    total_cm = ((feet or 0.0) * 12 + (inches or 0.0)) * CM_PER_INCH
    return round(total_cm, 1) if math.isfinite(total_cm) else None


def _first(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def _positive_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def _positive_int(value: Any) -> Optional[int]:
    number = _positive_float(value)
    if number is None:
        return None
    return int(round(number)) or None


def _category(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def _string_set(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items: Iterable[Any] = _SPLIT_PATTERN.split(value)
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = value
    else:
        return ()
    cleaned = {str(item).strip() for item in items if item is not None and not isinstance(item, (dict, list))}
    return tuple(sorted(item for item in cleaned if item.lower() not in _NONE_TOKENS))
