"""Schemas for profiles and generated training/meal plans."""
from __future__ import annotations

from typing import Any, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

Focus = Literal["upper", "lower", "full", "recovery", "conditioning", "hypertrophy", "power", "mobility"]
FOCUS_VALUES: Tuple[str, ...] = ("upper", "lower", "full", "recovery", "conditioning", "hypertrophy", "power", "mobility")

DEFAULT_CALORIE_TARGET = 2200


class Profile(BaseModel):
    """Canonical user profile; built by the profile normalizer, never mutated."""

    model_config = ConfigDict(frozen=True)

    age: Optional[int] = None
    height_cm: Optional[float] = None
    weight_kg: Optional[float] = None
    calorie_target: int = DEFAULT_CALORIE_TARGET
    sleep_hours: Optional[float] = None
    days_per_week: Optional[int] = None

    sex: str = ""
    goal: str = ""
    activity_level: str = ""
    diet_style: str = ""
    equipment_access: str = ""
    stress_level: str = ""

    sports: Tuple[str, ...] = ()
    equipment: Tuple[str, ...] = ()
    injuries: Tuple[str, ...] = ()
    medical_conditions: Tuple[str, ...] = ()
    allergies: Tuple[str, ...] = ()
    dislikes: Tuple[str, ...] = ()


class WorkoutItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    exercise: str
    sets: int = Field(..., ge=0)
    reps: str
    rest_sec: int = Field(..., ge=0)
    notes: Optional[str] = None

    @field_validator("reps", mode="before")
    @classmethod
    def coerce_reps(cls, value: Any) -> Any:
        # models regularly emit "reps": 10 instead of "10"
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class MealItem(BaseModel):
    # json.loads accepts Infinity/NaN, which the response encoder then rejects
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    name: str
    kcal: float = Field(..., ge=0)
    protein_g: float = Field(..., ge=0)
    carbs_g: float = Field(..., ge=0)
    fat_g: float = Field(..., ge=0)
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)


class DayPlan(BaseModel):
    model_config = ConfigDict(extra="ignore")

    day: int = Field(..., ge=1, le=7)
    focus: Focus
    workouts: List[WorkoutItem] = Field(default_factory=list)
    meals: List[MealItem] = Field(default_factory=list)

    @field_validator("focus", mode="before")
    @classmethod
    def normalize_focus(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class PlanMetadata(BaseModel):
    """Diagnostics attached to a plan; tells real model output from degraded output."""

    model: str
    retry: bool = False
    fallback: bool = False
    reason: Optional[str] = None
    error: Optional[str] = None
    raw: Optional[str] = None
    request_id: Optional[str] = None


class Plan(BaseModel):
    """Weekly training and meal plan returned to callers."""

    model_config = ConfigDict(extra="ignore")

    week: List[DayPlan] = Field(..., min_length=1, max_length=7)
    notes: str = ""
    meta: Optional[PlanMetadata] = None

    @field_validator("notes", mode="before")
    @classmethod
    def coerce_notes(cls, value: Any) -> Any:
        return "" if value is None else value

    def with_meta(self, meta: PlanMetadata) -> "Plan":
        return self.model_copy(update={"meta": meta})


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    reason: Optional[str] = None
    raw: Optional[str] = None
