"""Render the system and user instructions sent to the completion backend."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from evolve.api.schemas.plan import FOCUS_VALUES, Profile
from evolve.services.profile_normalizer import cm_to_inches, kg_to_lb

NONE_MARKER = "none"
UNSPECIFIED_MARKER = "not specified"

SYSTEM_PROMPT = (
    "You are Evolve.AI, an expert strength coach and sports nutritionist. "
    "You write professional-grade weekly training and meal plans tailored to one athlete. "
    "You answer with STRICT JSON only: no markdown fences, no commentary before or after the object."
)

PLAN_SCHEMA = (
    "{\n"
    '  "week": [\n'
    "    {\n"
    '      "day": <integer 1-7>,\n'
    f'      "focus": "{"|".join(FOCUS_VALUES)}",\n'
    '      "workouts": [{"exercise": "<string>", "sets": <integer>, "reps": "<string, e.g. 8-10 or 45s>", '
    '"rest_sec": <integer>, "notes": "<optional string>"}],\n'
    '      "meals": [{"name": "<string>", "kcal": <number>, "protein_g": <number>, "carbs_g": <number>, '
    '"fat_g": <number>, "ingredients": ["<string>"], "instructions": ["<string>"]}]\n'
    "    }\n"
    "  ],\n"
    '  "notes": "<short weekly guidance>"\n'
    "}"
)

STRICT_JSON_INSTRUCTION = (
    "IMPORTANT: your previous reply could not be used. Your reply must be only a single JSON object "
    "matching the schema above. Start with '{' and end with '}'. No prose, no markdown, no code fences."
)

LOW_SLEEP_HOURS = 7.0
HIGH_STRESS_LEVELS = {"high", "very high", "severe"}


@dataclass(frozen=True)
class PlanPrompt:
    system: str
    user: str

    def strict(self) -> "PlanPrompt":
        """Return the retry variant with the single-JSON-object instruction appended."""
        return PlanPrompt(system=self.system, user=f"{self.user}\n\n{STRICT_JSON_INSTRUCTION}")


def build(profile: Profile) -> PlanPrompt:
    """Deterministically render the prompt pair for a normalized profile."""
    user_prompt = (
        "Create a 7-day workout and meal plan for the athlete below.\n\n"
        "### ATHLETE PROFILE\n"
        f"{render_profile(profile)}\n\n"
        "### TRAINING RULES\n"
        f"{_training_rules(profile)}\n\n"
        "### NUTRITION RULES\n"
        f"{_nutrition_rules(profile)}\n\n"
        "### OUTPUT FORMAT\n"
        "Return STRICT JSON (no extra text) matching exactly this schema:\n"
        f"{PLAN_SCHEMA}\n"
        "Use 1-7 entries in \"week\", one per day, with \"day\" numbered from 1. "
        "Keep instructions concise. Return ONLY JSON."
    )
    return PlanPrompt(system=SYSTEM_PROMPT, user=user_prompt)


def render_profile(profile: Profile) -> str:
    lines = [
        f"- Age: {_number(profile.age, 'years')}",
        f"- Sex: {_text(profile.sex)}",
        f"- Height: {_height(profile.height_cm)}",
        f"- Weight: {_weight(profile.weight_kg)}",
        f"- Goal: {_text(profile.goal)}",
        f"- Activity level: {_text(profile.activity_level)}",
        f"- Training days per week: {_number(profile.days_per_week)}",
        f"- Sleep: {_number(profile.sleep_hours, 'hours per night')}",
        f"- Stress level: {_text(profile.stress_level)}",
        f"- Daily calorie target: {profile.calorie_target} kcal",
        f"- Diet style: {_text(profile.diet_style)}",
        f"- Equipment access: {_text(profile.equipment_access)}",
        f"- Available equipment: {_joined(profile.equipment)}",
        f"- Sports: {_joined(profile.sports)}",
        f"- Injuries: {_joined(profile.injuries)}",
        f"- Medical conditions: {_joined(profile.medical_conditions)}",
        f"- Allergies: {_joined(profile.allergies)}",
        f"- Food dislikes: {_joined(profile.dislikes)}",
    ]
    return "\n".join(lines)


def needs_recovery_emphasis(profile: Profile) -> bool:
    low_sleep = profile.sleep_hours is not None and profile.sleep_hours < LOW_SLEEP_HOURS
    return low_sleep or profile.stress_level in HIGH_STRESS_LEVELS


def _training_rules(profile: Profile) -> str:
    rules = [
        "- Program 6-7 movements on every training day.",
        "- Order each session with compound movements first, then accessory work.",
        "- Give every movement sets, reps (range or seconds) and rest in seconds.",
        "- Respect the available equipment; never prescribe equipment the athlete lacks.",
        "- Never silently drop a movement pattern because of an injury or medical condition: "
        "substitute a safe variation and explain the swap in that workout's \"notes\".",
        "- Include at least one recovery or mobility day when stress or sleep signals warrant it.",
    ]
    if profile.days_per_week:
        rules.append(f"- Schedule exactly {profile.days_per_week} training days; use recovery or mobility focus for the rest.")
    if needs_recovery_emphasis(profile):
        rules.append(
            "- This athlete reports short sleep or high stress: the week MUST contain at least one "
            "\"recovery\" or \"mobility\" day."
        )
    return "\n".join(rules)


def _nutrition_rules(profile: Profile) -> str:
    low = round(profile.calorie_target * 0.9)
    high = round(profile.calorie_target * 1.1)
    rules = [
        f"- Each day's meals must total {profile.calorie_target} kcal within ±10% ({low}-{high} kcal).",
        "- Macro grams must be consistent with each meal's kcal (4 kcal/g protein and carbs, 9 kcal/g fat).",
        f"- Every meal must fit the diet style: {_text(profile.diet_style)}.",
        f"- Exclude every allergen: {_joined(profile.allergies)}.",
        f"- Avoid disliked foods: {_joined(profile.dislikes)}.",
        "- List ingredients and short step-by-step instructions for every meal.",
    ]
    return "\n".join(rules)


def _text(value: str) -> str:
    return value if value else UNSPECIFIED_MARKER


def _joined(values: Iterable[str]) -> str:
    items = list(values)
    return ", ".join(items) if items else NONE_MARKER


def _number(value: Optional[float], unit: str = "") -> str:
    if value is None:
        return UNSPECIFIED_MARKER
    rendered = f"{value:g}"
    return f"{rendered} {unit}" if unit else rendered


def _height(height_cm: Optional[float]) -> str:
    if height_cm is None:
        return UNSPECIFIED_MARKER
    return f"{height_cm:g} cm ({cm_to_inches(height_cm):g} in)"


def _weight(weight_kg: Optional[float]) -> str:
    if weight_kg is None:
        return UNSPECIFIED_MARKER
    return f"{weight_kg:g} kg ({kg_to_lb(weight_kg):g} lb)"
