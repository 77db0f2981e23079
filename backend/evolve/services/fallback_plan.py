"""Deterministic, network-free plan used when model output cannot be trusted."""
from __future__ import annotations

import re
from typing import Dict, List, Tuple

from evolve.api.schemas.plan import DayPlan, MealItem, Plan, PlanMetadata, Profile, WorkoutItem

# breakfast / lunch / dinner share of the daily calorie target
MEAL_SPLIT: Tuple[float, ...] = (0.25, 0.40, 0.35)
# protein / carbs / fat share of each meal's kcal
MACRO_SPLIT = (0.30, 0.40, 0.30)

BODYWEIGHT_ACCESS = {"none", "bodyweight", "home", "no equipment"}
DIET_NEGATIONS = {"non", "not", "no"}
_DIET_TOKEN_PATTERN = re.compile(r"[\s,/-]+")

GYM_WORKOUTS: List[Dict[str, object]] = [
    {"exercise": "Goblet Squat", "sets": 4, "reps": "8-10", "rest_sec": 90},
    {"exercise": "Romanian Deadlift", "sets": 3, "reps": "8-10", "rest_sec": 90},
    {"exercise": "Dumbbell Bench Press", "sets": 4, "reps": "8-10", "rest_sec": 75},
    {"exercise": "One-Arm Dumbbell Row", "sets": 3, "reps": "10-12", "rest_sec": 60},
    {"exercise": "Reverse Lunge", "sets": 3, "reps": "10 per leg", "rest_sec": 60},
    {"exercise": "Plank", "sets": 3, "reps": "45s", "rest_sec": 45},
]

BODYWEIGHT_WORKOUTS: List[Dict[str, object]] = [
    {"exercise": "Bodyweight Squat", "sets": 4, "reps": "15", "rest_sec": 60},
    {"exercise": "Push-Up", "sets": 4, "reps": "AMRAP", "rest_sec": 60},
    {"exercise": "Glute Bridge", "sets": 3, "reps": "15", "rest_sec": 45},
    {"exercise": "Inverted Row (table)", "sets": 3, "reps": "8-12", "rest_sec": 60},
    {"exercise": "Reverse Lunge", "sets": 3, "reps": "10 per leg", "rest_sec": 60},
    {"exercise": "Plank", "sets": 3, "reps": "45s", "rest_sec": 45},
]

MEAL_TEMPLATES: Dict[str, List[Dict[str, object]]] = {
    "default": [
        {
            "name": "Spinach Omelet with Avocado Toast",
            "ingredients": ["eggs", "spinach", "avocado", "whole-grain bread"],
            "instructions": ["Whisk eggs", "Cook with spinach", "Serve with avocado toast"],
        },
        {
            "name": "Chicken, Rice and Greens Bowl",
            "ingredients": ["chicken breast", "brown rice", "broccoli", "olive oil"],
            "instructions": ["Cook rice", "Grill chicken", "Steam broccoli", "Assemble and drizzle with oil"],
        },
        {
            "name": "Baked Salmon with Sweet Potato",
            "ingredients": ["salmon fillet", "sweet potato", "green beans", "lemon"],
            "instructions": ["Roast sweet potato", "Bake salmon 12-15 min", "Steam beans", "Finish with lemon"],
        },
    ],
    "vegetarian": [
        {
            "name": "Greek Yogurt Oats with Berries",
            "ingredients": ["rolled oats", "greek yogurt", "berries", "walnuts"],
            "instructions": ["Cook oats", "Top with yogurt, berries and walnuts"],
        },
        {
            "name": "Halloumi and Quinoa Salad",
            "ingredients": ["halloumi", "quinoa", "cucumber", "tomato", "olive oil"],
            "instructions": ["Cook quinoa", "Grill halloumi", "Toss with vegetables and oil"],
        },
        {
            "name": "Egg and Vegetable Fried Rice",
            "ingredients": ["eggs", "brown rice", "mixed vegetables", "soy sauce"],
            "instructions": ["Scramble eggs", "Stir-fry vegetables", "Add rice and soy sauce"],
        },
    ],
    "vegan": [
        {
            "name": "Tofu Scramble with Toast",
            "ingredients": ["firm tofu", "spinach", "turmeric", "whole-grain bread"],
            "instructions": ["Crumble tofu", "Cook with spinach and turmeric", "Serve with toast"],
        },
        {
            "name": "Lentil and Quinoa Bowl",
            "ingredients": ["lentils", "quinoa", "roasted peppers", "tahini"],
            "instructions": ["Cook lentils and quinoa", "Top with peppers", "Drizzle with tahini"],
        },
        {
            "name": "Chickpea Curry with Rice",
            "ingredients": ["chickpeas", "coconut milk", "tomatoes", "brown rice"],
            "instructions": ["Simmer chickpeas with tomatoes and coconut milk", "Serve over rice"],
        },
    ],
}


def fallback(profile: Profile, meta: PlanMetadata) -> Plan:
    """Build a single schema-valid day from hand-authored templates; always succeeds."""
    day = DayPlan(
        day=1,
        focus="full",
        workouts=[WorkoutItem(**item) for item in _workout_template(profile)],
        meals=_meals(profile),
    )
    diet_style = profile.diet_style or "balanced"
    notes = (
        f"Fallback plan: a full-body session and {diet_style} meals sized to "
        f"{profile.calorie_target} kcal. Live generation was unavailable ({meta.reason or 'unknown'}); "
        "try again shortly for a complete week."
    )
    return Plan(week=[day], notes=notes, meta=meta.model_copy(update={"fallback": True}))


def meal_calories(calorie_target: int) -> List[int]:
    """Split the target across meals; the last meal absorbs rounding so the sum is exact."""
    calories = [int(round(calorie_target * share)) for share in MEAL_SPLIT[:-1]]
    calories.append(calorie_target - sum(calories))
    return calories


def _workout_template(profile: Profile) -> List[Dict[str, object]]:
    if profile.equipment_access in BODYWEIGHT_ACCESS:
        return BODYWEIGHT_WORKOUTS
    return GYM_WORKOUTS


def _meal_template(diet_style: str) -> List[Dict[str, object]]:
    tokens = _DIET_TOKEN_PATTERN.split(diet_style)
    for key in ("vegan", "vegetarian"):
        for index, token in enumerate(tokens):
            # "non-vegetarian" and "not vegan" negate the style
            if token == key and (index == 0 or tokens[index - 1] not in DIET_NEGATIONS):
                return MEAL_TEMPLATES[key]
    return MEAL_TEMPLATES["default"]


def _meals(profile: Profile) -> List[MealItem]:
    protein_share, carb_share, fat_share = MACRO_SPLIT
    meals: List[MealItem] = []
    for template, kcal in zip(_meal_template(profile.diet_style), meal_calories(profile.calorie_target)):
        meals.append(
            MealItem(
                kcal=kcal,
                protein_g=round(kcal * protein_share / 4),
                carbs_g=round(kcal * carb_share / 4),
                fat_g=round(kcal * fat_share / 9),
                **template,
            )
        )
    return meals
