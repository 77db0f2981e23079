"""Tests for the deterministic fallback plan."""
from __future__ import annotations

import json

import pytest

from evolve.api.schemas.plan import Plan, PlanMetadata
from evolve.services.fallback_plan import fallback, meal_calories
from evolve.services.profile_normalizer import normalize

META = PlanMetadata(model="gpt-test", reason="missing_api_key")


@pytest.mark.parametrize(
    "raw",
    [
        {},
        {"calorie_target": 1500, "diet_style": "vegan", "equipment_access": "bodyweight"},
        {"calorie_target": 3333, "diet_style": "lacto-vegetarian"},
        {"age": 70, "injuries": "knee", "allergies": ["eggs"]},
    ],
)
def test_fallback_is_schema_valid(raw) -> None:
    plan = fallback(normalize(raw), META)

    reparsed = Plan.model_validate(json.loads(plan.model_dump_json()))
    assert 1 <= len(reparsed.week) <= 7
    for day in reparsed.week:
        assert 1 <= day.day <= 7
        for workout in day.workouts:
            assert workout.sets >= 0 and workout.rest_sec >= 0
        for meal in day.meals:
            assert min(meal.kcal, meal.protein_g, meal.carbs_g, meal.fat_g) >= 0


def test_fallback_is_deterministic() -> None:
    profile = normalize({"calorie_target": 2500, "diet_style": "keto"})

    assert fallback(profile, META) == fallback(profile, META)


def test_meals_scale_to_calorie_target() -> None:
    plan = fallback(normalize({"calorie_target": 2400, "diet_style": "balanced"}), META)
    kcal = [meal.kcal for meal in plan.week[0].meals]

    assert kcal == [600, 960, 840]
    assert sum(kcal) == 2400


@pytest.mark.parametrize("target", [1200, 2201, 2999, 4157])
def test_meal_split_sums_exactly(target) -> None:
    assert sum(meal_calories(target)) == target


def test_fallback_tags_metadata_and_copies_diet_style() -> None:
    plan = fallback(normalize({"diet_style": "mediterranean"}), META)

    assert plan.meta.fallback is True
    assert plan.meta.reason == "missing_api_key"
    assert "mediterranean" in plan.notes
    assert META.fallback is False


def test_diet_and_equipment_select_templates() -> None:
    vegan = fallback(normalize({"diet_style": "vegan", "equipment_access": "none"}), META)

    assert "Tofu" in vegan.week[0].meals[0].name
    assert vegan.week[0].workouts[0].exercise == "Bodyweight Squat"


@pytest.mark.parametrize(
    "diet_style, first_meal",
    [
        ("vegan", "Tofu Scramble with Toast"),
        ("Vegan, gluten-free", "Tofu Scramble with Toast"),
        ("lacto-vegetarian", "Greek Yogurt Oats with Berries"),
        ("non-vegetarian", "Spinach Omelet with Avocado Toast"),
        ("non-vegan", "Spinach Omelet with Avocado Toast"),
        ("not vegan", "Spinach Omelet with Avocado Toast"),
        ("vegetarian-ish pescatarian", "Greek Yogurt Oats with Berries"),
    ],
)
def test_negated_diet_styles_use_default_meals(diet_style, first_meal) -> None:
    plan = fallback(normalize({"diet_style": diet_style}), META)

    assert plan.week[0].meals[0].name == first_meal
