"""Tests for profile normalization."""
from __future__ import annotations

import json

import pytest

from evolve.services.profile_normalizer import normalize


def test_normalize_keeps_canonical_fields() -> None:
    profile = normalize(
        {
            "age": 30,
            "height_cm": 180,
            "weight_kg": 80,
            "calorie_target": 2400,
            "diet_style": "Balanced",
            "injuries": ["left knee", "lower back"],
        }
    )

    assert profile.age == 30
    assert profile.height_cm == 180
    assert profile.weight_kg == 80
    assert profile.calorie_target == 2400
    assert profile.diet_style == "balanced"
    assert profile.injuries == ("left knee", "lower back")


@pytest.mark.parametrize("raw", [None, [], "not a profile", 42, {}])
def test_normalize_never_fails_and_applies_defaults(raw) -> None:
    profile = normalize(raw)

    assert profile.calorie_target == 2200
    assert profile.age is None
    assert profile.diet_style == ""
    assert profile.allergies == ()


def test_pounds_converted_to_kilograms() -> None:
    profile = normalize({"weight_lb": 176.4})

    assert profile.weight_kg == pytest.approx(80.0, abs=0.1)


def test_kilograms_win_over_pounds() -> None:
    profile = normalize({"weight_kg": 70, "weight_lb": 300})

    assert profile.weight_kg == 70


def test_feet_and_inches_converted_to_centimetres() -> None:
    profile = normalize({"height_ft": 5, "height_in": 11})

    assert profile.height_cm == pytest.approx(180.3, abs=0.1)


def test_set_fields_accept_comma_separated_strings() -> None:
    profile = normalize({"allergies": "peanuts, shellfish,  , none", "sports": "running"})

    assert profile.allergies == ("peanuts", "shellfish")
    assert profile.sports == ("running",)


def test_set_fields_are_order_independent() -> None:
    first = normalize({"dislikes": ["olives", "tuna"]})
    second = normalize({"dislikes": ["tuna", "olives", "tuna"]})

    assert first.dislikes == second.dislikes


def test_invalid_numbers_fall_back() -> None:
    profile = normalize({"age": "abc", "calorie_target": -100, "sleep_hours": True, "days_per_week": 12})

    assert profile.age is None
    assert profile.calorie_target == 2200
    assert profile.sleep_hours is None
    assert profile.days_per_week == 7


def test_numeric_strings_are_parsed() -> None:
    profile = normalize({"calorie_target": "2600", "sleep_hours": "6.5"})

    assert profile.calorie_target == 2600
    assert profile.sleep_hours == 6.5


def test_profile_is_immutable() -> None:
    profile = normalize({"age": 30})

    with pytest.raises(Exception):
        profile.age = 31  # type: ignore[misc]


@pytest.mark.parametrize("value", ["inf", "Infinity", "-inf", "nan", json.loads('{"n": 1e400}')["n"]])
def test_non_finite_numbers_fall_back(value) -> None:
    profile = normalize(
        {
            "age": value,
            "calorie_target": value,
            "sleep_hours": value,
            "days_per_week": value,
            "height_cm": value,
            "weight_kg": value,
        }
    )

    assert profile.age is None
    assert profile.calorie_target == 2200
    assert profile.sleep_hours is None
    assert profile.days_per_week is None
    assert profile.height_cm is None
    assert profile.weight_kg is None


def test_non_finite_imperial_units_are_dropped() -> None:
    profile = normalize({"height_ft": "inf", "height_in": 1e308, "weight_lb": "Infinity"})

    assert profile.height_cm is None
    assert profile.weight_kg is None
