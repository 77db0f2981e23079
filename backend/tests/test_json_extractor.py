"""Tests for JSON salvage parsing."""
from __future__ import annotations

import json

from evolve.services.json_extractor import extract

PLAN = {"week": [{"day": 1, "focus": "full", "workouts": [], "meals": []}], "notes": "go"}


def test_valid_json_round_trips_unchanged() -> None:
    for value in (PLAN, [1, 2, 3], "text", 3.5, None, {"nested": {"a": [True, False]}}):
        result = extract(json.dumps(value))
        assert result.ok
        assert result.value == value


def test_fenced_payload_is_recovered() -> None:
    text = f"```json\n{json.dumps(PLAN)}\n```"

    result = extract(text)

    assert result.ok
    assert result.value == PLAN


def test_prose_wrapped_payload_is_recovered() -> None:
    text = f"Sure! Here is your plan:\n{json.dumps(PLAN)}\nLet me know if you need changes."

    result = extract(text)

    assert result.ok
    assert result.value == PLAN


def test_text_without_braces_fails_without_raising() -> None:
    text = "I'm sorry, I can't help with that."

    result = extract(text)

    assert not result.ok
    assert result.raw == text
    assert result.error


def test_broken_object_fails_with_raw_text() -> None:
    text = 'Plan: {"week": [ {"day": 1,, }'

    result = extract(text)

    assert not result.ok
    assert result.raw == text


def test_empty_and_non_string_input() -> None:
    assert not extract("").ok
    assert not extract("   ").ok
    assert not extract(None).ok


def test_deeply_nested_text_fails_without_raising() -> None:
    text = "[" * 100000

    result = extract(text)

    assert not result.ok
    assert result.raw == text


def test_deeply_nested_object_in_prose_fails_without_raising() -> None:
    text = "Here:\n```json\n" + '{"a": ' * 100000 + "1" + "}" * 100000 + "\n```"

    result = extract(text)

    assert not result.ok
    assert result.raw == text
    assert result.error
