"""Salvage a JSON payload from free-form model output."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class ExtractionResult:
    ok: bool
    raw: str
    value: Any = None
    error: Optional[str] = None


def extract(text: Optional[str]) -> ExtractionResult:
    """
    Parse model text as JSON, tolerating surrounding prose and code fences.

    The whole text is tried first; failing that, the span from the first "{"
    to the last "}" inclusive. Never raises: a failed extraction carries the
    original text for diagnostics.
    """
    raw = text if isinstance(text, str) else ""
    if not raw.strip():
        return ExtractionResult(ok=False, raw=raw, error="empty text")

    try:
        return ExtractionResult(ok=True, raw=raw, value=json.loads(raw))
    except (ValueError, RecursionError):
        pass

    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return ExtractionResult(ok=False, raw=raw, error="no JSON object found")

    try:
        return ExtractionResult(ok=True, raw=raw, value=json.loads(raw[start : end + 1]))
    except (ValueError, RecursionError) as exc:
        return ExtractionResult(ok=False, raw=raw, error=f"invalid JSON object: {exc}")
