"""Tests for metrics and tracing helpers."""
from __future__ import annotations

from typing import Any, Dict

import pytest

from evolve.core.context import bind_request_id, reset_request_id
from evolve.observability import metrics
from evolve.observability import tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.error_info: Dict[str, Any] | None = None
        self.ended = False

    def update(self, error_info: Dict[str, Any] | None = None, **kwargs: Any) -> None:
        self.error_info = error_info

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


def test_log_metric_closes_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(metrics, "get_opik_client", lambda: dummy_client)

    metrics.log_metric("plan.fallback.used", 1, metadata={"reason": "missing_api_key"})

    assert dummy_client.traces, "Metric call should record a trace"
    assert dummy_client.traces[0].name == "metric:plan.fallback.used"
    assert dummy_client.traces[0].metadata["value"] == 1
    assert dummy_client.traces[0].metadata["reason"] == "missing_api_key"
    assert dummy_client.traces[0].ended is True


def test_log_metric_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(metrics, "get_opik_client", lambda: None)

    metrics.log_metric("plan.retry.used", 1)


def test_trace_picks_up_bound_request_id(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)
    token = bind_request_id("req-42")

    try:
        with tracing.trace("plan.attempt", metadata={"attempt": 1, "skipped": None}):
            pass
    finally:
        reset_request_id(token)

    recorded = dummy_client.traces[0]
    assert recorded.metadata == {"attempt": 1, "request_id": "req-42"}
    assert recorded.ended is True


def test_trace_records_errors_and_reraises(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    with pytest.raises(ValueError):
        with tracing.trace("plan.generate"):
            raise ValueError("boom")

    assert dummy_client.traces[0].error_info == {"message": "boom"}
    assert dummy_client.traces[0].ended is True
