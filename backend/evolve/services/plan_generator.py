"""Resilient plan generation: prompt, call, salvage, retry once, fall back."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Optional

from pydantic import ValidationError

from evolve.api.schemas.plan import Plan, PlanMetadata, Profile
from evolve.core.context import get_request_id
from evolve.observability.metrics import log_metric
from evolve.observability.tracing import trace
from evolve.services import prompt_builder
from evolve.services.completion_client import (
    DEFAULT_TIMEOUT_MS,
    CompletionClient,
    CompletionFailure,
    FailureKind,
)
from evolve.services.fallback_plan import fallback
from evolve.services.json_extractor import extract

logger = logging.getLogger(__name__)

REASON_MISSING_API_KEY = "missing_api_key"
REASON_BAD_JSON_OR_TIMEOUT = "bad_json_or_timeout"
REASON_BACKEND_ERROR = "backend_error"
REASON_EXCEPTION = "exception"

MAX_RAW_CHARS = 4000


class PlanGenerationError(Exception):
    """Raised under the "error" failure policy once both attempts have failed."""

    def __init__(self, meta: PlanMetadata):
        super().__init__(meta.reason or "plan generation failed")
        self.meta = meta


@dataclass
class AttemptOutcome:
    plan: Optional[Plan] = None
    raw: Optional[str] = None
    failure: Optional[CompletionFailure] = None
    parse_error: Optional[str] = None
    exception: Optional[str] = None

    @property
    def reason(self) -> str:
        if self.exception:
            return REASON_EXCEPTION
        if self.failure and self.failure.kind == FailureKind.BACKEND_ERROR:
            return REASON_BACKEND_ERROR
        if self.failure and self.failure.kind == FailureKind.AUTH_MISSING:
            return REASON_MISSING_API_KEY
        return REASON_BAD_JSON_OR_TIMEOUT

    @property
    def error(self) -> Optional[str]:
        if self.exception:
            return self.exception
        if self.failure:
            return self.failure.detail or self.failure.kind.value
        return self.parse_error


class PlanGenerator:
    """
    Orchestrates one plan request end to end.

    Holds no per-request state, so a single instance can serve concurrent
    requests. Under the default "fallback" policy generate() is total: every
    path returns a schema-valid Plan with metadata.
    """

    def __init__(
        self,
        completion_client: CompletionClient,
        *,
        temperature: float = 0.7,
        strict_temperature: float = 0.4,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        failure_policy: str = "fallback",
    ) -> None:
        self._client = completion_client
        self._temperature = temperature
        self._strict_temperature = strict_temperature
        self._timeout_ms = timeout_ms
        self._failure_policy = failure_policy

    @property
    def model(self) -> str:
        return self._client.model

    def generate(self, profile: Profile) -> Plan:
        start = perf_counter()
        metadata = {"model": self.model, "calorie_target": profile.calorie_target, "goal": profile.goal or None}
        with trace("plan.generate", metadata=metadata) as generation_trace:
            try:
                plan = self._run(profile)
            except PlanGenerationError:
                raise
            except Exception as exc:
                logger.exception("Plan generation failed unexpectedly; serving fallback plan")
                plan = self._degrade(profile, reason=REASON_EXCEPTION, error=str(exc))

            if generation_trace and plan.meta:
                generation_trace.update(metadata=plan.meta.model_dump(exclude={"raw"}))

        log_metric("plan.generate.latency_ms", (perf_counter() - start) * 1000, metadata={"model": self.model})
        return plan

    def _run(self, profile: Profile) -> Plan:
        if not self._client.has_credentials:
            logger.warning("OPENAI_API_KEY missing; serving fallback plan.")
            return self._degrade(profile, reason=REASON_MISSING_API_KEY)

        prompt = prompt_builder.build(profile)
        first = self._attempt(prompt, self._temperature, attempt=1)
        if first.plan:
            return self._accept(first.plan, retry=False)

        logger.info("Attempt 1 unusable (%s); retrying with strict JSON instruction", first.error)
        log_metric("plan.retry.used", 1, metadata={"model": self.model, "reason": first.reason})
        second = self._attempt(prompt.strict(), self._strict_temperature, attempt=2)
        if second.plan:
            return self._accept(second.plan, retry=True)

        raw = second.raw or first.raw
        meta = self._meta(retry=True, reason=second.reason, error=second.error, raw=raw)
        if self._failure_policy == "error":
            log_metric("plan.generate.success", 0, metadata={"model": self.model, "reason": meta.reason})
            raise PlanGenerationError(meta)
        return self._fallback(profile, meta)

    def _attempt(self, prompt: prompt_builder.PlanPrompt, temperature: float, *, attempt: int) -> AttemptOutcome:
        try:
            return self._attempt_once(prompt, temperature, attempt=attempt)
        except Exception as exc:
            logger.exception("Attempt %s raised unexpectedly", attempt)
            return AttemptOutcome(exception=f"{type(exc).__name__}: {exc}")

    def _attempt_once(self, prompt: prompt_builder.PlanPrompt, temperature: float, *, attempt: int) -> AttemptOutcome:
        with trace("plan.attempt", metadata={"attempt": attempt, "temperature": temperature}):
            result = self._client.complete(prompt, temperature, self._timeout_ms)
            if not result.ok:
                failure = result.failure or CompletionFailure(FailureKind.EMPTY_RESPONSE)
                logger.warning("Attempt %s failed: %s %s", attempt, failure.kind.value, failure.detail)
                return AttemptOutcome(failure=failure)

            extracted = extract(result.text)
            if not extracted.ok:
                logger.warning("Attempt %s returned unparseable text: %s", attempt, extracted.error)
                logger.debug("Attempt %s raw text: %s", attempt, extracted.raw)
                return AttemptOutcome(raw=extracted.raw, parse_error=extracted.error)

            if not isinstance(extracted.value, dict):
                return AttemptOutcome(raw=extracted.raw, parse_error="JSON payload is not an object")
            try:
                plan = Plan.model_validate(extracted.value)
            except ValidationError as exc:
                logger.warning("Attempt %s JSON does not match plan schema (%s errors)", attempt, exc.error_count())
                return AttemptOutcome(raw=extracted.raw, parse_error=f"schema mismatch: {exc.error_count()} errors")

        logger.info("Attempt %s produced a %s-day plan", attempt, len(plan.week))
        return AttemptOutcome(plan=plan, raw=extracted.raw)

    def _accept(self, plan: Plan, *, retry: bool) -> Plan:
        log_metric("plan.generate.success", 1, metadata={"model": self.model, "retry": retry})
        return plan.with_meta(self._meta(retry=retry))

    def _degrade(self, profile: Profile, *, reason: str, error: Optional[str] = None) -> Plan:
        return self._fallback(profile, self._meta(retry=False, reason=reason, error=error))

    def _fallback(self, profile: Profile, meta: PlanMetadata) -> Plan:
        logger.warning("Serving fallback plan (reason=%s)", meta.reason)
        log_metric("plan.fallback.used", 1, metadata={"model": self.model, "reason": meta.reason})
        return fallback(profile, meta)

    def _meta(
        self,
        *,
        retry: bool,
        reason: Optional[str] = None,
        error: Optional[str] = None,
        raw: Optional[str] = None,
    ) -> PlanMetadata:
        return PlanMetadata(
            model=self.model,
            retry=retry,
            reason=reason,
            error=error,
            raw=raw[:MAX_RAW_CHARS] if raw else None,
            request_id=get_request_id(),
        )
