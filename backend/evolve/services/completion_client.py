"""Completion backend client with a client-side deadline and typed failures."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx
import openai

from evolve.observability.tracing import trace
from evolve.services.prompt_builder import PlanPrompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 9000
MAX_ERROR_BODY_CHARS = 500
MAX_CONNECT_SECONDS = 3.0


class FailureKind(str, Enum):
    AUTH_MISSING = "auth_missing"
    BACKEND_ERROR = "backend_error"
    TIMEOUT = "timeout"
    EMPTY_RESPONSE = "empty_response"


@dataclass(frozen=True)
class CompletionFailure:
    kind: FailureKind
    detail: str = ""
    status_code: Optional[int] = None
    body: Optional[str] = None


@dataclass(frozen=True)
class CompletionResult:
    text: Optional[str] = None
    failure: Optional[CompletionFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and bool(self.text)


Envelope = Dict[str, Any]
EnvelopeReader = Callable[[Envelope], Optional[str]]


def _read_output_text(envelope: Envelope) -> Optional[str]:
    return _non_empty(envelope.get("output_text"))


def _read_response_output(envelope: Envelope) -> Optional[str]:
    parts: List[str] = []
    for item in envelope.get("output") or []:
        if not isinstance(item, dict):
            continue
        for content in item.get("content") or []:
            if isinstance(content, dict) and content.get("type") in ("output_text", "text"):
                text = content.get("text")
                if isinstance(text, str):
                    parts.append(text)
    return _non_empty("".join(parts))


def _read_chat_message(envelope: Envelope) -> Optional[str]:
    choice = _first_choice(envelope)
    message = choice.get("message") if choice else None
    return _non_empty(message.get("content")) if isinstance(message, dict) else None


def _read_legacy_text(envelope: Envelope) -> Optional[str]:
    choice = _first_choice(envelope)
    return _non_empty(choice.get("text")) if choice else None


# Known response shapes, in priority order.
ENVELOPE_READERS: Sequence[EnvelopeReader] = (
    _read_output_text,
    _read_response_output,
    _read_chat_message,
    _read_legacy_text,
)


def read_envelope(envelope: Envelope, readers: Sequence[EnvelopeReader] = ENVELOPE_READERS) -> Optional[str]:
    """Return the first non-empty generated text found by the readers."""
    for reader in readers:
        text = reader(envelope)
        if text:
            return text
    return None


class CompletionClient:
    """
    Issue one completion request per call against an OpenAI-compatible backend.

    A fresh SDK client is opened per call and closed on every path, so no
    connection outlives the request. Retries inside the SDK are disabled; the
    caller owns the retry policy.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        mode: str = "responses",
        base_url: str | None = None,
        max_output_tokens: int = 3000,
        client_factory: Callable[..., Any] = openai.OpenAI,
    ) -> None:
        self.model = model
        self._api_key = api_key
        self._mode = mode
        self._base_url = base_url
        self._max_output_tokens = max_output_tokens
        self._client_factory = client_factory

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key)

    def complete(
        self,
        prompt: PlanPrompt,
        temperature: float,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> CompletionResult:
        if not self.has_credentials:
            return CompletionResult(failure=CompletionFailure(FailureKind.AUTH_MISSING, "no API key configured"))

        metadata = {"model": self.model, "mode": self._mode, "temperature": temperature, "timeout_ms": timeout_ms}
        with trace("plan.completion", metadata=metadata):
            try:
                with self._client_factory(
                    api_key=self._api_key,
                    base_url=self._base_url,
                    timeout=request_timeout(timeout_ms),
                    max_retries=0,
                ) as client:
                    response = self._send(client, prompt, temperature)
            except openai.APITimeoutError:
                logger.warning("Completion timed out after %s ms", timeout_ms)
                return CompletionResult(failure=CompletionFailure(FailureKind.TIMEOUT, f"timed out after {timeout_ms} ms"))
            except openai.APIStatusError as exc:
                body = _truncate(_error_body(exc))
                logger.warning("Completion backend returned %s", exc.status_code)
                return CompletionResult(
                    failure=CompletionFailure(
                        FailureKind.BACKEND_ERROR,
                        f"status {exc.status_code}: {body}",
                        status_code=exc.status_code,
                        body=body,
                    )
                )
            except openai.APIConnectionError as exc:
                logger.warning("Completion backend unreachable: %s", exc)
                return CompletionResult(failure=CompletionFailure(FailureKind.BACKEND_ERROR, f"connection error: {exc}"))

        text = read_envelope(_envelope_of(response))
        if not text:
            return CompletionResult(failure=CompletionFailure(FailureKind.EMPTY_RESPONSE, "no generated text in response"))
        return CompletionResult(text=text)

    def _send(self, client: Any, prompt: PlanPrompt, temperature: float) -> Any:
        if self._mode == "chat":
            return client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                max_tokens=self._max_output_tokens,
                messages=[
                    {"role": "system", "content": prompt.system},
                    {"role": "user", "content": prompt.user},
                ],
            )
        return client.responses.create(
            model=self.model,
            instructions=prompt.system,
            input=prompt.user,
            temperature=temperature,
            max_output_tokens=self._max_output_tokens,
        )


def _envelope_of(response: Any) -> Envelope:
    if isinstance(response, dict):
        return response
    envelope: Envelope = response.model_dump() if hasattr(response, "model_dump") else {}
    # output_text is a computed property on SDK Response objects, absent from model_dump()
    output_text = getattr(response, "output_text", None)
    if isinstance(output_text, str):
        envelope.setdefault("output_text", output_text)
    return envelope


def _first_choice(envelope: Envelope) -> Optional[Dict[str, Any]]:
    choices = envelope.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return None


def _non_empty(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _error_body(exc: openai.APIStatusError) -> str:
    try:
        return exc.response.text
    except Exception:  # pragma: no cover - body may be unavailable on streamed errors
        return str(exc.body or exc)


def _truncate(value: str, limit: int = MAX_ERROR_BODY_CHARS) -> str:
    return value if len(value) <= limit else f"{value[:limit]}..."


def request_timeout(timeout_ms: int) -> httpx.Timeout:
    """
    Build the per-attempt HTTP timeout.

    httpx applies read/write/pool limits per phase, so the deadline bounds each
    wait rather than the wall clock of the whole exchange; connect gets a
    shorter cap so a slow handshake cannot consume the read budget.
    """
    seconds = timeout_ms / 1000
    return httpx.Timeout(seconds, connect=min(seconds, MAX_CONNECT_SECONDS))
