"""Composition root: resolve configuration once and wire the generation pipeline."""
from __future__ import annotations

from functools import lru_cache

from evolve.core.config import Settings, get_settings
from evolve.services.completion_client import CompletionClient
from evolve.services.plan_generator import PlanGenerator


def build_plan_generator(settings: Settings) -> PlanGenerator:
    client = CompletionClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        mode=settings.completion_mode,
        base_url=settings.openai_base_url,
        max_output_tokens=settings.max_output_tokens,
    )
    return PlanGenerator(
        client,
        temperature=settings.plan_temperature,
        strict_temperature=settings.strict_temperature,
        timeout_ms=settings.completion_timeout_ms,
        failure_policy=settings.failure_policy,
    )


@lru_cache
def get_plan_generator() -> PlanGenerator:
    """FastAPI dependency returning the process-wide (stateless) plan generator."""
    return build_plan_generator(get_settings())
