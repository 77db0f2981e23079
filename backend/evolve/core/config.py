"""Application configuration managed via environment variables."""
from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Evolve Plan Service"
    debug: bool = False
    log_level: str = "INFO"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str | None = None
    completion_mode: Literal["responses", "chat"] = "responses"
    completion_timeout_ms: int = 9000
    max_output_tokens: int = 3000
    plan_temperature: float = 0.7
    strict_temperature: float = 0.4
    failure_policy: Literal["fallback", "error"] = "fallback"
    cors_allow_origins: List[str] = ["*"]
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "evolve"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
