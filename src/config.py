from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    google_api_key: str = ""  # Required for live Gemini calls; fail fast if absent

    # Models
    vision_model: str = "gemini-2.5-flash"
    reasoning_model: str = "gemini-3-pro-preview"
    chat_model: str = "gemini-3-pro-preview"

    # Stage temperatures: low for extraction, higher for synthesis
    transcription_temperature: float = 0.2
    classification_temperature: float = 0.3
    synthesis_temperature: float = 0.5

    # Relative dates in the synthesised timeline are anchored here
    reference_date: str = "2025-12-01"
    # Unset keeps every snippet regardless of confidence
    min_snippet_confidence: Literal["high", "medium", "low"] | None = None

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    max_upload_bytes: int = 10 * 1024 * 1024
    # Oldest idle sessions are evicted past this many
    max_sessions: int = Field(default=100, ge=1)
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
