from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM integration (Gemini)
    # The key is checked once at startup; requests assume it is valid.
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "gemini_api_key"),
        description="Gemini API key. Required; the application refuses to start without it.",
    )
    gemini_chat_model: str = Field(
        default="gemini-1.5-pro",
        validation_alias=AliasChoices("GEMINI_CHAT_MODEL", "gemini_chat_model"),
        description="Gemini model identifier used for free-form chat.",
    )
    gemini_suggest_model: str = Field(
        default="gemini-1.5-flash",
        validation_alias=AliasChoices("GEMINI_SUGGEST_MODEL", "gemini_suggest_model"),
        description="Gemini model identifier used for structured suggestions.",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias=AliasChoices("GEMINI_BASE_URL", "gemini_base_url"),
        description="Base URL for the Gemini REST API (override for proxies/emulators).",
    )
    gemini_timeout_seconds: float = Field(
        default=25.0,
        gt=0,
        validation_alias=AliasChoices("GEMINI_TIMEOUT_SECONDS", "gemini_timeout_seconds"),
        description="Hard wall-clock deadline for a single model call (seconds).",
    )

    # Boundary rate limiting (per client IP, fixed window, in-process)
    assistant_rate_limit_requests: int = Field(
        default=60,
        ge=1,
        validation_alias=AliasChoices(
            "ASSISTANT_RATE_LIMIT_REQUESTS", "assistant_rate_limit_requests"
        ),
        description="Maximum assistant requests per client IP per window.",
    )
    assistant_rate_limit_window_seconds: float = Field(
        default=60.0,
        gt=0,
        validation_alias=AliasChoices(
            "ASSISTANT_RATE_LIMIT_WINDOW_SECONDS", "assistant_rate_limit_window_seconds"
        ),
        description="Rate limit window length (seconds).",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
