from __future__ import annotations

from typing import Any

from fastapi import Request

from app.core.llm.gemini_client import GeminiClient, GeminiConfig
from app.core.settings import Settings


def init_llm(*, app: Any, settings: Settings) -> None:
    """
    Create the process-wide Gemini client.

    Raises GeminiNotConfiguredError when the API key is missing, which aborts
    application startup instead of failing every request later.
    """

    config = GeminiConfig(
        api_key=settings.gemini_api_key or "",
        base_url=settings.gemini_base_url,
        timeout_seconds=float(settings.gemini_timeout_seconds),
    )
    app.state.gemini_client = GeminiClient(config=config)


async def close_llm(*, app: Any) -> None:
    client: GeminiClient | None = getattr(app.state, "gemini_client", None)
    if client is None:
        return
    await client.aclose()


def get_gemini_client(request: Request) -> GeminiClient:
    return request.app.state.gemini_client
