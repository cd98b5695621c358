from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx


class GeminiError(Exception):
    """Base error for Gemini client failures."""


class GeminiNotConfiguredError(GeminiError):
    """Raised at startup when the Gemini API key is missing."""


class GeminiTimeoutError(GeminiError):
    """Raised when the HTTP transport gave up waiting for Gemini."""


class GeminiUpstreamError(GeminiError):
    """Raised when the Gemini API fails or returns an unexpected response."""


@dataclass(frozen=True)
class GeminiConfig:
    api_key: str
    base_url: str
    timeout_seconds: float


class GeminiClient:
    """
    Minimal client for the Gemini `generateContent` REST endpoint.

    Design notes:
    - No logging in this module (prompts/outputs contain the user's financial data).
    - One pooled `httpx.AsyncClient` per process; closed by the app lifespan.
    - Returns the raw response object; shaping is the caller's job.
    """

    def __init__(self, *, config: GeminiConfig, transport: httpx.AsyncBaseTransport | None = None):
        if not config.api_key:
            raise GeminiNotConfiguredError(
                "GEMINI_API_KEY is not set. Please add GEMINI_API_KEY to your server "
                "environment (e.g., .env) and restart the server."
            )
        self._config = config
        self._http = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            timeout=config.timeout_seconds,
            transport=transport,
            headers={
                "x-goog-api-key": config.api_key,
                "Content-Type": "application/json",
            },
        )

    async def generate_content(self, *, model: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = await self._http.post(f"/models/{model}:generateContent", json=payload)
        except httpx.TimeoutException as exc:
            raise GeminiTimeoutError("Gemini request timed out") from exc
        except httpx.HTTPError as exc:
            raise GeminiUpstreamError("Gemini request failed") from exc

        if resp.status_code != 200:
            # Upstream error bodies may echo the prompt; only the status is surfaced.
            raise GeminiUpstreamError(f"Gemini service returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise GeminiUpstreamError("Gemini response was not valid JSON") from exc

        if not isinstance(data, dict):
            raise GeminiUpstreamError("Gemini response JSON must be an object")

        return data

    async def aclose(self) -> None:
        await self._http.aclose()
