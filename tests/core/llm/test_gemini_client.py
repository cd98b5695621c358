from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from app.core.llm.gemini_client import (
    GeminiClient,
    GeminiConfig,
    GeminiNotConfiguredError,
    GeminiTimeoutError,
    GeminiUpstreamError,
)


def _client(handler) -> GeminiClient:
    config = GeminiConfig(
        api_key="k-123",
        base_url="https://gemini.test/v1beta/",
        timeout_seconds=5.0,
    )
    return GeminiClient(config=config, transport=httpx.MockTransport(handler))


def _generate(client: GeminiClient) -> dict:
    async def run() -> dict:
        try:
            return await client.generate_content(model="gemini-test", payload={"contents": []})
        finally:
            await client.aclose()

    return asyncio.run(run())


def test_posts_to_generate_content_with_api_key_header() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": []})

    assert _generate(_client(handler)) == {"candidates": []}
    assert seen["url"] == "https://gemini.test/v1beta/models/gemini-test:generateContent"
    assert seen["key"] == "k-123"
    assert seen["body"] == {"contents": []}


def test_non_200_status_raises_upstream_error_without_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "quota for prompt ..."}})

    with pytest.raises(GeminiUpstreamError) as exc_info:
        _generate(_client(handler))
    assert str(exc_info.value) == "Gemini service returned HTTP 429"


@pytest.mark.parametrize("content", [b"<html>oops</html>", b"[1, 2]"])
def test_unexpected_body_raises_upstream_error(content: bytes) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=content)

    with pytest.raises(GeminiUpstreamError):
        _generate(_client(handler))


def test_transport_timeout_raises_timeout_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(GeminiTimeoutError):
        _generate(_client(handler))


def test_connection_failure_raises_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(GeminiUpstreamError):
        _generate(_client(handler))


def test_missing_api_key_is_rejected_at_construction() -> None:
    with pytest.raises(GeminiNotConfiguredError) as exc_info:
        GeminiClient(config=GeminiConfig(api_key="", base_url="https://x", timeout_seconds=1.0))
    assert "GEMINI_API_KEY is not set" in str(exc_info.value)
