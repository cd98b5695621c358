from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

from app.assistant.prompt import ModelRequest
from app.assistant.schemas import UsageMeta
from app.core.llm.gemini_client import GeminiTimeoutError
from app.core.metrics import assistant_model_call_duration_seconds, assistant_model_calls_total
from app.domain.exceptions import AssistantError, ModelError, ModelTimeoutError

logger = logging.getLogger("app.assistant.gateway")

DEFAULT_TIMEOUT_SECONDS = 25.0

# The API has reported token counts under different names across versions.
_INPUT_TOKEN_FIELDS = ("inputTokenCount", "promptTokenCount", "totalPromptTokens")
_OUTPUT_TOKEN_FIELDS = ("outputTokenCount", "candidatesTokenCount", "totalTokens")


class ModelClient(Protocol):
    async def generate_content(self, *, model: str, payload: dict[str, Any]) -> dict[str, Any]: ...


@dataclass(frozen=True)
class GatewayResult:
    raw: dict[str, Any]
    usage: UsageMeta | None = None


def _first_count(metadata: dict[str, Any], names: tuple[str, ...]) -> int | None:
    for name in names:
        value = metadata.get(name)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return value
    return None


def extract_usage(raw: Any) -> UsageMeta | None:
    """Token accounting from `usageMetadata`; anything missing or malformed yields None."""

    if not isinstance(raw, dict):
        return None
    metadata = raw.get("usageMetadata")
    if not isinstance(metadata, dict):
        return None

    input_tokens = _first_count(metadata, _INPUT_TOKEN_FIELDS)
    output_tokens = _first_count(metadata, _OUTPUT_TOKEN_FIELDS)
    if input_tokens is None and output_tokens is None:
        return None
    return UsageMeta(input_tokens=input_tokens, output_tokens=output_tokens)


def _discard_outcome(task: asyncio.Future) -> None:
    # Retrieve a late failure so the loop does not report it as never retrieved.
    if not task.cancelled():
        task.exception()


class ModelGateway:
    """
    Issues one model call per request, bounded by a hard wall-clock deadline.

    Failures surface as exactly one of BadRequestError, ModelTimeoutError or
    ModelError. There are no retries; the boundary decides what to show.
    """

    def __init__(self, *, client: ModelClient, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self._client = client
        self._timeout_seconds = timeout_seconds

    async def invoke(self, request: ModelRequest) -> GatewayResult:
        started = time.perf_counter()
        outcome = "model_error"
        try:
            raw = await self._call(request)
            if not isinstance(raw, dict):
                raise ModelError("Gemini response JSON must be an object")
            outcome = "ok"
            return GatewayResult(raw=raw, usage=extract_usage(raw))
        except ModelTimeoutError:
            outcome = "timeout"
            raise
        finally:
            duration = time.perf_counter() - started
            assistant_model_calls_total.labels(task=request.task, outcome=outcome).inc()
            assistant_model_call_duration_seconds.labels(task=request.task).observe(duration)
            logger.info(
                "Model call finished",
                extra={
                    "task": request.task,
                    "model": request.model,
                    "outcome": outcome,
                    "duration_ms": round(duration * 1000.0, 2),
                },
            )

    async def _call(self, request: ModelRequest) -> Any:
        task = asyncio.ensure_future(
            self._client.generate_content(model=request.model, payload=request.to_payload())
        )
        try:
            done, _ = await asyncio.wait({task}, timeout=self._timeout_seconds)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if not done:
            # The deadline wins; the loser is cancelled and never awaited.
            task.cancel()
            task.add_done_callback(_discard_outcome)
            raise ModelTimeoutError(
                f"Gemini operation timed out after {int(self._timeout_seconds * 1000)}ms"
            )
        try:
            return task.result()
        except GeminiTimeoutError as exc:
            raise ModelTimeoutError(str(exc)) from exc
        except AssistantError:
            raise
        except Exception as exc:  # noqa: BLE001 - every other failure is a model error
            raise ModelError(str(exc) or "Gemini model error") from exc
