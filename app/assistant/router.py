from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Response

from app.api.exception_handlers import NO_STORE
from app.api.schemas import ErrorOut
from app.assistant.deps import get_assistant_service
from app.assistant.rate_limit import enforce_rate_limit
from app.assistant.schemas import ChatRequest, ChatResult, SuggestionsRequest, SuggestionsResult
from app.assistant.service import AssistantService
from app.domain.exceptions import ModelTimeoutError

router = APIRouter(
    prefix="/api/gemini",
    tags=["assistant"],
    dependencies=[Depends(enforce_rate_limit)],
)

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorOut, "description": "No usable input (BAD_REQUEST)."},
    429: {"model": ErrorOut, "description": "Rate limit exceeded (RATE_LIMITED)."},
    500: {"model": ErrorOut, "description": "Model failure (MODEL_ERROR)."},
    504: {"model": ErrorOut, "description": "Model call exceeded the deadline (TIMEOUT)."},
}


@router.post(
    "/chat",
    response_model=ChatResult,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Chat with the subscription assistant",
)
async def chat(
    payload: ChatRequest,
    response: Response,
    service: AssistantService = Depends(get_assistant_service),
) -> ChatResult:
    """
    Answer a conversation about the user's subscriptions.

    The reply is never persisted. An empty `content` is a valid (if unhelpful) reply.
    """

    response.headers["Cache-Control"] = NO_STORE
    try:
        return await service.chat(payload.messages, payload.context)
    except ModelTimeoutError:
        raise ModelTimeoutError("The chat operation timed out") from None


@router.post(
    "/suggestions",
    response_model=SuggestionsResult,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Generate cost-saving suggestions",
)
async def suggestions(
    payload: SuggestionsRequest,
    response: Response,
    service: AssistantService = Depends(get_assistant_service),
) -> SuggestionsResult:
    """
    Produce structured suggestions grounded in the submitted subscriptions snapshot.

    Suggestions only reference snapshot ids; malformed model entries are dropped.
    """

    response.headers["Cache-Control"] = NO_STORE
    sampled_at = datetime.now(UTC).isoformat()
    try:
        return await service.suggestions(payload.subscriptions, payload.preferences, sampled_at)
    except ModelTimeoutError:
        raise ModelTimeoutError("The suggestions operation timed out") from None
