from __future__ import annotations

import logging
from typing import Any

from app.assistant.gateway import ModelGateway
from app.assistant.normalizer import normalize_chat, normalize_suggestions
from app.assistant.prompt import build_chat_request, build_suggestions_request
from app.assistant.sanitizer import (
    sanitize_context,
    sanitize_messages,
    sanitize_preferences,
    sanitize_subscriptions,
)
from app.assistant.schemas import ChatResult, SuggestionsResult

logger = logging.getLogger("app.assistant")


class AssistantService:
    """
    Mediates between untrusted client input and the generative model.

    Stateless: every call sanitizes, builds one request, invokes the gateway
    once and normalizes the output. Errors propagate as AssistantError
    subclasses (BAD_REQUEST / TIMEOUT / MODEL_ERROR).

    IMPORTANT (privacy): only counts and model ids are logged, never message
    contents, subscription data or model output.
    """

    def __init__(self, *, gateway: ModelGateway, chat_model: str, suggest_model: str):
        self._gateway = gateway
        self._chat_model = chat_model
        self._suggest_model = suggest_model

    async def chat(self, messages: Any, context: Any = None) -> ChatResult:
        sanitized = sanitize_messages(messages)
        request = build_chat_request(
            model=self._chat_model,
            messages=sanitized,
            context=sanitize_context(context),
        )
        result = await self._gateway.invoke(request)
        chat = normalize_chat(result.raw, usage=result.usage)

        logger.info(
            "Chat completed",
            extra={
                "task": "chat",
                "model": request.model,
                "message_count": len(sanitized),
                "response_chars": len(chat.message.content),
            },
        )
        return chat

    async def suggestions(
        self,
        subscriptions: Any,
        preferences: Any = None,
        sampled_at: str | None = None,
    ) -> SuggestionsResult:
        sanitized = sanitize_subscriptions(subscriptions)
        request = build_suggestions_request(
            model=self._suggest_model,
            subscriptions=sanitized,
            preferences=sanitize_preferences(preferences),
            sampled_at=sampled_at,
        )
        result = await self._gateway.invoke(request)
        out = normalize_suggestions(result.raw, usage=result.usage)

        logger.info(
            "Suggestions completed",
            extra={
                "task": "suggestions",
                "model": request.model,
                "subscription_count": len(sanitized),
                "suggestion_count": len(out.suggestions),
            },
        )
        return out
