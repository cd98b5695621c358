from __future__ import annotations

from fastapi import Depends

from app.assistant.gateway import ModelGateway
from app.assistant.service import AssistantService
from app.core.llm.deps import get_gemini_client
from app.core.llm.gemini_client import GeminiClient
from app.core.settings import get_settings


def get_assistant_service(
    gemini_client: GeminiClient = Depends(get_gemini_client),
) -> AssistantService:
    settings = get_settings()
    gateway = ModelGateway(
        client=gemini_client,
        timeout_seconds=float(settings.gemini_timeout_seconds),
    )
    return AssistantService(
        gateway=gateway,
        chat_model=settings.gemini_chat_model,
        suggest_model=settings.gemini_suggest_model,
    )
