from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from app.assistant.sanitizer import trim_text
from app.assistant.schemas import (
    ChatContext,
    ChatMessage,
    SubscriptionItem,
    SuggestPreferences,
)
from app.domain.exceptions import BadRequestError

MAX_PROMPT_LENGTH = 20_000

Task = Literal["chat", "suggestions"]

CHAT_GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.6,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
}

SUGGESTION_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "suggestions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "type": {"type": "STRING"},
                    "title": {"type": "STRING"},
                    "description": {"type": "STRING"},
                    "targetIds": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "impactEstimate": {
                        "type": "OBJECT",
                        "properties": {
                            "currency": {"type": "STRING"},
                            "monthly": {"type": "NUMBER"},
                            "yearly": {"type": "NUMBER"},
                        },
                    },
                    "confidence": {"type": "STRING", "enum": ["low", "medium", "high"]},
                    "actions": {
                        "type": "ARRAY",
                        "items": {
                            "type": "OBJECT",
                            "properties": {
                                "type": {"type": "STRING"},
                                "label": {"type": "STRING"},
                                "targetId": {"type": "STRING"},
                            },
                            "required": ["type", "label"],
                        },
                    },
                },
                "required": ["type", "title", "description", "targetIds"],
            },
        },
        "summary": {"type": "STRING"},
    },
    "required": ["suggestions"],
}

SUGGESTIONS_GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.2,
    "topK": 20,
    "topP": 0.9,
    "maxOutputTokens": 1024,
    "responseMimeType": "application/json",
    "responseSchema": SUGGESTION_RESPONSE_SCHEMA,
}

SUGGESTIONS_SYSTEM_INSTRUCTION = "\n".join(
    [
        "You are a subscription optimization assistant.",
        "Produce concise, deterministic suggestions strictly following the provided JSON schema.",
        "Never include fields not defined in the schema.",
        "Ground all suggestions in the provided subscriptions snapshot only.",
    ]
)


@dataclass(frozen=True)
class ModelRequest:
    """A fully built, provider-ready model request."""

    task: Task
    model: str
    contents: list[dict[str, Any]]
    generation_config: dict[str, Any]
    system_instruction: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Render the Gemini `generateContent` request body."""

        payload: dict[str, Any] = {
            "contents": self.contents,
            "generationConfig": self.generation_config,
        }
        if self.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": self.system_instruction}]}
        return payload


def _gemini_role(role: str) -> str:
    # Gemini only knows "user" and "model".
    return "model" if role == "assistant" else "user"


def build_chat_system_instruction(
    *, context: ChatContext | None, system_texts: list[str]
) -> str | None:
    parts: list[str] = []
    if system_texts:
        parts.append("\n".join(system_texts))
    if context is not None:
        if context.timezone:
            parts.append(f"Timezone: {context.timezone}")
        if context.currency:
            parts.append(f"Currency: {context.currency}")
        if context.locale:
            parts.append(f"Locale: {context.locale}")
        if context.sampled_at:
            parts.append(f"SampledAt: {context.sampled_at}")
    return "\n".join(parts) if parts else None


def build_chat_request(
    *, model: str, messages: list[ChatMessage], context: ChatContext | None = None
) -> ModelRequest:
    system_texts = [m.content for m in messages if m.role == "system"]
    turns = [m for m in messages if m.role != "system"]
    if not turns:
        raise BadRequestError("At least one user or assistant message is required")

    contents = [
        {"role": _gemini_role(m.role), "parts": [{"text": trim_text(m.content)}]} for m in turns
    ]
    return ModelRequest(
        task="chat",
        model=model,
        contents=contents,
        generation_config=dict(CHAT_GENERATION_CONFIG),
        system_instruction=build_chat_system_instruction(
            context=context, system_texts=system_texts
        ),
    )


def build_suggestions_prompt(
    *,
    subscriptions: list[SubscriptionItem],
    preferences: SuggestPreferences | None,
    sampled_at: str,
) -> str:
    """
    Embed the sanitized snapshot as a single fenced JSON document.

    Only whitelisted, sanitized fields are serialized; the model is told to
    reference snapshot ids only.
    """

    payload = {
        "snapshot": [s.model_dump(by_alias=True) for s in subscriptions],
        "preferences": (
            preferences.model_dump(by_alias=True, exclude_none=True) if preferences else {}
        ),
        "sampledAt": sampled_at,
    }
    prompt = "\n".join(
        [
            "Given the following subscriptions snapshot and optional user preferences, "
            "generate actionable suggestions.",
            "Be specific and concise. Avoid duplication. "
            "Tailor to billing cycles, amounts, currency, and activity.",
            "Only include fields permitted by the schema. "
            "Use only IDs from the snapshot in targetIds.",
            "",
            "Input JSON:",
            "```json",
            json.dumps(payload, ensure_ascii=False, separators=(",", ":")),
            "```",
        ]
    )
    return trim_text(prompt, MAX_PROMPT_LENGTH)


def build_suggestions_request(
    *,
    model: str,
    subscriptions: list[SubscriptionItem],
    preferences: SuggestPreferences | None = None,
    sampled_at: str | None = None,
) -> ModelRequest:
    if not subscriptions:
        raise BadRequestError("No valid subscriptions provided")

    prompt = build_suggestions_prompt(
        subscriptions=subscriptions,
        preferences=preferences,
        sampled_at=sampled_at or datetime.now(UTC).isoformat(),
    )
    return ModelRequest(
        task="suggestions",
        model=model,
        contents=[{"role": "user", "parts": [{"text": prompt}]}],
        generation_config=dict(SUGGESTIONS_GENERATION_CONFIG),
        system_instruction=SUGGESTIONS_SYSTEM_INSTRUCTION,
    )
