from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ChatRole = Literal["user", "assistant", "system"]
Confidence = Literal["low", "medium", "high"]


class _CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire (matches the web client)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Sanitized inputs -------------------------------------------------------


class ChatMessage(_CamelModel):
    role: ChatRole
    content: str = Field(min_length=1)


class ChatContext(_CamelModel):
    """Free-form hints folded into the system instruction."""

    timezone: str | None = None
    currency: str | None = None
    locale: str | None = None
    sampled_at: str | None = None


class SubscriptionItem(_CamelModel):
    id: str
    name: str
    category: str
    amount: float
    currency: str
    billing_cycle: str
    next_payment_date: str
    is_active: bool


class SuggestPreferences(_CamelModel):
    default_currency: str | None = None
    savings_goal: float | None = None
    locale: str | None = None
    timezone: str | None = None


# --- Normalized outputs ------------------------------------------------------


class UsageMeta(_CamelModel):
    input_tokens: int | None = None
    output_tokens: int | None = None


class CitationSource(_CamelModel):
    start_index: int | None = None
    end_index: int | None = None
    uri: str | None = None
    license: str | None = None


class CitationMetadata(_CamelModel):
    model_config = ConfigDict(extra="forbid")

    citation_sources: list[CitationSource] = Field(default_factory=list)


class SafetyRating(_CamelModel):
    # Forbidding extras keeps the annotation union unambiguous when re-validated.
    model_config = ConfigDict(extra="forbid")

    category: str
    probability: str
    blocked: bool | None = None


MessageAnnotation = CitationMetadata | SafetyRating


class AssistantMessage(_CamelModel):
    role: Literal["assistant"] = "assistant"
    content: str = ""
    annotations: list[MessageAnnotation] | None = None


class ChatResult(_CamelModel):
    message: AssistantMessage
    usage: UsageMeta | None = None


class ImpactEstimate(_CamelModel):
    currency: str | None = None
    monthly: float | None = None
    yearly: float | None = None


class SuggestionAction(_CamelModel):
    type: str
    label: str
    target_id: str | None = None


class Suggestion(_CamelModel):
    type: str
    title: str
    description: str
    target_ids: list[str] = Field(default_factory=list)
    impact_estimate: ImpactEstimate | None = None
    confidence: Confidence | None = None
    actions: list[SuggestionAction] | None = None


class SuggestionsResult(_CamelModel):
    suggestions: list[Suggestion] = Field(default_factory=list)
    summary: str | None = None
    usage: UsageMeta | None = None


# --- HTTP request bodies -----------------------------------------------------


class ChatRequest(BaseModel):
    """
    Chat request body.

    Fields are deliberately untyped: the sanitizer drops malformed entries
    individually instead of rejecting the whole request.
    """

    messages: Any = Field(
        default=None,
        description="Conversation, oldest first. Each item: {role: user|assistant|system, content}.",
        examples=[[{"role": "user", "content": "How much do I spend on streaming?"}]],
    )
    context: Any = Field(
        default=None,
        description="Optional hints: {timezone, currency, locale}.",
        examples=[{"timezone": "Europe/Berlin", "currency": "EUR", "locale": "de-DE"}],
    )


class SuggestionsRequest(BaseModel):
    """Suggestions request body. Malformed subscription entries are dropped individually."""

    subscriptions: Any = Field(
        default=None,
        description="Subscriptions snapshot (max 200 are kept, most recent last).",
    )
    preferences: Any = Field(
        default=None,
        description="Optional {defaultCurrency, savingsGoal, locale, timezone}.",
    )
