"""Normalize and bound untrusted caller input before it reaches the model.

Every function here is total: it returns a fully typed value, `None` for an
absent optional structure, or raises `BadRequestError` when nothing usable is
left. Partially valid entries are dropped, never repaired.
"""

from __future__ import annotations

import math
from typing import Any

from app.assistant.schemas import (
    ChatContext,
    ChatMessage,
    SubscriptionItem,
    SuggestPreferences,
)
from app.domain.exceptions import BadRequestError

MAX_CHAT_MESSAGES = 50
MAX_SUBSCRIPTIONS = 200
MAX_TEXT_LENGTH = 4000
MAX_HINT_LENGTH = 100

_VALID_ROLES = frozenset({"user", "assistant", "system"})

# Per-field caps for subscription text fields.
_SUBSCRIPTION_TEXT_CAPS: dict[str, int] = {
    "id": 128,
    "name": 200,
    "category": 100,
    "currency": 10,
    "billingCycle": 30,
    "nextPaymentDate": 40,
}


def trim_text(value: str, max_length: int = MAX_TEXT_LENGTH) -> str:
    """Return `value` cut to `max_length` characters (always a prefix of the input)."""

    if len(value) <= max_length:
        return value
    return value[:max_length]


def finite_number(value: Any) -> float | None:
    """Return `value` as a float when it is a real, finite JSON number; else None.

    Booleans are rejected even though Python treats them as ints.
    """

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _non_empty_str(value: Any, max_length: int) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped:
        return None
    return trim_text(stripped, max_length)


def sanitize_messages(raw: Any) -> list[ChatMessage]:
    if not isinstance(raw, list):
        raise BadRequestError("messages must be a non-empty array of valid items (max 50)")

    valid: list[ChatMessage] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        role = item.get("role")
        content = item.get("content")
        if not isinstance(role, str) or role not in _VALID_ROLES:
            continue
        if not isinstance(content, str) or not content.strip():
            continue
        valid.append(ChatMessage(role=role, content=trim_text(content)))

    if not valid:
        raise BadRequestError("No valid messages provided")

    # Oldest entries are dropped first.
    return valid[-MAX_CHAT_MESSAGES:]


def sanitize_context(raw: Any) -> ChatContext | None:
    if not isinstance(raw, dict):
        return None

    fields = {
        "timezone": _non_empty_str(raw.get("timezone"), MAX_HINT_LENGTH),
        "currency": _non_empty_str(raw.get("currency"), MAX_HINT_LENGTH),
        "locale": _non_empty_str(raw.get("locale"), MAX_HINT_LENGTH),
        "sampled_at": _non_empty_str(raw.get("sampledAt"), MAX_HINT_LENGTH),
    }
    present = {k: v for k, v in fields.items() if v is not None}
    if not present:
        return None
    return ChatContext(**present)


def _sanitize_subscription(item: Any) -> SubscriptionItem | None:
    if not isinstance(item, dict):
        return None

    texts: dict[str, str] = {}
    for key, cap in _SUBSCRIPTION_TEXT_CAPS.items():
        value = item.get(key)
        if not isinstance(value, str):
            return None
        texts[key] = trim_text(value, cap)

    if not texts["id"].strip():
        return None

    amount = finite_number(item.get("amount"))
    is_active = item.get("isActive")
    if amount is None or not isinstance(is_active, bool):
        return None

    return SubscriptionItem(
        id=texts["id"],
        name=texts["name"],
        category=texts["category"],
        amount=amount,
        currency=texts["currency"],
        billing_cycle=texts["billingCycle"],
        next_payment_date=texts["nextPaymentDate"],
        is_active=is_active,
    )


def sanitize_subscriptions(raw: Any) -> list[SubscriptionItem]:
    if not isinstance(raw, list):
        raise BadRequestError("subscriptions must be a non-empty array of valid items (max 200)")

    valid = [s for s in (_sanitize_subscription(item) for item in raw) if s is not None]
    if not valid:
        raise BadRequestError("No valid subscriptions provided")

    return valid[-MAX_SUBSCRIPTIONS:]


def sanitize_preferences(raw: Any) -> SuggestPreferences | None:
    if not isinstance(raw, dict):
        return None

    fields = {
        "default_currency": _non_empty_str(raw.get("defaultCurrency"), MAX_HINT_LENGTH),
        "savings_goal": finite_number(raw.get("savingsGoal")),
        "locale": _non_empty_str(raw.get("locale"), MAX_HINT_LENGTH),
        "timezone": _non_empty_str(raw.get("timezone"), MAX_HINT_LENGTH),
    }
    present = {k: v for k, v in fields.items() if v is not None}
    if not present:
        return None
    return SuggestPreferences(**present)
