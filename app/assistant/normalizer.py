"""Turn raw model output into validated, bounded results.

Each expected shape has one validation function that returns either a fully
typed value or None ("reject"). Optional fields are gated individually, so a
malformed optional field is omitted rather than failing its parent.
"""

from __future__ import annotations

import json
import re
from typing import Any

from app.assistant.sanitizer import finite_number, trim_text
from app.assistant.schemas import (
    AssistantMessage,
    ChatResult,
    CitationMetadata,
    CitationSource,
    ImpactEstimate,
    MessageAnnotation,
    SafetyRating,
    Suggestion,
    SuggestionAction,
    SuggestionsResult,
    UsageMeta,
)
from app.domain.exceptions import ModelError

MAX_SUGGESTIONS = 50
MAX_TARGET_IDS = 200
MAX_TYPE_LENGTH = 50
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_SUMMARY_LENGTH = 1000
MAX_LABEL_LENGTH = 200
MAX_ID_LENGTH = 128

_CONFIDENCE_LEVELS = frozenset({"low", "medium", "high"})

# First fenced json block wins when several are present.
_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]+?)\s*```", re.IGNORECASE)


def _first_candidate(raw: dict[str, Any]) -> dict[str, Any] | None:
    candidates = raw.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    return first if isinstance(first, dict) else None


def extract_text(raw: dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate ("" when there are none)."""

    candidate = _first_candidate(raw)
    if candidate is None:
        return ""
    content = candidate.get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts")
    if not isinstance(parts, list):
        return ""
    return "".join(
        p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)
    )


# --- Chat ------------------------------------------------------------------------


def _optional_int(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _citation_metadata(value: Any) -> CitationMetadata | None:
    if not isinstance(value, dict):
        return None
    sources = value.get("citationSources")
    if not isinstance(sources, list):
        return CitationMetadata()
    return CitationMetadata(
        citation_sources=[
            CitationSource(
                start_index=_optional_int(s.get("startIndex")),
                end_index=_optional_int(s.get("endIndex")),
                uri=_optional_str(s.get("uri")),
                license=_optional_str(s.get("license")),
            )
            for s in sources
            if isinstance(s, dict)
        ]
    )


def _safety_rating(value: Any) -> SafetyRating | None:
    if not isinstance(value, dict):
        return None
    category = value.get("category")
    probability = value.get("probability")
    if not isinstance(category, str) or not isinstance(probability, str):
        return None
    blocked = value.get("blocked")
    return SafetyRating(
        category=category,
        probability=probability,
        blocked=blocked if isinstance(blocked, bool) else None,
    )


def extract_annotations(raw: dict[str, Any]) -> list[MessageAnnotation] | None:
    candidate = _first_candidate(raw)
    if candidate is None:
        return None

    citation = _citation_metadata(candidate.get("citationMetadata"))
    if citation is not None:
        return [citation]

    ratings = candidate.get("safetyRatings")
    if isinstance(ratings, list):
        valid = [r for r in (_safety_rating(item) for item in ratings) if r is not None]
        return valid or None
    return None


def normalize_chat(raw: dict[str, Any], *, usage: UsageMeta | None = None) -> ChatResult:
    """An empty assistant message is a valid result, not an error."""

    return ChatResult(
        message=AssistantMessage(content=extract_text(raw), annotations=extract_annotations(raw)),
        usage=usage,
    )


# --- Suggestions -----------------------------------------------------------------


def parse_json_document(text: str) -> Any:
    """
    Parse model text as JSON: whole text first, then the first ```json fenced block.

    Raises ModelError when neither yields valid JSON.
    """

    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        pass

    match = _FENCED_JSON_RE.search(text)
    if match is not None:
        try:
            return json.loads(match.group(1))
        except (ValueError, RecursionError) as exc:
            raise ModelError("Model did not return valid JSON") from exc

    raise ModelError("Model did not return valid JSON")


def _coerce_id(value: Any) -> str | None:
    if isinstance(value, str):
        text = value if value.strip() else ""
    else:
        number = finite_number(value)
        if number is None:
            return None
        text = str(int(number)) if number.is_integer() else repr(number)
    if not text:
        return None
    return trim_text(text, MAX_ID_LENGTH)


def _impact_estimate(value: Any) -> ImpactEstimate | None:
    if not isinstance(value, dict):
        return None
    currency = value.get("currency")
    if not isinstance(currency, str) or not currency.strip():
        currency = None
    estimate = ImpactEstimate(
        currency=trim_text(currency, MAX_TYPE_LENGTH) if currency else None,
        monthly=finite_number(value.get("monthly")),
        yearly=finite_number(value.get("yearly")),
    )
    if estimate.currency is None and estimate.monthly is None and estimate.yearly is None:
        return None
    return estimate


def _action(value: Any) -> SuggestionAction | None:
    if not isinstance(value, dict):
        return None
    action_type = value.get("type")
    label = value.get("label")
    if not isinstance(action_type, str) or not isinstance(label, str):
        return None
    return SuggestionAction(
        type=trim_text(action_type, MAX_TYPE_LENGTH),
        label=trim_text(label, MAX_LABEL_LENGTH),
        target_id=_coerce_id(value.get("targetId")),
    )


def validate_suggestion(value: Any) -> Suggestion | None:
    """Return a fully typed suggestion, or None when a required field is malformed."""

    if not isinstance(value, dict):
        return None
    s_type = value.get("type")
    title = value.get("title")
    description = value.get("description")
    target_ids = value.get("targetIds")
    if not (
        isinstance(s_type, str)
        and isinstance(title, str)
        and isinstance(description, str)
        and isinstance(target_ids, list)
    ):
        return None

    ids = [i for i in (_coerce_id(t) for t in target_ids) if i is not None]

    actions: list[SuggestionAction] | None = None
    raw_actions = value.get("actions")
    if isinstance(raw_actions, list):
        actions = [a for a in (_action(item) for item in raw_actions) if a is not None] or None

    confidence = value.get("confidence")
    if not isinstance(confidence, str) or confidence not in _CONFIDENCE_LEVELS:
        confidence = None

    return Suggestion(
        type=trim_text(s_type, MAX_TYPE_LENGTH),
        title=trim_text(title, MAX_TITLE_LENGTH),
        description=trim_text(description, MAX_DESCRIPTION_LENGTH),
        target_ids=ids[:MAX_TARGET_IDS],
        impact_estimate=_impact_estimate(value.get("impactEstimate")),
        confidence=confidence,
        actions=actions,
    )


def normalize_suggestions(
    raw: dict[str, Any], *, usage: UsageMeta | None = None
) -> SuggestionsResult:
    document = parse_json_document(extract_text(raw))
    if not isinstance(document, dict):
        return SuggestionsResult(usage=usage)

    entries = document.get("suggestions")
    suggestions: list[Suggestion] = []
    if isinstance(entries, list):
        suggestions = [s for s in (validate_suggestion(e) for e in entries) if s is not None]

    summary = document.get("summary")
    return SuggestionsResult(
        suggestions=suggestions[:MAX_SUGGESTIONS],
        summary=trim_text(summary, MAX_SUMMARY_LENGTH) if isinstance(summary, str) else None,
        usage=usage,
    )
