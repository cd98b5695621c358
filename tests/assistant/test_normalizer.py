from __future__ import annotations

import pytest

from app.assistant.normalizer import (
    MAX_DESCRIPTION_LENGTH,
    MAX_SUMMARY_LENGTH,
    MAX_TITLE_LENGTH,
    extract_text,
    normalize_chat,
    normalize_suggestions,
    parse_json_document,
)
from app.assistant.schemas import CitationMetadata, SafetyRating, UsageMeta
from app.domain.exceptions import ModelError
from tests.assistant._helpers import gemini_response, suggestions_response


def _valid(**overrides):
    item = {
        "type": "optimize",
        "title": "Review Netflix",
        "description": "...",
        "targetIds": ["sub1"],
    }
    item.update(overrides)
    return item


# --- Chat ------------------------------------------------------------------------


def test_chat_text_is_joined_from_parts() -> None:
    raw = {"candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "there"}, {}]}}]}
    assert extract_text(raw) == "Hello there"


@pytest.mark.parametrize(
    "raw",
    [{}, {"candidates": []}, {"candidates": ["x"]}, {"candidates": [{"content": "x"}]}],
)
def test_chat_without_text_yields_empty_message(raw) -> None:
    result = normalize_chat(raw)
    assert result.message.role == "assistant"
    assert result.message.content == ""
    assert result.message.annotations is None


def test_citation_metadata_becomes_single_annotation() -> None:
    raw = gemini_response(
        "See source",
        citationMetadata={
            "citationSources": [{"startIndex": 0, "endIndex": 3, "uri": "https://a.example"}]
        },
        safetyRatings=[{"category": "HARM_CATEGORY_HARASSMENT", "probability": "NEGLIGIBLE"}],
    )
    result = normalize_chat(raw, usage=UsageMeta(input_tokens=1))
    annotations = result.message.annotations
    assert annotations is not None and len(annotations) == 1
    assert isinstance(annotations[0], CitationMetadata)
    assert annotations[0].citation_sources[0].uri == "https://a.example"
    assert result.usage == UsageMeta(input_tokens=1)


def test_safety_ratings_used_when_no_citations() -> None:
    raw = gemini_response(
        "ok",
        safetyRatings=[
            {"category": "HARM_CATEGORY_HARASSMENT", "probability": "NEGLIGIBLE"},
            {"category": "HARM_CATEGORY_HATE_SPEECH", "probability": "LOW", "blocked": False},
            {"category": 3},
        ],
    )
    annotations = normalize_chat(raw).message.annotations
    assert annotations is not None
    assert all(isinstance(a, SafetyRating) for a in annotations)
    assert [a.category for a in annotations] == [
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
    ]
    assert annotations[1].blocked is False


# --- Suggestions ---------------------------------------------------------------------


def test_fenced_suggestion_document_round_trips() -> None:
    text = (
        "```json\n"
        '{"suggestions":[{"type":"optimize","title":"Review Netflix",'
        '"description":"...","targetIds":["sub1"]}]}\n'
        "```"
    )
    result = normalize_suggestions(gemini_response(text))
    assert len(result.suggestions) == 1
    s = result.suggestions[0]
    assert (s.type, s.title, s.description, s.target_ids) == (
        "optimize",
        "Review Netflix",
        "...",
        ["sub1"],
    )
    assert s.confidence is None
    assert s.actions is None
    assert s.impact_estimate is None
    assert result.summary is None


def test_plain_json_is_parsed_directly() -> None:
    result = normalize_suggestions(suggestions_response({"suggestions": [_valid()]}))
    assert len(result.suggestions) == 1


def test_invalid_text_without_fence_is_a_model_error() -> None:
    with pytest.raises(ModelError) as exc_info:
        normalize_suggestions(gemini_response("I think you should cancel Netflix."))
    assert exc_info.value.code == "MODEL_ERROR"
    assert exc_info.value.message == "Model did not return valid JSON"


def test_empty_text_is_a_model_error() -> None:
    with pytest.raises(ModelError):
        normalize_suggestions(gemini_response(None))


def test_broken_json_inside_fence_is_a_model_error() -> None:
    with pytest.raises(ModelError):
        parse_json_document('```json\n{"suggestions": [\n```')


def test_first_fenced_block_wins() -> None:
    text = '```json\n{"n": 1}\n```\nand\n```json\n{"n": 2}\n```'
    assert parse_json_document(text) == {"n": 1}


def test_fence_tag_is_case_insensitive() -> None:
    assert parse_json_document('```JSON\n{"n": 1}\n```') == {"n": 1}


def test_entry_missing_title_is_dropped_and_siblings_survive() -> None:
    broken = _valid()
    del broken["title"]
    result = normalize_suggestions(
        suggestions_response({"suggestions": [broken, _valid(title="Keep me")]})
    )
    assert [s.title for s in result.suggestions] == ["Keep me"]


@pytest.mark.parametrize(
    "entry",
    [
        None,
        "suggestion",
        _valid(type=1),
        _valid(description=None),
        _valid(targetIds="sub1"),
    ],
)
def test_malformed_entries_are_dropped_wholesale(entry) -> None:
    result = normalize_suggestions(suggestions_response({"suggestions": [entry]}))
    assert result.suggestions == []


def test_unknown_confidence_is_omitted() -> None:
    result = normalize_suggestions(
        suggestions_response(
            {"suggestions": [_valid(confidence="maybe"), _valid(confidence="high")]}
        )
    )
    assert [s.confidence for s in result.suggestions] == [None, "high"]


def test_unhashable_confidence_is_omitted() -> None:
    result = normalize_suggestions(suggestions_response({"suggestions": [_valid(confidence=[1])]}))
    assert result.suggestions[0].confidence is None


def test_target_ids_are_coerced_and_empty_values_dropped() -> None:
    result = normalize_suggestions(
        suggestions_response({"suggestions": [_valid(targetIds=["a", "", 7, None, 2.5, {}])]})
    )
    assert result.suggestions[0].target_ids == ["a", "7", "2.5"]


def test_optional_fields_are_gated_individually() -> None:
    entry = _valid(
        impactEstimate={"currency": "USD", "monthly": "15", "yearly": 186.0},
        actions=[
            {"type": "cancel", "label": "Cancel Netflix", "targetId": "sub1"},
            {"type": "remind", "label": "Remind me"},
            {"type": "cancel"},
            "nope",
        ],
    )
    s = normalize_suggestions(suggestions_response({"suggestions": [entry]})).suggestions[0]
    assert s.impact_estimate is not None
    assert s.impact_estimate.model_dump(exclude_none=True) == {"currency": "USD", "yearly": 186.0}
    assert s.actions is not None
    assert [(a.type, a.label, a.target_id) for a in s.actions] == [
        ("cancel", "Cancel Netflix", "sub1"),
        ("remind", "Remind me", None),
    ]


def test_impact_estimate_without_valid_fields_is_omitted() -> None:
    entry = _valid(impactEstimate={"monthly": "a lot"}, actions=[{"label": "x"}])
    s = normalize_suggestions(suggestions_response({"suggestions": [entry]})).suggestions[0]
    assert s.impact_estimate is None
    assert s.actions is None


def test_text_fields_and_summary_are_capped() -> None:
    document = {
        "suggestions": [_valid(title="T" * 500, description="D" * 5000)],
        "summary": "S" * 5000,
    }
    result = normalize_suggestions(suggestions_response(document))
    s = result.suggestions[0]
    assert s.title == "T" * MAX_TITLE_LENGTH
    assert s.description == "D" * MAX_DESCRIPTION_LENGTH
    assert result.summary == "S" * MAX_SUMMARY_LENGTH


def test_non_string_summary_is_dropped() -> None:
    result = normalize_suggestions(suggestions_response({"suggestions": [], "summary": 3}))
    assert result.summary is None


@pytest.mark.parametrize("document", [{}, {"suggestions": "none"}, [1, 2], "text", 42])
def test_document_without_suggestions_array_yields_empty_list(document) -> None:
    result = normalize_suggestions(suggestions_response(document))
    assert result.suggestions == []
