from __future__ import annotations

import json

from app.assistant.sanitizer import MAX_SUBSCRIPTIONS, sanitize_messages, sanitize_subscriptions
from scripts.generate_sample_requests import main


def test_sample_requests_pass_sanitization(tmp_path) -> None:
    paths = {p.name: p for p in main(tmp_path)}

    chat = json.loads(paths["chat_request.json"].read_text(encoding="utf-8"))
    assert len(sanitize_messages(chat["messages"])) == 2

    suggestions = json.loads(paths["suggestions_request.json"].read_text(encoding="utf-8"))
    assert len(sanitize_subscriptions(suggestions["subscriptions"])) == 10

    oversized = json.loads(
        paths["suggestions_request_oversized.json"].read_text(encoding="utf-8")
    )
    kept = sanitize_subscriptions(oversized["subscriptions"])
    assert len(kept) == MAX_SUBSCRIPTIONS
    assert kept[-1].id == "sub_250"
