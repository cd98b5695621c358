from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _set_test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    for name in (
        "GEMINI_TIMEOUT_SECONDS",
        "GEMINI_CHAT_MODEL",
        "GEMINI_SUGGEST_MODEL",
        "GEMINI_BASE_URL",
        "ASSISTANT_RATE_LIMIT_REQUESTS",
        "ASSISTANT_RATE_LIMIT_WINDOW_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    # Settings are cached via @lru_cache; clear so each test sees its own environment.
    from app.core.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from app.main import create_app

    app = create_app()
    with TestClient(app) as c:
        yield c
