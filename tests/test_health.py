from __future__ import annotations


def test_health_ok(client) -> None:
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
    assert "X-Request-ID" in res.headers


def test_metrics_exposed(client) -> None:
    res = client.get("/metrics")
    assert res.status_code == 200
    assert "http_requests_total" in res.text
