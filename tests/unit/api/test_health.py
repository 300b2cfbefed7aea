from __future__ import annotations

import sys
from pathlib import Path

from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

import tableflow.api.routes.health as health_route
from tableflow.api.main import app


def test_live_health_endpoint() -> None:
    client = TestClient(app)
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-Id"]


def test_ready_without_redis_only_checks_postgres(monkeypatch) -> None:
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setattr(health_route, "ping_database", lambda timeout_seconds=1.0: True)

    response = TestClient(app).get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "checks": {"postgres": True}}


def test_ready_reports_unavailable_redis(monkeypatch) -> None:
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6399/0")
    monkeypatch.setattr(health_route, "ping_database", lambda timeout_seconds=1.0: True)
    monkeypatch.setattr(health_route, "ping_redis", lambda timeout_seconds=1.0: False)

    response = TestClient(app).get("/health/ready")

    assert response.status_code == 503
    assert response.json() == {
        "status": "unavailable",
        "checks": {"postgres": True, "redis": False},
    }


def test_incoming_request_id_is_echoed() -> None:
    response = TestClient(app).get("/health/live", headers={"X-Request-Id": "abc-123"})

    assert response.headers["X-Request-Id"] == "abc-123"


def test_metrics_endpoint_exposes_prometheus_text() -> None:
    client = TestClient(app)
    client.get("/health/live")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    expected = 'http_requests_total{method="GET",path="/health/live",status_code="200"}'
    assert expected in response.text
