"""
Tests for GET /api/health.
"""

import pytest

from test_fixtures import client
from adapters import groq_adapter
from api.routes import health
from api.routes.health import overall_status


def _services(**statuses):
    names = ("database", "ai", "storage", "payments")
    return {name: {"status": statuses.get(name, "connected")} for name in names}


def test_health_with_database_only():
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["environment"] == "testing"
    assert body["services"]["database"]["status"] == "connected"
    assert body["services"]["ai"]["status"] == "not_configured"
    assert body["services"]["payments"]["status"] == "not_configured"
    assert body["performance"]["responseTime"] >= 0
    assert body["uptime"] >= 0


def test_configured_service_is_reported_connected(monkeypatch):
    monkeypatch.setattr(groq_adapter, "is_configured", lambda: True)

    body = client.get("/api/health").json()

    assert body["services"]["ai"]["status"] == "connected"


def test_database_down_is_503(monkeypatch):
    monkeypatch.setattr(health, "check_database", lambda: False)

    response = client.get("/api/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_database_error_is_reported(monkeypatch):
    def broken():
        raise RuntimeError("connection refused")

    monkeypatch.setattr(health, "check_database", broken)

    body = client.get("/api/health").json()

    assert body["services"]["database"]["status"] == "disconnected"
    assert body["services"]["database"]["message"] == "connection refused"


@pytest.mark.parametrize(
    "statuses, expected",
    [
        ({}, "healthy"),
        ({"ai": "not_configured"}, "healthy"),
        ({"storage": "degraded"}, "degraded"),
        ({"payments": "disconnected"}, "degraded"),
        ({"database": "disconnected", "ai": "degraded"}, "unhealthy"),
    ],
)
def test_overall_status(statuses, expected):
    assert overall_status(_services(**statuses)) == expected
