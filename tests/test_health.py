"""
tests/test_health.py -- Integration tests for GET /api/health and the error envelope.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok', or 'unavailable' when the probe fails
  - no authentication required
  - unknown routes still use the {"error": {...}} envelope
"""

from __future__ import annotations

from core.errors import StorageUnavailableError


def test_health_returns_200_with_components(client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"] == {"api": "ok", "database": "ok"}


def test_health_reports_database_outage(client, stores, monkeypatch):
    def unavailable():
        raise StorageUnavailableError("count admins: database unavailable")

    monkeypatch.setattr(stores.admin, "count_admins", unavailable)
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["components"]["database"] == "unavailable"


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"error": {"code": "NOT_FOUND", "message": "Not Found"}}
