"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against the test store
  - No authentication required
  - Unknown routes return the localized 404 envelope
"""

from __future__ import annotations


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client = api_client.client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"]
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    resp = api_client.client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_unknown_route_returns_error_envelope(api_client):
    resp = api_client.client.get("/api/v1/does-not-exist")
    assert resp.status_code == 404
    body = resp.json()
    assert body["status"] == "error"
    assert body["message"] == "Route not found"


def test_unknown_route_in_arabic(api_client):
    resp = api_client.client.get("/api/v1/does-not-exist", headers={"Accept-Language": "ar"})
    assert resp.status_code == 404
    assert resp.json()["message"] == "الطريق غير موجود"
