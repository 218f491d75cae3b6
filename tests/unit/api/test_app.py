"""
Name: Application Wiring Tests

Responsibilities:
  - Health check and request correlation header
  - RFC 7807 shape for core errors
  - Every feature route mounted under /v1
"""

import pytest

pytestmark = pytest.mark.unit


def test_healthz_reports_memory_backend(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.json()["db"] == "memory"


def test_request_id_is_echoed(client):
    response = client.get("/healthz", headers={"X-Request-Id": "req-123"})

    assert response.headers["X-Request-Id"] == "req-123"
    assert response.json()["request_id"] == "req-123"


def test_request_id_generated_when_missing(client):
    response = client.get("/healthz")

    assert response.headers["X-Request-Id"]


def test_not_found_is_problem_json(client, citizen_headers):
    response = client.get(
        "/v1/consents/00000000-0000-0000-0000-000000000000",
        headers={**citizen_headers, "X-Request-Id": "trace-1"},
    )

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    body = response.json()
    assert body["status"] == 404
    assert body["title"] == "Not Found"
    assert body["type"].endswith("/not_found")
    assert body["instance"].endswith("/v1/consents/00000000-0000-0000-0000-000000000000")
    assert body["errors"][0]["request_id"] == "trace-1"
    assert body["errors"][0]["error_id"]


def test_routes_are_mounted(client):
    paths = set(client.app.openapi()["paths"])

    for expected in (
        "/v1/consents",
        "/v1/consents/mine",
        "/v1/consents/check",
        "/v1/consents/expire",
        "/v1/consents/notify-expiring",
        "/v1/consents/{consent_id}",
        "/v1/consents/{consent_id}/revoke",
        "/v1/organizations/{organization_id}/consents",
        "/v1/access-events",
        "/v1/access-events/mine",
        "/v1/access-events/unauthorized",
        "/v1/organizations/{organization_id}/access-events",
        "/v1/organizations/{organization_id}/compliance/scan",
        "/v1/organizations/{organization_id}/compliance/summary",
        "/v1/organizations/{organization_id}/violations",
        "/v1/violations/{violation_id}/resolve",
        "/v1/violations/{violation_id}/investigate",
    ):
        assert expected in paths
