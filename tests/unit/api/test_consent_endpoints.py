"""
Name: Consent Endpoint Tests

Responsibilities:
  - Grant / revoke / read consents over HTTP
  - Role gates and RFC 7807 error shapes
  - Admin sweep and expiry notices
"""

from uuid import uuid4

import pytest

from consent_ledger.identity.users import Principal, UserRole

pytestmark = pytest.mark.unit


def _grant(client, headers, organization_id, **overrides):
    body = {
        "organization_id": str(organization_id),
        "data_types": ["personal_info"],
        "purpose": "kyc_verification",
        "duration_days": 90,
    }
    body.update(overrides)
    return client.post("/v1/consents", json=body, headers=headers)


def test_citizen_grants_consent(client, citizen_headers, api_subject, api_organization):
    response = _grant(client, citizen_headers, api_organization.id)

    assert response.status_code == 201
    body = response.json()
    assert body["subject_id"] == str(api_subject.id)
    assert body["status"] == "active"
    assert body["data_types"] == ["personal_info"]
    assert body["expires_at"] is not None


def test_grant_defaults_duration(client, citizen_headers, api_organization):
    response = _grant(client, citizen_headers, api_organization.id, duration_days=None)

    assert response.status_code == 201
    assert response.json()["expires_at"] is not None


def test_grant_requires_citizen_role(client, owner_headers, api_organization):
    response = _grant(client, owner_headers, api_organization.id)

    assert response.status_code == 403


def test_grant_without_token(client, api_organization):
    response = _grant(client, {}, api_organization.id)

    assert response.status_code == 401
    assert response.headers["content-type"].startswith("application/problem+json")


def test_grant_unknown_category_is_422(client, citizen_headers, api_organization):
    response = _grant(client, citizen_headers, api_organization.id, data_types=["dna"])

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert any("data_types" in e.get("field", "") for e in body["errors"])


def test_grant_unknown_organization_is_404(client, citizen_headers):
    response = _grant(client, citizen_headers, uuid4())

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_revoke_and_conflict(client, citizen_headers, api_organization):
    consent_id = _grant(client, citizen_headers, api_organization.id).json()["id"]

    first = client.post(
        f"/v1/consents/{consent_id}/revoke",
        json={"reason": "moving banks"},
        headers=citizen_headers,
    )
    second = client.post(f"/v1/consents/{consent_id}/revoke", headers=citizen_headers)

    assert first.status_code == 200
    assert first.json()["status"] == "revoked"
    assert first.json()["revoke_reason"] == "moving banks"
    assert second.status_code == 409
    assert second.json()["code"] == "CONFLICT"


def test_list_my_consents(client, citizen_headers, api_organization):
    _grant(client, citizen_headers, api_organization.id)
    _grant(client, citizen_headers, api_organization.id, data_types=["contact"])

    response = client.get("/v1/consents/mine?page_size=1", headers=citizen_headers)

    assert response.status_code == 200
    body = response.json()
    assert len(body["items"]) == 1
    assert body["page_info"]["total"] == 2
    assert body["page_info"]["has_next"] is True


def test_get_consent_visibility(
    client, citizen_headers, owner_headers, headers_for, api_organization
):
    consent_id = _grant(client, citizen_headers, api_organization.id).json()["id"]
    stranger = headers_for(Principal(id=uuid4(), role=UserRole.CITIZEN))

    assert client.get(f"/v1/consents/{consent_id}", headers=citizen_headers).status_code == 200
    assert client.get(f"/v1/consents/{consent_id}", headers=owner_headers).status_code == 200
    assert client.get(f"/v1/consents/{consent_id}", headers=stranger).status_code == 403


def _check(client, headers, subject_id, organization_id, data_type):
    return client.post(
        "/v1/consents/check",
        json={
            "subject_id": str(subject_id),
            "organization_id": str(organization_id),
            "data_type": data_type,
        },
        headers=headers,
    )


def test_check_consent(client, citizen_headers, owner_headers, api_subject, api_organization):
    _grant(client, citizen_headers, api_organization.id)

    covered = _check(
        client, owner_headers, api_subject.id, api_organization.id, "personal_info"
    )
    uncovered = _check(
        client, owner_headers, api_subject.id, api_organization.id, "financial"
    )

    assert covered.json()["valid"] is True
    assert covered.json()["consent"]["purpose"] == "kyc_verification"
    assert uncovered.json()["valid"] is False
    assert uncovered.json()["reason"] == "data_type_not_covered"


def test_check_for_foreign_organization_is_403(
    client, headers_for, api_subject, api_organization
):
    other_owner = headers_for(Principal(id=uuid4(), role=UserRole.ORGANIZATION))

    response = _check(
        client, other_owner, api_subject.id, api_organization.id, "personal_info"
    )

    assert response.status_code == 403


def test_organization_consent_listing(
    client, citizen_headers, owner_headers, api_organization
):
    _grant(client, citizen_headers, api_organization.id)

    response = client.get(
        f"/v1/organizations/{api_organization.id}/consents?status=active",
        headers=owner_headers,
    )

    assert response.status_code == 200
    assert response.json()["page_info"]["total"] == 1


def test_expire_and_notify_are_admin_only(client, admin_headers, owner_headers):
    assert client.post("/v1/consents/expire", headers=owner_headers).status_code == 403

    expired = client.post("/v1/consents/expire", headers=admin_headers)
    notified = client.post(
        "/v1/consents/notify-expiring", json={"within_days": 7}, headers=admin_headers
    )

    assert expired.status_code == 200
    assert expired.json() == {"expired": 0}
    assert notified.json() == {"notified": 0}


def test_notify_expiring_counts_soon_expiring(
    client, citizen_headers, admin_headers, api_organization
):
    _grant(client, citizen_headers, api_organization.id, duration_days=3)

    response = client.post(
        "/v1/consents/notify-expiring", json={}, headers=admin_headers
    )

    assert response.json() == {"notified": 1}
