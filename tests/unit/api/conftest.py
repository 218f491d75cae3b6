"""
Name: API Test Fixtures

Responsibilities:
  - Build the FastAPI app over fresh in-memory singletons per test
  - Seed a subject and an organization in the container repositories
  - Issue bearer tokens for each role
"""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from consent_ledger.api.main import create_app
from consent_ledger.container import (
    get_compliance_rule_repository,
    get_organization_repository,
    get_subject_repository,
    reset_container,
)
from consent_ledger.domain.entities import (
    ComplianceRule,
    Organization,
    RuleType,
    Severity,
    Subject,
)
from consent_ledger.identity.auth import encode_principal
from consent_ledger.identity.users import Principal, UserRole


def bearer(principal: Principal) -> dict[str, str]:
    return {"Authorization": f"Bearer {encode_principal(principal)}"}


@pytest.fixture
def client():
    reset_container()
    yield TestClient(create_app())
    reset_container()


@pytest.fixture
def api_subject(client) -> Subject:
    return get_subject_repository().create_subject(
        Subject(id=uuid4(), email=f"{uuid4().hex}@example.com")
    )


@pytest.fixture
def api_owner() -> Principal:
    return Principal(id=uuid4(), role=UserRole.ORGANIZATION)


@pytest.fixture
def api_organization(client, api_owner) -> Organization:
    return get_organization_repository().create_organization(
        Organization(id=uuid4(), name="Acme Bank", owner_user_id=api_owner.id)
    )


@pytest.fixture
def api_rule(client) -> ComplianceRule:
    return get_compliance_rule_repository().create_rule(
        ComplianceRule(
            id=uuid4(),
            name="Consent Required",
            rule_type=RuleType.CONSENT_REQUIRED,
            severity=Severity.HIGH,
        )
    )


@pytest.fixture
def citizen_headers(api_subject) -> dict[str, str]:
    return bearer(Principal(id=api_subject.id, role=UserRole.CITIZEN))


@pytest.fixture
def owner_headers(api_owner) -> dict[str, str]:
    return bearer(api_owner)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return bearer(Principal(id=uuid4(), role=UserRole.ADMIN))


@pytest.fixture
def headers_for():
    """Factory: bearer headers for an arbitrary principal."""
    return bearer
