"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure the test environment (in-memory storage, no .env file)
  - Provide a controllable clock and in-memory repositories
  - Wire the ledger use cases the way the container does

Collaborators:
  - pytest: Test framework
  - consent_ledger.infrastructure.repositories.in_memory
  - consent_ledger.infrastructure.notifications.RecordingNotificationService

Notes:
  - Every use-case fixture shares one set of repositories per test
  - The clock only moves when a test advances it
"""

import os
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_JSON", "false")

from consent_ledger.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from consent_ledger.application import (  # noqa: E402
    AccessRecorder,
    ComplianceRuleEngine,
    ComplianceScorer,
    ConsentLedger,
    build_default_registry,
)
from consent_ledger.domain.entities import (  # noqa: E402
    ComplianceRule,
    Organization,
    RuleType,
    Severity,
    Subject,
)
from consent_ledger.identity.users import Principal, UserRole  # noqa: E402
from consent_ledger.infrastructure.notifications import (  # noqa: E402
    RecordingNotificationService,
)
from consent_ledger.infrastructure.repositories.in_memory import (  # noqa: E402
    InMemoryAccessEventRepository,
    InMemoryComplianceRuleRepository,
    InMemoryConsentRepository,
    InMemoryOrganizationRepository,
    InMemorySubjectRepository,
    InMemoryViolationRepository,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (require PostgreSQL)"
    )


class FixedClock:
    """Clock frozen at a given instant; tests move it explicitly."""

    def __init__(self, now: datetime = NOW) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **delta) -> datetime:
        self._now = self._now + timedelta(**delta)
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now


# ============================================================================
# Infrastructure fixtures
# ============================================================================


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def notifier() -> RecordingNotificationService:
    return RecordingNotificationService()


@pytest.fixture
def subjects() -> InMemorySubjectRepository:
    return InMemorySubjectRepository()


@pytest.fixture
def organizations() -> InMemoryOrganizationRepository:
    return InMemoryOrganizationRepository()


@pytest.fixture
def consents() -> InMemoryConsentRepository:
    return InMemoryConsentRepository()


@pytest.fixture
def access_events() -> InMemoryAccessEventRepository:
    return InMemoryAccessEventRepository()


@pytest.fixture
def rules() -> InMemoryComplianceRuleRepository:
    return InMemoryComplianceRuleRepository()


@pytest.fixture
def violations() -> InMemoryViolationRepository:
    return InMemoryViolationRepository()


# ============================================================================
# Parties
# ============================================================================


@pytest.fixture
def owner() -> Principal:
    return Principal(id=uuid4(), role=UserRole.ORGANIZATION)


@pytest.fixture
def admin() -> Principal:
    return Principal(id=uuid4(), role=UserRole.ADMIN)


@pytest.fixture
def subject(subjects) -> Subject:
    return subjects.create_subject(
        Subject(id=uuid4(), email="ada@example.com", full_name="Ada Obi")
    )


@pytest.fixture
def citizen(subject) -> Principal:
    return Principal(id=subject.id, role=UserRole.CITIZEN)


@pytest.fixture
def organization(organizations, owner) -> Organization:
    return organizations.create_organization(
        Organization(
            id=uuid4(),
            name="Acme Bank",
            owner_user_id=owner.id,
            email="dpo@acme.example",
        )
    )


@pytest.fixture
def consent_required_rule(rules) -> ComplianceRule:
    return rules.create_rule(
        ComplianceRule(
            id=uuid4(),
            name="Consent Required",
            rule_type=RuleType.CONSENT_REQUIRED,
            severity=Severity.HIGH,
            jurisdiction_reference="NDPR Article 2.2",
        )
    )


# ============================================================================
# Use cases
# ============================================================================


@pytest.fixture
def ledger(subjects, organizations, consents, clock, notifier) -> ConsentLedger:
    return ConsentLedger(
        subjects=subjects,
        organizations=organizations,
        consents=consents,
        clock=clock,
        notifier=notifier,
    )


@pytest.fixture
def recorder(
    ledger, subjects, organizations, consents, access_events, clock, notifier
) -> AccessRecorder:
    return AccessRecorder(
        ledger=ledger,
        subjects=subjects,
        organizations=organizations,
        consents=consents,
        access_events=access_events,
        clock=clock,
        notifier=notifier,
    )


@pytest.fixture
def scorer(organizations, access_events, violations) -> ComplianceScorer:
    return ComplianceScorer(
        organizations=organizations,
        access_events=access_events,
        violations=violations,
    )


@pytest.fixture
def engine(
    organizations, rules, access_events, consents, violations, scorer, clock, notifier
) -> ComplianceRuleEngine:
    return ComplianceRuleEngine(
        registry=build_default_registry(purpose_limitation=True),
        organizations=organizations,
        rules=rules,
        access_events=access_events,
        consents=consents,
        violations=violations,
        scorer=scorer,
        clock=clock,
        notifier=notifier,
    )
