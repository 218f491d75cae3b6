"""
Name: In-Memory Repository Tests

Responsibilities:
  - Verify compare-and-set transitions and the expiry sweep
  - Verify ordering, range filters and the unique violation pair
  - Verify stored entities are isolated from caller mutation
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from consent_ledger.domain.entities import (
    AccessAction,
    AccessEvent,
    Consent,
    ConsentStatus,
    DataType,
    LawfulPurpose,
    Organization,
    Severity,
    Violation,
    ViolationStatus,
)
from consent_ledger.infrastructure.repositories.in_memory import (
    InMemoryAccessEventRepository,
    InMemoryConsentRepository,
    InMemoryOrganizationRepository,
    InMemoryViolationRepository,
)

pytestmark = pytest.mark.unit

T0 = datetime(2026, 2, 1, tzinfo=timezone.utc)
SUBJECT_ID = uuid4()
ORG_ID = uuid4()


def _consent(granted_at=T0, expires_in_days=30, **overrides) -> Consent:
    fields = dict(
        id=uuid4(),
        subject_id=SUBJECT_ID,
        organization_id=ORG_ID,
        data_types=[DataType.CONTACT],
        purpose=LawfulPurpose.SERVICE_DELIVERY,
        granted_at=granted_at,
        expires_at=(
            granted_at + timedelta(days=expires_in_days)
            if expires_in_days is not None
            else None
        ),
    )
    fields.update(overrides)
    return Consent(**fields)


def _event(accessed_at=T0, authorized=True) -> AccessEvent:
    return AccessEvent(
        id=uuid4(),
        subject_id=SUBJECT_ID,
        organization_id=ORG_ID,
        accessed_by="organization:test",
        data_type=DataType.CONTACT,
        action=AccessAction.READ,
        purpose=LawfulPurpose.SERVICE_DELIVERY,
        accessed_at=accessed_at,
        authorized=authorized,
    )


def _violation(access_event_id, rule_id=None) -> Violation:
    return Violation(
        id=uuid4(),
        organization_id=ORG_ID,
        rule_id=rule_id or uuid4(),
        access_event_id=access_event_id,
        severity=Severity.HIGH,
        impact_score=10.0,
        description="x",
        detected_at=T0,
    )


class TestConsentRepository:
    def test_stored_copy_is_isolated(self):
        repo = InMemoryConsentRepository()
        consent = repo.create_consent(_consent())

        consent.status = ConsentStatus.REVOKED

        assert repo.get_consent(consent.id).status == ConsentStatus.ACTIVE

    def test_pair_listing_newest_first_with_stable_ties(self):
        repo = InMemoryConsentRepository()
        older = repo.create_consent(_consent())
        tie = repo.create_consent(_consent())
        newest = repo.create_consent(_consent(granted_at=T0 + timedelta(hours=1)))

        listed = repo.list_consents_for_pair(SUBJECT_ID, ORG_ID)

        assert [c.id for c in listed] == [newest.id, tie.id, older.id]

    def test_transition_is_compare_and_set(self):
        repo = InMemoryConsentRepository()
        consent = repo.create_consent(_consent())

        first = repo.transition_consent_status(
            consent.id,
            from_statuses=[ConsentStatus.ACTIVE],
            to_status=ConsentStatus.REVOKED,
            revoked_at=T0,
        )
        second = repo.transition_consent_status(
            consent.id,
            from_statuses=[ConsentStatus.ACTIVE],
            to_status=ConsentStatus.REVOKED,
            revoked_at=T0,
        )

        assert first.status == ConsentStatus.REVOKED
        assert second is None

    def test_transition_refuses_lapsed_consent(self):
        repo = InMemoryConsentRepository()
        consent = repo.create_consent(_consent(expires_in_days=1))

        result = repo.transition_consent_status(
            consent.id,
            from_statuses=[ConsentStatus.ACTIVE],
            to_status=ConsentStatus.REVOKED,
            unexpired_at=T0 + timedelta(days=2),
            revoked_at=T0 + timedelta(days=2),
        )

        assert result is None

    def test_expire_due_and_list_expiring(self):
        repo = InMemoryConsentRepository()
        due = repo.create_consent(_consent(expires_in_days=1))
        later = repo.create_consent(_consent(expires_in_days=10))
        repo.create_consent(_consent(expires_in_days=None))

        expiring = repo.list_expiring(start_at=T0, end_at=T0 + timedelta(days=10))
        assert [c.id for c in expiring] == [due.id, later.id]

        assert repo.expire_due(T0 + timedelta(days=1)) == 1
        assert repo.expire_due(T0 + timedelta(days=1)) == 0
        assert repo.get_consent(due.id).status == ConsentStatus.EXPIRED
        assert repo.count_consents(organization_id=ORG_ID, status=ConsentStatus.ACTIVE) == 2


class TestAccessEventRepository:
    def test_range_is_inclusive_and_newest_first(self):
        repo = InMemoryAccessEventRepository()
        early = repo.create_access_event(_event(T0))
        mid = repo.create_access_event(_event(T0 + timedelta(days=1)))
        repo.create_access_event(_event(T0 + timedelta(days=3)))

        listed = repo.list_access_events(
            organization_id=ORG_ID, start_at=T0, end_at=T0 + timedelta(days=1)
        )

        assert [e.id for e in listed] == [mid.id, early.id]

    def test_authorized_filter_and_count(self):
        repo = InMemoryAccessEventRepository()
        repo.create_access_event(_event(authorized=True))
        denied = repo.create_access_event(_event(authorized=False))

        listed = repo.list_access_events(organization_id=ORG_ID, authorized=False)

        assert [e.id for e in listed] == [denied.id]
        assert repo.count_access_events(organization_id=ORG_ID) == 2
        assert repo.count_access_events(subject_id=SUBJECT_ID, authorized=True) == 1


class TestViolationRepository:
    def test_one_violation_per_rule_and_event(self):
        repo = InMemoryViolationRepository()
        rule_id, event_id = uuid4(), uuid4()

        created = repo.create_violation_if_absent(_violation(event_id, rule_id))
        duplicate = repo.create_violation_if_absent(_violation(event_id, rule_id))

        assert created is not None
        assert duplicate is None
        assert repo.find_violation(rule_id, event_id).id == created.id

    def test_same_event_different_rules(self):
        repo = InMemoryViolationRepository()
        event_id = uuid4()

        repo.create_violation_if_absent(_violation(event_id))
        repo.create_violation_if_absent(_violation(event_id))

        assert repo.count_violations(organization_id=ORG_ID) == 2

    def test_open_violations_exclude_resolved(self):
        repo = InMemoryViolationRepository()
        kept = repo.create_violation_if_absent(_violation(uuid4()))
        closed = repo.create_violation_if_absent(_violation(uuid4()))
        repo.transition_violation_status(
            closed.id,
            from_statuses=[ViolationStatus.DETECTED],
            to_status=ViolationStatus.RESOLVED,
            resolved_at=T0,
        )

        assert [v.id for v in repo.list_open_violations(ORG_ID)] == [kept.id]


def test_update_compliance_score():
    repo = InMemoryOrganizationRepository()
    org = repo.create_organization(Organization(id=uuid4(), name="Acme"))

    assert repo.update_compliance_score(org.id, 72.5) is True
    assert repo.get_organization(org.id).compliance_score == 72.5
    assert repo.update_compliance_score(uuid4(), 50.0) is False
