"""
Name: Compliance Rule Engine Tests

Responsibilities:
  - Scan: one violation per unauthorized access, idempotent re-scans
  - Score: recomputed after scans and resolutions
  - Violation lifecycle: investigate / resolve, ownership, terminal states
  - Rule registry: unregistered types, purpose limitation check
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from consent_ledger.application.compliance.rules import (
    RuleContext,
    build_default_registry,
    check_consent_required,
)
from consent_ledger.crosscutting.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from consent_ledger.domain.entities import (
    ComplianceRule,
    RuleType,
    Severity,
    ViolationStatus,
)
from consent_ledger.domain.services import NotificationKind
from consent_ledger.identity.users import Principal, UserRole

pytestmark = pytest.mark.unit


def _access(recorder, subject, organization, owner, data_type="personal_info", purpose="kyc_verification"):
    return recorder.record(
        subject_id=subject.id,
        organization_id=organization.id,
        data_type=data_type,
        action="read",
        purpose=purpose,
        principal=owner,
    )


def _grant(ledger, subject, organization, data_types=("personal_info",), purpose="kyc_verification"):
    return ledger.grant(
        subject_id=subject.id,
        organization_id=organization.id,
        data_types=list(data_types),
        purpose=purpose,
        duration_days=365,
    )


@pytest.fixture
def eight_authorized_two_denied(recorder, ledger, subject, organization, owner):
    """10 accesses, 2 of them without consent."""
    _grant(ledger, subject, organization)
    for _ in range(8):
        _access(recorder, subject, organization, owner)
    return [
        _access(recorder, subject, organization, owner, data_type="financial"),
        _access(recorder, subject, organization, owner, data_type="health"),
    ]


class TestScan:
    def test_org_without_accesses_scores_100(
        self, engine, organization, consent_required_rule, organizations
    ):
        result = engine.scan(organization.id)

        assert result.total_violations == 0
        assert result.score == 100.0
        assert organizations.get_organization(organization.id).compliance_score == 100.0

    def test_two_unauthorized_accesses_score_80(
        self,
        engine,
        organization,
        consent_required_rule,
        eight_authorized_two_denied,
        organizations,
    ):
        result = engine.scan(organization.id)

        assert result.total_violations == 2
        assert result.created == 2
        assert result.score == 80.0
        assert {v.access_event_id for v in result.violations} == {
            e.id for e in eight_authorized_two_denied
        }
        assert all(v.severity == Severity.HIGH for v in result.violations)
        assert all(v.impact_score == 10.0 for v in result.violations)
        assert organizations.get_organization(organization.id).compliance_score == 80.0

    def test_rescan_is_idempotent(
        self,
        engine,
        organization,
        consent_required_rule,
        eight_authorized_two_denied,
        violations,
    ):
        engine.scan(organization.id)
        second = engine.scan(organization.id)

        assert second.total_violations == 2
        assert second.created == 0
        assert violations.count_violations(organization_id=organization.id) == 2

    def test_notifies_only_new_violations(
        self,
        engine,
        organization,
        consent_required_rule,
        eight_authorized_two_denied,
        notifier,
    ):
        engine.scan(organization.id)
        engine.scan(organization.id)

        sent = notifier.of_kind(NotificationKind.VIOLATION_DETECTED)
        assert len(sent) == 2
        assert {n.audience_id for n in sent} == {organization.id}

    def test_events_outside_window_are_ignored(
        self, engine, recorder, subject, organization, owner, consent_required_rule, clock
    ):
        _access(recorder, subject, organization, owner)
        clock.advance(days=31)

        assert engine.scan(organization.id).total_violations == 0

    def test_inactive_rules_are_skipped(
        self, engine, recorder, rules, subject, organization, owner
    ):
        rules.create_rule(
            ComplianceRule(
                id=uuid4(),
                name="Dormant",
                rule_type=RuleType.CONSENT_REQUIRED,
                severity=Severity.CRITICAL,
                is_active=False,
            )
        )
        _access(recorder, subject, organization, owner)

        assert engine.scan(organization.id).total_violations == 0

    def test_rule_type_without_check_yields_nothing(
        self, engine, recorder, rules, subject, organization, owner
    ):
        rules.create_rule(
            ComplianceRule(
                id=uuid4(),
                name="Retention",
                rule_type=RuleType.RETENTION_LIMIT,
                severity=Severity.MEDIUM,
            )
        )
        _access(recorder, subject, organization, owner)

        result = engine.scan(organization.id)

        assert result.total_violations == 0
        assert result.score == 100.0

    def test_unknown_organization(self, engine):
        with pytest.raises(NotFoundError):
            engine.scan(uuid4())

    def test_purpose_limitation(
        self, engine, recorder, ledger, rules, subject, organization, owner
    ):
        rules.create_rule(
            ComplianceRule(
                id=uuid4(),
                name="Purpose Limitation",
                rule_type=RuleType.PURPOSE_LIMITATION,
                severity=Severity.MEDIUM,
            )
        )
        _grant(ledger, subject, organization, purpose="kyc_verification")
        _access(recorder, subject, organization, owner, purpose="kyc_verification")
        misuse = _access(recorder, subject, organization, owner, purpose="marketing")

        result = engine.scan(organization.id)

        assert [v.access_event_id for v in result.violations] == [misuse.id]
        assert result.score == 95.0


class TestResolve:
    def test_resolving_restores_points(
        self,
        engine,
        organization,
        owner,
        consent_required_rule,
        eight_authorized_two_denied,
        clock,
        organizations,
    ):
        violation = engine.scan(organization.id).violations[0]
        clock.advance(hours=2)

        resolved = engine.resolve(violation.id, owner, "Consent collected offline")

        assert resolved.status == ViolationStatus.RESOLVED
        assert resolved.resolved_at == clock.now()
        assert resolved.resolved_by == owner.id
        assert resolved.resolution_notes == "Consent collected offline"
        assert organizations.get_organization(organization.id).compliance_score == 90.0

    def test_resolved_violation_is_not_reopened(
        self,
        engine,
        organization,
        admin,
        consent_required_rule,
        eight_authorized_two_denied,
    ):
        violation = engine.scan(organization.id).violations[0]
        engine.resolve(violation.id, admin)

        rescan = engine.scan(organization.id)

        assert rescan.created == 0
        assert rescan.score == 90.0

    def test_resolving_twice_conflicts(
        self, engine, organization, owner, consent_required_rule, eight_authorized_two_denied
    ):
        violation = engine.scan(organization.id).violations[0]
        engine.resolve(violation.id, owner)

        with pytest.raises(ConflictError):
            engine.resolve(violation.id, owner)

    def test_stranger_cannot_resolve(
        self, engine, organization, consent_required_rule, eight_authorized_two_denied
    ):
        violation = engine.scan(organization.id).violations[0]

        with pytest.raises(ForbiddenError):
            engine.resolve(violation.id, Principal(uuid4(), UserRole.ORGANIZATION))

    def test_unknown_violation(self, engine, owner):
        with pytest.raises(NotFoundError):
            engine.resolve(uuid4(), owner)

    def test_investigate_then_resolve(
        self, engine, organization, owner, consent_required_rule, eight_authorized_two_denied
    ):
        violation = engine.scan(organization.id).violations[0]

        investigating = engine.investigate(violation.id, owner)
        assert investigating.status == ViolationStatus.INVESTIGATING

        with pytest.raises(ConflictError):
            engine.investigate(violation.id, owner)

        assert engine.resolve(violation.id, owner).status == ViolationStatus.RESOLVED

    def test_notes_too_long(
        self, engine, organization, owner, consent_required_rule, eight_authorized_two_denied
    ):
        violation = engine.scan(organization.id).violations[0]

        with pytest.raises(ValidationError):
            engine.resolve(violation.id, owner, "x" * 2001)


class TestListViolations:
    def test_filters_and_pagination(
        self, engine, organization, owner, consent_required_rule, eight_authorized_two_denied
    ):
        first, _ = engine.scan(organization.id).violations
        engine.resolve(first.id, owner)

        open_page = engine.list_violations(organization.id, owner, status="detected")
        high_page = engine.list_violations(
            organization.id, owner, severity=Severity.HIGH, page_size=1
        )

        assert open_page.page_info.total == 1
        assert high_page.page_info.total == 2
        assert len(high_page.items) == 1
        assert high_page.page_info.has_next

    def test_stranger_cannot_list(self, engine, organization):
        with pytest.raises(ForbiddenError):
            engine.list_violations(
                organization.id, Principal(uuid4(), UserRole.CITIZEN)
            )


class TestScorerSummary:
    def test_summary_counts(
        self,
        engine,
        scorer,
        organization,
        owner,
        consent_required_rule,
        eight_authorized_two_denied,
    ):
        engine.scan(organization.id)

        summary = scorer.summary(organization.id, owner)

        assert summary.organization_name == "Acme Bank"
        assert summary.total_accesses == 10
        assert summary.authorized_accesses == 8
        assert summary.authorization_rate == 80.0
        assert summary.open_violations[Severity.HIGH] == 2
        assert summary.total_open_violations == 2
        assert summary.compliance_score == 80.0

    def test_ignored_violations_still_count(
        self,
        engine,
        scorer,
        organization,
        consent_required_rule,
        eight_authorized_two_denied,
        violations,
    ):
        violation = engine.scan(organization.id).violations[0]
        violations.transition_violation_status(
            violation.id,
            from_statuses=[ViolationStatus.DETECTED],
            to_status=ViolationStatus.IGNORED,
        )

        assert scorer.recompute(organization.id) == 80.0


class TestRules:
    def test_default_registry(self):
        assert build_default_registry().registered_types() == [
            RuleType.CONSENT_REQUIRED
        ]
        assert build_default_registry(purpose_limitation=True).registered_types() == [
            RuleType.CONSENT_REQUIRED,
            RuleType.PURPOSE_LIMITATION,
        ]

    def test_consent_required_check_is_pure(
        self, recorder, subject, organization, owner, consent_required_rule, clock
    ):
        event = _access(recorder, subject, organization, owner)
        context = RuleContext(
            organization_id=organization.id,
            rule=consent_required_rule,
            window_start=clock.now() - timedelta(days=30),
            window_end=clock.now(),
            events=[event],
            covering_consents=lambda _event: [],
        )

        drafts = check_consent_required(context)

        assert [d.access_event_id for d in drafts] == [event.id]
        assert "personal_info" in drafts[0].description
