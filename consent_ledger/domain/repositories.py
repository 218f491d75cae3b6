"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define the data-access capability the ledger core needs (ports).
- Keep application/domain independent from storage (PostgreSQL, in-memory).
- Expose the atomic primitives the state machine relies on:
  compare-and-set status transitions, the expiry sweep, and
  create-if-absent for violations.

Collaborators
- domain.entities: Subject, Organization, Consent, AccessEvent,
  ComplianceRule, Violation
- infrastructure.repositories: in_memory.*, postgres.* implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- No deletion: every record is an audit record.
- Implementations MUST match method signatures exactly.

Notes
- typing.Protocol for structural subtyping.
- Listings return concrete lists in a documented, deterministic order.
"""

from datetime import datetime
from typing import List, Optional, Protocol, Sequence
from uuid import UUID

from .entities import (
    AccessEvent,
    ComplianceRule,
    Consent,
    ConsentStatus,
    Organization,
    Severity,
    Subject,
    Violation,
    ViolationStatus,
)


class SubjectRepository(Protocol):
    """R: Citizens (data subjects)."""

    def create_subject(self, subject: Subject) -> Subject:
        """R: Persist a subject."""
        ...

    def get_subject(self, subject_id: UUID) -> Optional[Subject]:
        """R: Fetch a subject by ID."""
        ...


class OrganizationRepository(Protocol):
    """R: Organizations and their derived compliance score."""

    def create_organization(self, organization: Organization) -> Organization:
        """R: Persist an organization."""
        ...

    def get_organization(self, organization_id: UUID) -> Optional[Organization]:
        """R: Fetch an organization by ID."""
        ...

    def update_compliance_score(self, organization_id: UUID, score: float) -> bool:
        """R: Single-field write of the derived score. False if absent."""
        ...


class ConsentRepository(Protocol):
    """
    R: Consent records.

    Implementations must provide:
      - Listing ordered by granted_at DESC
      - Atomic status transitions (compare-and-set)
      - Idempotent expiry sweep
    """

    def create_consent(self, consent: Consent) -> Consent:
        """R: Persist a new consent."""
        ...

    def get_consent(self, consent_id: UUID) -> Optional[Consent]:
        """R: Fetch a consent by ID."""
        ...

    def list_consents(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        status: ConsentStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Consent]:
        """R: Filtered page of consents, granted_at DESC."""
        ...

    def count_consents(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        status: ConsentStatus | None = None,
    ) -> int:
        """R: Count for the same filters as list_consents."""
        ...

    def list_consents_for_pair(
        self, subject_id: UUID, organization_id: UUID
    ) -> List[Consent]:
        """R: Every consent (any status) between a subject and an organization, granted_at DESC."""
        ...

    def transition_consent_status(
        self,
        consent_id: UUID,
        *,
        from_statuses: Sequence[ConsentStatus],
        to_status: ConsentStatus,
        unexpired_at: datetime | None = None,
        revoked_at: datetime | None = None,
        revoke_reason: str | None = None,
    ) -> Optional[Consent]:
        """
        R: Atomically move a consent to `to_status`.

        Applies only if the current status is in `from_statuses` and, when
        `unexpired_at` is given, the consent has no expiry or expires after
        it. Returns the updated consent, or None when the guard failed.
        """
        ...

    def expire_due(self, as_of: datetime) -> int:
        """R: active + expires_at <= as_of -> expired. Returns transitions made."""
        ...

    def list_expiring(self, *, start_at: datetime, end_at: datetime) -> List[Consent]:
        """R: Active consents with start_at < expires_at <= end_at, expires_at ASC."""
        ...


class AccessEventRepository(Protocol):
    """R: Append-only access events."""

    def create_access_event(self, event: AccessEvent) -> AccessEvent:
        """R: Persist an access event."""
        ...

    def get_access_event(self, event_id: UUID) -> Optional[AccessEvent]:
        """R: Fetch an access event by ID."""
        ...

    def list_access_events(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        start_at: datetime | None = None,
        end_at: datetime | None = None,
        authorized: bool | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[AccessEvent]:
        """R: Filtered page of events, accessed_at DESC. Range bounds are inclusive."""
        ...

    def count_access_events(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        start_at: datetime | None = None,
        end_at: datetime | None = None,
        authorized: bool | None = None,
    ) -> int:
        """R: Count for the same filters as list_access_events."""
        ...


class ComplianceRuleRepository(Protocol):
    """R: Administratively defined rules (read-only for the engine)."""

    def create_rule(self, rule: ComplianceRule) -> ComplianceRule:
        """R: Persist a rule."""
        ...

    def get_rule(self, rule_id: UUID) -> Optional[ComplianceRule]:
        """R: Fetch a rule by ID."""
        ...

    def list_rules(self, *, active_only: bool = True) -> List[ComplianceRule]:
        """R: Rules ordered by name ASC."""
        ...


class ViolationRepository(Protocol):
    """
    R: Violations.

    Implementations must guarantee at most one violation per
    (rule_id, access_event_id) pair when access_event_id is set.
    """

    def create_violation_if_absent(self, violation: Violation) -> Optional[Violation]:
        """R: Insert unless the (rule_id, access_event_id) pair exists. None if it did."""
        ...

    def find_violation(
        self, rule_id: UUID, access_event_id: UUID
    ) -> Optional[Violation]:
        """R: Violation recorded for a (rule, access event) pair, if any."""
        ...

    def get_violation(self, violation_id: UUID) -> Optional[Violation]:
        """R: Fetch a violation by ID."""
        ...

    def list_violations(
        self,
        *,
        organization_id: UUID,
        status: ViolationStatus | None = None,
        severity: Severity | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Violation]:
        """R: Filtered page of violations, detected_at DESC."""
        ...

    def count_violations(
        self,
        *,
        organization_id: UUID,
        status: ViolationStatus | None = None,
        severity: Severity | None = None,
    ) -> int:
        """R: Count for the same filters as list_violations."""
        ...

    def list_open_violations(self, organization_id: UUID) -> List[Violation]:
        """R: Every violation of the organization whose status is not resolved."""
        ...

    def transition_violation_status(
        self,
        violation_id: UUID,
        *,
        from_statuses: Sequence[ViolationStatus],
        to_status: ViolationStatus,
        resolved_at: datetime | None = None,
        resolution_notes: str | None = None,
        resolved_by: UUID | None = None,
    ) -> Optional[Violation]:
        """R: Atomic status change guarded by `from_statuses`. None when the guard failed."""
        ...
