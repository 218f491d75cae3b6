"""
===============================================================================
USE CASES: Compliance Rule Engine
===============================================================================

Business Goal:
    Turn the access history of an organization into Violations of the active
    compliance rules, and manage those violations until they are resolved.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    ComplianceRuleEngine

Responsibilities:
    - scan: evaluate every active rule over the trailing window of access
      events, persist violations idempotently, recompute the score.
    - resolve / investigate: owner- or admin-driven status changes.
    - list_violations: paginated, filterable view for owners/admins.

Collaborators:
    - RuleCheckRegistry: RuleType -> check
    - ComplianceRuleRepository / AccessEventRepository / ConsentRepository
    - ViolationRepository: create_violation_if_absent + compare-and-set
    - ComplianceScorer: synchronous recompute after every mutation
    - NotificationService (best-effort), Clock

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) At most one violation per (rule, access event), whatever its status:
    a resolved violation is not re-opened by a later scan.
R2) Severity and impact score are copied from the rule at detection.
R3) resolved and ignored are terminal for the engine.
R4) Rule types without a registered check yield no violations.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Tuple
from uuid import UUID, uuid4

from ...crosscutting.exceptions import ConflictError, NotFoundError
from ...crosscutting.logger import logger
from ...crosscutting.pagination import Page, page_request, paginate
from ...domain.entities import (
    AccessEvent,
    ComplianceRule,
    Consent,
    Severity,
    Violation,
    ViolationStatus,
)
from ...domain.repositories import (
    AccessEventRepository,
    ComplianceRuleRepository,
    ConsentRepository,
    OrganizationRepository,
    ViolationRepository,
)
from ...domain.scoring import impact_score_for
from ...domain.services import Clock, NotificationKind, NotificationService
from ...identity.users import Principal
from ..access import require_manageable_organization, require_organization
from ..notifications import dispatch_notification
from ..validation import coerce_enum, optional_text
from .rules import RuleCheckRegistry, RuleContext, ViolationDraft
from .scorer import ComplianceScorer

_EVENT_BATCH_SIZE = 500
_MAX_RESOLUTION_NOTES_CHARS = 2000


@dataclass(frozen=True)
class ScanResult:
    organization_id: UUID
    scanned_at: datetime
    window_start: datetime
    violations: List[Violation] = field(default_factory=list)
    created: int = 0
    score: float = 100.0

    @property
    def total_violations(self) -> int:
        return len(self.violations)


class ComplianceRuleEngine:
    def __init__(
        self,
        *,
        registry: RuleCheckRegistry,
        organizations: OrganizationRepository,
        rules: ComplianceRuleRepository,
        access_events: AccessEventRepository,
        consents: ConsentRepository,
        violations: ViolationRepository,
        scorer: ComplianceScorer,
        clock: Clock,
        notifier: NotificationService | None = None,
        window_days: int = 30,
    ) -> None:
        self._registry = registry
        self._organizations = organizations
        self._rules = rules
        self._events = access_events
        self._consents = consents
        self._violations = violations
        self._scorer = scorer
        self._clock = clock
        self._notifier = notifier
        self._window_days = window_days

    # =========================================================
    # Scan
    # =========================================================
    def scan(self, organization_id: UUID) -> ScanResult:
        organization = require_organization(self._organizations, organization_id)

        scanned_at = self._clock.now()
        window_start = scanned_at - timedelta(days=self._window_days)
        events = self._events_in_window(organization.id, window_start, scanned_at)
        covering = self._covering_consents_lookup(organization.id)

        detected: List[Violation] = []
        created = 0
        for rule in self._rules.list_rules(active_only=True):
            check = self._registry.get(rule.rule_type)
            if check is None:
                logger.info(
                    "No check registered for rule type",
                    extra={"rule_id": str(rule.id), "rule_type": rule.rule_type.value},
                )
                continue

            drafts = check(
                RuleContext(
                    organization_id=organization.id,
                    rule=rule,
                    window_start=window_start,
                    window_end=scanned_at,
                    events=events,
                    covering_consents=covering,
                )
            )
            for draft in drafts:
                violation, is_new = self._persist(rule, draft, organization.id, scanned_at)
                if violation is None:
                    continue
                detected.append(violation)
                if is_new:
                    created += 1
                    self._notify_detected(violation)

        score = self._scorer.recompute(organization.id)

        logger.info(
            "Compliance scan completed",
            extra={
                "organization_id": str(organization.id),
                "violations_found": len(detected),
                "violations_created": created,
                "events_scanned": len(events),
                "compliance_score": score,
            },
        )
        return ScanResult(
            organization_id=organization.id,
            scanned_at=scanned_at,
            window_start=window_start,
            violations=detected,
            created=created,
            score=score,
        )

    # =========================================================
    # Violation lifecycle
    # =========================================================
    def resolve(
        self,
        violation_id: UUID,
        principal: Principal | None,
        notes: str | None = None,
    ) -> Violation:
        violation = self._require_violation(violation_id)
        require_manageable_organization(
            self._organizations, violation.organization_id, principal
        )
        resolution_notes = optional_text(
            notes, "resolution_notes", _MAX_RESOLUTION_NOTES_CHARS
        )

        if violation.status in (ViolationStatus.RESOLVED, ViolationStatus.IGNORED):
            raise ConflictError(f"Violation is already {violation.status.value}")

        resolved = self._violations.transition_violation_status(
            violation.id,
            from_statuses=[ViolationStatus.DETECTED, ViolationStatus.INVESTIGATING],
            to_status=ViolationStatus.RESOLVED,
            resolved_at=self._clock.now(),
            resolution_notes=resolution_notes,
            resolved_by=principal.id if principal is not None else None,
        )
        if resolved is None:
            raise ConflictError("Violation can no longer be resolved")

        logger.info(
            "Violation resolved",
            extra={
                "violation_id": str(resolved.id),
                "organization_id": str(resolved.organization_id),
            },
        )
        self._scorer.recompute(resolved.organization_id)
        return resolved

    def investigate(self, violation_id: UUID, principal: Principal | None) -> Violation:
        violation = self._require_violation(violation_id)
        require_manageable_organization(
            self._organizations, violation.organization_id, principal
        )

        if violation.status != ViolationStatus.DETECTED:
            raise ConflictError(f"Violation is already {violation.status.value}")

        updated = self._violations.transition_violation_status(
            violation.id,
            from_statuses=[ViolationStatus.DETECTED],
            to_status=ViolationStatus.INVESTIGATING,
        )
        if updated is None:
            raise ConflictError("Violation is no longer in detected state")

        logger.info(
            "Violation under investigation",
            extra={
                "violation_id": str(updated.id),
                "organization_id": str(updated.organization_id),
            },
        )
        return updated

    def list_violations(
        self,
        organization_id: UUID,
        principal: Principal | None,
        *,
        status: ViolationStatus | str | None = None,
        severity: Severity | str | None = None,
        page: int | None = None,
        page_size: int | None = None,
    ) -> Page[Violation]:
        organization = require_manageable_organization(
            self._organizations, organization_id, principal
        )
        status_filter = (
            coerce_enum(ViolationStatus, status, "status") if status is not None else None
        )
        severity_filter = (
            coerce_enum(Severity, severity, "severity") if severity is not None else None
        )
        request = page_request(page, page_size)

        items = self._violations.list_violations(
            organization_id=organization.id,
            status=status_filter,
            severity=severity_filter,
            limit=request.limit,
            offset=request.offset,
        )
        total = self._violations.count_violations(
            organization_id=organization.id,
            status=status_filter,
            severity=severity_filter,
        )
        return paginate(items, request, total)

    # =========================================================
    # Helpers
    # =========================================================
    def _require_violation(self, violation_id: UUID) -> Violation:
        violation = self._violations.get_violation(violation_id)
        if violation is None:
            raise NotFoundError("Violation", violation_id)
        return violation

    def _events_in_window(
        self, organization_id: UUID, start_at: datetime, end_at: datetime
    ) -> List[AccessEvent]:
        events: List[AccessEvent] = []
        offset = 0
        while True:
            batch = self._events.list_access_events(
                organization_id=organization_id,
                start_at=start_at,
                end_at=end_at,
                limit=_EVENT_BATCH_SIZE,
                offset=offset,
            )
            events.extend(batch)
            if len(batch) < _EVENT_BATCH_SIZE:
                return events
            offset += _EVENT_BATCH_SIZE

    def _covering_consents_lookup(self, organization_id: UUID):
        by_subject: Dict[UUID, List[Consent]] = {}

        def covering(event: AccessEvent) -> List[Consent]:
            if event.subject_id not in by_subject:
                by_subject[event.subject_id] = self._consents.list_consents_for_pair(
                    event.subject_id, organization_id
                )
            return [
                consent
                for consent in by_subject[event.subject_id]
                if consent.covers(event.data_type)
                and consent.is_valid_at(event.accessed_at)
            ]

        return covering

    def _persist(
        self,
        rule: ComplianceRule,
        draft: ViolationDraft,
        organization_id: UUID,
        detected_at: datetime,
    ) -> Tuple[Violation | None, bool]:
        candidate = Violation(
            id=uuid4(),
            organization_id=organization_id,
            rule_id=rule.id,
            access_event_id=draft.access_event_id,
            severity=rule.severity,
            impact_score=impact_score_for(rule.severity),
            description=draft.description,
            detected_at=detected_at,
        )
        created = self._violations.create_violation_if_absent(candidate)
        if created is not None:
            logger.info(
                "Violation detected",
                extra={
                    "violation_id": str(created.id),
                    "organization_id": str(organization_id),
                    "rule_id": str(rule.id),
                    "access_event_id": str(draft.access_event_id),
                },
            )
            return created, True

        # draft.access_event_id is set here: drafts without one always insert.
        existing = self._violations.find_violation(rule.id, draft.access_event_id)
        return existing, False

    def _notify_detected(self, violation: Violation) -> None:
        dispatch_notification(
            self._notifier,
            audience_id=violation.organization_id,
            kind=NotificationKind.VIOLATION_DETECTED,
            payload={
                "violation_id": violation.id,
                "rule_id": violation.rule_id,
                "access_event_id": violation.access_event_id,
                "severity": violation.severity,
                "impact_score": violation.impact_score,
                "description": violation.description,
                "detected_at": violation.detected_at,
            },
        )
