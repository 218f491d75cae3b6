"""
============================================================
CRC CARD — infrastructure/repositories/in_memory/compliance.py
============================================================
Classes: InMemoryComplianceRuleRepository, InMemoryViolationRepository

Responsibilities:
  - Store compliance rules (ordered by name).
  - Store violations with the (rule_id, access_event_id) uniqueness the
    engine relies on, checked and inserted under one lock.
  - Compare-and-set status transitions for violations.
  - Deterministic ordering: detected_at DESC, then most recently stored.

Collaborators:
  - domain.entities.ComplianceRule, Violation, ViolationStatus, Severity
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from itertools import count
from threading import Lock
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from ....domain.entities import (
    ComplianceRule,
    Severity,
    Violation,
    ViolationStatus,
)


class InMemoryComplianceRuleRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._rules: Dict[UUID, ComplianceRule] = {}

    def create_rule(self, rule: ComplianceRule) -> ComplianceRule:
        with self._lock:
            self._rules[rule.id] = rule
        return rule

    def get_rule(self, rule_id: UUID) -> Optional[ComplianceRule]:
        with self._lock:
            return self._rules.get(rule_id)

    def list_rules(self, *, active_only: bool = True) -> List[ComplianceRule]:
        with self._lock:
            rules = [r for r in self._rules.values() if r.is_active or not active_only]
        return sorted(rules, key=lambda r: (r.name, str(r.id)))


class InMemoryViolationRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._violations: Dict[UUID, Violation] = {}
        self._by_pair: Dict[Tuple[UUID, UUID], UUID] = {}
        self._seq: Dict[UUID, int] = {}
        self._counter = count()

    # =========================================================
    # Helpers
    # =========================================================
    def _filtered(
        self,
        organization_id: UUID,
        status: ViolationStatus | None,
        severity: Severity | None,
    ) -> List[Violation]:
        items = [
            v
            for v in self._violations.values()
            if v.organization_id == organization_id
            and (status is None or v.status == status)
            and (severity is None or v.severity == severity)
        ]
        return sorted(
            items, key=lambda v: (v.detected_at, self._seq[v.id]), reverse=True
        )

    # =========================================================
    # Public API
    # =========================================================
    def create_violation_if_absent(self, violation: Violation) -> Optional[Violation]:
        with self._lock:
            pair = None
            if violation.access_event_id is not None:
                pair = (violation.rule_id, violation.access_event_id)
                if pair in self._by_pair:
                    return None
                self._by_pair[pair] = violation.id

            self._violations[violation.id] = replace(violation)
            self._seq[violation.id] = next(self._counter)
        return replace(violation)

    def find_violation(
        self, rule_id: UUID, access_event_id: UUID
    ) -> Optional[Violation]:
        with self._lock:
            violation_id = self._by_pair.get((rule_id, access_event_id))
            if violation_id is None:
                return None
            return replace(self._violations[violation_id])

    def get_violation(self, violation_id: UUID) -> Optional[Violation]:
        with self._lock:
            violation = self._violations.get(violation_id)
            return replace(violation) if violation is not None else None

    def list_violations(
        self,
        *,
        organization_id: UUID,
        status: ViolationStatus | None = None,
        severity: Severity | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Violation]:
        with self._lock:
            items = self._filtered(organization_id, status, severity)
            return [replace(v) for v in items[offset : offset + limit]]

    def count_violations(
        self,
        *,
        organization_id: UUID,
        status: ViolationStatus | None = None,
        severity: Severity | None = None,
    ) -> int:
        with self._lock:
            return len(self._filtered(organization_id, status, severity))

    def list_open_violations(self, organization_id: UUID) -> List[Violation]:
        with self._lock:
            return [
                replace(v)
                for v in self._filtered(organization_id, None, None)
                if v.status != ViolationStatus.RESOLVED
            ]

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
        with self._lock:
            violation = self._violations.get(violation_id)
            if violation is None or violation.status not in from_statuses:
                return None

            violation.status = to_status
            if resolved_at is not None:
                violation.resolved_at = resolved_at
            if resolution_notes is not None:
                violation.resolution_notes = resolution_notes
            if resolved_by is not None:
                violation.resolved_by = resolved_by
            return replace(violation)
