"""
============================================================
CRC CARD — infrastructure/repositories/postgres/compliance.py
============================================================
Classes: PostgresComplianceRuleRepository, PostgresViolationRepository

Responsibilities:
- Compliance rules (read-mostly) and violations in PostgreSQL.
- Idempotent violation creation: INSERT ... ON CONFLICT (rule_id,
  access_event_id) DO NOTHING RETURNING.
- Compare-and-set status transitions for violations.

Collaborators:
- postgres.base.PostgresRepository
- Tables: compliance_rules, violations
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from ....domain.entities import (
    ComplianceRule,
    RuleType,
    Severity,
    Violation,
    ViolationStatus,
)
from .base import PostgresRepository, where_clause


class PostgresComplianceRuleRepository(PostgresRepository):
    _SELECT_COLUMNS = """
        id, name, rule_type, severity, is_active, description,
        jurisdiction_reference
    """

    _SQL_INSERT = f"""
        INSERT INTO compliance_rules (
            id, name, rule_type, severity, is_active, description,
            jurisdiction_reference
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        RETURNING {_SELECT_COLUMNS}
    """

    _SQL_GET = f"SELECT {_SELECT_COLUMNS} FROM compliance_rules WHERE id = %s"

    _SQL_LIST = f"""
        SELECT {_SELECT_COLUMNS}
        FROM compliance_rules
        WHERE (%s = FALSE OR is_active = TRUE)
        ORDER BY name ASC, id ASC
    """

    @staticmethod
    def _row_to_rule(row: tuple) -> ComplianceRule:
        return ComplianceRule(
            id=row[0],
            name=row[1],
            rule_type=RuleType(row[2]),
            severity=Severity(row[3]),
            is_active=bool(row[4]),
            description=row[5],
            jurisdiction_reference=row[6],
        )

    def create_rule(self, rule: ComplianceRule) -> ComplianceRule:
        row = self._fetchone(
            query=self._SQL_INSERT,
            params=[
                rule.id,
                rule.name,
                rule.rule_type.value,
                rule.severity.value,
                rule.is_active,
                rule.description,
                rule.jurisdiction_reference,
            ],
            context_msg="PostgresComplianceRuleRepository: Failed to create rule",
            extra={"rule_id": str(rule.id)},
        )
        return self._row_to_rule(row)

    def get_rule(self, rule_id: UUID) -> Optional[ComplianceRule]:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[rule_id],
            context_msg="PostgresComplianceRuleRepository: Failed to get rule",
            extra={"rule_id": str(rule_id)},
        )
        return None if not row else self._row_to_rule(row)

    def list_rules(self, *, active_only: bool = True) -> List[ComplianceRule]:
        rows = self._fetchall(
            query=self._SQL_LIST,
            params=[active_only],
            context_msg="PostgresComplianceRuleRepository: Failed to list rules",
            extra={"active_only": active_only},
        )
        return [self._row_to_rule(r) for r in rows]


class PostgresViolationRepository(PostgresRepository):
    _SELECT_COLUMNS = """
        id, organization_id, rule_id, access_event_id, severity,
        impact_score, description, status, detected_at, resolved_at,
        resolution_notes, resolved_by
    """

    _ORDER_BY = "ORDER BY detected_at DESC, id DESC"

    _SQL_INSERT_IF_ABSENT = f"""
        INSERT INTO violations (
            id, organization_id, rule_id, access_event_id, severity,
            impact_score, description, status, detected_at
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        ON CONFLICT (rule_id, access_event_id) DO NOTHING
        RETURNING {_SELECT_COLUMNS}
    """

    _SQL_FIND_FOR_PAIR = f"""
        SELECT {_SELECT_COLUMNS}
        FROM violations
        WHERE rule_id = %s AND access_event_id = %s
    """

    _SQL_GET = f"SELECT {_SELECT_COLUMNS} FROM violations WHERE id = %s"

    _SQL_LIST_OPEN = f"""
        SELECT {_SELECT_COLUMNS}
        FROM violations
        WHERE organization_id = %s AND status <> 'resolved'
        {_ORDER_BY}
    """

    _SQL_TRANSITION = f"""
        UPDATE violations
        SET status = %s,
            resolved_at = COALESCE(%s, resolved_at),
            resolution_notes = COALESCE(%s, resolution_notes),
            resolved_by = COALESCE(%s, resolved_by)
        WHERE id = %s AND status = ANY(%s)
        RETURNING {_SELECT_COLUMNS}
    """

    @staticmethod
    def _row_to_violation(row: tuple) -> Violation:
        return Violation(
            id=row[0],
            organization_id=row[1],
            rule_id=row[2],
            access_event_id=row[3],
            severity=Severity(row[4]),
            impact_score=float(row[5]),
            description=row[6],
            status=ViolationStatus(row[7]),
            detected_at=row[8],
            resolved_at=row[9],
            resolution_notes=row[10],
            resolved_by=row[11],
        )

    @staticmethod
    def _filters(
        organization_id: UUID,
        status: ViolationStatus | None,
        severity: Severity | None,
    ) -> tuple[str, list[object]]:
        conditions = ["organization_id = %s"]
        params: list[object] = [organization_id]
        if status is not None:
            conditions.append("status = %s")
            params.append(status.value)
        if severity is not None:
            conditions.append("severity = %s")
            params.append(severity.value)
        return where_clause(conditions), params

    def create_violation_if_absent(self, violation: Violation) -> Optional[Violation]:
        row = self._fetchone(
            query=self._SQL_INSERT_IF_ABSENT,
            params=[
                violation.id,
                violation.organization_id,
                violation.rule_id,
                violation.access_event_id,
                violation.severity.value,
                violation.impact_score,
                violation.description,
                violation.status.value,
                violation.detected_at,
            ],
            context_msg="PostgresViolationRepository: Failed to create violation",
            extra={
                "rule_id": str(violation.rule_id),
                "access_event_id": str(violation.access_event_id),
            },
        )
        return None if not row else self._row_to_violation(row)

    def find_violation(
        self, rule_id: UUID, access_event_id: UUID
    ) -> Optional[Violation]:
        row = self._fetchone(
            query=self._SQL_FIND_FOR_PAIR,
            params=[rule_id, access_event_id],
            context_msg="PostgresViolationRepository: Failed to find violation",
            extra={"rule_id": str(rule_id), "access_event_id": str(access_event_id)},
        )
        return None if not row else self._row_to_violation(row)

    def get_violation(self, violation_id: UUID) -> Optional[Violation]:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[violation_id],
            context_msg="PostgresViolationRepository: Failed to get violation",
            extra={"violation_id": str(violation_id)},
        )
        return None if not row else self._row_to_violation(row)

    def list_violations(
        self,
        *,
        organization_id: UUID,
        status: ViolationStatus | None = None,
        severity: Severity | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Violation]:
        where, params = self._filters(organization_id, status, severity)
        rows = self._fetchall(
            query=(
                f"SELECT {self._SELECT_COLUMNS} FROM violations {where} "
                f"{self._ORDER_BY} LIMIT %s OFFSET %s"
            ),
            params=[*params, limit, offset],
            context_msg="PostgresViolationRepository: Failed to list violations",
            extra={"organization_id": str(organization_id)},
        )
        return [self._row_to_violation(r) for r in rows]

    def count_violations(
        self,
        *,
        organization_id: UUID,
        status: ViolationStatus | None = None,
        severity: Severity | None = None,
    ) -> int:
        where, params = self._filters(organization_id, status, severity)
        row = self._fetchone(
            query=f"SELECT COUNT(*) FROM violations {where}",
            params=params,
            context_msg="PostgresViolationRepository: Failed to count violations",
            extra={"organization_id": str(organization_id)},
        )
        return int(row[0]) if row else 0

    def list_open_violations(self, organization_id: UUID) -> List[Violation]:
        rows = self._fetchall(
            query=self._SQL_LIST_OPEN,
            params=[organization_id],
            context_msg="PostgresViolationRepository: Failed to list open violations",
            extra={"organization_id": str(organization_id)},
        )
        return [self._row_to_violation(r) for r in rows]

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
        row = self._fetchone(
            query=self._SQL_TRANSITION,
            params=[
                to_status.value,
                resolved_at,
                resolution_notes,
                resolved_by,
                violation_id,
                [s.value for s in from_statuses],
            ],
            context_msg="PostgresViolationRepository: Failed to transition violation",
            extra={"violation_id": str(violation_id), "to_status": to_status.value},
        )
        return None if not row else self._row_to_violation(row)
