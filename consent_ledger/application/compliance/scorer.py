"""
===============================================================================
CRC CARD — application/compliance/scorer.py
===============================================================================

Class:
    ComplianceScorer

Responsibilities:
    - Re-derive an organization's 0-100 score from its unresolved violations
      and its access volume, and store it (sole writer of the score).
    - Build the compliance summary shown to owners/admins.

Collaborators:
    - domain.scoring: calculate_compliance_score
    - OrganizationRepository / AccessEventRepository / ViolationRepository
    - application.access: organization resolution + ownership

Notes:
    - Never incremental: each recompute reads the full state, so concurrent
      recomputes converge (last write wins).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict
from uuid import UUID

from ...crosscutting.logger import logger
from ...domain.entities import Severity
from ...domain.repositories import (
    AccessEventRepository,
    OrganizationRepository,
    ViolationRepository,
)
from ...domain.scoring import calculate_compliance_score
from ...identity.users import Principal
from ..access import require_manageable_organization, require_organization


@dataclass(frozen=True)
class ComplianceSummary:
    organization_id: UUID
    organization_name: str
    compliance_score: float
    total_accesses: int
    authorized_accesses: int
    authorization_rate: float
    open_violations: Dict[Severity, int] = field(default_factory=dict)

    @property
    def total_open_violations(self) -> int:
        return sum(self.open_violations.values())


class ComplianceScorer:
    def __init__(
        self,
        *,
        organizations: OrganizationRepository,
        access_events: AccessEventRepository,
        violations: ViolationRepository,
    ) -> None:
        self._organizations = organizations
        self._events = access_events
        self._violations = violations

    def recompute(self, organization_id: UUID) -> float:
        organization = require_organization(self._organizations, organization_id)

        total_accesses = self._events.count_access_events(
            organization_id=organization.id
        )
        open_violations = self._violations.list_open_violations(organization.id)
        score = calculate_compliance_score(open_violations, total_accesses)

        self._organizations.update_compliance_score(organization.id, score)
        logger.info(
            "Compliance score recomputed",
            extra={
                "organization_id": str(organization.id),
                "compliance_score": score,
                "open_violations": len(open_violations),
                "total_accesses": total_accesses,
            },
        )
        return score

    def summary(
        self, organization_id: UUID, principal: Principal | None
    ) -> ComplianceSummary:
        organization = require_manageable_organization(
            self._organizations, organization_id, principal
        )

        total = self._events.count_access_events(organization_id=organization.id)
        authorized = self._events.count_access_events(
            organization_id=organization.id, authorized=True
        )
        rate = round(authorized / total * 100, 2) if total else 0.0

        by_severity: Dict[Severity, int] = {severity: 0 for severity in Severity}
        for violation in self._violations.list_open_violations(organization.id):
            by_severity[violation.severity] += 1

        return ComplianceSummary(
            organization_id=organization.id,
            organization_name=organization.name,
            compliance_score=organization.compliance_score,
            total_accesses=total,
            authorized_accesses=authorized,
            authorization_rate=rate,
            open_violations=by_severity,
        )
