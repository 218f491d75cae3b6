"""
===============================================================================
CRC CARD — interfaces/api/http/routers/compliance.py
===============================================================================

Module:
    Compliance Router

Responsibilities:
    - Trigger scans and read the compliance summary of an organization.
    - List, resolve and investigate violations.

Collaborators:
    - application.ComplianceRuleEngine / ComplianceScorer
    - application.access.require_manageable_organization
    - identity.auth
    - schemas.compliance
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from .....application.access import require_manageable_organization
from .....application.compliance import ComplianceRuleEngine, ComplianceScorer
from .....container import (
    get_compliance_engine,
    get_compliance_scorer,
    get_organization_repository,
)
from .....domain.entities import Severity, ViolationStatus
from .....domain.repositories import OrganizationRepository
from .....identity.auth import require_principal
from .....identity.users import Principal
from ..schemas.compliance import (
    ComplianceSummaryRes,
    ResolveViolationReq,
    ScanRes,
    ViolationRes,
    ViolationsPageRes,
)

router = APIRouter()


@router.post(
    "/organizations/{organization_id}/compliance/scan",
    response_model=ScanRes,
    tags=["compliance"],
)
def scan_organization(
    organization_id: UUID,
    engine: ComplianceRuleEngine = Depends(get_compliance_engine),
    organizations: OrganizationRepository = Depends(get_organization_repository),
    principal: Principal = Depends(require_principal()),
):
    require_manageable_organization(organizations, organization_id, principal)
    result = engine.scan(organization_id)
    return ScanRes(
        organization_id=result.organization_id,
        scanned_at=result.scanned_at,
        window_start=result.window_start,
        total_violations=result.total_violations,
        created=result.created,
        score=result.score,
        violations=[ViolationRes.model_validate(v) for v in result.violations],
    )


@router.get(
    "/organizations/{organization_id}/compliance/summary",
    response_model=ComplianceSummaryRes,
    tags=["compliance"],
)
def compliance_summary(
    organization_id: UUID,
    scorer: ComplianceScorer = Depends(get_compliance_scorer),
    principal: Principal = Depends(require_principal()),
):
    summary = scorer.summary(organization_id, principal)
    return ComplianceSummaryRes(
        organization_id=summary.organization_id,
        organization_name=summary.organization_name,
        compliance_score=summary.compliance_score,
        total_accesses=summary.total_accesses,
        authorized_accesses=summary.authorized_accesses,
        authorization_rate=summary.authorization_rate,
        open_violations=summary.open_violations,
        total_open_violations=summary.total_open_violations,
    )


@router.get(
    "/organizations/{organization_id}/violations",
    response_model=ViolationsPageRes,
    tags=["compliance"],
)
def list_violations(
    organization_id: UUID,
    status: ViolationStatus | None = Query(None),
    severity: Severity | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    engine: ComplianceRuleEngine = Depends(get_compliance_engine),
    principal: Principal = Depends(require_principal()),
):
    result = engine.list_violations(
        organization_id,
        principal,
        status=status,
        severity=severity,
        page=page,
        page_size=page_size,
    )
    return ViolationsPageRes(
        items=[ViolationRes.model_validate(v) for v in result.items],
        page_info=result.page_info,
    )


@router.post(
    "/violations/{violation_id}/resolve",
    response_model=ViolationRes,
    tags=["compliance"],
)
def resolve_violation(
    violation_id: UUID,
    req: ResolveViolationReq,
    engine: ComplianceRuleEngine = Depends(get_compliance_engine),
    principal: Principal = Depends(require_principal()),
):
    return ViolationRes.model_validate(engine.resolve(violation_id, principal, req.notes))


@router.post(
    "/violations/{violation_id}/investigate",
    response_model=ViolationRes,
    tags=["compliance"],
)
def investigate_violation(
    violation_id: UUID,
    engine: ComplianceRuleEngine = Depends(get_compliance_engine),
    principal: Principal = Depends(require_principal()),
):
    return ViolationRes.model_validate(engine.investigate(violation_id, principal))
