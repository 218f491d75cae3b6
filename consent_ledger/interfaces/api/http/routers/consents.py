"""
===============================================================================
CRC CARD — interfaces/api/http/routers/consents.py
===============================================================================

Module:
    Consent Router

Responsibilities:
    - Expose consent endpoints (grant, revoke, read, list, check, sweep).
    - Translate HTTP requests into ConsentLedger calls.
    - Role gates at the edge; ownership rules stay in the core.

Collaborators:
    - application.ConsentLedger
    - application.access.require_manageable_organization
    - identity.auth (require_role / require_principal)
    - container (factories)
    - schemas.consents (DTOs)

Patterns:
    - Controller / Router
    - Adapter (HTTP -> use case)
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from .....application.access import require_manageable_organization
from .....application.consent_ledger import ConsentLedger
from .....container import get_consent_ledger, get_organization_repository
from .....crosscutting.config import get_settings
from .....crosscutting.pagination import Page
from .....domain.entities import ConsentStatus
from .....domain.repositories import OrganizationRepository
from .....identity.auth import require_principal, require_role
from .....identity.users import Principal, UserRole
from ..schemas.consents import (
    CheckConsentReq,
    ConsentCheckRes,
    ConsentRes,
    ConsentsPageRes,
    ExpireConsentsRes,
    GrantConsentReq,
    NotifyExpiringReq,
    NotifyExpiringRes,
    RevokeConsentReq,
)

router = APIRouter()


def _to_page_res(page: Page) -> ConsentsPageRes:
    return ConsentsPageRes(
        items=[ConsentRes.model_validate(c) for c in page.items],
        page_info=page.page_info,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/consents", response_model=ConsentRes, status_code=201, tags=["consents"])
def grant_consent(
    req: GrantConsentReq,
    ledger: ConsentLedger = Depends(get_consent_ledger),
    principal: Principal = Depends(require_role(UserRole.CITIZEN)),
):
    duration_days = (
        req.duration_days
        if req.duration_days is not None
        else get_settings().consent_default_duration_days
    )
    consent = ledger.grant(
        subject_id=principal.id,
        organization_id=req.organization_id,
        data_types=req.data_types,
        purpose=req.purpose,
        purpose_description=req.purpose_description,
        duration_days=duration_days,
    )
    return ConsentRes.model_validate(consent)


@router.get("/consents/mine", response_model=ConsentsPageRes, tags=["consents"])
def list_my_consents(
    status: ConsentStatus | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    ledger: ConsentLedger = Depends(get_consent_ledger),
    principal: Principal = Depends(require_role(UserRole.CITIZEN)),
):
    result = ledger.list_for(
        subject_id=principal.id, status=status, page=page, page_size=page_size
    )
    return _to_page_res(result)


@router.post("/consents/check", response_model=ConsentCheckRes, tags=["consents"])
def check_consent(
    req: CheckConsentReq,
    ledger: ConsentLedger = Depends(get_consent_ledger),
    organizations: OrganizationRepository = Depends(get_organization_repository),
    principal: Principal = Depends(
        require_role(UserRole.ORGANIZATION, UserRole.ADMIN)
    ),
):
    require_manageable_organization(organizations, req.organization_id, principal)
    result = ledger.check(req.subject_id, req.organization_id, req.data_type)
    return ConsentCheckRes(
        valid=result.valid,
        reason=result.reason,
        consent=(
            ConsentRes.model_validate(result.consent)
            if result.consent is not None
            else None
        ),
    )


@router.post("/consents/expire", response_model=ExpireConsentsRes, tags=["consents"])
def expire_consents(
    ledger: ConsentLedger = Depends(get_consent_ledger),
    _principal: Principal = Depends(require_role(UserRole.ADMIN)),
):
    return ExpireConsentsRes(expired=ledger.expire_due())


@router.post(
    "/consents/notify-expiring", response_model=NotifyExpiringRes, tags=["consents"]
)
def notify_expiring_consents(
    req: NotifyExpiringReq,
    ledger: ConsentLedger = Depends(get_consent_ledger),
    _principal: Principal = Depends(require_role(UserRole.ADMIN)),
):
    return NotifyExpiringRes(notified=ledger.notify_expiring(within_days=req.within_days))


@router.get("/consents/{consent_id}", response_model=ConsentRes, tags=["consents"])
def get_consent(
    consent_id: UUID,
    ledger: ConsentLedger = Depends(get_consent_ledger),
    principal: Principal = Depends(require_principal()),
):
    return ConsentRes.model_validate(ledger.get(consent_id, principal))


@router.post(
    "/consents/{consent_id}/revoke", response_model=ConsentRes, tags=["consents"]
)
def revoke_consent(
    consent_id: UUID,
    req: RevokeConsentReq | None = None,
    ledger: ConsentLedger = Depends(get_consent_ledger),
    principal: Principal = Depends(require_role(UserRole.CITIZEN)),
):
    reason = req.reason if req is not None else None
    return ConsentRes.model_validate(ledger.revoke(consent_id, principal.id, reason))


@router.get(
    "/organizations/{organization_id}/consents",
    response_model=ConsentsPageRes,
    tags=["consents"],
)
def list_organization_consents(
    organization_id: UUID,
    status: ConsentStatus | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    ledger: ConsentLedger = Depends(get_consent_ledger),
    organizations: OrganizationRepository = Depends(get_organization_repository),
    principal: Principal = Depends(require_principal()),
):
    require_manageable_organization(organizations, organization_id, principal)
    result = ledger.list_for(
        organization_id=organization_id, status=status, page=page, page_size=page_size
    )
    return _to_page_res(result)
