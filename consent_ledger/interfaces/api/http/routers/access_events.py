"""
===============================================================================
CRC CARD — interfaces/api/http/routers/access_events.py
===============================================================================

Module:
    Access Event Router

Responsibilities:
    - Record accesses on behalf of an organization (owner or admin).
    - Let citizens read who touched their data.
    - Organization and admin views (history, unauthorized feed).

Collaborators:
    - application.AccessRecorder
    - application.access.require_manageable_organization
    - identity.auth
    - schemas.access_events
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from .....application.access import require_manageable_organization
from .....application.access_recorder import AccessRecorder
from .....container import get_access_recorder, get_organization_repository
from .....crosscutting.config import get_settings
from .....crosscutting.pagination import Page
from .....domain.repositories import OrganizationRepository
from .....identity.auth import require_principal, require_role
from .....identity.users import Principal, UserRole
from ..schemas.access_events import (
    AccessEventRes,
    AccessEventsPageRes,
    RecordAccessReq,
    UnauthorizedAccessRes,
)

router = APIRouter()


def _to_page_res(page: Page) -> AccessEventsPageRes:
    return AccessEventsPageRes(
        items=[AccessEventRes.model_validate(e) for e in page.items],
        page_info=page.page_info,
    )


@router.post(
    "/access-events",
    response_model=AccessEventRes,
    status_code=201,
    tags=["access-events"],
)
def record_access(
    req: RecordAccessReq,
    request: Request,
    recorder: AccessRecorder = Depends(get_access_recorder),
    organizations: OrganizationRepository = Depends(get_organization_repository),
    principal: Principal = Depends(
        require_role(UserRole.ORGANIZATION, UserRole.ADMIN)
    ),
):
    require_manageable_organization(organizations, req.organization_id, principal)
    event = recorder.record(
        subject_id=req.subject_id,
        organization_id=req.organization_id,
        data_type=req.data_type,
        action=req.action,
        purpose=req.purpose,
        principal=principal,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        consent_hint=req.consent_id,
    )
    return AccessEventRes.model_validate(event)


@router.get(
    "/access-events/mine", response_model=AccessEventsPageRes, tags=["access-events"]
)
def list_my_access_events(
    start_at: datetime | None = Query(None),
    end_at: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    recorder: AccessRecorder = Depends(get_access_recorder),
    principal: Principal = Depends(require_role(UserRole.CITIZEN)),
):
    result = recorder.list_for(
        subject_id=principal.id,
        start_at=start_at,
        end_at=end_at,
        page=page,
        page_size=page_size,
    )
    return _to_page_res(result)


@router.get(
    "/access-events/unauthorized",
    response_model=UnauthorizedAccessRes,
    tags=["access-events"],
)
def list_unauthorized_access(
    organization_id: UUID | None = Query(None),
    since: datetime | None = Query(None),
    recorder: AccessRecorder = Depends(get_access_recorder),
    _principal: Principal = Depends(require_role(UserRole.ADMIN)),
):
    events = recorder.unauthorized_since(organization_id=organization_id, since=since)
    return UnauthorizedAccessRes(
        items=[AccessEventRes.model_validate(e) for e in events],
        limit=get_settings().unauthorized_access_limit,
    )


@router.get(
    "/organizations/{organization_id}/access-events",
    response_model=AccessEventsPageRes,
    tags=["access-events"],
)
def list_organization_access_events(
    organization_id: UUID,
    start_at: datetime | None = Query(None),
    end_at: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    recorder: AccessRecorder = Depends(get_access_recorder),
    organizations: OrganizationRepository = Depends(get_organization_repository),
    principal: Principal = Depends(require_principal()),
):
    require_manageable_organization(organizations, organization_id, principal)
    result = recorder.list_for(
        organization_id=organization_id,
        start_at=start_at,
        end_at=end_at,
        page=page,
        page_size=page_size,
    )
    return _to_page_res(result)
