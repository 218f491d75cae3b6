"""HTTP schemas for access events."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .....crosscutting.pagination import PageInfo
from .....domain.entities import AccessAction, DataType, LawfulPurpose


class RecordAccessReq(BaseModel):
    subject_id: UUID
    organization_id: UUID
    data_type: DataType
    action: AccessAction
    purpose: LawfulPurpose
    consent_id: UUID | None = None


class AccessEventRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subject_id: UUID
    organization_id: UUID
    accessed_by: str
    data_type: DataType
    action: AccessAction
    purpose: LawfulPurpose
    accessed_at: datetime
    authorized: bool
    consent_id: Optional[UUID] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AccessEventsPageRes(BaseModel):
    items: list[AccessEventRes]
    page_info: PageInfo


class UnauthorizedAccessRes(BaseModel):
    items: list[AccessEventRes]
    limit: int
