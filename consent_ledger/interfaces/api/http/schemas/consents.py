"""
===============================================================================
CRC CARD — schemas/consents.py
===============================================================================

Module:
    HTTP schemas for consents

Responsibilities:
    - Request/response DTOs for consent endpoints.
    - Field limits from settings (the core validates again).

Collaborators:
    - domain.entities (enums)
    - crosscutting.config.get_settings (limits)
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .....application.consent_ledger import ConsentCheckReason
from .....crosscutting.config import get_settings
from .....crosscutting.pagination import PageInfo
from .....domain.entities import ConsentStatus, DataType, LawfulPurpose

_settings = get_settings()


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class GrantConsentReq(BaseModel):
    organization_id: UUID
    data_types: list[DataType] = Field(..., min_length=1)
    purpose: LawfulPurpose
    purpose_description: str | None = Field(
        default=None, max_length=_settings.max_purpose_description_chars
    )
    duration_days: int | None = Field(
        default=None,
        ge=1,
        le=_settings.consent_max_duration_days,
        description="Omitted -> CONSENT_DEFAULT_DURATION_DAYS",
    )


class RevokeConsentReq(BaseModel):
    reason: str | None = Field(default=None, max_length=_settings.max_revoke_reason_chars)


class CheckConsentReq(BaseModel):
    subject_id: UUID
    organization_id: UUID
    data_type: DataType


class NotifyExpiringReq(BaseModel):
    within_days: int | None = Field(default=None, ge=0, le=365)


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class ConsentRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subject_id: UUID
    organization_id: UUID
    data_types: list[DataType]
    purpose: LawfulPurpose
    purpose_description: Optional[str] = None
    status: ConsentStatus
    granted_at: datetime
    expires_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    revoke_reason: Optional[str] = None
    consent_version: str


class ConsentsPageRes(BaseModel):
    items: list[ConsentRes]
    page_info: PageInfo


class ConsentCheckRes(BaseModel):
    valid: bool
    reason: ConsentCheckReason | None = None
    consent: ConsentRes | None = None


class ExpireConsentsRes(BaseModel):
    expired: int


class NotifyExpiringRes(BaseModel):
    notified: int
