"""HTTP schemas for compliance scans, summaries and violations."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .....crosscutting.pagination import PageInfo
from .....domain.entities import Severity, ViolationStatus


class ResolveViolationReq(BaseModel):
    notes: str | None = Field(default=None, max_length=2000)


class ViolationRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    rule_id: UUID
    access_event_id: Optional[UUID] = None
    severity: Severity
    impact_score: float
    description: str
    status: ViolationStatus
    detected_at: datetime
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    resolved_by: Optional[UUID] = None


class ViolationsPageRes(BaseModel):
    items: list[ViolationRes]
    page_info: PageInfo


class ScanRes(BaseModel):
    organization_id: UUID
    scanned_at: datetime
    window_start: datetime
    total_violations: int
    created: int
    score: float
    violations: list[ViolationRes]


class ComplianceSummaryRes(BaseModel):
    organization_id: UUID
    organization_name: str
    compliance_score: float
    total_accesses: int
    authorized_accesses: int
    authorization_rate: float
    open_violations: Dict[Severity, int]
    total_open_violations: int
