"""
===============================================================================
CRC CARD — domain/entities.py
===============================================================================

Module:
    Ledger entities (Subject, Organization, Consent, AccessEvent,
    ComplianceRule, Violation) and their closed enumerations.

Responsibilities:
    - Define the core business structures (no infrastructure).
    - Keep the small invariants next to the data (consent validity is
      computed from timestamps, never read from the status field).
    - Give use cases and repositories clear, typed shapes.

Collaborators:
    - domain.repositories: persist/retrieve these entities.
    - application.*: build and consume them.
    - interfaces.api: serialize them into DTOs.

Principles:
    - No DB / FastAPI dependencies.
    - Data + minimal behavior.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class DataType(str, Enum):
    """Personal data categories a consent can cover."""

    PERSONAL_INFO = "personal_info"
    FINANCIAL = "financial"
    HEALTH = "health"
    BIOMETRIC = "biometric"
    LOCATION = "location"
    CONTACT = "contact"
    EMPLOYMENT = "employment"
    EDUCATION = "education"


class LawfulPurpose(str, Enum):
    """Lawful processing purposes recognized under NDPR."""

    ACCOUNT_OPENING = "account_opening"
    KYC_VERIFICATION = "kyc_verification"
    TRANSACTION_PROCESSING = "transaction_processing"
    SERVICE_DELIVERY = "service_delivery"
    MARKETING = "marketing"
    ANALYTICS = "analytics"
    LEGAL_OBLIGATION = "legal_obligation"
    CONTRACT_FULFILLMENT = "contract_fulfillment"


class ConsentStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class AccessAction(str, Enum):
    READ = "read"
    WRITE = "write"
    UPDATE = "update"
    DELETE = "delete"
    SHARE = "share"
    EXPORT = "export"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ViolationStatus(str, Enum):
    DETECTED = "detected"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    IGNORED = "ignored"


class RuleType(str, Enum):
    CONSENT_REQUIRED = "consent_required"
    PURPOSE_LIMITATION = "purpose_limitation"
    RETENTION_LIMIT = "retention_limit"


# Statuses that still weigh on the compliance score.
OPEN_VIOLATION_STATUSES: frozenset[ViolationStatus] = frozenset(
    {ViolationStatus.DETECTED, ViolationStatus.INVESTIGATING, ViolationStatus.IGNORED}
)


# ---------------------------------------------------------------------------
# Subject / Organization
# ---------------------------------------------------------------------------


@dataclass
class Subject:
    """Citizen whose personal data is processed."""

    id: UUID
    email: str
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Organization:
    """
    Data controller.

    compliance_score is derived: only ComplianceScorer writes it.
    """

    id: UUID
    name: str
    owner_user_id: Optional[UUID] = None
    email: Optional[str] = None
    compliance_score: float = 100.0
    created_at: Optional[datetime] = None

    def is_owned_by(self, user_id: UUID | None) -> bool:
        return self.owner_user_id is not None and self.owner_user_id == user_id


# ---------------------------------------------------------------------------
# Consent
# ---------------------------------------------------------------------------


@dataclass
class Consent:
    """
    A subject's authorization for an organization to process data categories.

    Lifecycle: active -> revoked | expired (both terminal). Never deleted.
    """

    id: UUID
    subject_id: UUID
    organization_id: UUID
    data_types: List[DataType]
    purpose: LawfulPurpose
    granted_at: datetime
    status: ConsentStatus = ConsentStatus.ACTIVE
    purpose_description: Optional[str] = None
    expires_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    revoke_reason: Optional[str] = None
    consent_version: str = "1.0"

    def covers(self, data_type: DataType) -> bool:
        return data_type in self.data_types

    def is_expired_at(self, as_of: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= as_of

    def is_valid_at(self, as_of: datetime) -> bool:
        """
        Validity at an arbitrary instant (audit replay included).

        Valid iff granted at or before `as_of`, not revoked at or before
        `as_of`, and not past its expiry. The stored status is only trusted
        for the terminal facts it records, never for time-based expiry.
        """
        if self.granted_at > as_of:
            return False
        if self.status == ConsentStatus.REVOKED and (
            self.revoked_at is None or self.revoked_at <= as_of
        ):
            return False
        if self.status == ConsentStatus.EXPIRED and self.expires_at is None:
            return False
        return not self.is_expired_at(as_of)

    def effective_status(self, as_of: datetime) -> ConsentStatus:
        """Status with pending expiry applied (sweep may not have run yet)."""
        if self.status == ConsentStatus.ACTIVE and self.is_expired_at(as_of):
            return ConsentStatus.EXPIRED
        return self.status


# ---------------------------------------------------------------------------
# AccessEvent
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccessEvent:
    """
    Record that an organization touched a subject's data.

    authorized reflects the consent corpus at accessed_at and is never
    recomputed.
    """

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


# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComplianceRule:
    """Administratively defined rule; read-only for the engine."""

    id: UUID
    name: str
    rule_type: RuleType
    severity: Severity
    is_active: bool = True
    description: Optional[str] = None
    jurisdiction_reference: Optional[str] = None


@dataclass
class Violation:
    """
    Detected breach of a compliance rule.

    severity and impact_score are frozen at detection; only the status and
    resolution fields change afterwards.
    """

    id: UUID
    organization_id: UUID
    rule_id: UUID
    severity: Severity
    impact_score: float
    description: str
    detected_at: datetime
    status: ViolationStatus = ViolationStatus.DETECTED
    access_event_id: Optional[UUID] = None
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    resolved_by: Optional[UUID] = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_VIOLATION_STATUSES
