"""
===============================================================================
USE CASES: Consent Ledger
===============================================================================

Business Goal:
    Keep the authoritative record of what each subject has authorized each
    organization to do with their data, and answer "is access allowed right
    now (or at instant t)?" from that record alone.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    ConsentLedger

Responsibilities:
    - grant / revoke consents (state machine: active -> revoked | expired).
    - Validity oracle (is_valid / find_covering_consent / check), computed
      from timestamps so it tolerates a stale status field.
    - Idempotent expiry sweep and "expiring soon" notices.
    - Ownership-checked reads and paginated listings.

Collaborators:
    - SubjectRepository / OrganizationRepository: referenced entities
    - ConsentRepository: persistence + compare-and-set transitions
    - NotificationService (best-effort via application.notifications)
    - Clock: single time source

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) A consent covers a non-empty set of known data categories and one
    lawful purpose; duration (when given) is in [1, max_duration_days].
R2) Only the consent's subject may revoke it.
R3) revoked and expired are terminal; a consent whose expiry has passed is
    expired in fact even before the sweep runs.
R4) Validity at t: granted_at <= t, not revoked at or before t, and
    expires_at unset or > t.
R5) Notifications never fail the write that triggered them.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID, uuid4

from ..crosscutting.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from ..crosscutting.logger import logger
from ..crosscutting.pagination import Page, page_request, paginate
from ..domain.entities import Consent, ConsentStatus, DataType, LawfulPurpose
from ..domain.policy import can_revoke_consent, can_view_consent
from ..domain.repositories import (
    ConsentRepository,
    OrganizationRepository,
    SubjectRepository,
)
from ..domain.services import Clock, NotificationKind, NotificationService
from ..identity.users import Principal, UserRole
from .notifications import dispatch_notification
from .validation import as_utc, coerce_enum, optional_text, positive_int


class ConsentCheckReason(str, Enum):
    NO_CONSENT = "no_consent"
    EXPIRED_OR_REVOKED = "expired_or_revoked"
    DATA_TYPE_NOT_COVERED = "data_type_not_covered"


@dataclass(frozen=True)
class ConsentCheck:
    """Explained validity verdict for one (subject, organization, data type)."""

    valid: bool
    reason: Optional[ConsentCheckReason] = None
    consent: Optional[Consent] = None


class ConsentLedger:
    def __init__(
        self,
        *,
        subjects: SubjectRepository,
        organizations: OrganizationRepository,
        consents: ConsentRepository,
        clock: Clock,
        notifier: NotificationService | None = None,
        max_duration_days: int = 3650,
        max_purpose_description_chars: int = 500,
        max_revoke_reason_chars: int = 500,
        expiry_notice_days: int = 7,
    ) -> None:
        self._subjects = subjects
        self._organizations = organizations
        self._consents = consents
        self._clock = clock
        self._notifier = notifier
        self._max_duration_days = max_duration_days
        self._max_purpose_description_chars = max_purpose_description_chars
        self._max_revoke_reason_chars = max_revoke_reason_chars
        self._expiry_notice_days = expiry_notice_days

    # =========================================================
    # Commands
    # =========================================================
    def grant(
        self,
        subject_id: UUID,
        organization_id: UUID,
        data_types: Iterable[DataType | str],
        purpose: LawfulPurpose | str,
        purpose_description: str | None = None,
        duration_days: int | None = None,
    ) -> Consent:
        types = self._coerce_data_types(data_types)
        lawful_purpose = coerce_enum(LawfulPurpose, purpose, "purpose")
        description = optional_text(
            purpose_description,
            "purpose_description",
            self._max_purpose_description_chars,
        )
        if duration_days is not None:
            duration_days = positive_int(
                duration_days, "duration_days", self._max_duration_days
            )

        subject = self._subjects.get_subject(subject_id)
        if subject is None:
            raise NotFoundError("Subject", subject_id)
        organization = self._organizations.get_organization(organization_id)
        if organization is None:
            raise NotFoundError("Organization", organization_id)

        now = self._clock.now()
        consent = self._consents.create_consent(
            Consent(
                id=uuid4(),
                subject_id=subject.id,
                organization_id=organization.id,
                data_types=types,
                purpose=lawful_purpose,
                purpose_description=description,
                granted_at=now,
                expires_at=(
                    now + timedelta(days=duration_days)
                    if duration_days is not None
                    else None
                ),
            )
        )

        logger.info(
            "Consent granted",
            extra={
                "consent_id": str(consent.id),
                "organization_id": str(organization.id),
                "purpose": lawful_purpose.value,
            },
        )

        payload = {
            "consent_id": consent.id,
            "subject_id": subject.id,
            "organization_id": organization.id,
            "organization_name": organization.name,
            "data_types": consent.data_types,
            "purpose": consent.purpose,
            "expires_at": consent.expires_at,
        }
        dispatch_notification(
            self._notifier,
            audience_id=organization.id,
            kind=NotificationKind.CONSENT_GRANTED,
            payload=payload,
        )
        dispatch_notification(
            self._notifier,
            audience_id=subject.id,
            kind=NotificationKind.CONSENT_GRANTED,
            payload=payload,
        )
        return consent

    def revoke(
        self,
        consent_id: UUID,
        requesting_subject_id: UUID | None,
        reason: str | None = None,
    ) -> Consent:
        consent = self._require_consent(consent_id)
        if not can_revoke_consent(consent, requesting_subject_id):
            raise ForbiddenError("Only the consent's subject may revoke it")

        revoke_reason = optional_text(
            reason, "reason", self._max_revoke_reason_chars
        )

        now = self._clock.now()
        current = consent.effective_status(now)
        if current != ConsentStatus.ACTIVE:
            raise ConflictError(f"Consent is already {current.value}")

        revoked = self._consents.transition_consent_status(
            consent.id,
            from_statuses=[ConsentStatus.ACTIVE],
            to_status=ConsentStatus.REVOKED,
            unexpired_at=now,
            revoked_at=now,
            revoke_reason=revoke_reason,
        )
        if revoked is None:
            # Lost the race against another revoke or the expiry sweep.
            raise ConflictError("Consent is no longer active")

        logger.info(
            "Consent revoked",
            extra={
                "consent_id": str(revoked.id),
                "organization_id": str(revoked.organization_id),
            },
        )

        dispatch_notification(
            self._notifier,
            audience_id=revoked.organization_id,
            kind=NotificationKind.CONSENT_REVOKED,
            payload={
                "consent_id": revoked.id,
                "subject_id": revoked.subject_id,
                "organization_id": revoked.organization_id,
                "data_types": revoked.data_types,
                "revoked_at": revoked.revoked_at,
                "reason": revoked.revoke_reason,
            },
        )
        return revoked

    def expire_due(self, as_of: datetime | None = None) -> int:
        """Sweep active consents past their expiry to expired (idempotent)."""
        as_of = as_utc(as_of) or self._clock.now()
        expired = self._consents.expire_due(as_of)
        logger.info(
            "Expired due consents",
            extra={"expired_count": expired, "as_of": as_of.isoformat()},
        )
        return expired

    def notify_expiring(
        self, within_days: int | None = None, as_of: datetime | None = None
    ) -> int:
        """Tell subjects about active consents expiring inside the window."""
        days = self._expiry_notice_days if within_days is None else within_days
        if isinstance(days, bool) or not isinstance(days, int) or days < 0:
            raise ValidationError("within_days must be a non-negative integer")

        as_of = as_utc(as_of) or self._clock.now()
        expiring = self._consents.list_expiring(
            start_at=as_of, end_at=as_of + timedelta(days=days)
        )

        notified = 0
        for consent in expiring:
            delivered = dispatch_notification(
                self._notifier,
                audience_id=consent.subject_id,
                kind=NotificationKind.CONSENT_EXPIRING,
                payload={
                    "consent_id": consent.id,
                    "organization_id": consent.organization_id,
                    "data_types": consent.data_types,
                    "expires_at": consent.expires_at,
                },
            )
            if delivered:
                notified += 1

        logger.info(
            "Consent expiry notices sent",
            extra={"expiring_count": len(expiring), "notified_count": notified},
        )
        return notified

    # =========================================================
    # Validity oracle
    # =========================================================
    def find_covering_consent(
        self,
        subject_id: UUID,
        organization_id: UUID,
        data_type: DataType | str,
        as_of: datetime | None = None,
    ) -> Consent | None:
        """Most recently granted consent that is valid for data_type at as_of."""
        category = coerce_enum(DataType, data_type, "data_type")
        as_of = as_utc(as_of) or self._clock.now()
        for consent in self._consents.list_consents_for_pair(
            subject_id, organization_id
        ):
            if consent.covers(category) and consent.is_valid_at(as_of):
                return consent
        return None

    def is_valid(
        self,
        subject_id: UUID,
        organization_id: UUID,
        data_type: DataType | str,
        as_of: datetime | None = None,
    ) -> bool:
        return (
            self.find_covering_consent(subject_id, organization_id, data_type, as_of)
            is not None
        )

    def check(
        self,
        subject_id: UUID,
        organization_id: UUID,
        data_type: DataType | str,
        as_of: datetime | None = None,
    ) -> ConsentCheck:
        category = coerce_enum(DataType, data_type, "data_type")
        as_of = as_utc(as_of) or self._clock.now()

        consents = self._consents.list_consents_for_pair(subject_id, organization_id)
        if not consents:
            return ConsentCheck(valid=False, reason=ConsentCheckReason.NO_CONSENT)

        valid = [c for c in consents if c.is_valid_at(as_of)]
        if not valid:
            return ConsentCheck(
                valid=False,
                reason=ConsentCheckReason.EXPIRED_OR_REVOKED,
                consent=consents[0],
            )

        for consent in valid:
            if consent.covers(category):
                return ConsentCheck(valid=True, consent=consent)

        return ConsentCheck(
            valid=False,
            reason=ConsentCheckReason.DATA_TYPE_NOT_COVERED,
            consent=valid[0],
        )

    # =========================================================
    # Queries
    # =========================================================
    def get(self, consent_id: UUID, principal: Principal | None) -> Consent:
        consent = self._require_consent(consent_id)

        organization = None
        if principal is not None and principal.role == UserRole.ORGANIZATION:
            organization = self._organizations.get_organization(
                consent.organization_id
            )

        if not can_view_consent(consent, principal, organization=organization):
            raise ForbiddenError("Not authorized to view this consent")
        return consent

    def list_for(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        status: ConsentStatus | str | None = None,
        page: int | None = None,
        page_size: int | None = None,
    ) -> Page[Consent]:
        if (subject_id is None) == (organization_id is None):
            raise ValidationError(
                "Exactly one of subject_id or organization_id is required"
            )
        status_filter = (
            coerce_enum(ConsentStatus, status, "status") if status is not None else None
        )
        request = page_request(page, page_size)

        items = self._consents.list_consents(
            subject_id=subject_id,
            organization_id=organization_id,
            status=status_filter,
            limit=request.limit,
            offset=request.offset,
        )
        total = self._consents.count_consents(
            subject_id=subject_id,
            organization_id=organization_id,
            status=status_filter,
        )
        return paginate(items, request, total)

    # =========================================================
    # Helpers
    # =========================================================
    def _require_consent(self, consent_id: UUID) -> Consent:
        consent = self._consents.get_consent(consent_id)
        if consent is None:
            raise NotFoundError("Consent", consent_id)
        return consent

    @staticmethod
    def _coerce_data_types(data_types: Iterable[DataType | str]) -> list[DataType]:
        if data_types is None or isinstance(data_types, (str, bytes)):
            raise ValidationError("data_types must be a list of data categories")

        types: list[DataType] = []
        for raw in data_types:
            category = coerce_enum(DataType, raw, "data_types")
            if category not in types:
                types.append(category)

        if not types:
            raise ValidationError("data_types must contain at least one category")
        return types
