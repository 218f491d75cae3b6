"""
===============================================================================
USE CASES: Access Recorder
===============================================================================

Business Goal:
    Every touch of a subject's data by an organization is written down, with
    the authorization verdict frozen at the moment of access.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    AccessRecorder

Responsibilities:
    - Validate the access description (data type, action, purpose).
    - Ask the ConsentLedger oracle whether the access is authorized now.
    - Persist the event unconditionally (unauthorized accesses are the
      evidence the compliance engine works from).
    - Warn the subject when their data was accessed without consent.
    - Listings for subjects/organizations and the unauthorized feed.

Collaborators:
    - ConsentLedger: is_valid / find_covering_consent
    - AccessEventRepository: append-only store
    - SubjectRepository / OrganizationRepository: referenced entities
    - NotificationService (best-effort), Clock

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) authorized == oracle verdict at accessed_at; a consent hint never
    relaxes it.
R2) A hint that does not match (wrong pair, not covering, not valid) is
    logged. An existing hinted consent is stored as the caller's claim; an
    unknown one is dropped in favour of the covering consent.
R3) The event is immutable once written.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID, uuid4

from ..crosscutting.exceptions import NotFoundError, ValidationError
from ..crosscutting.logger import logger
from ..crosscutting.pagination import Page, page_request, paginate
from ..domain.entities import AccessAction, AccessEvent, DataType, LawfulPurpose
from ..domain.repositories import (
    AccessEventRepository,
    ConsentRepository,
    OrganizationRepository,
    SubjectRepository,
)
from ..domain.services import Clock, NotificationKind, NotificationService
from ..identity.users import Principal
from .access import require_organization
from .consent_ledger import ConsentLedger
from .notifications import dispatch_notification
from .validation import as_utc, coerce_enum, optional_text

_MAX_ACCESSED_BY_CHARS = 255
_MAX_USER_AGENT_CHARS = 500
_MAX_IP_ADDRESS_CHARS = 64


class AccessRecorder:
    def __init__(
        self,
        *,
        ledger: ConsentLedger,
        subjects: SubjectRepository,
        organizations: OrganizationRepository,
        consents: ConsentRepository,
        access_events: AccessEventRepository,
        clock: Clock,
        notifier: NotificationService | None = None,
        unauthorized_limit: int = 100,
    ) -> None:
        self._ledger = ledger
        self._subjects = subjects
        self._organizations = organizations
        self._consents = consents
        self._events = access_events
        self._clock = clock
        self._notifier = notifier
        self._unauthorized_limit = unauthorized_limit

    def record(
        self,
        subject_id: UUID,
        organization_id: UUID,
        data_type: DataType | str,
        action: AccessAction | str,
        purpose: LawfulPurpose | str,
        principal: Principal | str,
        ip_address: str | None = None,
        user_agent: str | None = None,
        consent_hint: UUID | None = None,
    ) -> AccessEvent:
        category = coerce_enum(DataType, data_type, "data_type")
        access_action = coerce_enum(AccessAction, action, "action")
        lawful_purpose = coerce_enum(LawfulPurpose, purpose, "purpose")
        accessed_by = self._accessed_by(principal)
        ip_address = optional_text(ip_address, "ip_address", _MAX_IP_ADDRESS_CHARS)
        user_agent = optional_text(user_agent, "user_agent", _MAX_USER_AGENT_CHARS)

        subject = self._subjects.get_subject(subject_id)
        if subject is None:
            raise NotFoundError("Subject", subject_id)
        organization = require_organization(self._organizations, organization_id)

        now = self._clock.now()
        covering = self._ledger.find_covering_consent(
            subject.id, organization.id, category, as_of=now
        )
        authorized = covering is not None

        consent_id = covering.id if covering is not None else None
        if consent_hint is not None:
            if self._verify_hint(
                consent_hint, subject.id, organization.id, category, now
            ):
                consent_id = consent_hint

        event = self._events.create_access_event(
            AccessEvent(
                id=uuid4(),
                subject_id=subject.id,
                organization_id=organization.id,
                accessed_by=accessed_by,
                data_type=category,
                action=access_action,
                purpose=lawful_purpose,
                accessed_at=now,
                authorized=authorized,
                consent_id=consent_id,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )

        logger.info(
            "Access recorded",
            extra={
                "access_event_id": str(event.id),
                "organization_id": str(event.organization_id),
                "authorized": authorized,
            },
        )

        if not authorized:
            dispatch_notification(
                self._notifier,
                audience_id=subject.id,
                kind=NotificationKind.DATA_ACCESSED,
                payload={
                    "access_event_id": event.id,
                    "organization_id": organization.id,
                    "organization_name": organization.name,
                    "data_type": event.data_type,
                    "action": event.action,
                    "purpose": event.purpose,
                    "accessed_at": event.accessed_at,
                    "authorized": False,
                },
            )
        return event

    def list_for(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        start_at: datetime | None = None,
        end_at: datetime | None = None,
        page: int | None = None,
        page_size: int | None = None,
    ) -> Page[AccessEvent]:
        start_at, end_at = as_utc(start_at), as_utc(end_at)
        if (subject_id is None) == (organization_id is None):
            raise ValidationError(
                "Exactly one of subject_id or organization_id is required"
            )
        if start_at is not None and end_at is not None and start_at > end_at:
            raise ValidationError("start_at must not be after end_at")
        request = page_request(page, page_size)

        filters = dict(
            subject_id=subject_id,
            organization_id=organization_id,
            start_at=start_at,
            end_at=end_at,
        )
        items = self._events.list_access_events(
            **filters, limit=request.limit, offset=request.offset
        )
        total = self._events.count_access_events(**filters)
        return paginate(items, request, total)

    def unauthorized_since(
        self,
        organization_id: UUID | None = None,
        since: datetime | None = None,
    ) -> List[AccessEvent]:
        """Unauthorized events, newest first, capped at the configured limit."""
        return self._events.list_access_events(
            organization_id=organization_id,
            start_at=as_utc(since),
            authorized=False,
            limit=self._unauthorized_limit,
            offset=0,
        )

    # =========================================================
    # Helpers
    # =========================================================
    @staticmethod
    def _accessed_by(principal: Principal | str) -> str:
        if isinstance(principal, Principal):
            return principal.identifier()
        text = optional_text(principal, "accessed_by", _MAX_ACCESSED_BY_CHARS)
        if text is None:
            raise ValidationError("accessed_by is required")
        return text

    def _verify_hint(
        self,
        consent_hint: UUID,
        subject_id: UUID,
        organization_id: UUID,
        data_type: DataType,
        as_of: datetime,
    ) -> bool:
        """Log a hint that does not authorize the access. True if it exists."""
        hinted = self._consents.get_consent(consent_hint)
        matches = (
            hinted is not None
            and hinted.subject_id == subject_id
            and hinted.organization_id == organization_id
            and hinted.covers(data_type)
            and hinted.is_valid_at(as_of)
        )
        if not matches:
            logger.warning(
                "Consent hint does not authorize this access",
                extra={
                    "consent_id": str(consent_hint),
                    "organization_id": str(organization_id),
                    "data_type": data_type.value,
                },
            )
        return hinted is not None
