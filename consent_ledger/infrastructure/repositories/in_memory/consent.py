"""
============================================================
CRC CARD — infrastructure/repositories/in_memory/consent.py
============================================================
Class: InMemoryConsentRepository

Responsibilities:
  - Store consents in memory (tests / local dev).
  - Compare-and-set status transitions under a single lock, so two
    concurrent revokes (or a revoke racing the sweep) have one winner.
  - Deterministic ordering: granted_at DESC, then most recently stored.

Collaborators:
  - domain.entities.Consent, ConsentStatus
  - domain.repositories.ConsentRepository (contract)

Notes:
  - data_types lists are copied on the way in and out.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from itertools import count
from threading import Lock
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from ....domain.entities import Consent, ConsentStatus


def _copy(consent: Consent) -> Consent:
    return replace(consent, data_types=list(consent.data_types))


class InMemoryConsentRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._consents: Dict[UUID, Consent] = {}
        self._seq: Dict[UUID, int] = {}
        self._counter = count()

    # =========================================================
    # Helpers
    # =========================================================
    def _sorted(self, items: Iterable[Consent]) -> List[Consent]:
        """R: granted_at DESC; ties broken by insertion order (newest first)."""
        return sorted(
            items,
            key=lambda c: (c.granted_at, self._seq.get(c.id, 0)),
            reverse=True,
        )

    def _filtered(
        self,
        subject_id: UUID | None,
        organization_id: UUID | None,
        status: ConsentStatus | None,
    ) -> List[Consent]:
        def predicate(c: Consent) -> bool:
            if subject_id is not None and c.subject_id != subject_id:
                return False
            if organization_id is not None and c.organization_id != organization_id:
                return False
            if status is not None and c.status != status:
                return False
            return True

        return self._sorted(c for c in self._consents.values() if predicate(c))

    # =========================================================
    # Public API
    # =========================================================
    def create_consent(self, consent: Consent) -> Consent:
        with self._lock:
            self._consents[consent.id] = _copy(consent)
            self._seq[consent.id] = next(self._counter)
        return _copy(consent)

    def get_consent(self, consent_id: UUID) -> Optional[Consent]:
        with self._lock:
            consent = self._consents.get(consent_id)
            return _copy(consent) if consent is not None else None

    def list_consents(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        status: ConsentStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Consent]:
        with self._lock:
            items = self._filtered(subject_id, organization_id, status)
            return [_copy(c) for c in items[offset : offset + limit]]

    def count_consents(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        status: ConsentStatus | None = None,
    ) -> int:
        with self._lock:
            return len(self._filtered(subject_id, organization_id, status))

    def list_consents_for_pair(
        self, subject_id: UUID, organization_id: UUID
    ) -> List[Consent]:
        with self._lock:
            return [
                _copy(c) for c in self._filtered(subject_id, organization_id, None)
            ]

    def transition_consent_status(
        self,
        consent_id: UUID,
        *,
        from_statuses: Sequence[ConsentStatus],
        to_status: ConsentStatus,
        unexpired_at: datetime | None = None,
        revoked_at: datetime | None = None,
        revoke_reason: str | None = None,
    ) -> Optional[Consent]:
        with self._lock:
            consent = self._consents.get(consent_id)
            if consent is None or consent.status not in from_statuses:
                return None
            if unexpired_at is not None and consent.is_expired_at(unexpired_at):
                return None

            consent.status = to_status
            if revoked_at is not None:
                consent.revoked_at = revoked_at
            if revoke_reason is not None:
                consent.revoke_reason = revoke_reason
            return _copy(consent)

    def expire_due(self, as_of: datetime) -> int:
        expired = 0
        with self._lock:
            for consent in self._consents.values():
                if consent.status == ConsentStatus.ACTIVE and consent.is_expired_at(
                    as_of
                ):
                    consent.status = ConsentStatus.EXPIRED
                    expired += 1
        return expired

    def list_expiring(self, *, start_at: datetime, end_at: datetime) -> List[Consent]:
        with self._lock:
            items = [
                c
                for c in self._consents.values()
                if c.status == ConsentStatus.ACTIVE
                and c.expires_at is not None
                and start_at < c.expires_at <= end_at
            ]
            return [_copy(c) for c in sorted(items, key=lambda c: c.expires_at)]
