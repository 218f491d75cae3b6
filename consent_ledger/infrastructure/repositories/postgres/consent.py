"""
============================================================
CRC CARD — infrastructure/repositories/postgres/consent.py
============================================================
Class: PostgresConsentRepository

Responsibilities:
- Consents in PostgreSQL (raw SQL).
- Compare-and-set transitions: UPDATE ... WHERE status = ANY(%s) RETURNING,
  so the database decides the winner of concurrent revokes.
- Idempotent expiry sweep (a single UPDATE).

Collaborators:
- postgres.base.PostgresRepository
- Table: consents

Notes:
- Ordering: granted_at DESC, id DESC.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from ....domain.entities import Consent, ConsentStatus, DataType, LawfulPurpose
from .base import PostgresRepository, where_clause


class PostgresConsentRepository(PostgresRepository):
    _SELECT_COLUMNS = """
        id, subject_id, organization_id, data_types, purpose,
        purpose_description, status, granted_at, expires_at,
        revoked_at, revoke_reason, consent_version
    """

    _ORDER_BY = "ORDER BY granted_at DESC, id DESC"

    _SQL_INSERT = f"""
        INSERT INTO consents (
            id, subject_id, organization_id, data_types, purpose,
            purpose_description, status, granted_at, expires_at,
            revoked_at, revoke_reason, consent_version
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {_SELECT_COLUMNS}
    """

    _SQL_GET = f"SELECT {_SELECT_COLUMNS} FROM consents WHERE id = %s"

    _SQL_LIST_FOR_PAIR = f"""
        SELECT {_SELECT_COLUMNS}
        FROM consents
        WHERE subject_id = %s AND organization_id = %s
        {_ORDER_BY}
    """

    _SQL_TRANSITION = f"""
        UPDATE consents
        SET status = %s,
            revoked_at = COALESCE(%s, revoked_at),
            revoke_reason = COALESCE(%s, revoke_reason),
            updated_at = NOW()
        WHERE id = %s
          AND status = ANY(%s)
          AND (%s::timestamptz IS NULL OR expires_at IS NULL OR expires_at > %s)
        RETURNING {_SELECT_COLUMNS}
    """

    _SQL_EXPIRE_DUE = """
        UPDATE consents
        SET status = 'expired', updated_at = NOW()
        WHERE status = 'active'
          AND expires_at IS NOT NULL
          AND expires_at <= %s
    """

    _SQL_LIST_EXPIRING = f"""
        SELECT {_SELECT_COLUMNS}
        FROM consents
        WHERE status = 'active'
          AND expires_at > %s
          AND expires_at <= %s
        ORDER BY expires_at ASC, id ASC
    """

    # =========================================================
    # Helpers
    # =========================================================
    @staticmethod
    def _row_to_consent(row: tuple) -> Consent:
        return Consent(
            id=row[0],
            subject_id=row[1],
            organization_id=row[2],
            data_types=[DataType(v) for v in (row[3] or [])],
            purpose=LawfulPurpose(row[4]),
            purpose_description=row[5],
            status=ConsentStatus(row[6]),
            granted_at=row[7],
            expires_at=row[8],
            revoked_at=row[9],
            revoke_reason=row[10],
            consent_version=row[11],
        )

    @staticmethod
    def _filters(
        subject_id: UUID | None,
        organization_id: UUID | None,
        status: ConsentStatus | None,
    ) -> tuple[str, list[object]]:
        conditions: list[str] = []
        params: list[object] = []
        if subject_id is not None:
            conditions.append("subject_id = %s")
            params.append(subject_id)
        if organization_id is not None:
            conditions.append("organization_id = %s")
            params.append(organization_id)
        if status is not None:
            conditions.append("status = %s")
            params.append(status.value)
        return where_clause(conditions), params

    # =========================================================
    # Public API
    # =========================================================
    def create_consent(self, consent: Consent) -> Consent:
        row = self._fetchone(
            query=self._SQL_INSERT,
            params=[
                consent.id,
                consent.subject_id,
                consent.organization_id,
                [t.value for t in consent.data_types],
                consent.purpose.value,
                consent.purpose_description,
                consent.status.value,
                consent.granted_at,
                consent.expires_at,
                consent.revoked_at,
                consent.revoke_reason,
                consent.consent_version,
            ],
            context_msg="PostgresConsentRepository: Failed to create consent",
            extra={"consent_id": str(consent.id)},
        )
        return self._row_to_consent(row)

    def get_consent(self, consent_id: UUID) -> Optional[Consent]:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[consent_id],
            context_msg="PostgresConsentRepository: Failed to get consent",
            extra={"consent_id": str(consent_id)},
        )
        return None if not row else self._row_to_consent(row)

    def list_consents(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        status: ConsentStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Consent]:
        where, params = self._filters(subject_id, organization_id, status)
        rows = self._fetchall(
            query=(
                f"SELECT {self._SELECT_COLUMNS} FROM consents {where} "
                f"{self._ORDER_BY} LIMIT %s OFFSET %s"
            ),
            params=[*params, limit, offset],
            context_msg="PostgresConsentRepository: Failed to list consents",
            extra={"limit": limit, "offset": offset},
        )
        return [self._row_to_consent(r) for r in rows]

    def count_consents(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        status: ConsentStatus | None = None,
    ) -> int:
        where, params = self._filters(subject_id, organization_id, status)
        row = self._fetchone(
            query=f"SELECT COUNT(*) FROM consents {where}",
            params=params,
            context_msg="PostgresConsentRepository: Failed to count consents",
            extra={},
        )
        return int(row[0]) if row else 0

    def list_consents_for_pair(
        self, subject_id: UUID, organization_id: UUID
    ) -> List[Consent]:
        rows = self._fetchall(
            query=self._SQL_LIST_FOR_PAIR,
            params=[subject_id, organization_id],
            context_msg="PostgresConsentRepository: Failed to list consents for pair",
            extra={"organization_id": str(organization_id)},
        )
        return [self._row_to_consent(r) for r in rows]

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
        row = self._fetchone(
            query=self._SQL_TRANSITION,
            params=[
                to_status.value,
                revoked_at,
                revoke_reason,
                consent_id,
                [s.value for s in from_statuses],
                unexpired_at,
                unexpired_at,
            ],
            context_msg="PostgresConsentRepository: Failed to transition consent",
            extra={"consent_id": str(consent_id), "to_status": to_status.value},
        )
        return None if not row else self._row_to_consent(row)

    def expire_due(self, as_of: datetime) -> int:
        return self._execute(
            query=self._SQL_EXPIRE_DUE,
            params=[as_of],
            context_msg="PostgresConsentRepository: Failed to expire consents",
            extra={"as_of": as_of.isoformat()},
        )

    def list_expiring(self, *, start_at: datetime, end_at: datetime) -> List[Consent]:
        rows = self._fetchall(
            query=self._SQL_LIST_EXPIRING,
            params=[start_at, end_at],
            context_msg="PostgresConsentRepository: Failed to list expiring consents",
            extra={},
        )
        return [self._row_to_consent(r) for r in rows]
