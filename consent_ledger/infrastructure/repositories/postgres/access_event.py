"""
============================================================
CRC CARD — infrastructure/repositories/postgres/access_event.py
============================================================
Class: PostgresAccessEventRepository

Responsibilities:
- Append-only access events in PostgreSQL (INSERT + SELECT only).
- Filtered listings ordered by accessed_at DESC, id DESC.

Collaborators:
- postgres.base.PostgresRepository
- Table: access_events
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from ....domain.entities import AccessAction, AccessEvent, DataType, LawfulPurpose
from .base import PostgresRepository, where_clause


class PostgresAccessEventRepository(PostgresRepository):
    _SELECT_COLUMNS = """
        id, subject_id, organization_id, accessed_by, data_type, action,
        purpose, accessed_at, authorized, consent_id, ip_address, user_agent
    """

    _ORDER_BY = "ORDER BY accessed_at DESC, id DESC"

    _SQL_INSERT = f"""
        INSERT INTO access_events (
            id, subject_id, organization_id, accessed_by, data_type, action,
            purpose, accessed_at, authorized, consent_id, ip_address, user_agent
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {_SELECT_COLUMNS}
    """

    _SQL_GET = f"SELECT {_SELECT_COLUMNS} FROM access_events WHERE id = %s"

    @staticmethod
    def _row_to_event(row: tuple) -> AccessEvent:
        return AccessEvent(
            id=row[0],
            subject_id=row[1],
            organization_id=row[2],
            accessed_by=row[3],
            data_type=DataType(row[4]),
            action=AccessAction(row[5]),
            purpose=LawfulPurpose(row[6]),
            accessed_at=row[7],
            authorized=bool(row[8]),
            consent_id=row[9],
            ip_address=row[10],
            user_agent=row[11],
        )

    @staticmethod
    def _filters(
        subject_id: UUID | None,
        organization_id: UUID | None,
        start_at: datetime | None,
        end_at: datetime | None,
        authorized: bool | None,
    ) -> tuple[str, list[object]]:
        conditions: list[str] = []
        params: list[object] = []
        if subject_id is not None:
            conditions.append("subject_id = %s")
            params.append(subject_id)
        if organization_id is not None:
            conditions.append("organization_id = %s")
            params.append(organization_id)
        if start_at is not None:
            conditions.append("accessed_at >= %s")
            params.append(start_at)
        if end_at is not None:
            conditions.append("accessed_at <= %s")
            params.append(end_at)
        if authorized is not None:
            conditions.append("authorized = %s")
            params.append(authorized)
        return where_clause(conditions), params

    def create_access_event(self, event: AccessEvent) -> AccessEvent:
        row = self._fetchone(
            query=self._SQL_INSERT,
            params=[
                event.id,
                event.subject_id,
                event.organization_id,
                event.accessed_by,
                event.data_type.value,
                event.action.value,
                event.purpose.value,
                event.accessed_at,
                event.authorized,
                event.consent_id,
                event.ip_address,
                event.user_agent,
            ],
            context_msg="PostgresAccessEventRepository: Failed to create access event",
            extra={"access_event_id": str(event.id)},
        )
        return self._row_to_event(row)

    def get_access_event(self, event_id: UUID) -> Optional[AccessEvent]:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[event_id],
            context_msg="PostgresAccessEventRepository: Failed to get access event",
            extra={"access_event_id": str(event_id)},
        )
        return None if not row else self._row_to_event(row)

    def list_access_events(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        start_at: datetime | None = None,
        end_at: datetime | None = None,
        authorized: bool | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[AccessEvent]:
        where, params = self._filters(
            subject_id, organization_id, start_at, end_at, authorized
        )
        rows = self._fetchall(
            query=(
                f"SELECT {self._SELECT_COLUMNS} FROM access_events {where} "
                f"{self._ORDER_BY} LIMIT %s OFFSET %s"
            ),
            params=[*params, limit, offset],
            context_msg="PostgresAccessEventRepository: Failed to list access events",
            extra={"limit": limit, "offset": offset},
        )
        return [self._row_to_event(r) for r in rows]

    def count_access_events(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        start_at: datetime | None = None,
        end_at: datetime | None = None,
        authorized: bool | None = None,
    ) -> int:
        where, params = self._filters(
            subject_id, organization_id, start_at, end_at, authorized
        )
        row = self._fetchone(
            query=f"SELECT COUNT(*) FROM access_events {where}",
            params=params,
            context_msg="PostgresAccessEventRepository: Failed to count access events",
            extra={},
        )
        return int(row[0]) if row else 0
