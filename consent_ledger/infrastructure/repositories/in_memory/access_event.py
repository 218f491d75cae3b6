"""
============================================================
CRC CARD — infrastructure/repositories/in_memory/access_event.py
============================================================
Class: InMemoryAccessEventRepository

Responsibilities:
  - Append-only store of access events (no update, no delete).
  - Filtered listings ordered by accessed_at DESC (newest first),
    ties broken by insertion order.

Notes:
  - AccessEvent is frozen: instances are shared safely.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from threading import Lock
from typing import List, Optional
from uuid import UUID

from ....domain.entities import AccessEvent


class InMemoryAccessEventRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._events: List[AccessEvent] = []

    def _filtered(
        self,
        subject_id: UUID | None,
        organization_id: UUID | None,
        start_at: datetime | None,
        end_at: datetime | None,
        authorized: bool | None,
    ) -> List[AccessEvent]:
        def predicate(e: AccessEvent) -> bool:
            if subject_id is not None and e.subject_id != subject_id:
                return False
            if organization_id is not None and e.organization_id != organization_id:
                return False
            if start_at is not None and e.accessed_at < start_at:
                return False
            if end_at is not None and e.accessed_at > end_at:
                return False
            if authorized is not None and e.authorized != authorized:
                return False
            return True

        indexed = [(i, e) for i, e in enumerate(self._events) if predicate(e)]
        indexed.sort(key=lambda pair: (pair[1].accessed_at, pair[0]), reverse=True)
        return [e for _, e in indexed]

    def create_access_event(self, event: AccessEvent) -> AccessEvent:
        with self._lock:
            self._events.append(event)
        return event

    def get_access_event(self, event_id: UUID) -> Optional[AccessEvent]:
        with self._lock:
            return next((e for e in self._events if e.id == event_id), None)

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
        with self._lock:
            items = self._filtered(
                subject_id, organization_id, start_at, end_at, authorized
            )
        return items[offset : offset + limit]

    def count_access_events(
        self,
        *,
        subject_id: UUID | None = None,
        organization_id: UUID | None = None,
        start_at: datetime | None = None,
        end_at: datetime | None = None,
        authorized: bool | None = None,
    ) -> int:
        with self._lock:
            return len(
                self._filtered(subject_id, organization_id, start_at, end_at, authorized)
            )
