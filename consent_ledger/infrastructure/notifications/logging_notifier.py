"""
===============================================================================
CRC CARD — infrastructure/notifications/logging_notifier.py
===============================================================================

Classes:
    LoggingNotificationService, RecordingNotificationService

Responsibilities:
    - LoggingNotificationService: log what would be delivered (no SMTP/SMS
      transport is wired in this service).
    - RecordingNotificationService: keep delivered notifications in memory
      so tests and local runs can assert on them.

Collaborators:
    - domain.services.NotificationService (contract)
    - crosscutting.logger.logger

Notes:
    - Payloads may carry personal data; only ids and the event kind are
      logged.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Any, List
from uuid import UUID

from ...crosscutting.exceptions import NotificationError
from ...crosscutting.logger import logger
from ...domain.services import NotificationKind


class LoggingNotificationService:
    def notify(
        self,
        audience_id: UUID,
        event_kind: NotificationKind,
        payload: dict[str, Any],
    ) -> bool:
        logger.info(
            "Notification dispatched",
            extra={
                "audience_id": str(audience_id),
                "event_kind": event_kind.value,
                "payload_keys": sorted(payload),
            },
        )
        return True


@dataclass(frozen=True)
class SentNotification:
    audience_id: UUID
    event_kind: NotificationKind
    payload: dict[str, Any]


class RecordingNotificationService:
    def __init__(self, *, accept: bool = True, fail: bool = False) -> None:
        self._lock = Lock()
        self._sent: List[SentNotification] = []
        self.accept = accept
        self.fail = fail

    def notify(
        self,
        audience_id: UUID,
        event_kind: NotificationKind,
        payload: dict[str, Any],
    ) -> bool:
        if self.fail:
            raise NotificationError(f"Delivery of {event_kind.value} failed")
        with self._lock:
            self._sent.append(SentNotification(audience_id, event_kind, dict(payload)))
        return self.accept

    @property
    def sent(self) -> List[SentNotification]:
        with self._lock:
            return list(self._sent)

    def of_kind(self, event_kind: NotificationKind) -> List[SentNotification]:
        return [n for n in self.sent if n.event_kind == event_kind]

    def clear(self) -> None:
        with self._lock:
            self._sent.clear()
