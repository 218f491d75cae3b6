"""
CRC — domain/services.py

Name
- Domain Service Interfaces (Protocols)

Responsibilities
- Define the non-storage collaborators of the core: notification delivery
  and the clock.
- Keep delivery mechanism (email, SMS, webhooks) and time source out of the
  application layer.

Collaborators
- application.notifications: best-effort dispatch over NotificationService
- application.*: read time only through Clock
- infrastructure.notifications / infrastructure.clock: implementations

Constraints
- NotificationService reports success/failure; the core never depends on it
  succeeding.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Protocol
from uuid import UUID


class NotificationKind(str, Enum):
    """Events the ledger notifies about."""

    CONSENT_GRANTED = "consent_granted"
    CONSENT_REVOKED = "consent_revoked"
    CONSENT_EXPIRING = "consent_expiring"
    DATA_ACCESSED = "data_accessed"
    VIOLATION_DETECTED = "violation_detected"


class NotificationService(Protocol):
    """R: Deliver an event to an audience identity."""

    def notify(
        self,
        audience_id: UUID,
        event_kind: NotificationKind,
        payload: dict[str, Any],
    ) -> bool:
        """R: True when accepted for delivery, False otherwise."""
        ...


class Clock(Protocol):
    """R: Injectable time source (timezone-aware UTC)."""

    def now(self) -> datetime:
        ...
