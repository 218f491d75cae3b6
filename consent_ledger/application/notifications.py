"""
===============================================================================
CRC CARD — application/notifications.py (best-effort dispatch)
===============================================================================

Responsibilities:
  - Build notification payloads with a consistent, JSON-safe shape.
  - Deliver them through the NotificationService port.
  - Best-effort: a failure (exception or False) NEVER breaks the write that
    triggered it; it is logged as a warning and the flow continues.

Collaborators:
  - domain.services.NotificationService / NotificationKind
  - crosscutting.logger.logger

Patterns:
  - Best-effort side effect (does not interrupt the use case)
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from ..crosscutting.logger import logger
from ..domain.services import NotificationKind, NotificationService


def _sanitize(value: Any) -> Any:
    """
    Converts values to JSON-serializable types.
    - primitives -> as is
    - enums -> value, datetimes -> ISO-8601, UUID -> str
    - dict/list -> recursively
    """
    if isinstance(value, Enum):
        return _sanitize(value.value)

    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    if isinstance(value, datetime):
        return value.isoformat()

    if isinstance(value, dict):
        return {str(k): _sanitize(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set, frozenset)):
        return [_sanitize(v) for v in value]

    return str(value)


def dispatch_notification(
    notifier: NotificationService | None,
    *,
    audience_id: UUID | None,
    kind: NotificationKind,
    payload: dict[str, Any] | None = None,
) -> bool:
    """
    Sends a notification and reports whether it was accepted.

    Key rule:
      - If notifier/audience is None or delivery fails, NO exception escapes.
    """
    if notifier is None or audience_id is None:
        return False

    body = _sanitize(payload or {})

    try:
        accepted = notifier.notify(audience_id, kind, body)
    except Exception as exc:
        logger.warning(
            "Notification delivery failed",
            extra={"event_kind": kind.value, "error": str(exc)},
        )
        return False

    if not accepted:
        logger.warning(
            "Notification rejected by delivery service",
            extra={"event_kind": kind.value},
        )
        return False

    return True
