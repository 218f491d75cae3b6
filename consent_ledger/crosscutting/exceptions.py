"""
===============================================================================
MODULE: Typed ledger errors
===============================================================================

Goal
----
Every error the core raises carries:
- a stable error_code (clients branch on it)
- an error_id to correlate the response with log lines
- a human message without secrets or personal data

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Component:
  LedgerError + subclasses

Responsibilities:
  - Name the four recoverable kinds (not found, forbidden, conflict, validation)
  - Name the opaque internal kind (storage / notification collaborator failures)

Collaborators:
  - application.* raise them
  - api/exception_handlers.py maps them to RFC 7807 responses
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class LedgerError(Exception):
    """Base class for errors raised by the ledger core."""

    error_code: str = "LEDGER_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)


class NotFoundError(LedgerError):
    """A referenced entity does not exist."""

    error_code: str = "NOT_FOUND"

    def __init__(self, resource: str, identifier: object, **kwargs):
        self.resource = resource
        self.identifier = str(identifier)
        super().__init__(f"{resource} '{identifier}' not found", **kwargs)


class ForbiddenError(LedgerError):
    """The principal lacks ownership or role for the mutation."""

    error_code: str = "FORBIDDEN"


class ConflictError(LedgerError):
    """Invalid state transition (e.g. revoking a revoked consent)."""

    error_code: str = "CONFLICT"


class ValidationError(LedgerError):
    """Malformed input: unknown category/purpose, out-of-range values."""

    error_code: str = "VALIDATION_ERROR"


class InternalError(LedgerError):
    """Opaque failure of a collaborator (storage, notifications)."""

    error_code: str = "INTERNAL_ERROR"


class DatabaseError(InternalError):
    """Storage failures (connection, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"


class NotificationError(InternalError):
    """Notification delivery failures (never escape the dispatcher)."""

    error_code: str = "NOTIFICATION_ERROR"
