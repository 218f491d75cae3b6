"""
===============================================================================
CRC CARD — identity/users.py
===============================================================================

Module:
    Roles and principals

Responsibilities:
    - Define the role catalogue (citizen / organization / admin).
    - Define Principal: the already-authenticated caller handed to the core.

Collaborators:
    - identity/auth.py: decodes bearer tokens into a Principal.
    - domain/policy.py: ownership / role decisions over a Principal.
    - application/*: receive a Principal for guarded operations.

Notes:
    - Authentication itself is an external concern; this module holds shapes only.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class UserRole(str, Enum):
    """Roles known to the ledger."""

    CITIZEN = "citizen"
    ORGANIZATION = "organization"
    ADMIN = "admin"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller: stable identifier + role."""

    id: UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def identifier(self) -> str:
        """Stable string used as AccessEvent.accessed_by."""
        return f"{self.role.value}:{self.id}"
