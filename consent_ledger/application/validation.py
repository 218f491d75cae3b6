"""
===============================================================================
MODULE: Input coercion for use cases
===============================================================================

Responsibilities:
  - Turn raw caller input (enum member or its string value) into the closed
    domain enumerations.
  - Bound free-text fields.
  - Read naive datetimes as UTC so they compare with stored instants.
  - Raise ValidationError naming the offending field; never clamp silently.

Collaborators:
  - crosscutting.exceptions.ValidationError
  - application.consent_ledger / access_recorder / compliance.engine
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Type, TypeVar

from ..crosscutting.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value: object, field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"{field} must be one of: {allowed}"
        ) from None


def optional_text(value: str | None, field: str, max_chars: int) -> str | None:
    """Strip text, map blank to None and enforce the length bound."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if not value:
        return None
    if len(value) > max_chars:
        raise ValidationError(f"{field} must be at most {max_chars} characters")
    return value


def positive_int(value: object, field: str, maximum: int) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if not 1 <= value <= maximum:
        raise ValidationError(f"{field} must be between 1 and {maximum}")
    return value


def as_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes are taken to be UTC; aware ones are converted to it."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
