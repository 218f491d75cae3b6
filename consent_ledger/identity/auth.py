"""
===============================================================================
CRC CARD — identity/auth.py
===============================================================================

Module:
    Bearer token -> Principal (FastAPI dependencies)

Responsibilities:
    - Decode an already-issued HS256 JWT (PyJWT) into Principal(id, role).
    - Reject missing/expired/invalid tokens with 401 (RFC 7807).
    - Role gate for endpoints (403 on insufficient role).

Collaborators:
    - PyJWT
    - crosscutting.config.get_settings (jwt_secret)
    - crosscutting.error_responses (unauthorized / forbidden)
    - identity.users.Principal / UserRole

Notes:
    - Token issuance and password verification are external concerns.
    - Required claims: sub (UUID), role, exp.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

import jwt
from fastapi import Header, Request

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import forbidden, unauthorized
from .users import Principal, UserRole

JWT_ALGORITHM = "HS256"

CLAIM_SUB = "sub"
CLAIM_ROLE = "role"
CLAIM_EXP = "exp"


def decode_principal(token: str, *, secret: str | None = None) -> Principal:
    """Validate a bearer token and build the Principal it names."""
    secret = secret or get_settings().jwt_secret

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": [CLAIM_SUB, CLAIM_ROLE, CLAIM_EXP]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Token expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized("Invalid token.") from exc

    try:
        return Principal(
            id=UUID(str(payload[CLAIM_SUB])), role=UserRole(str(payload[CLAIM_ROLE]))
        )
    except ValueError as exc:
        raise unauthorized("Invalid token.") from exc


def encode_principal(
    principal: Principal,
    *,
    secret: str | None = None,
    ttl: timedelta = timedelta(minutes=30),
) -> str:
    """Sign a token for a principal (local tooling and tests)."""
    secret = secret or get_settings().jwt_secret
    now = datetime.now(timezone.utc)
    payload = {
        CLAIM_SUB: str(principal.id),
        CLAIM_ROLE: principal.role.value,
        "iat": int(now.timestamp()),
        CLAIM_EXP: int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Token from `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


def require_principal() -> Callable:
    """Dependency: any authenticated caller."""

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> Principal:
        token = _extract_bearer_token(authorization)
        if not token:
            raise unauthorized("Missing bearer token.")

        principal = decode_principal(token)
        request.state.principal = principal
        return principal

    return dependency


def require_role(*roles: UserRole | str) -> Callable:
    """Dependency: caller must hold one of `roles`."""
    allowed = {UserRole(r) for r in roles}
    authenticate = require_principal()

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> Principal:
        principal = await authenticate(request, authorization)
        if principal.role not in allowed:
            raise forbidden("Insufficient role.")
        return principal

    return dependency
