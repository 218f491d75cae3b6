"""
===============================================================================
CRC CARD — domain/policy.py
===============================================================================

Module:
    Access policy over consents, access events and violations.

Responsibilities:
    - Pure ownership / role rules (no DB, no FastAPI).
    - Keep "who may do what" out of repositories (repos fetch, policy decides).

Collaborators:
    - identity.users.Principal / UserRole
    - domain.entities.Consent, Organization
    - application.*: call these before mutating or exposing records.

Rules:
    - Admin may do everything.
    - Only the consent's subject may revoke it.
    - Citizens read their own consents and access history.
    - Organization owners read their organization's records and manage its
      violations.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ..identity.users import Principal, UserRole
from .entities import Consent, Organization


def can_revoke_consent(consent: Consent, requesting_subject_id: UUID | None) -> bool:
    return requesting_subject_id is not None and consent.subject_id == requesting_subject_id


def can_manage_organization(
    organization: Organization, principal: Principal | None
) -> bool:
    """Owner or admin: resolve violations, run scans, read org-wide records."""
    if principal is None:
        return False
    if principal.is_admin:
        return True
    return organization.is_owned_by(principal.id)


def can_view_consent(
    consent: Consent,
    principal: Principal | None,
    *,
    organization: Organization | None = None,
) -> bool:
    if principal is None:
        return False
    if principal.is_admin:
        return True
    if principal.role == UserRole.CITIZEN:
        return consent.subject_id == principal.id
    if principal.role == UserRole.ORGANIZATION and organization is not None:
        return organization.is_owned_by(principal.id)
    return False

