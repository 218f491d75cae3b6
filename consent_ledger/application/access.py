"""
Organization-scoped authorization shared by use cases.

Resolves the organization (NotFoundError) and then applies
domain.policy.can_manage_organization (ForbiddenError).
"""

from __future__ import annotations

from uuid import UUID

from ..crosscutting.exceptions import ForbiddenError, NotFoundError
from ..domain.entities import Organization
from ..domain.policy import can_manage_organization
from ..domain.repositories import OrganizationRepository
from ..identity.users import Principal


def require_organization(
    organizations: OrganizationRepository, organization_id: UUID
) -> Organization:
    organization = organizations.get_organization(organization_id)
    if organization is None:
        raise NotFoundError("Organization", organization_id)
    return organization


def require_manageable_organization(
    organizations: OrganizationRepository,
    organization_id: UUID,
    principal: Principal | None,
) -> Organization:
    organization = require_organization(organizations, organization_id)
    if not can_manage_organization(organization, principal):
        raise ForbiddenError("Not authorized for this organization")
    return organization
