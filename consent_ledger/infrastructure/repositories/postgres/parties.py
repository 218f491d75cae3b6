"""
============================================================
CRC CARD — infrastructure/repositories/postgres/parties.py
============================================================
Classes: PostgresSubjectRepository, PostgresOrganizationRepository

Responsibilities:
- Subjects and organizations in PostgreSQL (raw SQL).
- Single-field update of organizations.compliance_score.

Collaborators:
- postgres.base.PostgresRepository
- Tables: subjects, organizations
============================================================
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from ....domain.entities import Organization, Subject
from .base import PostgresRepository


class PostgresSubjectRepository(PostgresRepository):
    _SQL_INSERT = """
        INSERT INTO subjects (id, email, full_name)
        VALUES (%s, %s, %s)
        RETURNING id, email, full_name, created_at
    """

    _SQL_GET = """
        SELECT id, email, full_name, created_at
        FROM subjects
        WHERE id = %s
    """

    @staticmethod
    def _row_to_subject(row: tuple) -> Subject:
        return Subject(id=row[0], email=row[1], full_name=row[2], created_at=row[3])

    def create_subject(self, subject: Subject) -> Subject:
        row = self._fetchone(
            query=self._SQL_INSERT,
            params=[subject.id, subject.email, subject.full_name],
            context_msg="PostgresSubjectRepository: Failed to create subject",
            extra={"subject_id": str(subject.id)},
        )
        return self._row_to_subject(row)

    def get_subject(self, subject_id: UUID) -> Optional[Subject]:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[subject_id],
            context_msg="PostgresSubjectRepository: Failed to get subject",
            extra={"subject_id": str(subject_id)},
        )
        return None if not row else self._row_to_subject(row)


class PostgresOrganizationRepository(PostgresRepository):
    _SELECT_COLUMNS = "id, name, owner_user_id, email, compliance_score, created_at"

    _SQL_INSERT = f"""
        INSERT INTO organizations (id, name, owner_user_id, email, compliance_score)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING {_SELECT_COLUMNS}
    """

    _SQL_GET = f"""
        SELECT {_SELECT_COLUMNS}
        FROM organizations
        WHERE id = %s
    """

    _SQL_UPDATE_SCORE = """
        UPDATE organizations
        SET compliance_score = %s, updated_at = NOW()
        WHERE id = %s
    """

    @staticmethod
    def _row_to_organization(row: tuple) -> Organization:
        return Organization(
            id=row[0],
            name=row[1],
            owner_user_id=row[2],
            email=row[3],
            compliance_score=float(row[4]),
            created_at=row[5],
        )

    def create_organization(self, organization: Organization) -> Organization:
        row = self._fetchone(
            query=self._SQL_INSERT,
            params=[
                organization.id,
                organization.name,
                organization.owner_user_id,
                organization.email,
                organization.compliance_score,
            ],
            context_msg="PostgresOrganizationRepository: Failed to create organization",
            extra={"organization_id": str(organization.id)},
        )
        return self._row_to_organization(row)

    def get_organization(self, organization_id: UUID) -> Optional[Organization]:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[organization_id],
            context_msg="PostgresOrganizationRepository: Failed to get organization",
            extra={"organization_id": str(organization_id)},
        )
        return None if not row else self._row_to_organization(row)

    def update_compliance_score(self, organization_id: UUID, score: float) -> bool:
        updated = self._execute(
            query=self._SQL_UPDATE_SCORE,
            params=[score, organization_id],
            context_msg="PostgresOrganizationRepository: Failed to update compliance score",
            extra={"organization_id": str(organization_id)},
        )
        return updated > 0
