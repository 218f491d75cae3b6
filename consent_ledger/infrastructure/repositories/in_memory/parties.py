"""
============================================================
CRC CARD — infrastructure/repositories/in_memory/parties.py
============================================================
Classes: InMemorySubjectRepository, InMemoryOrganizationRepository

Responsibilities:
  - Keep subjects and organizations in memory (tests / local dev).
  - Single-field write of the derived compliance score.

Collaborators:
  - domain.entities.Subject, Organization
  - domain.repositories.SubjectRepository, OrganizationRepository

Notes:
  - Thread-safe: access guarded by Lock.
  - Returns copies: callers never share the stored instance.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict, Optional
from uuid import UUID

from ....domain.entities import Organization, Subject


class InMemorySubjectRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._subjects: Dict[UUID, Subject] = {}

    def create_subject(self, subject: Subject) -> Subject:
        with self._lock:
            self._subjects[subject.id] = replace(subject)
        return replace(subject)

    def get_subject(self, subject_id: UUID) -> Optional[Subject]:
        with self._lock:
            subject = self._subjects.get(subject_id)
            return replace(subject) if subject is not None else None


class InMemoryOrganizationRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._organizations: Dict[UUID, Organization] = {}

    def create_organization(self, organization: Organization) -> Organization:
        with self._lock:
            self._organizations[organization.id] = replace(organization)
        return replace(organization)

    def get_organization(self, organization_id: UUID) -> Optional[Organization]:
        with self._lock:
            organization = self._organizations.get(organization_id)
            return replace(organization) if organization is not None else None

    def update_compliance_score(self, organization_id: UUID, score: float) -> bool:
        with self._lock:
            organization = self._organizations.get(organization_id)
            if organization is None:
                return False
            organization.compliance_score = score
            return True
