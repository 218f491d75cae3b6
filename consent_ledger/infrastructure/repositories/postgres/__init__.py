"""
PostgreSQL Repository Implementations (psycopg 3 + psycopg_pool, raw SQL).
"""

from .access_event import PostgresAccessEventRepository
from .compliance import PostgresComplianceRuleRepository, PostgresViolationRepository
from .consent import PostgresConsentRepository
from .parties import PostgresOrganizationRepository, PostgresSubjectRepository

__all__ = [
    "PostgresSubjectRepository",
    "PostgresOrganizationRepository",
    "PostgresConsentRepository",
    "PostgresAccessEventRepository",
    "PostgresComplianceRuleRepository",
    "PostgresViolationRepository",
]
