"""
In-Memory Repository Implementations.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .access_event import InMemoryAccessEventRepository
from .compliance import InMemoryComplianceRuleRepository, InMemoryViolationRepository
from .consent import InMemoryConsentRepository
from .parties import InMemoryOrganizationRepository, InMemorySubjectRepository

__all__ = [
    # Parties
    "InMemorySubjectRepository",
    "InMemoryOrganizationRepository",
    # Consent ledger
    "InMemoryConsentRepository",
    "InMemoryAccessEventRepository",
    # Compliance
    "InMemoryComplianceRuleRepository",
    "InMemoryViolationRepository",
]
