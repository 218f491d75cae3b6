"""
===============================================================================
CRC CARD — domain/__init__.py
===============================================================================

Module:
    Domain layer exports (public surface of the domain)

Responsibilities:
    - Centralize exports for clean imports in application/interfaces.
    - Keep the domain surface stable.

Rules:
    - Re-export domain contracts/entities only.
    - Never import infrastructure here.
===============================================================================
"""

from .entities import (
    AccessAction,
    AccessEvent,
    ComplianceRule,
    Consent,
    ConsentStatus,
    DataType,
    LawfulPurpose,
    Organization,
    RuleType,
    Severity,
    Subject,
    Violation,
    ViolationStatus,
)
from .repositories import (
    AccessEventRepository,
    ComplianceRuleRepository,
    ConsentRepository,
    OrganizationRepository,
    SubjectRepository,
    ViolationRepository,
)
from .services import Clock, NotificationKind, NotificationService

__all__ = [
    # Entities & enums
    "Subject",
    "Organization",
    "Consent",
    "AccessEvent",
    "ComplianceRule",
    "Violation",
    "DataType",
    "LawfulPurpose",
    "ConsentStatus",
    "AccessAction",
    "Severity",
    "ViolationStatus",
    "RuleType",
    # Repository Interfaces (Ports)
    "SubjectRepository",
    "OrganizationRepository",
    "ConsentRepository",
    "AccessEventRepository",
    "ComplianceRuleRepository",
    "ViolationRepository",
    # Service Interfaces (Ports)
    "NotificationService",
    "NotificationKind",
    "Clock",
]
