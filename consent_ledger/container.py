"""
===============================================================================
CRC CARD — container.py (Composition Root / manual DI)
===============================================================================

Responsibilities:
  - Compose dependencies (repositories, services, use cases) following DIP.
  - Expose factories for FastAPI (Depends), jobs and tests.
  - Keep singletons cached with lru_cache.
  - Centralize runtime decisions based on Settings.

Collaborators:
  - crosscutting.config.get_settings
  - domain.repositories.* / domain.services.* (ports)
  - infrastructure.* (implementations)
  - application.* (use cases)

Patterns:
  - Composition Root
  - Lazy singletons with lru_cache

Notes:
  - No business logic here.
  - No FastAPI dependency here (factories only).
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application import (
    AccessRecorder,
    ComplianceRuleEngine,
    ComplianceScorer,
    ConsentLedger,
    RuleCheckRegistry,
    build_default_registry,
)
from .crosscutting.config import get_settings
from .domain.repositories import (
    AccessEventRepository,
    ComplianceRuleRepository,
    ConsentRepository,
    OrganizationRepository,
    SubjectRepository,
    ViolationRepository,
)
from .domain.services import Clock, NotificationService
from .infrastructure.clock import SystemClock
from .infrastructure.notifications import LoggingNotificationService
from .infrastructure.repositories.in_memory import (
    InMemoryAccessEventRepository,
    InMemoryComplianceRuleRepository,
    InMemoryConsentRepository,
    InMemoryOrganizationRepository,
    InMemorySubjectRepository,
    InMemoryViolationRepository,
)

# =============================================================================
# Internal helpers
# =============================================================================


def use_in_memory_storage() -> bool:
    """
    Rule:
      - app_env in {"test", "testing", "ci"} or REPOSITORY_BACKEND=memory
        => in-memory adapters.
    """
    settings = get_settings()
    env = settings.app_env.strip().lower()
    return env in {"test", "testing", "ci"} or settings.repository_backend == "memory"


def _postgres():
    # Lazy import: psycopg is only needed with the postgres backend.
    from .infrastructure.repositories import postgres

    return postgres


# =============================================================================
# Repositories (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_subject_repository() -> SubjectRepository:
    if use_in_memory_storage():
        return InMemorySubjectRepository()
    return _postgres().PostgresSubjectRepository()


@lru_cache(maxsize=1)
def get_organization_repository() -> OrganizationRepository:
    if use_in_memory_storage():
        return InMemoryOrganizationRepository()
    return _postgres().PostgresOrganizationRepository()


@lru_cache(maxsize=1)
def get_consent_repository() -> ConsentRepository:
    if use_in_memory_storage():
        return InMemoryConsentRepository()
    return _postgres().PostgresConsentRepository()


@lru_cache(maxsize=1)
def get_access_event_repository() -> AccessEventRepository:
    if use_in_memory_storage():
        return InMemoryAccessEventRepository()
    return _postgres().PostgresAccessEventRepository()


@lru_cache(maxsize=1)
def get_compliance_rule_repository() -> ComplianceRuleRepository:
    if use_in_memory_storage():
        return InMemoryComplianceRuleRepository()
    return _postgres().PostgresComplianceRuleRepository()


@lru_cache(maxsize=1)
def get_violation_repository() -> ViolationRepository:
    if use_in_memory_storage():
        return InMemoryViolationRepository()
    return _postgres().PostgresViolationRepository()


# =============================================================================
# Services (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_clock() -> Clock:
    return SystemClock()


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    return LoggingNotificationService()


@lru_cache(maxsize=1)
def get_rule_registry() -> RuleCheckRegistry:
    settings = get_settings()
    return build_default_registry(
        purpose_limitation=settings.compliance_purpose_limitation_enabled
    )


# =============================================================================
# Use cases
# =============================================================================


@lru_cache(maxsize=1)
def get_consent_ledger() -> ConsentLedger:
    settings = get_settings()
    return ConsentLedger(
        subjects=get_subject_repository(),
        organizations=get_organization_repository(),
        consents=get_consent_repository(),
        clock=get_clock(),
        notifier=get_notification_service(),
        max_duration_days=settings.consent_max_duration_days,
        max_purpose_description_chars=settings.max_purpose_description_chars,
        max_revoke_reason_chars=settings.max_revoke_reason_chars,
        expiry_notice_days=settings.consent_expiry_notice_days,
    )


@lru_cache(maxsize=1)
def get_access_recorder() -> AccessRecorder:
    settings = get_settings()
    return AccessRecorder(
        ledger=get_consent_ledger(),
        subjects=get_subject_repository(),
        organizations=get_organization_repository(),
        consents=get_consent_repository(),
        access_events=get_access_event_repository(),
        clock=get_clock(),
        notifier=get_notification_service(),
        unauthorized_limit=settings.unauthorized_access_limit,
    )


@lru_cache(maxsize=1)
def get_compliance_scorer() -> ComplianceScorer:
    return ComplianceScorer(
        organizations=get_organization_repository(),
        access_events=get_access_event_repository(),
        violations=get_violation_repository(),
    )


@lru_cache(maxsize=1)
def get_compliance_engine() -> ComplianceRuleEngine:
    settings = get_settings()
    return ComplianceRuleEngine(
        registry=get_rule_registry(),
        organizations=get_organization_repository(),
        rules=get_compliance_rule_repository(),
        access_events=get_access_event_repository(),
        consents=get_consent_repository(),
        violations=get_violation_repository(),
        scorer=get_compliance_scorer(),
        clock=get_clock(),
        notifier=get_notification_service(),
        window_days=settings.compliance_scan_window_days,
    )


_FACTORIES = (
    get_subject_repository,
    get_organization_repository,
    get_consent_repository,
    get_access_event_repository,
    get_compliance_rule_repository,
    get_violation_repository,
    get_clock,
    get_notification_service,
    get_rule_registry,
    get_consent_ledger,
    get_access_recorder,
    get_compliance_scorer,
    get_compliance_engine,
)


def reset_container() -> None:
    """Drop every cached singleton (tests / settings reload)."""
    for factory in _FACTORIES:
        factory.cache_clear()
