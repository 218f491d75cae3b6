# =============================================================================
# FILE: application/dev_seed_rules.py
# =============================================================================
"""
===============================================================================
TASK: Dev Seed Compliance Rules (non-production only)
===============================================================================

Goal:
    Ensures the baseline NDPR rule (consent required, severity high) exists so
    a local or demo deployment can scan without administrative setup.

Safety:
    - Guard: never runs with APP_ENV=production.
    - Idempotent: an existing rule with the same name is left untouched.

CRC:
    Component: ensure_default_rules
    Responsibilities:
      - Validate environment guard
      - Create missing default rules
    Collaborators:
      - ComplianceRuleRepository
      - Settings
===============================================================================
"""

from __future__ import annotations

from typing import Final, List, Tuple
from uuid import uuid4

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..domain.entities import ComplianceRule, RuleType, Severity
from ..domain.repositories import ComplianceRuleRepository

_DEFAULT_RULES: Final[Tuple[ComplianceRule, ...]] = (
    ComplianceRule(
        id=uuid4(),
        name="Consent Required",
        rule_type=RuleType.CONSENT_REQUIRED,
        severity=Severity.HIGH,
        description="Personal data may only be processed with valid consent",
        jurisdiction_reference="NDPR Article 2.2",
    ),
)


def ensure_default_rules(
    settings: Settings, *, rule_repo: ComplianceRuleRepository
) -> List[ComplianceRule]:
    """
    Create the default rules that are missing.

    Returns the rules created (empty when disabled or already seeded).
    """
    if not settings.dev_seed_rules:
        return []

    if settings.is_production():
        raise RuntimeError(
            "FATAL: DEV_SEED_RULES is enabled in production. "
            "Compliance rules must be defined administratively."
        )

    existing = {rule.name for rule in rule_repo.list_rules(active_only=False)}
    created: List[ComplianceRule] = []
    for rule in _DEFAULT_RULES:
        if rule.name in existing:
            logger.info("Dev seed rules: rule exists; skipping", extra={"rule_name": rule.name})
            continue
        created.append(rule_repo.create_rule(rule))
        logger.info(
            "Dev seed rules: rule created",
            extra={"rule_name": rule.name, "rule_type": rule.rule_type.value},
        )
    return created
