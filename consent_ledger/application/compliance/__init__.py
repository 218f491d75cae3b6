"""Compliance rule engine, rule checks and scoring."""

from .engine import ComplianceRuleEngine, ScanResult
from .rules import (
    RuleCheck,
    RuleCheckRegistry,
    RuleContext,
    ViolationDraft,
    build_default_registry,
    check_consent_required,
    check_purpose_limitation,
)
from .scorer import ComplianceScorer, ComplianceSummary

__all__ = [
    "ComplianceRuleEngine",
    "ScanResult",
    "RuleCheck",
    "RuleCheckRegistry",
    "RuleContext",
    "ViolationDraft",
    "build_default_registry",
    "check_consent_required",
    "check_purpose_limitation",
    "ComplianceScorer",
    "ComplianceSummary",
]
