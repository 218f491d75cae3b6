"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Stable entry points of the application layer:
  - ConsentLedger: grant / revoke / validity oracle / expiry
  - AccessRecorder: access events stamped with the authorization verdict
  - ComplianceRuleEngine + ComplianceScorer: violations and the score
===============================================================================
"""

from .access_recorder import AccessRecorder
from .compliance import (
    ComplianceRuleEngine,
    ComplianceScorer,
    ComplianceSummary,
    RuleCheckRegistry,
    ScanResult,
    build_default_registry,
)
from .consent_ledger import ConsentCheck, ConsentCheckReason, ConsentLedger

__all__ = [
    "AccessRecorder",
    "ConsentLedger",
    "ConsentCheck",
    "ConsentCheckReason",
    "ComplianceRuleEngine",
    "ComplianceScorer",
    "ComplianceSummary",
    "RuleCheckRegistry",
    "ScanResult",
    "build_default_registry",
]
