"""
Name: Dev Seed Rules Tests

Responsibilities:
  - Verify the default rule is seeded once and only when enabled
  - Verify seeding is refused in production
"""

import pytest

from consent_ledger.application.dev_seed_rules import ensure_default_rules
from consent_ledger.crosscutting.config import Settings
from consent_ledger.domain.entities import RuleType, Severity

pytestmark = pytest.mark.unit


def _settings(**overrides) -> Settings:
    values = dict(app_env="development", dev_seed_rules=True)
    values.update(overrides)
    return Settings(**values)


def test_disabled_seeds_nothing(rules):
    assert ensure_default_rules(_settings(dev_seed_rules=False), rule_repo=rules) == []
    assert rules.list_rules(active_only=False) == []


def test_seeds_consent_required_rule(rules):
    created = ensure_default_rules(_settings(), rule_repo=rules)

    assert [r.name for r in created] == ["Consent Required"]
    rule = rules.list_rules()[0]
    assert rule.rule_type == RuleType.CONSENT_REQUIRED
    assert rule.severity == Severity.HIGH


def test_seeding_is_idempotent(rules):
    ensure_default_rules(_settings(), rule_repo=rules)

    assert ensure_default_rules(_settings(), rule_repo=rules) == []
    assert len(rules.list_rules(active_only=False)) == 1


def test_refused_in_production(rules):
    settings = _settings(
        app_env="production", jwt_secret="s" * 40, repository_backend="memory"
    )

    with pytest.raises(RuntimeError, match="production"):
        ensure_default_rules(settings, rule_repo=rules)
