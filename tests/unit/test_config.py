"""
Name: Settings Tests

Responsibilities:
  - Verify defaults and environment parsing
  - Verify cross-field validation (limits, persistence, production secrets)
"""

import pytest
from pydantic import ValidationError

from consent_ledger.crosscutting.config import Settings

pytestmark = pytest.mark.unit


def test_defaults():
    settings = Settings(app_env="development")

    assert settings.repository_backend == "memory"
    assert settings.consent_max_duration_days == 3650
    assert settings.compliance_scan_window_days == 30
    assert settings.default_page_size == 20
    assert settings.max_page_size == 100
    assert not settings.is_production()


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("COMPLIANCE_SCAN_WINDOW_DAYS", "7")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example,")

    settings = Settings()

    assert settings.compliance_scan_window_days == 7
    assert settings.get_allowed_origins_list() == [
        "https://a.example",
        "https://b.example",
    ]


def test_test_environments():
    assert Settings(app_env="ci").is_test()
    assert Settings(app_env="Testing").is_test()
    assert not Settings(app_env="development").is_test()


def test_unknown_backend_rejected():
    with pytest.raises(ValidationError):
        Settings(repository_backend="mongo")


def test_postgres_requires_database_url():
    with pytest.raises(ValidationError):
        Settings(repository_backend="postgres", database_url="")


def test_default_page_size_cannot_exceed_max():
    with pytest.raises(ValidationError):
        Settings(default_page_size=50, max_page_size=10)


def test_default_duration_within_max():
    with pytest.raises(ValidationError):
        Settings(consent_default_duration_days=4000)


def test_non_positive_window_rejected():
    with pytest.raises(ValidationError):
        Settings(compliance_scan_window_days=0)


def test_production_requires_strong_secret():
    with pytest.raises(ValidationError):
        Settings(app_env="production", jwt_secret="dev-secret")
    with pytest.raises(ValidationError):
        Settings(app_env="production", jwt_secret="short-but-custom")

    settings = Settings(app_env="production", jwt_secret="k" * 32)
    assert settings.is_production()
