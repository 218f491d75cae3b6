"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults that match the ledger's reference behavior

Collaborators:
  - container.py: picks repository/notification adapters from settings
  - application.*: reads consent/compliance limits (durations, windows, pages)
  - api/main.py: reads CORS and pool settings at startup

Constraints:
  - Lives in the crosscutting layer, NOT in domain
  - No business logic: configuration only

Notes:
  - Singleton via lru_cache; tests call get_settings.cache_clear()
  - All limits configurable for different environments
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: Application environment (development/test/production)
        repository_backend: memory | postgres
        database_url: PostgreSQL connection string (postgres backend only)
        log_level: Root log level (default: INFO)
        log_json: Emit JSON log lines (default: True)
        allowed_origins: Comma-separated CORS origins
        jwt_secret: Secret used to verify bearer tokens
        consent_default_duration_days: Duration applied by the HTTP layer when omitted
        consent_max_duration_days: Upper bound for a consent duration (default: 3650)
        max_purpose_description_chars: Purpose description limit (default: 500)
        max_revoke_reason_chars: Revoke reason limit (default: 500)
        consent_expiry_notice_days: Window for "consent expiring" notices (default: 7)
        compliance_scan_window_days: Trailing window scanned by the engine (default: 30)
        compliance_purpose_limitation_enabled: Register the purpose-limitation check
        default_page_size: Page size when the caller omits it (default: 20)
        max_page_size: Largest page size accepted (default: 100)
        unauthorized_access_limit: Cap for the unauthorized-access view (default: 100)
        dev_seed_rules: Seed the default consent_required rule at startup
    """

    # Environment
    app_env: str = "development"

    # Persistence
    repository_backend: str = "memory"
    database_url: str = ""
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # CORS configuration
    allowed_origins: str = "http://localhost:3000"

    # Security - bearer tokens
    jwt_secret: str = "dev-secret"

    # Consent ledger
    consent_default_duration_days: int = 365
    consent_max_duration_days: int = 3650
    max_purpose_description_chars: int = 500
    max_revoke_reason_chars: int = 500
    consent_expiry_notice_days: int = 7

    # Compliance engine
    compliance_scan_window_days: int = 30
    compliance_purpose_limitation_enabled: bool = False

    # Listings
    default_page_size: int = 20
    max_page_size: int = 100
    unauthorized_access_limit: int = 100

    # Dev Tools
    dev_seed_rules: bool = False

    @field_validator("repository_backend")
    @classmethod
    def repository_backend_valid(cls, v: str) -> str:
        backend = (v or "memory").strip().lower()
        if backend not in {"memory", "postgres"}:
            raise ValueError("repository_backend must be memory or postgres")
        return backend

    @field_validator(
        "consent_max_duration_days",
        "compliance_scan_window_days",
        "default_page_size",
        "max_page_size",
        "unauthorized_access_limit",
    )
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be greater than 0")
        return v

    @field_validator("consent_expiry_notice_days")
    @classmethod
    def notice_days_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("consent_expiry_notice_days must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_limits(self):
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) must not exceed "
                f"max_page_size ({self.max_page_size})"
            )
        if not 1 <= self.consent_default_duration_days <= self.consent_max_duration_days:
            raise ValueError(
                "consent_default_duration_days must be between 1 and "
                "consent_max_duration_days"
            )
        return self

    @model_validator(mode="after")
    def validate_persistence_requirements(self):
        if self.repository_backend == "postgres" and not self.database_url.strip():
            raise ValueError("DATABASE_URL is required when REPOSITORY_BACKEND=postgres")
        return self

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        insecure_secrets = {"dev-secret", "changeme", "change-me", "password"}
        jwt_secret = (self.jwt_secret or "").strip()
        if not jwt_secret or jwt_secret in insecure_secrets:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        return self

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test(self) -> bool:
        return self.app_env.strip().lower() in {"test", "testing", "ci"}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
