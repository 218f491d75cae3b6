"""
============================================================
CRC CARD — 001_consent_ledger_foundation (Alembic Migration)
============================================================
Responsibilities:
  - Create the ledger schema from scratch: parties, consents, access
    events, compliance rules and violations.
  - Enforce at the database the invariants the repositories rely on
    (enum domains, score range, one violation per rule/event).

Collaborators:
  - PostgreSQL 14+
  - infrastructure.repositories.postgres (uses this schema as contract)

Policy:
  - Naming convention:
      pk_<table>                         - Primary keys
      uq_<table>_<col>                   - Unique constraints
      ix_<table>_<col>                   - Indexes
      fk_<table>_<col>__<ref_table>      - Foreign keys
      ck_<table>_<rule>                  - Check constraints
  - Enums are stored as strings guarded by CHECK constraints.
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_consent_ledger_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_DATA_TYPES = (
    "personal_info",
    "financial",
    "health",
    "biometric",
    "location",
    "contact",
    "employment",
    "education",
)
_PURPOSES = (
    "account_opening",
    "kyc_verification",
    "transaction_processing",
    "service_delivery",
    "marketing",
    "analytics",
    "legal_obligation",
    "contract_fulfillment",
)
_ACTIONS = ("read", "write", "update", "delete", "share", "export")
_SEVERITIES = ("low", "medium", "high", "critical")


def _in(column: str, values: Sequence[str]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    # =========================================================
    # 1) PARTIES
    # =========================================================
    op.create_table(
        "subjects",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_subjects"),
        sa.UniqueConstraint("email", name="uq_subjects_email"),
    )

    op.create_table(
        "organizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("owner_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column(
            "compliance_score",
            sa.Float,
            server_default=sa.text("100"),
            nullable=False,
        ),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_organizations"),
        sa.CheckConstraint(
            "compliance_score >= 0 AND compliance_score <= 100",
            name="ck_organizations_score_range",
        ),
    )
    op.create_index(
        "ix_organizations_owner_user_id", "organizations", ["owner_user_id"]
    )

    # =========================================================
    # 2) CONSENTS
    # =========================================================
    op.create_table(
        "consents",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("subject_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("data_types", postgresql.ARRAY(sa.Text), nullable=False),
        sa.Column("purpose", sa.String(50), nullable=False),
        sa.Column("purpose_description", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.String(20),
            server_default=sa.text("'active'"),
            nullable=False,
        ),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoke_reason", sa.Text, nullable=True),
        sa.Column(
            "consent_version",
            sa.String(20),
            server_default=sa.text("'1.0'"),
            nullable=False,
        ),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_consents"),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="fk_consents_subject_id__subjects",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["organization_id"],
            ["organizations.id"],
            name="fk_consents_organization_id__organizations",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "status IN ('active', 'revoked', 'expired')",
            name="ck_consents_status",
        ),
        sa.CheckConstraint(_in("purpose", _PURPOSES), name="ck_consents_purpose"),
        sa.CheckConstraint(
            "cardinality(data_types) > 0", name="ck_consents_data_types_not_empty"
        ),
        sa.CheckConstraint(
            "expires_at IS NULL OR expires_at > granted_at",
            name="ck_consents_expiry_after_grant",
        ),
        sa.CheckConstraint(
            "(status = 'revoked') = (revoked_at IS NOT NULL)",
            name="ck_consents_revoked_at",
        ),
    )
    op.create_index(
        "ix_consents_subject_org", "consents", ["subject_id", "organization_id"]
    )
    op.create_index(
        "ix_consents_organization_id", "consents", ["organization_id", "status"]
    )
    op.create_index("ix_consents_status_expires_at", "consents", ["status", "expires_at"])

    # =========================================================
    # 3) ACCESS EVENTS (append-only)
    # =========================================================
    op.create_table(
        "access_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("subject_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("accessed_by", sa.String(255), nullable=False),
        sa.Column("data_type", sa.String(50), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("purpose", sa.String(50), nullable=False),
        sa.Column("accessed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("authorized", sa.Boolean, nullable=False),
        sa.Column("consent_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_access_events"),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="fk_access_events_subject_id__subjects",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["organization_id"],
            ["organizations.id"],
            name="fk_access_events_organization_id__organizations",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["consent_id"],
            ["consents.id"],
            name="fk_access_events_consent_id__consents",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            _in("data_type", _DATA_TYPES), name="ck_access_events_data_type"
        ),
        sa.CheckConstraint(_in("action", _ACTIONS), name="ck_access_events_action"),
        sa.CheckConstraint(_in("purpose", _PURPOSES), name="ck_access_events_purpose"),
    )
    op.create_index(
        "ix_access_events_org_accessed_at",
        "access_events",
        ["organization_id", "accessed_at"],
    )
    op.create_index(
        "ix_access_events_subject_accessed_at",
        "access_events",
        ["subject_id", "accessed_at"],
    )
    op.execute(
        "CREATE INDEX ix_access_events_unauthorized "
        "ON access_events (accessed_at) WHERE authorized = FALSE"
    )

    # =========================================================
    # 4) COMPLIANCE
    # =========================================================
    op.create_table(
        "compliance_rules",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("rule_type", sa.String(50), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column(
            "is_active", sa.Boolean, server_default=sa.text("true"), nullable=False
        ),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("jurisdiction_reference", sa.String(255), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_compliance_rules"),
        sa.UniqueConstraint("name", name="uq_compliance_rules_name"),
        sa.CheckConstraint(
            _in("severity", _SEVERITIES), name="ck_compliance_rules_severity"
        ),
    )

    op.create_table(
        "violations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("rule_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("access_event_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column("impact_score", sa.Float, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            server_default=sa.text("'detected'"),
            nullable=False,
        ),
        sa.Column("detected_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolution_notes", sa.Text, nullable=True),
        sa.Column("resolved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_violations"),
        sa.ForeignKeyConstraint(
            ["organization_id"],
            ["organizations.id"],
            name="fk_violations_organization_id__organizations",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["rule_id"],
            ["compliance_rules.id"],
            name="fk_violations_rule_id__compliance_rules",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["access_event_id"],
            ["access_events.id"],
            name="fk_violations_access_event_id__access_events",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint(
            "rule_id", "access_event_id", name="uq_violations_rule_id_access_event_id"
        ),
        sa.CheckConstraint(_in("severity", _SEVERITIES), name="ck_violations_severity"),
        sa.CheckConstraint(
            "status IN ('detected', 'investigating', 'resolved', 'ignored')",
            name="ck_violations_status",
        ),
        sa.CheckConstraint(
            "impact_score >= 0 AND impact_score <= 100",
            name="ck_violations_impact_score_range",
        ),
    )
    op.create_index(
        "ix_violations_org_status", "violations", ["organization_id", "status"]
    )
    op.create_index("ix_violations_detected_at", "violations", ["detected_at"])


def downgrade() -> None:
    op.drop_table("violations")
    op.drop_table("compliance_rules")
    op.execute("DROP INDEX IF EXISTS ix_access_events_unauthorized")
    op.drop_table("access_events")
    op.drop_table("consents")
    op.drop_index("ix_organizations_owner_user_id", table_name="organizations")
    op.drop_table("organizations")
    op.drop_table("subjects")
