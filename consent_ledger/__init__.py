"""Consent and compliance ledger for personal-data processing."""

__version__ = "0.1.0"
