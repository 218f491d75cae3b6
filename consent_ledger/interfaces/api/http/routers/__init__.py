"""Feature routers (consents, access events, compliance)."""
