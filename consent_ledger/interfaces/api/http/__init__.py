"""HTTP adapter (FastAPI routers and DTOs)."""
