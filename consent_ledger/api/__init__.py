"""FastAPI application (entrypoint + exception handlers)."""
