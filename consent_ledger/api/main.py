"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Configure middleware (CORS, request context)
  - Mount the consent / access / compliance router under /v1
  - Expose health check endpoints

Collaborators:
  - FastAPI: ASGI web framework
  - CORSMiddleware: Cross-Origin Resource Sharing handler
  - RequestContextMiddleware: Request ID and logging context
  - interfaces.api.http.router: feature endpoints
  - container: repositories used by the startup seed and health checks

Constraints:
  - CORS configurable via ALLOWED_ORIGINS env var (comma-separated)
  - Authentication is bearer JWT, resolved per endpoint

Notes:
  - Middleware order matters: RequestContext → CORS → routes
  - /v1 prefix allows API versioning
  - /healthz follows Kubernetes health check convention
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..application.dev_seed_rules import ensure_default_rules
from ..container import (
    get_compliance_rule_repository,
    get_subject_repository,
    use_in_memory_storage,
)
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.middleware import RequestContextMiddleware
from ..infrastructure.db.pool import close_pool, init_pool
from ..interfaces.api.http.router import router
from .exception_handlers import register_exception_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates settings and initializes pool."""
    settings = get_settings()
    uses_database = not use_in_memory_storage()

    if uses_database:
        # Must happen before any repository usage
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    try:
        try:
            ensure_default_rules(settings, rule_repo=get_compliance_rule_repository())
        except Exception as e:
            logger.error("Startup failed", extra={"error": str(e)})
            raise

        logger.info(
            "Consent Ledger API starting up",
            extra={
                "app_env": settings.app_env,
                "repository_backend": "memory" if not uses_database else "postgres",
                "scan_window_days": settings.compliance_scan_window_days,
                "purpose_limitation": settings.compliance_purpose_limitation_enabled,
            },
        )

        yield

    finally:
        if uses_database:
            close_pool()
        logger.info("Consent Ledger API shutting down")


def _get_allowed_origins() -> list[str]:
    """Get CORS origins from settings, with fallback for import-time errors."""
    try:
        return get_settings().get_allowed_origins_list()
    except Exception:
        # Fallback for tests that don't set env vars
        return ["http://localhost:3000"]


def create_app() -> FastAPI:
    app = FastAPI(
        title="Consent Ledger API",
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "consents", "description": "Grant, revoke and check consent"},
            {"name": "access-events", "description": "Recorded data accesses"},
            {"name": "compliance", "description": "Scans, violations and scores"},
        ],
    )

    # Middleware order (bottom = first to execute):
    # 1. CORSMiddleware - handles preflight
    # 2. RequestContextMiddleware - sets request_id
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_get_allowed_origins(),
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
    )

    app.include_router(router, prefix="/v1")
    register_exception_handlers(app)

    @app.get("/healthz")
    def healthz(request: Request):
        """
        Liveness plus storage status.

        Returns:
            ok: True if the storage backend answers
            db: "memory", "connected" or "disconnected"
            request_id: Correlation ID for this request
        """
        if use_in_memory_storage():
            db_status = "memory"
        else:
            db_status = (
                "connected" if get_subject_repository().ping() else "disconnected"
            )

        return {
            "ok": db_status != "disconnected",
            "db": db_status,
            "request_id": getattr(request.state, "request_id", None),
        }

    return app


app = create_app()
