"""
===============================================================================
CRC CARD — router.py (root router / composition)
===============================================================================

Responsibilities:
  - Define the root APIRouter included by FastAPI (prefix /v1).
  - Centralize RFC 7807 responses for OpenAPI.
  - Compose feature routers (consents / access events / compliance).
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers.access_events import router as access_events_router
from .routers.compliance import router as compliance_router
from .routers.consents import router as consents_router


def build_router() -> APIRouter:
    api_router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)
    api_router.include_router(consents_router)
    api_router.include_router(access_events_router)
    api_router.include_router(compliance_router)
    return api_router


router = build_router()

__all__ = ["router", "build_router"]
