"""
===============================================================================
CRC CARD — api/exception_handlers.py (centralized exception mapping)
===============================================================================

Responsibilities:
  - Translate ledger errors into RFC 7807 HTTP responses.
  - Log errors with request_id + error_id.
  - Never leak internals for untyped failures.

Mapping:
  ValidationError -> 422    NotFoundError -> 404    ForbiddenError -> 403
  ConflictError   -> 409    DatabaseError -> 503    other LedgerError -> 500

Collaborators:
  - crosscutting.error_responses: AppHTTPException, ErrorCode, app_exception_handler
  - crosscutting.exceptions: LedgerError and subclasses
===============================================================================
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
)
from ..crosscutting.exceptions import (
    ConflictError,
    DatabaseError,
    ForbiddenError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from ..crosscutting.logger import logger


def _request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


async def _handle_ledger_error(
    request: Request,
    *,
    exc: LedgerError,
    code: ErrorCode,
    status_code: int,
) -> JSONResponse:
    request_id = _request_id_from(request)

    log = logger.error if status_code >= 500 else logger.info
    log(
        "Ledger error",
        extra={
            "code": code.value,
            "error_id": exc.error_id,
            "error_message": exc.message,
            "request_id": request_id,
        },
    )

    app_exc = AppHTTPException(
        status_code=status_code,
        code=code,
        detail=exc.message,
        errors=[{"error_id": exc.error_id, "request_id": request_id}],
    )
    return await app_exception_handler(request, app_exc)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return await _handle_ledger_error(
        request, exc=exc, code=ErrorCode.VALIDATION_ERROR, status_code=422
    )


async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return await _handle_ledger_error(
        request, exc=exc, code=ErrorCode.NOT_FOUND, status_code=404
    )


async def forbidden_error_handler(request: Request, exc: ForbiddenError) -> JSONResponse:
    return await _handle_ledger_error(
        request, exc=exc, code=ErrorCode.FORBIDDEN, status_code=403
    )


async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return await _handle_ledger_error(
        request, exc=exc, code=ErrorCode.CONFLICT, status_code=409
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    return await _handle_ledger_error(
        request, exc=exc, code=ErrorCode.DATABASE_ERROR, status_code=503
    )


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    # Base / internal errors: opaque INTERNAL_ERROR.
    return await _handle_ledger_error(
        request, exc=exc, code=ErrorCode.INTERNAL_ERROR, status_code=500
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies/params (FastAPI/pydantic) as RFC 7807 422."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "msg": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    app_exc = AppHTTPException(
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR,
        detail="Request validation failed",
        errors=errors,
    )
    return await app_exception_handler(request, app_exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Untyped exceptions: full log, generic response."""
    request_id = _request_id_from(request)

    logger.error(
        "Unhandled exception",
        exc_info=True,
        extra={"request_id": request_id, "error": str(exc)},
    )

    detail = "Internal error." if get_settings().is_production() else str(exc)

    app_exc = AppHTTPException(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=detail,
        errors=[{"request_id": request_id}],
    )
    return await app_exception_handler(request, app_exc)


def register_exception_handlers(app) -> None:
    """
    Register handlers on the FastAPI app.

    Starlette resolves handlers by walking the exception's MRO, so the
    specific subclasses win over LedgerError.
    """
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(ForbiddenError, forbidden_error_handler)
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
