"""Error Handlers — global exception handlers for apps using dtoforge validators.

Invariants:
    - Every response body is a DtoForgeError.to_response() envelope
    - FastAPI's own RequestValidationError is re-expressed as PayloadValidationError,
      so clients see one 400 shape whether dtoforge or FastAPI rejected the request
    - Unhandled exceptions become a generic INTERNAL_ERROR; the message never leaks

Design Decisions:
    - Payload failures log at WARNING (client error), schema/internal failures at ERROR
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dtoforge.core.errors import (
    DtoForgeError, ErrorCategory, ErrorContext, ErrorSeverity, PayloadValidationError,
)
from dtoforge.schemas.validation_result import FieldError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Install dtoforge, request-validation and catch-all handlers on `app`."""
    app.add_exception_handler(DtoForgeError, _handle_dtoforge_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)


def _respond(exc: DtoForgeError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def _handle_dtoforge_error(request: Request, exc: DtoForgeError) -> JSONResponse:
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        f"{exc.code} on {request.url.path}: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
    return _respond(exc)


async def _handle_request_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    errors = [
        FieldError(
            field=".".join(str(loc) for loc in e["loc"] if loc != "body"),
            error=e["type"],
            message=e["msg"],
        )
        for e in exc.errors()
    ]
    return await _handle_dtoforge_error(
        request, PayloadValidationError(errors, ErrorContext(path=request.url.path)),
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return _respond(DtoForgeError(
        "An unexpected error occurred",
        code="INTERNAL_ERROR", category=ErrorCategory.INTERNAL, severity=ErrorSeverity.CRITICAL,
    ))
