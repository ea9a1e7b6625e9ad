"""
Exception handlers.
Map domain exceptions and request validation errors to JSON error responses.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.exceptions import BankingError, ErrorKind
from app.schemas.error import ErrorResponse

logger = structlog.get_logger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    field_errors: Optional[Dict[str, str]] = None,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        status=status_code,
        code=code,
        message=message,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
        field_errors=field_errors,
        details=details,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
    )


def field_errors_from(exc: RequestValidationError) -> Dict[str, str]:
    """
    Flatten pydantic errors into a field -> message map.
    The location prefix (body, query, path) is dropped.
    """
    field_errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) if loc else "request"
        message = error.get("msg", "Invalid value")
        # Messages from our own validators arrive as "Value error, <message>"
        field_errors.setdefault(field, message.removeprefix("Value error, "))
    return field_errors


async def banking_error_handler(request: Request, exc: BankingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, code=exc.kind.value, error=exc.message)
    else:
        logger.warning("request_rejected", path=request.url.path, code=exc.kind.value, error=exc.message)

    return _error_response(
        request,
        status_code=exc.status_code,
        code=exc.kind.value,
        message=exc.message,
        field_errors=getattr(exc, "field_errors", None),
        details=exc.details,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors = field_errors_from(exc)
    logger.warning("request_validation_failed", path=request.url.path, fields=sorted(field_errors))

    return _error_response(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorKind.INVALID_INPUT.value,
        message="The provided data is not valid",
        field_errors=field_errors,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "request_failed_unexpectedly",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return _error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=ErrorKind.INTERNAL_FAILURE.value,
        message="An internal server error occurred",
    )


def register_exception_handlers(app: FastAPI):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(BankingError, banking_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
