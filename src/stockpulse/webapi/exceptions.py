"""Error handling for the StockPulse API.

Every error leaves the API as an :class:`ErrorResponse` body whose
``error.status_code`` matches the HTTP status.
"""

from typing import Any, Dict, Mapping, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..config.logging import get_logger
from ..exceptions import StockPulseException
from .models.responses import ErrorDetail, ErrorResponse

logger = get_logger(__name__)


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "request_id": getattr(request.state, "request_id", None),
        "path": request.url.path,
        "method": request.method,
    }


def _error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(
            type=error_type,
            message=message,
            status_code=status_code,
            details=details or {},
        ),
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(
        status_code=status_code, content=body.model_dump(), headers=headers
    )


async def stockpulse_exception_handler(
    request: Request, exc: StockPulseException
) -> JSONResponse:
    """Map application exceptions to their declared status code."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request failed",
        exception_type=type(exc).__name__,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        **_request_context(request),
    )
    return _error_response(
        request, exc.status_code, type(exc).__name__, exc.message, exc.details
    )


async def validation_exception_handler(request: Request, exc) -> JSONResponse:
    """Report request and model validation failures as 422 with per-field messages."""
    field_errors = {
        ".".join(str(part) for part in error["loc"]): error["msg"]
        for error in exc.errors()
    }
    logger.warning(
        "Validation failed", field_errors=field_errors, **_request_context(request)
    )
    return _error_response(
        request,
        422,
        "ValidationError",
        "Request validation failed",
        {"field_errors": field_errors},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning(
        "HTTP error",
        status_code=exc.status_code,
        detail=exc.detail,
        **_request_context(request),
    )
    return _error_response(
        request,
        exc.status_code,
        "HTTPException",
        str(exc.detail),
        headers=exc.headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the traceback, return an opaque 500."""
    logger.error(
        "Unhandled exception",
        exception_type=type(exc).__name__,
        message=str(exc),
        exc_info=exc,
        **_request_context(request),
    )
    return _error_response(
        request, 500, "InternalServerError", "An unexpected error occurred"
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the FastAPI app."""
    app.add_exception_handler(StockPulseException, stockpulse_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
