"""
Global Exception Handlers

Registers the application's exception handlers and owns the single
mapping from triage error kinds to HTTP status codes.

Design Considerations:
- Triage errors are translated by kind, never by message text
- Flat ``{"error", ...}`` bodies for resource and triage failures
- Standardized ErrorResponse bodies for framework-level failures
- Unexpected exceptions are sanitised and logged with a traceback
"""

import json
import logging
import traceback
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse as StarletteJSONResponse

from api.models.errors import (
    ApiError,
    ErrorBody,
    ErrorResponse,
    ValidationErrorItem,
    ValidationErrorResponse,
)
from inbox_desk.triage.errors import ErrorKind, TriageError

logger = logging.getLogger(__name__)

KIND_STATUS = {
    ErrorKind.CONFIGURATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.FETCH: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.CLASSIFICATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.CACHE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.PROVIDER_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for_kind(kind: ErrorKind) -> int:
    """HTTP status for a triage error kind."""
    return KIND_STATUS.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime objects."""
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


class JSONResponse(StarletteJSONResponse):
    """JSONResponse with datetime serialization."""
    def render(self, content):
        return json.dumps(content, cls=DateTimeEncoder).encode("utf-8")


def add_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(TriageError, triage_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Return the route-provided flat error body."""
    log_exception(request, exc, exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.body.model_dump(exclude_none=True)
    )


async def triage_error_handler(request: Request, exc: TriageError) -> JSONResponse:
    """Translate a triage error into ``{"error", "details"}`` using its kind."""
    status_code = status_for_kind(exc.kind)
    log_exception(request, exc, status_code)
    body = ErrorBody(error=exc.message, details=exc.details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True)
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """
    Handle HTTP exceptions with the standardized ErrorResponse body.

    Args:
        request: Request that caused exception
        exc: HTTP exception

    Returns:
        Standardized error response
    """
    log_exception(request, exc, exc.status_code)

    error_response = ErrorResponse(
        status="error",
        message=str(exc.detail),
        error_code=f"HTTP_{exc.status_code}",
        details=getattr(exc, "details", None),
        timestamp=datetime.utcnow()
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors with per-field detail.

    Args:
        request: Request that caused exception
        exc: Validation exception

    Returns:
        Detailed validation error response
    """
    log_exception(request, exc, status.HTTP_422_UNPROCESSABLE_ENTITY)

    validation_errors = []
    for error in exc.errors():
        loc = [str(loc_item) for loc_item in error["loc"]]
        validation_errors.append(
            ValidationErrorItem(
                loc=loc,
                msg=error["msg"],
                type=error["type"]
            )
        )

    error_response = ValidationErrorResponse(
        status="error",
        message="Request validation error",
        error_code="VALIDATION_ERROR",
        details={"errors": str(exc)},
        validation_errors=validation_errors,
        timestamp=datetime.utcnow()
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump()
    )


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle all unhandled exceptions with a sanitised body.

    Args:
        request: Request that caused exception
        exc: Unhandled exception

    Returns:
        Safe error response
    """
    log_exception(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, include_traceback=True)

    error_response = ErrorResponse(
        status="error",
        message="An unexpected error occurred",
        error_code="INTERNAL_SERVER_ERROR",
        details={"type": exc.__class__.__name__},
        timestamp=datetime.utcnow()
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump()
    )


def log_exception(
    request: Request,
    exc: Exception,
    status_code: int,
    include_traceback: bool = False
) -> None:
    """
    Log an exception with request context at a severity matching its status.

    Args:
        request: Request that caused exception
        exc: Exception instance
        status_code: HTTP status code
        include_traceback: Whether to include full traceback
    """
    if status_code >= 500:
        log_level = logging.ERROR
    elif status_code >= 400:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO

    error_message = f"Exception during request to {request.method} {request.url.path}"
    error_details = {
        "status_code": status_code,
        "error_type": exc.__class__.__name__,
        "error_message": str(exc),
        "client_host": request.client.host if request.client else "unknown"
    }

    if include_traceback:
        error_details["traceback"] = traceback.format_exc()

    logger.log(log_level, error_message, extra={"error_details": error_details})
