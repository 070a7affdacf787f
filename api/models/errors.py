"""
Error Response Models

Response bodies for failed requests. Framework-level failures (unknown
route, request validation, unexpected exceptions) use ErrorResponse;
resource and triage failures use the flat ``{"error", ...}`` body the
clients of this API already parse.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized error response for framework-level errors."""
    status: str = Field(
        default="error",
        description="Error status indicator"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    error_code: str = Field(
        ...,
        description="Machine-readable error code"
    )
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="Error timestamp"
    )


class ValidationErrorItem(BaseModel):
    """A single field validation failure."""
    loc: List[str] = Field(..., description="Error location (field path)")
    msg: str = Field(..., description="Error message")
    type: str = Field(..., description="Error type")


class ValidationErrorResponse(ErrorResponse):
    """ErrorResponse carrying per-field validation failures."""
    validation_errors: List[ValidationErrorItem] = Field(
        ...,
        description="List of specific validation errors"
    )


class ErrorBody(BaseModel):
    """Flat error body used by the resource and triage routes."""
    error: str = Field(..., description="Short error description")
    details: Optional[str] = Field(default=None, description="Underlying cause, when known")
    message: Optional[str] = Field(default=None, description="Underlying message, when known")


class ApiError(Exception):
    """
    Raised by routes to return a flat ``{"error", ...}`` body with a given status.

    Attributes:
        status_code: HTTP status to respond with
        body: Error body
    """

    def __init__(self, status_code: int, error: str, details: Optional[str] = None, message: Optional[str] = None):
        super().__init__(error)
        self.status_code = status_code
        self.body = ErrorBody(error=error, details=details, message=message)
