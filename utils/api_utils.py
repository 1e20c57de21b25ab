"""
Utility functions for handling API errors.

Every error leaves the service as ``{"error": message}`` with either a 400
(bad client input) or a 500 (storage failure) status.
"""
import logging
from typing import Any, Dict, Iterable, List

from fastapi import status
from fastapi.responses import JSONResponse

# Configure logging
logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal server error"

# pydantic error types that mean "field was not supplied"
_MISSING_TYPES = {"missing", "string_too_short"}


class APIError(Exception):
    """Base exception for API errors."""
    def __init__(
        self,
        message: str = "An error occurred",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class ValidationError(APIError):
    """Exception for missing or malformed client input."""
    def __init__(self, message: str = "Validation error"):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


def error_response(message: str, status_code: int) -> JSONResponse:
    """Create the JSON error body shared by every failure path."""
    return JSONResponse(status_code=status_code, content={"error": message})


def _field_name(loc: Iterable[Any]) -> str:
    # loc looks like ("query", "cat") or ("body", "year")
    parts = [str(p) for p in loc if p not in ("query", "body", "path")]
    return ".".join(parts) or "body"


def validation_message(errors: List[Dict[str, Any]]) -> str:
    """Summarize pydantic/FastAPI validation errors in one line.

    Missing fields are grouped as ``"cat, year required"``; anything else is
    reported as ``"field: reason"``.
    """
    missing: List[str] = []
    invalid: List[str] = []
    for err in errors:
        name = _field_name(err.get("loc", ()))
        if err.get("type") in _MISSING_TYPES:
            if name not in missing:
                missing.append(name)
        else:
            invalid.append(f"{name}: {err.get('msg', 'invalid value')}")

    parts = []
    if missing:
        parts.append(f"{', '.join(missing)} required")
    parts.extend(invalid)
    return "; ".join(parts) or "Invalid request"


def server_error_message(exc: Exception, expose_details: bool) -> str:
    """Message returned with a 500.

    With details exposed the error text (the driver's own message for
    storage errors) is passed through unchanged, otherwise a generic message
    is returned.
    """
    if not expose_details:
        return GENERIC_SERVER_ERROR
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc).strip() or type(exc).__name__
