"""
Error taxonomy and handlers for consistent error responses.

Every failure the core can report is one member of `ErrorKind`. Services raise
`AppException` tagged with a kind; the handlers below are the only place that
turns a kind into a status code and the JSON error body.
"""

import enum
import logging
from http import HTTPStatus
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger("follow.errors")

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


class ErrorKind(enum.Enum):
    """
    Closed set of failure modes.

    Each member carries its HTTP status and the message shown to clients.
    """
    UNKNOWN_DEVICE = (status.HTTP_404_NOT_FOUND, "There is no device associated with the provided API key")
    UNKNOWN_REPORT = (status.HTTP_404_NOT_FOUND, "There is no report associated with the provided ID and API key")
    MISSING_SIGNATURE = (status.HTTP_401_UNAUTHORIZED, "No signature was provided")
    INVALID_SIGNATURE = (status.HTTP_401_UNAUTHORIZED, "The provided signature was invalid")
    VALIDATION_FAILED = (status.HTTP_400_BAD_REQUEST, "The request was invalid")
    UNEXPECTED = (status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE)

    def __init__(self, status_code: int, default_message: str):
        self.status_code = status_code
        self.default_message = default_message


class AppException(Exception):
    """Application failure tagged with its `ErrorKind`."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None, details: Dict[str, Any] = None):
        self.kind = kind
        self.message = message or kind.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


def status_text(status_code: int) -> str:
    """Render a status the way clients see it, e.g. ``404 Not Found``."""
    try:
        return f"{status_code} {HTTPStatus(status_code).phrase}"
    except ValueError:
        return str(status_code)


def error_response(status_code: int, reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "code": status_text(status_code),
            "success": False,
            "reason": reason,
        },
    )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for tagged application failures."""
    if exc.kind is ErrorKind.UNEXPECTED:
        # Full causal chain stays in the logs
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
        return error_response(exc.status_code, GENERIC_ERROR_MESSAGE)

    return error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for HTTPException (unmatched routes, wrong methods) in the same shape."""
    return error_response(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for malformed path or query parameters."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("query", "path"))
        problems.append(f"{location}: {error.get('msg')}")

    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Invalid request parameters: " + "; ".join(problems),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE)
