"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class PtvAlertException(Exception):
    """Base exception for the application."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(PtvAlertException):
    """Malformed or missing caller input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(PtvAlertException):
    """Lookup of an unknown identifier."""

    status_code = status.HTTP_404_NOT_FOUND


class StorageUnavailable(PtvAlertException):
    """The key-value backend failed."""


class DeliveryFailure(PtvAlertException):
    """A push delivery attempt failed."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message, {"status": status_code} if status_code is not None else None)
        self.push_status = status_code


class PermanentDeliveryFailure(DeliveryFailure):
    """The push service reported the endpoint as gone (404/410)."""


class TransientDeliveryFailure(DeliveryFailure):
    """Any other push failure; dropped for the current cycle."""


def error_response(error: PtvAlertException) -> JSONResponse:
    """Render an application error as the JSON error body."""

    content: Dict[str, Any] = {"error": error.message}
    if error.details and error.status_code < 500:
        content["details"] = error.details
    return JSONResponse(status_code=error.status_code, content=content)


async def handle_application_error(request: Request, error: PtvAlertException) -> JSONResponse:
    """Log and convert a ``PtvAlertException`` raised by a handler."""

    if error.status_code >= 500:
        logger.error(
            "Request failed",
            method=request.method,
            path=request.url.path,
            error=error.message,
        )
    else:
        logger.warning(
            "Request rejected",
            method=request.method,
            path=request.url.path,
            status=error.status_code,
            error=error.message,
        )
    return error_response(error)


async def handle_unexpected_error(request: Request, error: Exception) -> JSONResponse:
    """Last-resort handler so every failure still returns a JSON body."""

    logger.exception("Unhandled error", method=request.method, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error"},
    )
