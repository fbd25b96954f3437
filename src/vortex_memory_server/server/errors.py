"""
Standard error handling for the Vortex memory server.

This module maps the memory system's exception hierarchy onto HTTP status
codes and produces ``{"error": message}`` bodies, so every route reports
failures the same way.
"""

from enum import IntEnum
from typing import Dict, Any, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..memory.exceptions import (
    MemorySystemError, InvalidInputError, NotFoundError,
    StorageError, CorruptStoreError, UpstreamError, RateLimitedError
)


class ErrorCode(IntEnum):
    """HTTP status codes used by the memory API."""
    BAD_REQUEST = 400
    NOT_FOUND = 404
    INTERNAL_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503


# Most specific classes first
ERROR_STATUS = [
    (InvalidInputError, ErrorCode.BAD_REQUEST),
    (NotFoundError, ErrorCode.NOT_FOUND),
    (CorruptStoreError, ErrorCode.INTERNAL_ERROR),
    (StorageError, ErrorCode.INTERNAL_ERROR),
    (RateLimitedError, ErrorCode.SERVICE_UNAVAILABLE),
    (UpstreamError, ErrorCode.BAD_GATEWAY),
]


def status_for(error: MemorySystemError) -> ErrorCode:
    """Pick the HTTP status for a memory system error."""
    for error_type, code in ERROR_STATUS:
        if isinstance(error, error_type):
            return code
    return ErrorCode.INTERNAL_ERROR


def create_error_response(
    code: ErrorCode,
    message: str,
    data: Optional[Dict[str, Any]] = None,
    log_error: bool = True
) -> JSONResponse:
    """Create a standardized error response.

    Args:
        code: HTTP status code
        message: Human-readable error message
        data: Optional additional error data, logged but not returned
        log_error: Whether to log the error

    Returns:
        JSON response with an ``error`` field
    """
    if log_error:
        log = logging.error if code >= ErrorCode.INTERNAL_ERROR else logging.warning
        log(f"HTTP {int(code)}: {message}")
        if data:
            log(f"Error data: {data}")

    return JSONResponse(content={"error": message}, status_code=int(code))


def register_exception_handlers(app: FastAPI) -> None:
    """Translate memory system exceptions raised by route handlers."""

    @app.exception_handler(MemorySystemError)
    async def memory_system_error_handler(request: Request, exc: MemorySystemError):
        code = status_for(exc)
        message = exc.message
        if code >= ErrorCode.INTERNAL_ERROR and isinstance(exc, StorageError):
            message = "Error al acceder a la memoria"
        return create_error_response(
            code=code,
            message=message,
            data={"path": request.url.path, **exc.details}
        )
