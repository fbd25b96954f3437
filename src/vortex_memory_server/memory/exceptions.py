"""
Custom exceptions for the memory system.

These exceptions provide more specific error handling than generic Exception
catches, and carry enough context for the server layer to map them onto
HTTP responses.
"""


class MemorySystemError(Exception):
    """Base exception for all memory system errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInputError(MemorySystemError):
    """A required field is missing, empty or of the wrong type."""

    def __init__(self, field: str, message: str = None):
        super().__init__(message or f"Falta el campo '{field}'", {'field': field})
        self.field = field


class NotFoundError(MemorySystemError):
    """The referenced memory text does not exist in the store."""

    def __init__(self, text: str, message: str = None):
        super().__init__(message or f"No se encontró el recuerdo '{text}'", {'texto': text})
        self.text = text


class StorageError(MemorySystemError):
    """Error reading or writing the persisted snapshot."""

    def __init__(self, operation: str, path: str = None, cause: str = None):
        message = f"Storage {operation} error"
        if path:
            message += f" for '{path}'"
        if cause:
            message += f": {cause}"
        super().__init__(message, {
            'operation': operation,
            'path': path,
            'cause': cause
        })
        self.operation = operation
        self.path = path


class CorruptStoreError(StorageError):
    """The persisted snapshot exists but is not a valid memory document."""

    def __init__(self, path: str = None, cause: str = None):
        super().__init__('load', path, cause or 'snapshot is not a valid memory document')


class UpstreamError(MemorySystemError):
    """The external answering service failed."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message, {'status_code': status_code})
        self.status_code = status_code


class RateLimitedError(UpstreamError):
    """The external answering service rejected the call for rate limiting."""
    pass
