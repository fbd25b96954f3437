from .models import Memory, MemoryStore
from .exceptions import (
    MemorySystemError, InvalidInputError, NotFoundError,
    StorageError, CorruptStoreError, UpstreamError, RateLimitedError
)

__all__ = [
    'Memory', 'MemoryStore',
    'MemorySystemError', 'InvalidInputError', 'NotFoundError',
    'StorageError', 'CorruptStoreError', 'UpstreamError', 'RateLimitedError'
]
