from .app import create_app
from .errors import ErrorCode, create_error_response, register_exception_handlers
from .models import (
    NewMemoryRequest, UpdateMemoryRequest, DeleteMemoryRequest,
    DeduplicateRequest, QuestionRequest
)

__all__ = [
    'create_app',
    'ErrorCode', 'create_error_response', 'register_exception_handlers',
    'NewMemoryRequest', 'UpdateMemoryRequest', 'DeleteMemoryRequest',
    'DeduplicateRequest', 'QuestionRequest'
]
