from .config import Config
from .memory import Memory, MemoryStore
from .memory.services import JsonMemoryStorage, MemoryService, MemoryRetriever, UpsertResolver
from .deduplication import MemoryDeduplicator, normalize_text, compare_two_strings
from .answering import ChatCompletionAnsweringService
from .server import create_app

__all__ = [
    'Config',
    'Memory', 'MemoryStore',
    'JsonMemoryStorage', 'MemoryService', 'MemoryRetriever', 'UpsertResolver',
    'MemoryDeduplicator', 'normalize_text', 'compare_two_strings',
    'ChatCompletionAnsweringService',
    'create_app'
]
