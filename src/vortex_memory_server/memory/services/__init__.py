"""
Memory Services Module

Provides the services behind the HTTP layer:
- JsonMemoryStorage: Snapshot load/save
- UpsertResolver: Update-or-insert and exact-text edits
- MemoryRetriever: Rule-based question answering from stored data
- MemoryService: Facade running each operation as one locked load-mutate-save
"""

from .storage import JsonMemoryStorage
from .update import UpsertResolver, UpsertResult
from .query import (
    MemoryRetriever, RetrievalRule, ReferenceSectionRule, KeywordRule,
    MemoryScanRule, default_rules
)
from .facade import MemoryService

__all__ = [
    'JsonMemoryStorage',
    'UpsertResolver',
    'UpsertResult',
    'MemoryRetriever',
    'RetrievalRule',
    'ReferenceSectionRule',
    'KeywordRule',
    'MemoryScanRule',
    'default_rules',
    'MemoryService',
]
