"""
Memory Service Facade

Single entry point for the HTTP layer. Every operation performs one full
load-mutate-save cycle against the snapshot; write cycles are serialized
by a per-store lock so overlapping requests cannot lose updates.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from ..models import MemoryStore
from .storage import JsonMemoryStorage
from .update import UpsertResolver, UpsertResult
from .query import MemoryRetriever, default_rules
from ...deduplication.deduplicator import MemoryDeduplicator
from ...deduplication.similarity import UPSERT_MATCH_THRESHOLD


class MemoryService:
    """Facade over storage, upsert, deduplication and retrieval."""

    def __init__(
        self,
        storage: JsonMemoryStorage,
        deduplication_config: Optional[Dict[str, Any]] = None,
        retrieval_config: Optional[Dict[str, Any]] = None,
        clock=None
    ):
        """Initialize the memory service.

        Args:
            storage: Durable storage for the memory document
            deduplication_config: Deduplication and upsert settings
            retrieval_config: Retrieval thresholds and reference sections
            clock: Optional callable returning the current datetime
        """
        deduplication_config = deduplication_config or {}

        self.storage = storage
        self.deduplicator = MemoryDeduplicator(deduplication_config)
        self.resolver = UpsertResolver(
            self.deduplicator,
            match_threshold=deduplication_config.get('upsert_threshold', UPSERT_MATCH_THRESHOLD),
            run_dedup_on_insert=deduplication_config.get('run_on_insert', False),
            clock=clock
        )
        self.retriever = MemoryRetriever(default_rules(retrieval_config))
        self._lock = threading.Lock()

    @contextmanager
    def transaction(self) -> Iterator[MemoryStore]:
        """Load the store, yield it for mutation and save it if no error was raised."""
        with self._lock:
            store = self.storage.load()
            yield store
            self.storage.save(store)

    def add_memory(self, text: Any) -> UpsertResult:
        """Fuzzy update-or-insert of a memory text."""
        with self.transaction() as store:
            result = self.resolver.upsert(store, text)
        return result

    def update_memory(self, old_text: Any, new_text: Any) -> Dict[str, Any]:
        """Replace a memory addressed by its exact text."""
        with self.transaction() as store:
            record = self.resolver.replace_exact(store, old_text, new_text)
        return record

    def delete_memory(self, text: Any) -> Dict[str, Any]:
        """Remove a memory addressed by its exact text."""
        with self.transaction() as store:
            record = self.resolver.remove_exact(store, text)
        return record

    def deduplicate(self, dry_run: bool = False) -> Dict[str, Any]:
        """Run the bulk duplicate cleanup on demand.

        Args:
            dry_run: If True, only report what would be removed

        Returns:
            Dictionary with deduplication results
        """
        if dry_run:
            with self._lock:
                store = self.storage.load()
            report = self.deduplicator.preview_duplicates(store.memories)
            report['message'] = f"DRY RUN: Found {report['duplicates_found']} duplicate memories"
            report['dry_run'] = True
            return report

        with self.transaction() as store:
            before = len(store.memories)
            store.memories = self.deduplicator.deduplicate(store.memories)
            after = len(store.memories)

        logging.info(f"Manual deduplication removed {before - after} memories")
        return {
            'dry_run': False,
            'documents_processed': before,
            'removed': before - after,
            'kept': after,
            'message': f"Removed {before - after} memories"
        }

    def get_document(self) -> Dict[str, Any]:
        """The full memory document, as stored."""
        with self._lock:
            return self.storage.load().to_document()

    def retrieve(self, question: Any) -> Optional[str]:
        """Answer a question from stored facts and memories only."""
        with self._lock:
            store = self.storage.load()
        return self.retriever.retrieve(store, question)

    def get_stats(self) -> Dict[str, Any]:
        """Storage location and deduplication statistics."""
        return {
            'storage_path': str(self.storage.path),
            'storage_exists': self.storage.exists(),
            'deduplication': self.deduplicator.get_deduplication_stats()
        }
