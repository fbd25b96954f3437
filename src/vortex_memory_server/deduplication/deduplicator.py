"""
Main Deduplication Logic for the Vortex Memory Server

Collapses near-duplicate memories, keeping the most recent copy. Runs as a
post-pass after updates (and optionally inserts) and on manual request.
"""

import time
import json
import logging
from typing import List, Dict, Any, Tuple

from .similarity import DUPLICATE_THRESHOLD, normalize_text, compare_two_strings
from ..memory.models import TEXT_FIELD, CREATED_FIELD, has_valid_text, parse_timestamp


class MemoryDeduplicator:
    """Bulk deduplication over the full memory list."""

    def __init__(self, deduplication_config: dict = None):
        """Initialize deduplication system.

        Args:
            deduplication_config: Configuration dict for deduplication settings
        """
        deduplication_config = deduplication_config or {}
        self.config = deduplication_config
        self.similarity_threshold = deduplication_config.get('similarity_threshold', DUPLICATE_THRESHOLD)

        self.stats = {
            'total_runs': 0,
            'total_duplicates_removed': 0,
            'total_invalid_ignored': 0,
            'last_deduplication': None,
            'processing_time_total': 0.0
        }

        logging.info(f"MemoryDeduplicator initialized with threshold {self.similarity_threshold}")

    def _scan(self, memories: List[Any]) -> Tuple[List[Dict], List[Tuple[Dict, Dict, float]], List[Any]]:
        """Walk memories most-recent-first, splitting kept, duplicate and invalid records."""
        ordered = sorted(memories, key=lambda r: parse_timestamp(r.get(CREATED_FIELD) if isinstance(r, dict) else None),
                         reverse=True)

        kept: List[Dict] = []
        kept_normalized: List[str] = []
        duplicates: List[Tuple[Dict, Dict, float]] = []
        invalid: List[Any] = []

        for record in ordered:
            if not has_valid_text(record):
                invalid.append(record)
                continue

            normalized = normalize_text(record[TEXT_FIELD])
            match = None
            for existing, existing_normalized in zip(kept, kept_normalized):
                similarity = compare_two_strings(existing_normalized, normalized)
                if similarity >= self.similarity_threshold:
                    match = (existing, similarity)
                    break

            if match is None:
                kept.append(record)
                kept_normalized.append(normalized)
            else:
                duplicates.append((match[0], record, match[1]))

        return kept, duplicates, invalid

    def deduplicate(self, memories: List[Any]) -> List[Dict]:
        """Return the memories with near-duplicates collapsed.

        Memories are ordered by ``fecha`` descending (stable on ties) and the
        first-seen, i.e. most recent, copy of each group survives. Records
        without a usable ``texto`` are dropped. The input list is not mutated.

        Args:
            memories: Memory records as loaded from the store

        Returns:
            Kept records, most recent first
        """
        if not memories:
            return []

        start_time = time.time()
        kept, duplicates, invalid = self._scan(memories)

        for record in invalid:
            logging.warning(f"Ignoring memory without valid text: {json.dumps(record, ensure_ascii=False, default=str)}")
        for survivor, removed, similarity in duplicates:
            logging.info(f"Removing duplicate memory: \"{removed[TEXT_FIELD]}\" "
                         f"(matches \"{survivor[TEXT_FIELD]}\", similarity {similarity:.3f})")

        processing_time = time.time() - start_time
        self._update_stats(len(duplicates), len(invalid), processing_time)
        logging.info(f"Duplicate cleanup completed: kept {len(kept)} of {len(memories)} memories "
                     f"in {processing_time:.3f}s")
        return kept

    def preview_duplicates(self, memories: List[Any]) -> Dict[str, Any]:
        """Report what ``deduplicate`` would remove without changing anything.

        Args:
            memories: Memory records as loaded from the store

        Returns:
            Dictionary with duplicate analysis results
        """
        kept, duplicates, invalid = self._scan(memories or [])
        return {
            'documents_processed': len(memories or []),
            'duplicates_found': len(duplicates),
            'invalid_found': len(invalid),
            'kept': len(kept),
            'duplicate_pairs': [
                {
                    'kept': survivor[TEXT_FIELD],
                    'removed': removed[TEXT_FIELD],
                    'similarity': similarity
                }
                for survivor, removed, similarity in duplicates
            ]
        }

    def _update_stats(self, duplicates_removed: int, invalid_ignored: int, processing_time: float):
        self.stats['total_runs'] += 1
        self.stats['total_duplicates_removed'] += duplicates_removed
        self.stats['total_invalid_ignored'] += invalid_ignored
        self.stats['last_deduplication'] = time.time()
        self.stats['processing_time_total'] += processing_time

    def get_deduplication_stats(self) -> Dict[str, Any]:
        """Get deduplication statistics and settings."""
        current_stats = self.stats.copy()
        current_stats.update({
            'similarity_threshold': self.similarity_threshold,
            'last_check': time.time()
        })
        return current_stats
