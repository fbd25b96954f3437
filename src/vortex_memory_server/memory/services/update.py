"""
Memory Update Service

Write-side operations on the memory list:
- upsert: fuzzy update-or-insert keyed by text similarity
- replace_exact / remove_exact: edits addressed by the exact stored text

All operations mutate the given store in place and leave persistence to
the caller.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..exceptions import InvalidInputError, NotFoundError
from ..models import (
    Memory, MemoryStore, TEXT_FIELD, UPDATED_FIELD,
    has_valid_text, utc_now_iso, format_timestamp
)
from ...deduplication.deduplicator import MemoryDeduplicator
from ...deduplication.similarity import UPSERT_MATCH_THRESHOLD, simple_normalize, compare_two_strings


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(field)
    return value.strip()


@dataclass
class UpsertResult:
    """Outcome of a single upsert."""
    store: MemoryStore
    record: Dict[str, Any]
    was_update: bool


class UpsertResolver:
    """Decides whether an incoming text updates an existing memory or is new."""

    def __init__(
        self,
        deduplicator: MemoryDeduplicator,
        match_threshold: float = UPSERT_MATCH_THRESHOLD,
        run_dedup_on_insert: bool = False,
        clock: Optional[Callable[[], datetime]] = None
    ) -> None:
        """Initialize the resolver.

        Args:
            deduplicator: Bulk cleanup run after updates
            match_threshold: Similarity at or above which the texts are the same memory
            run_dedup_on_insert: Also run bulk cleanup after a pure insert
            clock: Optional source of "now", for deterministic timestamps
        """
        self.deduplicator = deduplicator
        self.match_threshold = match_threshold
        self.run_dedup_on_insert = run_dedup_on_insert
        self.clock = clock

    def _now(self) -> str:
        return format_timestamp(self.clock()) if self.clock else utc_now_iso()

    def find_match(self, store: MemoryStore, text: str) -> Optional[int]:
        """Index of the first memory whose lowercased text is close enough, if any."""
        key = simple_normalize(text)
        for index, record in enumerate(store.memories):
            if not has_valid_text(record):
                continue
            similarity = compare_two_strings(simple_normalize(record[TEXT_FIELD]), key)
            logging.debug(f"Comparing \"{record[TEXT_FIELD]}\" <-> \"{text}\" -> similarity {similarity:.3f}")
            if similarity >= self.match_threshold:
                return index
        return None

    def upsert(self, store: MemoryStore, incoming_text: Any, field: str = 'nuevoRecuerdo') -> UpsertResult:
        """Update the closest existing memory or append a new one.

        Args:
            store: Loaded memory store, mutated in place
            incoming_text: Text of the memory to save
            field: Request field name reported on invalid input

        Returns:
            UpsertResult with the resolved record

        Raises:
            InvalidInputError: If the text is missing or blank
        """
        text = _require_text(incoming_text, field)
        index = self.find_match(store, text)

        if index is not None:
            record = store.memories[index]
            logging.info(f"Memory found with high similarity, updating: \"{record[TEXT_FIELD]}\" -> \"{text}\"")
            record[TEXT_FIELD] = text
            record[UPDATED_FIELD] = self._now()
            store.memories = self.deduplicator.deduplicate(store.memories)
            return UpsertResult(store=store, record=record, was_update=True)

        record = Memory(texto=text, fecha=self._now()).to_record()
        store.memories.append(record)
        logging.info(f"New memory stored: \"{text}\"")
        if self.run_dedup_on_insert:
            store.memories = self.deduplicator.deduplicate(store.memories)
        return UpsertResult(store=store, record=record, was_update=False)

    def replace_exact(self, store: MemoryStore, old_text: Any, new_text: Any) -> Dict[str, Any]:
        """Overwrite the memory whose text equals ``old_text`` exactly.

        Raises:
            InvalidInputError: If either text is missing
            NotFoundError: If no memory has exactly ``old_text``
        """
        if not old_text or not new_text or not isinstance(old_text, str) or not isinstance(new_text, str):
            raise InvalidInputError('textoViejo', "Faltan los campos 'textoViejo' y 'nuevoTexto'")

        index = _exact_index(store, old_text)
        if index is None:
            raise NotFoundError(old_text, "No se encontró el recuerdo a actualizar")

        record = store.memories[index]
        record[TEXT_FIELD] = new_text
        record[UPDATED_FIELD] = self._now()
        logging.info(f"Memory updated: \"{old_text}\" -> \"{new_text}\"")
        return record

    def remove_exact(self, store: MemoryStore, text: Any) -> Dict[str, Any]:
        """Remove the memory whose text equals ``text`` exactly.

        Raises:
            InvalidInputError: If the text is missing
            NotFoundError: If no memory has exactly ``text``
        """
        if not text or not isinstance(text, str):
            raise InvalidInputError('texto')

        index = _exact_index(store, text)
        if index is None:
            raise NotFoundError(text, "No se encontró el recuerdo a eliminar")

        record = store.memories.pop(index)
        logging.info(f"Memory removed: \"{text}\"")
        return record


def _exact_index(store: MemoryStore, text: str) -> Optional[int]:
    for index, record in enumerate(store.memories):
        if isinstance(record, dict) and record.get(TEXT_FIELD) == text:
            return index
    return None
