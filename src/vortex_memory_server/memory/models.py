"""
Memory document model.

The persisted snapshot is a single JSON document::

    {
        "acta_nacimiento": {...},
        "creador": {...},
        "recuerdos": {
            "memorias_importantes": [
                {"texto": "...", "fecha": "...", "fecha_actualizacion": "..."}
            ]
        }
    }

Memory records are kept as plain dicts so malformed entries survive a
load/save round trip until the deduplicator drops them.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from .exceptions import CorruptStoreError

MEMORIES_SECTION = 'recuerdos'
MEMORIES_KEY = 'memorias_importantes'

TEXT_FIELD = 'texto'
CREATED_FIELD = 'fecha'
UPDATED_FIELD = 'fecha_actualizacion'

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return format_timestamp(datetime.now(timezone.utc))


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(value: Any) -> datetime:
    """Parse a stored timestamp; anything unparseable sorts as the oldest."""
    if not isinstance(value, str) or not value:
        return _OLDEST
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return _OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def has_valid_text(record: Any) -> bool:
    """A memory record is usable only if it carries a non-empty string text."""
    return isinstance(record, dict) and isinstance(record.get(TEXT_FIELD), str) and bool(record[TEXT_FIELD])


class Memory(BaseModel):
    """A single stored fact."""
    model_config = ConfigDict(extra='allow')

    texto: str
    fecha: str
    fecha_actualizacion: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class MemoryStore:
    """In-memory view of the whole persisted document."""

    def __init__(self, document: Optional[Dict[str, Any]] = None):
        self.document = document if document is not None else {}
        section = self.document.get(MEMORIES_SECTION)
        if not isinstance(section, dict):
            section = self.document[MEMORIES_SECTION] = {}
        if not isinstance(section.get(MEMORIES_KEY), list):
            section[MEMORIES_KEY] = []

    @classmethod
    def empty(cls) -> 'MemoryStore':
        return cls({MEMORIES_SECTION: {MEMORIES_KEY: []}})

    @classmethod
    def from_document(cls, document: Any, path: str = None) -> 'MemoryStore':
        """Validate the document structure and wrap it.

        Raises:
            CorruptStoreError: If the structure is not a memory document
        """
        if not isinstance(document, dict):
            raise CorruptStoreError(path, 'top level is not an object')

        section = document.get(MEMORIES_SECTION)
        if section is not None and not isinstance(section, dict):
            raise CorruptStoreError(path, f"'{MEMORIES_SECTION}' is not an object")

        memories = section.get(MEMORIES_KEY) if section else None
        if memories is not None and not isinstance(memories, list):
            raise CorruptStoreError(path, f"'{MEMORIES_SECTION}.{MEMORIES_KEY}' is not a list")

        return cls(document)

    @property
    def memories(self) -> List[Any]:
        return self.document[MEMORIES_SECTION][MEMORIES_KEY]

    @memories.setter
    def memories(self, records: List[Any]):
        self.document[MEMORIES_SECTION][MEMORIES_KEY] = list(records)

    def section(self, name: str) -> Dict[str, Any]:
        """Return a reference section, or an empty dict if absent or malformed."""
        value = self.document.get(name)
        return value if isinstance(value, dict) else {}

    def reference_sections(self, names: Optional[List[str]] = None) -> Dict[str, Dict[str, Any]]:
        """Read-only key/value sections used by retrieval.

        Args:
            names: Sections to include, in order; defaults to every top-level
                object except the memories section
        """
        if names is None:
            names = [key for key in self.document if key != MEMORIES_SECTION]
        return {name: self.section(name) for name in names if self.section(name)}

    def to_document(self) -> Dict[str, Any]:
        return self.document
