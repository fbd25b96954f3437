"""
Memory Storage Service

Loads and saves the whole memory document as a JSON snapshot:
- A missing snapshot is an empty store, never an error
- An unparseable snapshot raises CorruptStoreError
- Saves go through a temp file and os.replace so readers never see a
  half-written document
"""

import os
import json
import logging
import tempfile
from pathlib import Path
from typing import Union

from ..exceptions import StorageError, CorruptStoreError
from ..models import MemoryStore


class JsonMemoryStorage:
    """Durable storage for the memory document."""

    def __init__(self, path: Union[str, Path]) -> None:
        """Initialize storage.

        Args:
            path: Location of the JSON snapshot
        """
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> MemoryStore:
        """Read the full snapshot.

        Returns:
            The loaded store, or an empty store if no snapshot exists

        Raises:
            CorruptStoreError: If the snapshot is not a valid memory document
            StorageError: On any other I/O failure
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = f.read()
        except FileNotFoundError:
            logging.info(f"No memory snapshot at {self.path}, starting with an empty store")
            return MemoryStore.empty()
        except OSError as e:
            raise StorageError('load', str(self.path), str(e)) from e

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            logging.error(f"Memory snapshot {self.path} is not valid JSON: {e}")
            raise CorruptStoreError(str(self.path), f"invalid JSON: {e}") from e

        return MemoryStore.from_document(document, str(self.path))

    def save(self, store: MemoryStore) -> None:
        """Atomically replace the snapshot with the given store.

        Raises:
            StorageError: If the snapshot cannot be written
        """
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(store.to_document(), f, indent=4, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            raise StorageError('save', str(self.path), str(e)) from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logging.debug(f"Memory snapshot written to {self.path} ({len(store.memories)} memories)")
