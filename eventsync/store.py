"""
EventSync Pending Store

Durable string storage for the unsent batch, so a crash or restart
does not lose events the collector never acknowledged.

Backends:
- MemoryPendingStore: dict-backed, for tests and local mode
- FilePendingStore: JSON key/value file, like a platform preferences store
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from .codec import EventSyncError
from .config import STORED_EVENTS_KEY

logger = logging.getLogger("eventsync.store")


class StoreError(EventSyncError):
    """Raised when a store backend cannot read or write its data"""


class PendingStore:
    """
    Interface for the pending-events store.

    Holds at most one value under a fixed key.
    """

    def __init__(self, key: str = STORED_EVENTS_KEY):
        self.key = key

    def has(self) -> bool:
        raise NotImplementedError

    def get(self) -> Optional[str]:
        raise NotImplementedError

    def set(self, value: str) -> None:
        raise NotImplementedError

    def delete(self) -> None:
        raise NotImplementedError


class MemoryPendingStore(PendingStore):
    """
    In-process store.

    Pass the same ``data`` dict to two stores to simulate a process restart
    that keeps its preferences.
    """

    def __init__(self, key: str = STORED_EVENTS_KEY, data: Optional[Dict[str, str]] = None):
        super().__init__(key)
        self._data: Dict[str, str] = data if data is not None else {}
        self._lock = threading.Lock()

    def has(self) -> bool:
        with self._lock:
            return self.key in self._data

    def get(self) -> Optional[str]:
        with self._lock:
            return self._data.get(self.key)

    def set(self, value: str) -> None:
        with self._lock:
            self._data[self.key] = value

    def delete(self) -> None:
        with self._lock:
            self._data.pop(self.key, None)


class FilePendingStore(PendingStore):
    """
    Store backed by a JSON object file mapping key -> string.

    Other keys in the file are preserved. Writes are atomic: the new
    content goes to a temp file in the same directory, is fsynced, then
    replaces the original.
    """

    def __init__(self, path: Union[str, Path], key: str = STORED_EVENTS_KEY):
        super().__init__(key)
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def has(self) -> bool:
        with self._lock:
            return self.key in self._read()

    def get(self) -> Optional[str]:
        with self._lock:
            value = self._read().get(self.key)

        if value is not None and not isinstance(value, str):
            raise StoreError(f"Value for '{self.key}' in {self.path} is not a string")
        return value

    def set(self, value: str) -> None:
        with self._lock:
            try:
                data = self._read()
            except StoreError:
                logger.warning(f"Overwriting unreadable store file {self.path}")
                data = {}
            data[self.key] = value
            self._write(data)

    def delete(self) -> None:
        with self._lock:
            data = self._read()
            if self.key not in data:
                return
            del data[self.key]
            self._write(data)

    def _read(self) -> Dict:
        """Load the whole file (must hold lock). Missing file reads as empty."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e

        if not text.strip():
            return {}

        try:
            data = json.loads(text)
        except ValueError as e:
            raise StoreError(f"Corrupt store file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Store file {self.path} does not hold a JSON object")
        return data

    def _write(self, data: Dict) -> None:
        """Atomically replace the file (must hold lock)"""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent),
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise StoreError(f"Cannot write {self.path}: {e}") from e
