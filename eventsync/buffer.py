"""
EventSync Event Buffer

In-memory collection of events not yet acknowledged by the collector.
Thread-safe: every operation holds the same lock, so the background
flush thread never sees a half-applied add or removal.
"""

import threading
import uuid
from typing import Dict, Iterable, List, Tuple

from .codec import EventRecord


class EventBuffer:
    """
    Pending events keyed by a per-insertion id.

    The id only exists so a successful send can remove exactly the
    entries it carried; it is never transmitted or persisted.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, EventRecord] = {}

        self._stats = {
            'events_added': 0,
            'events_removed': 0,
        }

    def add(self, record: EventRecord) -> str:
        """
        Add an event. Thread-safe.

        Args:
            record: Event to queue

        Returns:
            Generated entry id
        """
        entry_id = str(uuid.uuid4())
        with self._lock:
            self._entries[entry_id] = record
            self._stats['events_added'] += 1
        return entry_id

    def snapshot(self) -> List[Tuple[str, EventRecord]]:
        """Copy of all current (id, record) pairs, in insertion order."""
        with self._lock:
            return list(self._entries.items())

    def records(self) -> List[EventRecord]:
        """Copy of all current records."""
        with self._lock:
            return list(self._entries.values())

    def remove_all(self, ids: Iterable[str]) -> int:
        """
        Remove exactly the given ids. Ids no longer present are ignored.

        Returns:
            Number of entries actually removed
        """
        removed = 0
        with self._lock:
            for entry_id in ids:
                if self._entries.pop(entry_id, None) is not None:
                    removed += 1
            self._stats['events_removed'] += removed
        return removed

    def clear(self) -> None:
        """Drop every entry"""
        with self._lock:
            self._entries.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.count()

    def get_stats(self) -> Dict:
        """Get buffer statistics"""
        with self._lock:
            return {
                **self._stats,
                'pending_events': len(self._entries),
            }

    def __repr__(self) -> str:
        return f"EventBuffer(pending={self.count()})"
