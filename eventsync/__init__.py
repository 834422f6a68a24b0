"""
EventSync SDK

Batch application events to a remote collector without losing them
across crashes and restarts.

Usage:
    import eventsync

    ## Initialize once at startup (resends anything left from the last run)
    eventsync.init(endpoint="https://collector.example.com/events",
                   storage_path="~/.myapp/events.json")

    ## Track events anywhere - they are batched and sent after a short cooldown
    eventsync.track("click", "btn1")

    ## Events still pending at exit are persisted automatically
    eventsync.shutdown()
"""

from pathlib import Path


def _get_version() -> str:
    """Read version from VERSION file (single source of truth)."""
    possible_paths = [
        Path(__file__).parent.parent / "VERSION",
        Path(__file__).parent / "VERSION",
    ]

    for path in possible_paths:
        if path.exists():
            return path.read_text().strip()

    return "0.1.0"  # Default fallback


__version__ = _get_version()
__author__ = "EventSync"

from .agent import (
    init,
    track,
    flush,
    shutdown,
    get_agent,
    get_stats,
    session,
    EventSyncAgent,
)

from .config import EventSyncConfig, COOLDOWN_SECONDS, MAX_SEND_ATTEMPTS, STORED_EVENTS_KEY

from .codec import EventRecord, encode_batch, decode_batch, EventSyncError, BatchDecodeError
from .buffer import EventBuffer
from .scheduler import FlushScheduler, SchedulerState
from .store import PendingStore, MemoryPendingStore, FilePendingStore, StoreError
from .http_client import Transport, SendResult, EventSyncHTTPClient, MockTransport
from .lifecycle import LifecycleEvent, LifecycleHub

__all__ = [
    # Version
    "__version__",

    # Agent functions
    "init",
    "track",
    "flush",
    "shutdown",
    "get_agent",
    "get_stats",
    "session",
    "EventSyncAgent",

    # Configuration
    "EventSyncConfig",
    "COOLDOWN_SECONDS",
    "MAX_SEND_ATTEMPTS",
    "STORED_EVENTS_KEY",

    # Components (for advanced usage)
    "EventRecord",
    "encode_batch",
    "decode_batch",
    "EventSyncError",
    "BatchDecodeError",
    "EventBuffer",
    "FlushScheduler",
    "SchedulerState",
    "PendingStore",
    "MemoryPendingStore",
    "FilePendingStore",
    "StoreError",
    "Transport",
    "SendResult",
    "EventSyncHTTPClient",
    "MockTransport",
    "LifecycleEvent",
    "LifecycleHub",
]
