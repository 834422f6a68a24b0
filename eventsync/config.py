"""
EventSync Configuration

Contains the fixed protocol constants and SDK settings.

The collector endpoint is resolved in this order:
1. Explicit ``endpoint`` argument
2. ``EVENTSYNC_ENDPOINT`` environment variable
3. DEFAULT_ENDPOINT
"""

import logging
import os
import threading
from dataclasses import dataclass
from typing import Optional


DEFAULT_ENDPOINT = "https://127.0.0.1:2043"
ENDPOINT_ENV_VAR = "EVENTSYNC_ENDPOINT"

# Delay before every send attempt, first one included
COOLDOWN_SECONDS: float = 2.0
MAX_SEND_ATTEMPTS: int = 5
STORED_EVENTS_KEY = "StoredEvents"


def resolve_endpoint(endpoint: Optional[str] = None) -> str:
    """Get endpoint from parameter, environment, or default."""
    if endpoint:
        return endpoint
    return os.environ.get(ENDPOINT_ENV_VAR, DEFAULT_ENDPOINT)


@dataclass
class EventSyncConfig:
    """Configuration for EventSync agent"""

    endpoint: str = ""

    cooldown_seconds: float = COOLDOWN_SECONDS
    max_send_attempts: int = MAX_SEND_ATTEMPTS

    storage_key: str = STORED_EVENTS_KEY
    # None keeps pending events in memory only
    storage_path: Optional[str] = None

    timeout: float = 10.0
    max_retries: int = 0

    enabled: bool = True
    debug: bool = False

    def __post_init__(self) -> None:
        self.endpoint = resolve_endpoint(self.endpoint)

        if self.cooldown_seconds < 0:
            raise ValueError(f"cooldown_seconds must be >= 0, got {self.cooldown_seconds}")
        if self.max_send_attempts < 1:
            raise ValueError(f"max_send_attempts must be >= 1, got {self.max_send_attempts}")
        if not self.storage_key:
            raise ValueError("storage_key must not be empty")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

        if self.debug:
            logging.getLogger("eventsync").setLevel(logging.DEBUG)


# Global config instance (set by agent.init())
_config: Optional[EventSyncConfig] = None
_config_lock = threading.Lock()


def get_config() -> Optional[EventSyncConfig]:
    """Get the current global configuration (thread-safe)"""
    with _config_lock:
        return _config


def set_config(config: Optional[EventSyncConfig]) -> None:
    """Set the global configuration (thread-safe)"""
    global _config
    with _config_lock:
        _config = config
