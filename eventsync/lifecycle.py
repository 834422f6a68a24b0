"""
EventSync Lifecycle Hooks

Host applications report start / focus loss / termination here; the
agent subscribes to persist and reload pending events at the right time.
"""

import enum
import logging
import threading
from typing import Callable, Dict, List

logger = logging.getLogger("eventsync.lifecycle")


class LifecycleEvent(enum.Enum):
    START = "start"
    LOSE_FOCUS = "lose_focus"
    TERMINATE = "terminate"


class LifecycleHub:
    """
    Synchronous notification hub.

    Usage:
        hub = LifecycleHub()
        agent.attach(hub)
        hub.notify(LifecycleEvent.START)
        ...
        hub.focus_changed(False)   # app went to background
        hub.notify(LifecycleEvent.TERMINATE)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[LifecycleEvent, List[Callable[[], None]]] = {
            event: [] for event in LifecycleEvent
        }

    def subscribe(self, event: LifecycleEvent, callback: Callable[[], None]) -> None:
        with self._lock:
            self._subscribers[event].append(callback)

    def unsubscribe(self, event: LifecycleEvent, callback: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._subscribers[event].remove(callback)
            except ValueError:
                pass

    def notify(self, event: LifecycleEvent) -> None:
        """
        Run every callback for ``event`` before returning.

        A failing callback is logged and does not stop the others.
        """
        with self._lock:
            callbacks = list(self._subscribers[event])

        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception(f"Lifecycle callback failed for {event.value}")

    def focus_changed(self, focused: bool) -> None:
        """Only losing focus is interesting; regaining it is a no-op."""
        if not focused:
            self.notify(LifecycleEvent.LOSE_FOCUS)
