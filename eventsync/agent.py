# EventSync Agent
# Main entry point for the EventSync SDK.
# Wires the buffer, flush scheduler, pending store and transport together
# and reacts to host lifecycle notifications.

import atexit
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Tuple

from .buffer import EventBuffer
from .codec import EventRecord, decode_batch
from .config import EventSyncConfig, set_config
from .http_client import EventSyncHTTPClient, Transport
from .lifecycle import LifecycleEvent, LifecycleHub
from .scheduler import FlushScheduler
from .store import FilePendingStore, MemoryPendingStore, PendingStore

logger = logging.getLogger("eventsync.agent")


def _create_store(config: EventSyncConfig) -> PendingStore:
    if config.storage_path:
        return FilePendingStore(config.storage_path, key=config.storage_key)
    return MemoryPendingStore(key=config.storage_key)


class EventSyncAgent:
    """
    Buffers tracked events and delivers them in batches.

    Each agent owns its own buffer and store handle; nothing is shared
    between instances.

    Usage:
        agent = EventSyncAgent(EventSyncConfig(storage_path="events.json"))
        agent.on_startup()                  # resend anything left from last run

        agent.track("click", "btn1")        # batched and sent after the cooldown

        agent.on_suspend_or_terminate()     # app backgrounded or quitting
    """

    def __init__(
        self,
        config: Optional[EventSyncConfig] = None,
        transport: Optional[Transport] = None,
        store: Optional[PendingStore] = None,
        sleep_fn: Optional[Callable[[float], None]] = None,
    ):
        """
        Args:
            config: Agent settings (default: EventSyncConfig())
            transport: Delivery mechanism (default: HTTP client for config.endpoint)
            store: Durable pending store (default: file store if config.storage_path, else memory)
            sleep_fn: Cooldown delay primitive (default: time.sleep)
        """
        self.config = config or EventSyncConfig()
        self.transport = transport or EventSyncHTTPClient(
            endpoint=self.config.endpoint,
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
            debug=self.config.debug,
        )
        self.buffer = EventBuffer()
        self.scheduler = FlushScheduler(
            self.buffer,
            self.transport,
            store or _create_store(self.config),
            cooldown_seconds=self.config.cooldown_seconds,
            max_send_attempts=self.config.max_send_attempts,
            sleep_fn=sleep_fn,
        )

        self._hub: Optional[LifecycleHub] = None
        self._subscriptions: List[Tuple[LifecycleEvent, Callable[[], None]]] = []
        self._shutdown_lock = threading.Lock()
        self._is_shutdown = False

    def track(self, event_type: str, data: str) -> str:
        """
        Queue an event for delivery. Never raises.

        Args:
            event_type: Event type, e.g. "click"
            data: Event payload as a string

        Returns:
            Buffer id of the event ("" if it was dropped)
        """
        if not self.config.enabled:
            return ""

        try:
            entry_id = self.buffer.add(EventRecord(type=event_type, data=data))

            if self._is_shutdown:
                # No more cycles; keep the event durable for the next run
                self.scheduler.persist()
            else:
                self.scheduler.start_cycle()

            return entry_id
        except Exception:
            logger.exception(f"Failed to track event '{event_type}'")
            return ""

    def on_startup(self) -> int:
        """
        Reload events persisted by a previous run and start sending them.

        A missing, unreadable or corrupt snapshot counts as no pending events.

        Returns:
            Number of events reloaded
        """
        try:
            if not self.store.has():
                return 0
            records = decode_batch(self.store.get() or "")
        except Exception as e:
            logger.warning(f"Ignoring unreadable stored events: {e}")
            self.buffer.clear()
            return 0

        self.buffer.clear()
        for record in records:
            self.buffer.add(record)

        logger.debug(f"Loaded {len(records)} stored events")

        if records and self.config.enabled and not self._is_shutdown:
            self.scheduler.start_cycle()

        return len(records)

    def on_suspend_or_terminate(self) -> bool:
        """
        Persist every pending event right now, whatever the scheduler is doing.

        Returns:
            True if the snapshot was written
        """
        return self.scheduler.persist()

    def attach(self, hub: LifecycleHub) -> None:
        """Subscribe to a host's lifecycle notifications"""
        self.detach()

        self._subscriptions = [
            (LifecycleEvent.START, self.on_startup),
            (LifecycleEvent.LOSE_FOCUS, self.on_suspend_or_terminate),
            (LifecycleEvent.TERMINATE, self.on_suspend_or_terminate),
        ]
        for event, callback in self._subscriptions:
            hub.subscribe(event, callback)
        self._hub = hub

    def detach(self) -> None:
        """Drop lifecycle subscriptions, if any"""
        if self._hub is None:
            return

        for event, callback in self._subscriptions:
            self._hub.unsubscribe(event, callback)
        self._subscriptions = []
        self._hub = None

    def flush(self) -> bool:
        """
        Start a flush cycle now if events are pending.

        Returns:
            True if a new cycle was started
        """
        if self._is_shutdown or self.buffer.count() == 0:
            return False
        return self.scheduler.start_cycle()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the running flush cycle, if any, to stop"""
        return self.scheduler.wait(timeout)

    def shutdown(self) -> None:
        """
        Persist pending events and release the transport.

        A running cycle is stopped but an in-flight send is not waited for;
        if it succeeds afterwards the store is rewritten with what is still
        pending instead of being cleared.
        """
        with self._shutdown_lock:
            if self._is_shutdown:
                return
            self._is_shutdown = True

        self.scheduler.stop()
        self.on_suspend_or_terminate()
        self.detach()
        self.transport.close()

        if self.config.debug:
            logger.debug(f"Shutdown complete. Stats: {self.get_stats()}")

    @property
    def store(self) -> PendingStore:
        return self.scheduler.store

    @property
    def pending_count(self) -> int:
        return self.buffer.count()

    @property
    def is_active(self) -> bool:
        """Whether the agent still accepts events for delivery"""
        return self.config.enabled and not self._is_shutdown

    def get_stats(self) -> Dict[str, Any]:
        """Get agent statistics"""
        return {
            'enabled': self.config.enabled,
            'shutdown': self._is_shutdown,
            'buffer': self.buffer.get_stats(),
            'scheduler': self.scheduler.get_stats(),
        }

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False


# Global agent instance (created by init())
_agent: Optional[EventSyncAgent] = None
_agent_lock = threading.Lock()


def init(
    transport: Optional[Transport] = None,
    store: Optional[PendingStore] = None,
    sleep_fn: Optional[Callable[[float], None]] = None,
    **kwargs
) -> EventSyncAgent:
    """
    Initialize the global agent and resend events left from a previous run.

    Keyword arguments other than transport/store/sleep_fn are EventSyncConfig
    fields. Calling init() again shuts the previous agent down first.
    """
    global _agent

    config = EventSyncConfig(**kwargs)
    agent = EventSyncAgent(config, transport=transport, store=store, sleep_fn=sleep_fn)

    with _agent_lock:
        previous, _agent = _agent, agent

    if previous is not None:
        logger.debug("Already initialized, reinitializing...")
        previous.shutdown()
        atexit.unregister(previous.shutdown)

    set_config(config)
    atexit.register(agent.shutdown)
    agent.on_startup()

    return agent


def get_agent() -> Optional[EventSyncAgent]:
    """Get the global agent, if init() was called"""
    with _agent_lock:
        return _agent


def track(event_type: str, data: str) -> str:
    """Track an event on the global agent"""
    agent = get_agent()
    if agent is None:
        logger.warning(f"eventsync.init() was not called, dropping '{event_type}' event")
        return ""
    return agent.track(event_type, data)


def flush() -> bool:
    """Start a flush cycle on the global agent"""
    agent = get_agent()
    return agent.flush() if agent else False


def shutdown() -> None:
    """Shutdown the global agent"""
    global _agent

    with _agent_lock:
        agent, _agent = _agent, None

    if agent is not None:
        agent.shutdown()
        atexit.unregister(agent.shutdown)
    set_config(None)


def get_stats() -> Dict[str, Any]:
    """Get global agent statistics"""
    agent = get_agent()
    if agent is None:
        return {'initialized': False}
    return {'initialized': True, **agent.get_stats()}


@contextmanager
def session(**kwargs):
    """
    Context manager for a standalone agent.

    Usage:
        with eventsync.session(storage_path="events.json") as agent:
            agent.track("click", "btn1")
    """
    transport = kwargs.pop('transport', None)
    store = kwargs.pop('store', None)
    sleep_fn = kwargs.pop('sleep_fn', None)

    agent = EventSyncAgent(
        EventSyncConfig(**kwargs),
        transport=transport,
        store=store,
        sleep_fn=sleep_fn,
    )
    agent.on_startup()
    try:
        yield agent
    finally:
        agent.shutdown()
