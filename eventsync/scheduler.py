"""
EventSync Flush Scheduler

Runs flush cycles on a background thread:

    wait cooldown -> snapshot buffer -> send -> on success remove sent events,
                                                clear store (or rewrite it with
                                                whatever is still pending)
                                             -> on failure persist buffer
    repeat while events remain and attempts are left

Only one cycle runs at a time. A cycle that runs out of attempts just
stops; the events stay in the buffer and in the store until the next
track() call or process start triggers a new cycle.
"""

import enum
import logging
import threading
import time
from typing import Callable, Dict, Optional

from .buffer import EventBuffer
from .codec import encode_batch
from .config import COOLDOWN_SECONDS, MAX_SEND_ATTEMPTS
from .http_client import SendResult, Transport
from .store import PendingStore

logger = logging.getLogger("eventsync.scheduler")


class SchedulerState(enum.Enum):
    # STOPPED: the last cycle ended; a new one may start right away
    IDLE = "idle"
    COOLING_DOWN = "cooling_down"
    SENDING = "sending"
    STOPPED = "stopped"


def persist_buffer(buffer: EventBuffer, store: PendingStore) -> bool:
    """
    Write the full buffer snapshot to the store.

    Write failures are logged, never raised or retried.

    Returns:
        True if the write succeeded
    """
    try:
        store.set(encode_batch(buffer.records()))
        return True
    except Exception as e:
        logger.error(f"Failed to persist pending events: {e}")
        return False


class FlushScheduler:
    """
    Cooldown / send / retry state machine for one buffer.

    Usage:
        scheduler = FlushScheduler(buffer, transport, store)
        buffer.add(record)
        scheduler.start_cycle()   # no-op while a cycle is running
        scheduler.wait()          # block until the cycle stops
    """

    def __init__(
        self,
        buffer: EventBuffer,
        transport: Transport,
        store: PendingStore,
        cooldown_seconds: float = COOLDOWN_SECONDS,
        max_send_attempts: int = MAX_SEND_ATTEMPTS,
        sleep_fn: Optional[Callable[[float], None]] = None,
    ):
        """
        Args:
            buffer: Pending events
            transport: Delivers encoded batches
            store: Durable copy of the pending events
            cooldown_seconds: Delay before every send attempt
            max_send_attempts: Attempts per cycle
            sleep_fn: Delay primitive (default: time.sleep)
        """
        self.buffer = buffer
        self.transport = transport
        self.store = store
        self.cooldown_seconds = cooldown_seconds
        self.max_send_attempts = max_send_attempts
        self.sleep_fn = sleep_fn or time.sleep

        self._lock = threading.Lock()
        self._active = False
        self._stopped = False
        self._state = SchedulerState.IDLE
        self._attempts_left = 0
        self._thread: Optional[threading.Thread] = None

        self._stats = {
            'cycles_started': 0,
            'attempts': 0,
            'batches_sent': 0,
            'batches_failed': 0,
            'events_sent': 0,
            'persist_failures': 0,
        }

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    def start_cycle(self) -> bool:
        """
        Start a flush cycle unless one is already running.

        Returns:
            True if a new cycle was started
        """
        with self._lock:
            if self._active or self._stopped:
                return False

            self._active = True
            self._attempts_left = self.max_send_attempts
            self._state = SchedulerState.COOLING_DOWN
            self._stats['cycles_started'] += 1

            self._thread = threading.Thread(
                target=self._run_cycle,
                daemon=True,
                name="EventSync-Flush"
            )
            self._thread.start()

        logger.debug("Flush cycle started")
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the running cycle to stop.

        Returns:
            True if no cycle is running afterwards
        """
        with self._lock:
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

        return not self.is_active

    def stop(self) -> None:
        """
        Stop for good: no new cycles, and a running one ends after its
        current step. An in-flight send is not interrupted.
        """
        with self._lock:
            self._stopped = True
        logger.debug("Scheduler stopped")

    def persist(self) -> bool:
        """
        Write the current buffer to the store.

        Store writes from the cycle and from callers are serialized, so the
        last write always reflects the buffer at the time it was taken.
        """
        with self._lock:
            if persist_buffer(self.buffer, self.store):
                return True
            self._stats['persist_failures'] += 1
            return False

    def _should_continue(self) -> bool:
        """
        Evaluate the loop condition; release the cycle when it fails.

        Runs under the lock so a concurrent start_cycle() either sees this
        cycle still active (and its event gets picked up by the next
        iteration) or sees it finished and starts a fresh one.
        """
        with self._lock:
            if not self._stopped and self.buffer.count() > 0 and self._attempts_left > 0:
                self._state = SchedulerState.COOLING_DOWN
                return True

            if self.buffer.count() > 0 and not self._stopped:
                logger.warning(
                    f"Giving up after {self.max_send_attempts} attempts, "
                    f"{self.buffer.count()} events stay queued"
                )

            self._state = SchedulerState.STOPPED
            self._active = False
            logger.debug("Flush cycle stopped")
            return False

    def _run_cycle(self) -> None:
        """Background thread body: one full cycle"""
        try:
            while self._should_continue():
                self.sleep_fn(self.cooldown_seconds)
                self._attempt()
        except Exception:
            logger.exception("Flush cycle crashed")
            with self._lock:
                self._active = False
                self._state = SchedulerState.STOPPED

    def _attempt(self) -> None:
        """One send attempt on the snapshot taken now"""
        with self._lock:
            # stop() landed during the cooldown
            if self._stopped:
                return
            self._state = SchedulerState.SENDING
            self._attempts_left -= 1
            self._stats['attempts'] += 1

        batch = self.buffer.snapshot()
        body = encode_batch(record for _, record in batch).encode("utf-8")

        try:
            result = self.transport.send(body)
        except Exception as e:
            result = SendResult.failed(f"Transport raised: {e}")

        if result.success:
            self.buffer.remove_all(entry_id for entry_id, _ in batch)
            self._settle_store()

            with self._lock:
                self._stats['batches_sent'] += 1
                self._stats['events_sent'] += len(batch)
            logger.info(f"Sent {len(batch)} events")
        else:
            with self._lock:
                self._stats['batches_failed'] += 1
                attempts_left = self._attempts_left
            logger.warning(
                f"Failed to send {len(batch)} events: {result.reason} "
                f"({attempts_left} attempts left)"
            )

            self.persist()

    def _settle_store(self) -> None:
        """
        After a successful send: clear the store if nothing is pending,
        otherwise overwrite it with what is still unacknowledged.
        """
        with self._lock:
            if self.buffer.count() > 0:
                if not persist_buffer(self.buffer, self.store):
                    self._stats['persist_failures'] += 1
                return

            try:
                self.store.delete()
            except Exception as e:
                logger.error(f"Failed to clear stored events: {e}")

    def get_stats(self) -> Dict:
        """Get scheduler statistics"""
        with self._lock:
            return {
                **self._stats,
                'state': self._state.value,
                'active': self._active,
                'stopped': self._stopped,
            }
