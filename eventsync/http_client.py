"""
EventSync HTTP Client

Transport layer: one delivery attempt of an encoded batch per send() call.
Retrying across attempts is the flush scheduler's job; the requests
session only retries at the connection level when configured to.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .codec import EventRecord, decode_batch
from .config import resolve_endpoint

logger = logging.getLogger("eventsync.http_client")


@dataclass(frozen=True)
class SendResult:
    """Outcome of one delivery attempt"""

    success: bool
    reason: str = ""
    status_code: Optional[int] = None

    @classmethod
    def ok(cls, status_code: Optional[int] = None) -> "SendResult":
        return cls(success=True, status_code=status_code)

    @classmethod
    def failed(cls, reason: str, status_code: Optional[int] = None) -> "SendResult":
        return cls(success=False, reason=reason, status_code=status_code)


class Transport:
    """Interface for delivering an encoded batch to the collector"""

    def send(self, body: bytes) -> SendResult:
        raise NotImplementedError

    def close(self) -> None:
        pass


class EventSyncHTTPClient(Transport):
    """HTTP transport that POSTs batches to the collector endpoint"""

    def __init__(
        self,
        endpoint: str = "",
        timeout: float = 10.0,
        max_retries: int = 0,
        debug: bool = False
    ):
        """
        Args:
            endpoint: Collector URL (default: EVENTSYNC_ENDPOINT env var or https://127.0.0.1:2043)
            timeout: Request timeout in seconds
            max_retries: Connection-level retries inside a single attempt
            debug: Log every request
        """
        self.endpoint = resolve_endpoint(endpoint)
        self.timeout = timeout
        self.debug = debug
        self._closed = False

        self.session = self._create_session(max_retries)

    def _create_session(self, max_retries: int) -> requests.Session:
        """Create requests session with retry logic"""
        session = requests.Session()

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST", "GET"],
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def send(self, body: bytes) -> SendResult:
        """
        Send one encoded batch.

        Args:
            body: UTF-8 JSON batch document

        Returns:
            SendResult; never raises for network or HTTP errors
        """
        from . import __version__
        headers = {
            'Content-Type': 'application/json',
            'User-Agent': f'EventSync-SDK/{__version__}',
        }

        if self.debug:
            logger.debug(f"POST {len(body)} bytes to {self.endpoint}")

        try:
            response = self.session.post(
                self.endpoint,
                data=body,
                headers=headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            return SendResult.ok(status_code=response.status_code)

        except requests.exceptions.Timeout:
            return SendResult.failed(f"Request timed out after {self.timeout}s")

        except requests.exceptions.ConnectionError as e:
            return SendResult.failed(f"Connection error: {e}")

        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            return SendResult.failed(f"HTTP error: {status}", status_code=status)

        except requests.exceptions.RequestException as e:
            return SendResult.failed(f"Unexpected error: {e}")

    def test_connection(self) -> bool:
        """Test if the collector is reachable"""
        try:
            response = self.session.get(self.endpoint, timeout=5)
            return response.status_code < 500
        except requests.exceptions.RequestException:
            return False

    def close(self) -> None:
        """Close the session and release resources"""
        if not self._closed:
            self.session.close()
            self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class MockTransport(Transport):
    """
    In-memory transport for testing and offline development.

    Outcomes can be scripted: ``fail_times=N`` fails the first N sends,
    ``outcomes=[False, True, ...]`` gives one result per send (the last
    entry repeats). ``on_send`` is called with the attempt number before
    the result is returned.
    """

    def __init__(
        self,
        fail_times: int = 0,
        outcomes: Optional[Sequence[bool]] = None,
        on_send: Optional[Callable[[int], None]] = None,
    ):
        self.fail_times = fail_times
        self.outcomes = list(outcomes) if outcomes is not None else None
        self.on_send = on_send
        self.bodies: List[bytes] = []
        self.send_count = 0
        self.closed = False
        self._lock = threading.Lock()

    def send(self, body: bytes) -> SendResult:
        with self._lock:
            self.send_count += 1
            attempt = self.send_count
            self.bodies.append(body)

        if self.on_send:
            self.on_send(attempt)

        if self._succeeds(attempt):
            return SendResult.ok(status_code=200)
        return SendResult.failed("Mock failure", status_code=503)

    def _succeeds(self, attempt: int) -> bool:
        if self.outcomes:
            return self.outcomes[min(attempt, len(self.outcomes)) - 1]
        return attempt > self.fail_times

    @property
    def sent_batches(self) -> List[List[EventRecord]]:
        """Every body sent so far, decoded"""
        with self._lock:
            bodies = list(self.bodies)
        return [decode_batch(body.decode("utf-8")) for body in bodies]

    def clear(self) -> None:
        with self._lock:
            self.bodies = []
            self.send_count = 0

    def close(self) -> None:
        self.closed = True
