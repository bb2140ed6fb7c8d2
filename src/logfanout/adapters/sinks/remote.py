"""Remote telemetry sink: batched, retried, fire-and-forget delivery."""

import logging
import queue
import threading
import time
from collections.abc import Mapping
from typing import Any

import httpx

from logfanout.core.encoding.ndjson import encode_batch, entry_to_dict
from logfanout.core.errors import SinkClosedError, TransportError
from logfanout.core.levels import LogLevel
from logfanout.core.models import LogEntry
from logfanout.core.ports import TelemetryTransportPort

logger = logging.getLogger(__name__)


class HttpTelemetryTransport:
    """Posts batches as NDJSON to an HTTP endpoint using httpx.

    Example:
        ```python
        transport = HttpTelemetryTransport("https://telemetry.example.com/ingest")
        sink = RemoteSink(transport)
        ```
    """

    def __init__(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._headers = {"content-type": "application/x-ndjson", **(headers or {})}
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def send(self, batch: list[Mapping[str, Any]]) -> None:
        """POST one batch. Raises TransportError on a non-2xx response."""
        try:
            response = self._client.post(
                self._url, content=encode_batch(batch), headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"POST {self._url} failed: {exc}") from exc
        if not response.is_success:
            raise TransportError(
                f"POST {self._url} returned {response.status_code}",
                status_code=response.status_code,
            )

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            self._client.close()


class RemoteSink:
    """Forwards entries at or above ``min_level`` to a telemetry transport.

    write() only enqueues, so network latency never reaches the caller. A
    worker thread groups entries into batches of up to ``batch_size`` (or
    whatever arrived within ``flush_interval`` seconds), retries a failing
    batch with exponential backoff, and drops it after ``max_retries``.

    Args:
        transport: Delivery backend.
        min_level: Lowest level forwarded.
        batch_size: Maximum entries per batch.
        flush_interval: Seconds to wait for a batch to fill.
        max_retries: Retries per batch before it is dropped.
        retry_backoff: Initial backoff in seconds; doubles on each retry.
        queue_size: Pending entries kept; further writes are dropped.
    """

    name = "remote"
    durable = False

    def __init__(
        self,
        transport: TelemetryTransportPort,
        min_level: LogLevel = LogLevel.INFO,
        batch_size: int = 50,
        flush_interval: float = 5.0,
        max_retries: int = 3,
        retry_backoff: float = 0.5,
        queue_size: int = 10_000,
    ) -> None:
        self._transport = transport
        self._min_level = min_level
        self._batch_size = max(1, batch_size)
        self._flush_interval = flush_interval
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff
        self._queue: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=queue_size)
        self._pending = 0
        self._idle = threading.Condition()
        self._flush_requested = threading.Event()
        self._stopped = threading.Event()
        self._worker: threading.Thread | None = None
        self.dropped = 0
        self.sent = 0

    @property
    def min_level(self) -> LogLevel:
        """Lowest level forwarded."""
        return self._min_level

    def initialize(self) -> None:
        """Start the delivery worker."""
        if self._worker is not None and self._worker.is_alive():
            return
        self._stopped.clear()
        self._worker = threading.Thread(
            target=self._run, name="logfanout-remote", daemon=True
        )
        self._worker.start()

    def write(self, entry: LogEntry) -> None:
        """Enqueue an entry for delivery; never blocks."""
        if entry.level < self._min_level:
            return
        if self._stopped.is_set():
            raise SinkClosedError(self.name)
        with self._idle:
            self._pending += 1
        try:
            self._queue.put_nowait(entry_to_dict(entry))
        except queue.Full:
            self._settle(1, dropped=True)

    def flush(self, timeout: float | None = 5.0) -> None:
        """Ask the worker to send now and wait (bounded) for the queue to drain."""
        self._flush_requested.set()
        with self._idle:
            self._idle.wait_for(lambda: self._pending == 0, timeout)

    def dispose(self) -> None:
        """Deliver what is queued, then stop the worker."""
        self.flush()
        self._stopped.set()
        self._flush_requested.set()
        if self._worker is not None:
            self._worker.join(self._flush_interval + 1.0)
            self._worker = None
        close = getattr(self._transport, "close", None)
        if callable(close):
            close()

    def _settle(self, count: int, dropped: bool = False) -> None:
        with self._idle:
            self._pending -= count
            if dropped:
                self.dropped += count
            else:
                self.sent += count
            self._idle.notify_all()

    def _next_batch(self) -> list[dict[str, Any]]:
        batch: list[dict[str, Any]] = []
        deadline = time.monotonic() + self._flush_interval
        while len(batch) < self._batch_size:
            if self._flush_requested.is_set() or self._stopped.is_set():
                try:
                    batch.append(self._queue.get_nowait())
                    continue
                except queue.Empty:
                    self._flush_requested.clear()
                    break
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                batch.append(self._queue.get(timeout=min(remaining, 0.05)))
            except queue.Empty:
                continue
        return batch

    def _deliver(self, batch: list[dict[str, Any]]) -> bool:
        delay = self._retry_backoff
        for attempt in range(self._max_retries + 1):
            try:
                self._transport.send(batch)
                return True
            except Exception as exc:
                logger.debug(
                    "Telemetry batch of %d failed (attempt %d): %s",
                    len(batch),
                    attempt + 1,
                    exc,
                )
                if attempt < self._max_retries and not self._stopped.is_set():
                    time.sleep(delay)
                    delay *= 2
        return False

    def _run(self) -> None:
        while True:
            batch = self._next_batch()
            if batch:
                delivered = self._deliver(batch)
                self._settle(len(batch), dropped=not delivered)
            elif self._stopped.is_set():
                return
