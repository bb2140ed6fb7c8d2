"""In-memory sink for capturing entries."""

import threading
from collections import deque

from logfanout.core.models import LogEntry


class InMemorySink:
    """Keeps written entries in memory.

    Suitable for tests and for hosts that want to inspect recent entries.
    With ``max_size`` set the sink behaves as a ring buffer: when full, the
    oldest entry is evicted to make room.

    Args:
        max_size: Maximum number of entries to keep. None keeps everything.
        name: Sink name used in fallback notices.
        durable: Whether the engine should treat this sink as durable.
    """

    def __init__(
        self,
        max_size: int | None = None,
        name: str = "memory",
        durable: bool = False,
    ) -> None:
        self.name = name
        self.durable = durable
        self._entries: deque[LogEntry] = deque(maxlen=max_size)
        self._lock = threading.Lock()
        self.flush_count = 0
        self.initialized = False
        self.disposed = False

    @property
    def entries(self) -> list[LogEntry]:
        """Captured entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def initialize(self) -> None:
        """Mark the sink as ready."""
        self.initialized = True

    def write(self, entry: LogEntry) -> None:
        """Keep an entry."""
        with self._lock:
            self._entries.append(entry)

    def flush(self) -> None:
        """Count the flush; entries are already in memory."""
        self.flush_count += 1

    def dispose(self) -> None:
        """Drop captured entries."""
        with self._lock:
            self._entries.clear()
        self.disposed = True

    def clear(self) -> None:
        """Remove all captured entries."""
        with self._lock:
            self._entries.clear()
