"""SQLite sink: buffered entries committed to a local database on flush."""

import asyncio
import json
import threading
from collections.abc import Coroutine
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

import aiosqlite

from logfanout.core.encoding.ndjson import entry_to_dict
from logfanout.core.errors import SinkClosedError
from logfanout.core.models import LogEntry

T = TypeVar("T")

_LOGS_SCHEMA = """
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    level TEXT NOT NULL,
    level_value INTEGER NOT NULL,
    message TEXT NOT NULL,
    tag TEXT,
    user_id TEXT,
    session_id TEXT,
    payload TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON logs(timestamp);
"""

_INSERT_LOG = """
INSERT INTO logs (timestamp, level, level_value, message, tag, user_id, session_id, payload)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""

_COUNT_LOGS = """
SELECT COUNT(*) FROM logs
"""


def _run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from synchronous code.

    Uses a fresh event loop, or a helper thread when called from inside a
    running loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def _to_row(entry: LogEntry) -> tuple[Any, ...]:
    obj = entry_to_dict(entry)
    return (
        obj["timestamp"],
        obj["level"],
        obj["level_value"],
        obj["message"],
        obj["tag"],
        obj["user_id"],
        obj["session_id"],
        json.dumps(obj, default=str),
    )


class SQLiteSink:
    """Durable sink that commits entries into a SQLite ``logs`` table.

    write() only buffers; flush() commits the buffer in one transaction
    using aiosqlite. Uses WAL mode so readers are not blocked by flushes.

    Args:
        db_path: Database file path.
        buffer_size: Pending entries that trigger an automatic flush.
    """

    name = "sqlite"
    durable = True

    def __init__(self, db_path: str, buffer_size: int = 50) -> None:
        self._db_path = db_path
        self._buffer_size = max(1, buffer_size)
        self._buffer: list[tuple[Any, ...]] = []
        self._lock = threading.RLock()
        self._initialized = False
        self._closed = False

    async def _initialize(self) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            await db.executescript(_LOGS_SCHEMA)
            await db.commit()

    async def _insert(self, rows: list[tuple[Any, ...]]) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.executemany(_INSERT_LOG, rows)
            await db.commit()

    async def count(self) -> int:
        """Return the number of committed entries."""
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute(_COUNT_LOGS) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    def initialize(self) -> None:
        """Create the schema."""
        with self._lock:
            _run_sync(self._initialize())
            self._initialized = True
            self._closed = False

    def write(self, entry: LogEntry) -> None:
        """Buffer an entry; commit when the buffer is full."""
        row = _to_row(entry)
        with self._lock:
            if self._closed:
                raise SinkClosedError(self.name)
            self._buffer.append(row)
            if len(self._buffer) >= self._buffer_size:
                self._commit()

    def flush(self) -> None:
        """Commit buffered entries."""
        with self._lock:
            self._commit()

    def dispose(self) -> None:
        """Commit remaining entries and refuse further writes."""
        with self._lock:
            if self._closed:
                return
            try:
                self._commit()
            finally:
                self._closed = True

    def _commit(self) -> None:
        if not self._buffer or not self._initialized:
            return
        rows = list(self._buffer)
        _run_sync(self._insert(rows))
        del self._buffer[: len(rows)]
