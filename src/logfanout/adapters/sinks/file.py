"""File sink: buffered NDJSON lines with size-based rotation."""

import os
import threading
from pathlib import Path
from typing import TextIO

from logfanout.core.encoding.ndjson import encode_entry
from logfanout.core.errors import SinkClosedError
from logfanout.core.models import LogEntry


class FileSink:
    """Appends serialized entries to a local NDJSON file.

    Entries are buffered in memory and written on flush(), or automatically
    once ``buffer_size`` entries are pending. When the active file has grown
    past ``max_bytes`` it is rotated to ``<name>.1`` before new lines are
    written; older backups shift up and the oldest beyond ``backup_count``
    is removed, so the newest entries are always kept.

    Args:
        path: Path of the active log file.
        buffer_size: Pending entries that trigger an automatic flush.
        max_bytes: Size at which the file is rotated. 0 disables rotation.
        backup_count: Rotated files to keep.
        encoding: File encoding.
    """

    name = "file"
    durable = True

    def __init__(
        self,
        path: str | Path,
        buffer_size: int = 50,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
        encoding: str = "utf-8",
    ) -> None:
        self._path = Path(path)
        self._buffer_size = max(1, buffer_size)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._encoding = encoding
        self._buffer: list[str] = []
        self._file: TextIO | None = None
        self._closed = False
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        """Path of the active log file."""
        return self._path

    @property
    def pending(self) -> int:
        """Number of buffered entries not yet written."""
        with self._lock:
            return len(self._buffer)

    def initialize(self) -> None:
        """Create the log directory and open the file for appending."""
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_file()
            self._closed = False

    def write(self, entry: LogEntry) -> None:
        """Buffer an entry; flush when the buffer is full."""
        line = encode_entry(entry)
        with self._lock:
            if self._closed:
                raise SinkClosedError(self.name)
            self._buffer.append(line)
            if len(self._buffer) >= self._buffer_size:
                self._write_buffer()

    def flush(self) -> None:
        """Write buffered entries and force them to disk."""
        with self._lock:
            if self._closed:
                return
            self._write_buffer()

    def dispose(self) -> None:
        """Flush remaining entries and close the file."""
        with self._lock:
            if self._closed:
                return
            try:
                self._write_buffer()
            finally:
                self._closed = True
                if self._file is not None:
                    self._file.close()
                    self._file = None

    def _ensure_file(self) -> TextIO:
        if self._file is None:
            self._file = open(self._path, "a", encoding=self._encoding)  # noqa: SIM115
        return self._file

    def _should_rotate(self) -> bool:
        if self._max_bytes <= 0 or not self._path.exists():
            return False
        return self._path.stat().st_size >= self._max_bytes

    def _backup_path(self, index: int) -> Path:
        return self._path.with_name(f"{self._path.name}.{index}")

    def _rotate(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
        if self._backup_count <= 0:
            self._path.unlink()
            return
        oldest = self._backup_path(self._backup_count)
        if oldest.exists():
            oldest.unlink()
        for index in range(self._backup_count - 1, 0, -1):
            source = self._backup_path(index)
            if source.exists():
                source.rename(self._backup_path(index + 1))
        self._path.rename(self._backup_path(1))

    def _write_buffer(self) -> None:
        if not self._buffer:
            return
        if self._should_rotate():
            self._rotate()
        handle = self._ensure_file()
        handle.write("\n".join(self._buffer) + "\n")
        handle.flush()
        os.fsync(handle.fileno())
        self._buffer.clear()
