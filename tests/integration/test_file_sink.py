"""Tests for the NDJSON file sink."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from logfanout.adapters.sinks.file import FileSink
from logfanout.core.errors import SinkClosedError
from logfanout.core.levels import LogLevel
from logfanout.core.models import LogEntry

# All tests in this module are tier 2 (integration tests with file I/O)
pytestmark = pytest.mark.tier(2)

EntryFactory = Callable[..., LogEntry]


def _read_lines(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


@pytest.mark.sinks
class TestFileSink:
    """Tests for buffering and durability."""

    def test_initialize_creates_directory(self, log_dir: Path) -> None:
        sink = FileSink(log_dir / "nested" / "app.ndjson")
        sink.initialize()
        try:
            assert (log_dir / "nested").is_dir()
        finally:
            sink.dispose()

    def test_entries_are_buffered_until_flush(
        self, log_dir: Path, make_entry: EntryFactory
    ) -> None:
        path = log_dir / "app.ndjson"
        sink = FileSink(path, buffer_size=10)
        sink.initialize()
        try:
            sink.write(make_entry(message="first"))
            assert sink.pending == 1
            assert path.read_text(encoding="utf-8") == ""

            sink.flush()

            assert sink.pending == 0
            assert [obj["message"] for obj in _read_lines(path)] == ["first"]
        finally:
            sink.dispose()

    def test_full_buffer_flushes_automatically(
        self, log_dir: Path, make_entry: EntryFactory
    ) -> None:
        path = log_dir / "app.ndjson"
        sink = FileSink(path, buffer_size=3)
        sink.initialize()
        try:
            for i in range(3):
                sink.write(make_entry(message=f"msg{i}"))
            assert len(_read_lines(path)) == 3
        finally:
            sink.dispose()

    def test_lines_use_canonical_encoding(
        self, log_dir: Path, make_entry: EntryFactory
    ) -> None:
        path = log_dir / "app.ndjson"
        sink = FileSink(path)
        sink.initialize()
        sink.write(make_entry(LogLevel.WARN, "disk low", tag="STORAGE", data={"free_mb": 12}))
        sink.dispose()

        (obj,) = _read_lines(path)
        assert obj["level"] == "WARN"
        assert obj["level_value"] == 3
        assert obj["tag"] == "STORAGE"
        assert obj["data"] == {"free_mb": 12}
        assert obj["timestamp"] == "2024-01-02T03:04:05.678000+00:00"

    def test_dispose_writes_remaining_and_closes(
        self, log_dir: Path, make_entry: EntryFactory
    ) -> None:
        path = log_dir / "app.ndjson"
        sink = FileSink(path)
        sink.initialize()
        sink.write(make_entry())
        sink.dispose()

        assert len(_read_lines(path)) == 1
        with pytest.raises(SinkClosedError):
            sink.write(make_entry())

    def test_reopening_appends(self, log_dir: Path, make_entry: EntryFactory) -> None:
        path = log_dir / "app.ndjson"
        for message in ("run one", "run two"):
            sink = FileSink(path)
            sink.initialize()
            sink.write(make_entry(message=message))
            sink.dispose()
        assert [obj["message"] for obj in _read_lines(path)] == ["run one", "run two"]


@pytest.mark.sinks
class TestFileRotation:
    """Tests for size-based rotation."""

    def test_rotation_keeps_newest_entries(
        self, log_dir: Path, make_entry: EntryFactory
    ) -> None:
        path = log_dir / "app.ndjson"
        sink = FileSink(path, buffer_size=1, max_bytes=1, backup_count=2)
        sink.initialize()
        try:
            for i in range(5):
                sink.write(make_entry(message=f"msg{i}"))
        finally:
            sink.dispose()

        assert _read_lines(path)[0]["message"] == "msg4"
        assert _read_lines(log_dir / "app.ndjson.1")[0]["message"] == "msg3"
        assert _read_lines(log_dir / "app.ndjson.2")[0]["message"] == "msg2"
        assert not (log_dir / "app.ndjson.3").exists()

    def test_zero_max_bytes_disables_rotation(
        self, log_dir: Path, make_entry: EntryFactory
    ) -> None:
        path = log_dir / "app.ndjson"
        sink = FileSink(path, buffer_size=1, max_bytes=0)
        sink.initialize()
        try:
            for i in range(3):
                sink.write(make_entry(message=f"msg{i}"))
        finally:
            sink.dispose()
        assert len(_read_lines(path)) == 3
        assert not (log_dir / "app.ndjson.1").exists()
