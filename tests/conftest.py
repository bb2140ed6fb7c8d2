"""Shared test fixtures for all test modules."""

import io
from collections.abc import Callable, Generator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from logfanout.adapters.sinks.console import ConsoleSink
from logfanout.adapters.sinks.memory import InMemorySink
from logfanout.core.config import EngineConfig
from logfanout.core.levels import LogLevel
from logfanout.core.models import LogEntry
from logfanout.engine import Engine


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for file sink tests."""
    return tmp_path / "logs"


@pytest.fixture
def sqlite_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for SQLite sink tests."""
    return str(tmp_path / "logs.db")


@pytest.fixture
def console_stream() -> io.StringIO:
    """Stream capturing console sink output and engine notices."""
    return io.StringIO()


@pytest.fixture
def memory_sink() -> InMemorySink:
    """A fresh in-memory sink."""
    return InMemorySink()


@pytest.fixture
def make_entry() -> Callable[..., LogEntry]:
    """Factory fixture for LogEntry objects with sensible defaults."""

    def _entry(
        level: LogLevel = LogLevel.INFO, message: str = "test message", **kwargs: Any
    ) -> LogEntry:
        kwargs.setdefault("timestamp", datetime(2024, 1, 2, 3, 4, 5, 678000, timezone.utc))
        return LogEntry(level=level, message=message, **kwargs)

    return _entry


@pytest.fixture
def make_engine(
    console_stream: io.StringIO,
) -> Generator[Callable[..., Engine]]:
    """Factory fixture building initialized engines around the given sinks.

    A console sink writing to ``console_stream`` is always registered first
    and the periodic stats task is disabled unless a config says otherwise.
    Every engine created is disposed after the test.
    """
    engines: list[Engine] = []

    def _make(*sinks: Any, config: EngineConfig | None = None, **kwargs: Any) -> Engine:
        factories = [lambda _config: ConsoleSink(console_stream, colorize=False)]
        factories += [lambda _config, sink=sink: sink for sink in sinks]
        engine = Engine(
            config or EngineConfig.development(stats_interval_seconds=0),
            sink_factories=factories,
            **kwargs,
        )
        engine.initialize()
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        engine.dispose()
