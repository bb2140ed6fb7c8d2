"""Test doubles shared across unit, integration and BDD tests."""

import threading
from collections.abc import Mapping
from typing import Any

from logfanout.core.models import LogEntry


class FailingSink:
    """Sink whose selected operations raise RuntimeError."""

    durable = True

    def __init__(self, name: str = "failing", fail_on: tuple[str, ...] = ("write",)) -> None:
        self.name = name
        self.fail_on = fail_on
        self.write_attempts = 0
        self.flush_attempts = 0

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RuntimeError(f"{self.name} {operation} exploded")

    def initialize(self) -> None:
        self._maybe_fail("initialize")

    def write(self, entry: LogEntry) -> None:
        self.write_attempts += 1
        self._maybe_fail("write")

    def flush(self) -> None:
        self.flush_attempts += 1
        self._maybe_fail("flush")

    def dispose(self) -> None:
        self._maybe_fail("dispose")


class SlowFlushSink:
    """Sink whose flush blocks until released."""

    name = "slow"
    durable = True

    def __init__(self) -> None:
        self.release = threading.Event()

    def initialize(self) -> None:
        pass

    def write(self, entry: LogEntry) -> None:
        pass

    def flush(self) -> None:
        self.release.wait(5.0)

    def dispose(self) -> None:
        self.release.set()


class RecordingReporter:
    """CrashReporterPort double that remembers calls."""

    def __init__(self) -> None:
        self.messages: list[str] = []
        self.errors: list[dict[str, Any]] = []

    def log(self, message: str) -> None:
        self.messages.append(message)

    def record_error(
        self,
        error: BaseException | None,
        stack_trace: str | None,
        reason: str,
        fatal: bool,
    ) -> None:
        self.errors.append(
            {"error": error, "stack_trace": stack_trace, "reason": reason, "fatal": fatal}
        )


class RecordingTransport:
    """TelemetryTransportPort double; fails the first ``failures`` sends."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.batches: list[list[Mapping[str, Any]]] = []
        self.attempts = 0
        self.closed = False
        self._lock = threading.Lock()

    def send(self, batch: list[Mapping[str, Any]]) -> None:
        with self._lock:
            self.attempts += 1
            if self.attempts <= self.failures:
                raise ConnectionError("telemetry unavailable")
            self.batches.append(list(batch))

    def close(self) -> None:
        self.closed = True

    @property
    def delivered(self) -> list[Mapping[str, Any]]:
        return [obj for batch in self.batches for obj in batch]


class RecordingAlerts:
    """Alert hook that remembers (kind, payload) pairs."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Mapping[str, Any]]] = []

    def __call__(self, kind: str, payload: Mapping[str, Any]) -> None:
        self.calls.append((kind, payload))
