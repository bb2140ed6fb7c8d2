"""Port interfaces for sinks and the backends they forward to.

These protocols define the contracts that sink adapters must implement.
The engine depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from logfanout.core.models import LogEntry


@runtime_checkable
class SinkPort(Protocol):
    """Port for an output backend that receives log entries.

    Examples: ConsoleSink, FileSink, RemoteSink, CrashSink, InMemorySink.

    Attributes:
        name: Short identifier used in fallback notices.
        durable: True if flush() pushes entries to durable storage. Durable
            sinks are flushed immediately when an ERROR or FATAL is logged.
    """

    name: str
    durable: bool

    def initialize(self) -> None:
        """Acquire resources. May perform I/O and may raise."""
        ...

    def write(self, entry: LogEntry) -> None:
        """Accept one entry. Must not block indefinitely."""
        ...

    def flush(self) -> None:
        """Push buffered entries to their destination (best effort)."""
        ...

    def dispose(self) -> None:
        """Release resources."""
        ...


@runtime_checkable
class BreadcrumbSinkPort(Protocol):
    """Port for sinks that accept escalation breadcrumbs."""

    def add_breadcrumb(self, message: str) -> None:
        """Record a short breadcrumb string for crash reporting."""
        ...


@runtime_checkable
class CrashReporterPort(Protocol):
    """Port for a crash-reporting backend."""

    def log(self, message: str) -> None:
        """Attach a breadcrumb message to the next crash report."""
        ...

    def record_error(
        self,
        error: BaseException | None,
        stack_trace: str | None,
        reason: str,
        fatal: bool,
    ) -> None:
        """Record a non-fatal or fatal error."""
        ...


@runtime_checkable
class TelemetryTransportPort(Protocol):
    """Port for delivering serialized entries to a telemetry service."""

    def send(self, batch: list[Mapping[str, Any]]) -> None:
        """Deliver one batch. Raises on failure so the caller can retry."""
        ...
