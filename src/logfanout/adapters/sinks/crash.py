"""Crash-escalation sink: breadcrumbs and error records for a crash backend."""

import logging
import threading
from collections import deque

from logfanout.core.levels import LogLevel
from logfanout.core.models import LogEntry
from logfanout.core.ports import CrashReporterPort


class LoggingCrashReporter:
    """Crash backend that writes to a stdlib logger.

    Used when no real crash-reporting service is configured, so breadcrumbs
    and errors still end up somewhere the host already collects.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("logfanout.crash")

    def log(self, message: str) -> None:
        """Record a breadcrumb."""
        self._logger.info("breadcrumb: %s", message)

    def record_error(
        self,
        error: BaseException | None,
        stack_trace: str | None,
        reason: str,
        fatal: bool,
    ) -> None:
        """Record an error report."""
        self._logger.error(
            "%s error: %s%s",
            "fatal" if fatal else "non-fatal",
            reason,
            f"\n{stack_trace}" if stack_trace else "",
        )


class CrashSink:
    """Forwards ERROR and FATAL entries and breadcrumbs to a crash reporter.

    The most recent ``breadcrumb_limit`` breadcrumbs are also kept in a ring
    buffer so they can be attached to a report or inspected.

    Args:
        reporter: Crash-reporting backend.
        breadcrumb_limit: Breadcrumbs retained in memory.
    """

    name = "crash"
    durable = False

    def __init__(
        self,
        reporter: CrashReporterPort | None = None,
        breadcrumb_limit: int = 100,
    ) -> None:
        self._reporter: CrashReporterPort = reporter or LoggingCrashReporter()
        self._breadcrumbs: deque[str] = deque(maxlen=breadcrumb_limit)
        self._lock = threading.Lock()

    @property
    def breadcrumbs(self) -> list[str]:
        """Retained breadcrumbs, oldest first."""
        with self._lock:
            return list(self._breadcrumbs)

    def initialize(self) -> None:
        """Nothing to acquire; the reporter is ready on construction."""

    def write(self, entry: LogEntry) -> None:
        """Record ERROR and FATAL entries as crash reports."""
        if entry.level < LogLevel.ERROR:
            return
        reason = f"{entry.tag}: {entry.message}" if entry.tag else entry.message
        self._reporter.record_error(
            entry.error,
            entry.stack_trace,
            reason,
            entry.level == LogLevel.FATAL,
        )

    def add_breadcrumb(self, message: str) -> None:
        """Keep and forward a breadcrumb."""
        with self._lock:
            self._breadcrumbs.append(message)
        self._reporter.log(message)

    def flush(self) -> None:
        """Reports are forwarded immediately."""

    def dispose(self) -> None:
        """Drop retained breadcrumbs."""
        with self._lock:
            self._breadcrumbs.clear()
