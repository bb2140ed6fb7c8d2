"""Console sink: human-readable rendering to a text stream."""

import json
import sys
import threading
from collections.abc import Mapping
from typing import Any, TextIO

from logfanout.core.formatting import redact
from logfanout.core.levels import LogLevel
from logfanout.core.models import LogEntry

MAX_MESSAGE_LENGTH = 200
MAX_DATA_LENGTH = 500
MAX_STACK_LINES = 5

_RESET = "\x1b[0m"
_COLORS = {
    LogLevel.TRACE: "\x1b[90m",
    LogLevel.DEBUG: "\x1b[36m",
    LogLevel.INFO: "\x1b[32m",
    LogLevel.WARN: "\x1b[33m",
    LogLevel.ERROR: "\x1b[31m",
    LogLevel.FATAL: "\x1b[35m\x1b[1m",
}

# Context keys shown for WARN and above.
_IMPORTANT_CONTEXT_KEYS = (
    "current_screen",
    "memory_usage",
    "network_status",
    "auth_status",
    "app_version",
)


def _truncate(message: str) -> str:
    if len(message) <= MAX_MESSAGE_LENGTH:
        return message
    return message[:MAX_MESSAGE_LENGTH] + "..."


def _format_data(data: Mapping[str, Any]) -> str:
    filtered = redact(data)
    text = json.dumps(filtered, default=str)
    if len(text) <= MAX_DATA_LENGTH:
        return text
    # Too long to print whole: show keys and value types instead.
    summary = ", ".join(f"{key}: {type(value).__name__}" for key, value in filtered.items())
    return "{" + summary + "}"


def _format_context(context: Mapping[str, Any]) -> str:
    important = {key: context[key] for key in _IMPORTANT_CONTEXT_KEYS if key in context}
    if not important:
        return ""
    return json.dumps(important, default=str)


class ConsoleSink:
    """Writes one or more readable lines per entry to a stream.

    This sink is the guaranteed fallback: initialize() never fails, and the
    engine reports its own problems through notice().

    Args:
        stream: Target stream. Defaults to sys.stdout at write time.
        colorize: Force ANSI colors on or off. Defaults to stream.isatty().
    """

    name = "console"
    durable = False

    def __init__(self, stream: TextIO | None = None, colorize: bool | None = None) -> None:
        self._stream = stream
        self._colorize = colorize
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        """The stream lines are written to."""
        return self._stream if self._stream is not None else sys.stdout

    def _use_color(self) -> bool:
        if self._colorize is not None:
            return self._colorize
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())

    def initialize(self) -> None:
        """Nothing to acquire."""

    def render(self, entry: LogEntry) -> list[str]:
        """Render an entry to its output lines (without color codes)."""
        timestamp = entry.timestamp.strftime("%H:%M:%S.%f")[:-3]
        tag = f"[{entry.tag}] " if entry.tag else ""
        lines = [f"{timestamp} {entry.level.name:<5} {tag}{_truncate(entry.message)}"]

        if entry.error is not None:
            lines.append(f"  Error: {entry.error}")
            if entry.stack_trace:
                stack = entry.stack_trace.strip().splitlines()[:MAX_STACK_LINES]
                lines.append("  Stack: " + "\n  ".join(stack))

        data = entry.data or {}
        if data:
            lines.append(f"  Data: {_format_data(data)}")

        if entry.level >= LogLevel.WARN and entry.context:
            context_text = _format_context(entry.context)
            if context_text:
                lines.append(f"  Context: {context_text}")

        if entry.tag == "PERFORMANCE":
            lines.append(
                f"  Performance: {data.get('operation', 'unknown')} took "
                f"{data.get('duration_ms', 0)}ms "
                f"(Grade: {data.get('performance_grade', 'N/A')})"
            )
            if data.get("is_slow") is True:
                lines.append("  SLOW OPERATION WARNING")
        elif entry.tag == "USER_ACTION":
            lines.append(
                f"  User: {data.get('action', 'unknown')} on {data.get('screen', 'unknown')}"
            )
        elif entry.tag == "SECURITY":
            lines.append(
                f"  Security: {data.get('security_event', 'unknown')} "
                f"(Severity: {data.get('severity', 'unknown')})"
            )
        return lines

    def write(self, entry: LogEntry) -> None:
        """Render and print an entry."""
        lines = self.render(entry)
        if self._use_color():
            color = _COLORS[entry.level]
            lines = [f"{color}{line}{_RESET}" for line in lines]
        self._emit(lines)

    def notice(self, text: str) -> None:
        """Print a fallback notice from the engine itself."""
        self._emit([f"[logfanout] {text}"])

    def _emit(self, lines: list[str]) -> None:
        with self._lock:
            stream = self.stream
            stream.write("\n".join(lines) + "\n")
            stream.flush()

    def flush(self) -> None:
        """Console output is unbuffered."""

    def dispose(self) -> None:
        """Nothing to release."""
