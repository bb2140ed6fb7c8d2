"""Core domain models for log events."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from logfanout.core.levels import LogLevel


def _copy_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _copy_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_copy_value(item) for item in value]
    if type(value) is tuple:
        return tuple(_copy_value(item) for item in value)
    if type(value) is set:
        return {_copy_value(item) for item in value}
    return value


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    if mapping is None:
        return None
    return MappingProxyType(_copy_value(mapping))


@dataclass(frozen=True)
class LogEntry:
    """A single, fully enriched log event.

    Attributes:
        timestamp: Time the event was recorded (timezone-aware UTC).
        level: Severity of the event.
        message: Human-readable text.
        tag: Short origin label (subsystem or caller).
        data: Structured fields, in the caller's key order.
        error: Captured failure, if any.
        stack_trace: Rendered trace for the captured failure.
        user_id: Identity correlation field.
        session_id: Session correlation field.
        context: Snapshot of ambient runtime facts at construction time.

    data and context are read-only views. Nested dicts, lists, tuples and
    sets are copied at construction, so later changes by the caller do not
    reach the entry; other values (objects, exceptions) are shared.
    """

    timestamp: datetime
    level: LogLevel
    message: str
    tag: str | None = None
    data: Mapping[str, Any] | None = None
    error: BaseException | None = None
    stack_trace: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Copy caller containers so the caller cannot mutate the entry.
        object.__setattr__(self, "data", _freeze(self.data))
        object.__setattr__(self, "context", _freeze(self.context))

    def __str__(self) -> str:
        return f"LogEntry({self.level.name}) {self.message}"


@dataclass
class AmbientState:
    """Per-engine identity and timing state used to default new entries.

    Attributes:
        user_id: Current user, applied when a call does not supply one.
        session_id: Current session, applied when a call does not supply one.
        started_at: Monotonic time the engine was initialized.
        session_started_at: Monotonic time the current session began.
    """

    user_id: str | None = None
    session_id: str | None = None
    started_at: float = 0.0
    session_started_at: float = 0.0


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
