"""Formatting helpers shared by the engine and the console sink."""

from collections.abc import Mapping
from datetime import timedelta
from typing import Any

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "token",
        "auth_token",
        "access_token",
        "refresh_token",
        "api_key",
        "secret",
        "private_key",
        "credit_card",
        "ssn",
        "social_security",
    }
)

REDACTED = "[REDACTED]"

# (upper bound in ms, grade), checked in order.
_GRADE_BANDS = ((100, "A"), (500, "B"), (1000, "C"), (3000, "D"))


def to_milliseconds(duration: timedelta | float | int) -> int:
    """Convert a timedelta or a number of seconds to whole milliseconds."""
    if isinstance(duration, timedelta):
        return int(duration / timedelta(milliseconds=1))
    return int(duration * 1000)


def format_duration(duration_ms: int) -> str:
    """Render a duration for humans.

    Examples:
        >>> format_duration(250)
        '250ms'
        >>> format_duration(6042)
        '6.042s'
        >>> format_duration(125000)
        '2m 5s'
    """
    if duration_ms < 1000:
        return f"{duration_ms}ms"
    seconds, millis = divmod(duration_ms, 1000)
    if seconds < 60:
        return f"{seconds}.{millis:03d}s"
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes}m {seconds}s"


def performance_grade(duration_ms: int) -> str:
    """Band a duration into a letter grade: A (<100ms) through F (>=3s)."""
    for bound, grade in _GRADE_BANDS:
        if duration_ms < bound:
            return grade
    return "F"


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(sensitive in lowered for sensitive in SENSITIVE_KEYS)


def redact(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of data with sensitive values replaced, recursively."""
    filtered: dict[str, Any] = {}
    for key, value in data.items():
        if _is_sensitive(str(key)):
            filtered[key] = REDACTED
        elif isinstance(value, Mapping):
            filtered[key] = redact(value)
        elif isinstance(value, list):
            filtered[key] = [
                redact(item) if isinstance(item, Mapping) else item for item in value
            ]
        else:
            filtered[key] = value
    return filtered
