"""Ordered severity scale used for filtering and escalation."""

import logging
from enum import IntEnum

_ALIASES = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}


class LogLevel(IntEnum):
    """Log severity. Comparisons use the numeric rank, never the name."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5

    @property
    def rank(self) -> int:
        """Numeric rank of this level."""
        return int(self.value)

    @classmethod
    def parse(cls, value: "LogLevel | str | int") -> "LogLevel":
        """Resolve a level from a LogLevel, a name, or a numeric rank.

        Args:
            value: Level name (case-insensitive, WARNING/CRITICAL accepted),
                numeric rank, or LogLevel.

        Returns:
            The matching LogLevel.

        Raises:
            ValueError: If the value does not name a known level.
        """
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid log level: {value!r}")
        if isinstance(value, int):
            return cls(value)
        name = str(value).strip().upper()
        name = _ALIASES.get(name, name)
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Invalid log level: {value!r}") from None

    @classmethod
    def from_stdlib(cls, levelno: int) -> "LogLevel":
        """Map a stdlib logging level number onto the LogLevel scale."""
        if levelno >= logging.CRITICAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE


# Entries at or above this level take the escalation path.
ESCALATION_LEVEL = LogLevel.ERROR
