"""Per-level event counters with atomic read-and-reset."""

import threading
from dataclasses import dataclass, field

from logfanout.core.levels import LogLevel


@dataclass(frozen=True)
class StatsReport:
    """Counts collected during one reporting window.

    Attributes:
        counts: Level name to number of entries logged at that level.
        total: Sum of all counts.
        error_rate: ERROR count divided by total.
    """

    counts: dict[str, int] = field(default_factory=dict)
    total: int = 0
    error_rate: float = 0.0

    def to_properties(self) -> dict[str, object]:
        """Shape used for the logging_stats business event."""
        return {
            "log_counts": dict(self.counts),
            "total_logs": self.total,
            "error_rate": self.error_rate,
        }


class StatsAggregator:
    """Thread-safe counter of logged entries by level."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def record(self, level: LogLevel) -> None:
        """Count one entry at the given level."""
        with self._lock:
            self._counts[level.name] = self._counts.get(level.name, 0) + 1

    def snapshot(self) -> dict[str, int]:
        """Return a copy of the current counts without resetting them."""
        with self._lock:
            return dict(self._counts)

    def drain(self) -> StatsReport | None:
        """Read and reset the counters in one step.

        Returns:
            The report for the window just closed, or None if nothing was
            counted.
        """
        with self._lock:
            counts = self._counts
            self._counts = {}
        if not counts:
            return None
        total = sum(counts.values())
        return StatsReport(
            counts=counts,
            total=total,
            error_rate=counts.get(LogLevel.ERROR.name, 0) / total,
        )
