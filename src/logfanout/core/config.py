"""Engine configuration."""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from logfanout.core.errors import ConfigurationError
from logfanout.core.levels import LogLevel
from logfanout.core.ports import CrashReporterPort, TelemetryTransportPort

BUILD_MODES = ("development", "release")

_DEFAULT_MINIMUM_LEVELS = {
    "development": LogLevel.TRACE,
    "release": LogLevel.INFO,
}


@dataclass(frozen=True)
class EngineConfig:
    """Settings for an Engine and the default sinks it constructs.

    Attributes:
        build_mode: "development" or "release". Selects the default minimum
            level (TRACE or INFO) and whether FATAL entries raise alerts.
        minimum_level: Explicit minimum level; overrides the build mode
            default when set.
        app_version: Reported in context and business events.
        build_number: Reported in context.
        log_dir: Directory for the file sink.
        log_file_name: File name for the file sink.
        file_buffer_size: Entries buffered before the file sink auto-flushes.
        file_max_bytes: Size at which the log file is rotated.
        file_backup_count: Rotated files kept beside the active one.
        remote_url: Telemetry endpoint for the default HTTP transport.
        remote_transport: Transport to use instead of HTTP.
        remote_min_level: Lowest level forwarded to telemetry.
        remote_batch_size: Entries per telemetry batch.
        remote_flush_interval_seconds: Longest wait before a partial batch
            is sent.
        remote_max_retries: Retries per batch before it is dropped.
        remote_queue_size: Bounded queue size for pending telemetry entries.
        crash_reporter: Crash backend; defaults to a stdlib logging reporter.
        breadcrumb_limit: Breadcrumbs retained by the crash sink.
        sqlite_path: When set, adds a durable SQLite sink.
        stats_interval_seconds: Period of the stats report; 0 disables it.
        slow_operation_threshold_ms: Durations above this are slow.
        flush_timeout_seconds: Per-flush wait bound.
    """

    build_mode: str = "development"
    minimum_level: LogLevel | None = None
    app_version: str = "0.0.0"
    build_number: str = "0"
    log_dir: Path = Path("logs")
    log_file_name: str = "logfanout.ndjson"
    file_buffer_size: int = 50
    file_max_bytes: int = 5 * 1024 * 1024
    file_backup_count: int = 3
    remote_url: str | None = None
    remote_transport: TelemetryTransportPort | None = None
    remote_min_level: LogLevel = LogLevel.INFO
    remote_batch_size: int = 50
    remote_flush_interval_seconds: float = 5.0
    remote_max_retries: int = 3
    remote_queue_size: int = 10_000
    crash_reporter: CrashReporterPort | None = None
    breadcrumb_limit: int = 100
    sqlite_path: str | None = None
    stats_interval_seconds: float = 300.0
    slow_operation_threshold_ms: int = 5000
    flush_timeout_seconds: float = 2.0

    def __post_init__(self) -> None:
        if self.build_mode not in BUILD_MODES:
            raise ConfigurationError(
                f"build_mode must be one of {BUILD_MODES}, got {self.build_mode!r}"
            )
        if self.minimum_level is not None:
            object.__setattr__(self, "minimum_level", LogLevel.parse(self.minimum_level))
        object.__setattr__(self, "remote_min_level", LogLevel.parse(self.remote_min_level))
        object.__setattr__(self, "log_dir", Path(self.log_dir))
        if self.stats_interval_seconds < 0:
            raise ConfigurationError("stats_interval_seconds must not be negative")
        if self.flush_timeout_seconds <= 0:
            raise ConfigurationError("flush_timeout_seconds must be positive")

    @classmethod
    def development(cls, **overrides: Any) -> "EngineConfig":
        """Configuration for development builds (minimum level TRACE)."""
        return cls(build_mode="development", **overrides)

    @classmethod
    def release(cls, **overrides: Any) -> "EngineConfig":
        """Configuration for release builds (minimum level INFO)."""
        return cls(build_mode="release", **overrides)

    @property
    def is_release(self) -> bool:
        """True for release builds."""
        return self.build_mode == "release"

    @property
    def log_path(self) -> Path:
        """Full path of the file sink's active log file."""
        return self.log_dir / self.log_file_name

    def resolved_minimum_level(self) -> LogLevel:
        """Explicit minimum level, or the default for the build mode."""
        if self.minimum_level is not None:
            return self.minimum_level
        return _DEFAULT_MINIMUM_LEVELS[self.build_mode]

    def with_overrides(self, **overrides: Any) -> "EngineConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)
