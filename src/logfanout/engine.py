"""Engine facade: filtering, enrichment, fan-out dispatch and escalation."""

import os
import platform
import sys
import threading
import time
import traceback
from collections.abc import Callable, Generator, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from types import TracebackType
from typing import Any

from logfanout.adapters.sinks.console import ConsoleSink
from logfanout.adapters.sinks.crash import CrashSink
from logfanout.adapters.sinks.file import FileSink
from logfanout.adapters.sinks.remote import HttpTelemetryTransport, RemoteSink
from logfanout.adapters.sinks.sqlite import SQLiteSink
from logfanout.core.config import EngineConfig
from logfanout.core.context import ContextBuilder
from logfanout.core.errors import ConfigurationError
from logfanout.core.formatting import format_duration, performance_grade, to_milliseconds
from logfanout.core.levels import ESCALATION_LEVEL, LogLevel
from logfanout.core.models import AmbientState, LogEntry, utc_now
from logfanout.core.ports import BreadcrumbSinkPort, SinkPort
from logfanout.core.scheduler import PeriodicTask
from logfanout.core.stats import StatsAggregator

SinkFactory = Callable[[EngineConfig], SinkPort]
AlertHook = Callable[[str, Mapping[str, Any]], None]

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


# --- Default sink factories ---


def console_sink(config: EngineConfig) -> SinkPort:
    """Build the console sink."""
    return ConsoleSink()


def file_sink(config: EngineConfig) -> SinkPort:
    """Build the NDJSON file sink under config.log_dir."""
    return FileSink(
        config.log_path,
        buffer_size=config.file_buffer_size,
        max_bytes=config.file_max_bytes,
        backup_count=config.file_backup_count,
    )


def remote_sink(config: EngineConfig) -> SinkPort:
    """Build the telemetry sink from remote_transport or remote_url."""
    transport = config.remote_transport
    if transport is None:
        if not config.remote_url:
            raise ConfigurationError("no remote_url or remote_transport configured")
        transport = HttpTelemetryTransport(config.remote_url)
    return RemoteSink(
        transport,
        min_level=config.remote_min_level,
        batch_size=config.remote_batch_size,
        flush_interval=config.remote_flush_interval_seconds,
        max_retries=config.remote_max_retries,
        queue_size=config.remote_queue_size,
    )


def crash_sink(config: EngineConfig) -> SinkPort:
    """Build the crash-escalation sink."""
    return CrashSink(config.crash_reporter, breadcrumb_limit=config.breadcrumb_limit)


def sqlite_sink(config: EngineConfig) -> SinkPort:
    """Build the optional SQLite sink."""
    if not config.sqlite_path:
        raise ConfigurationError("no sqlite_path configured")
    return SQLiteSink(config.sqlite_path, buffer_size=config.file_buffer_size)


DEFAULT_SINK_FACTORIES: tuple[SinkFactory, ...] = (
    console_sink,
    file_sink,
    remote_sink,
    crash_sink,
)


def default_sink_factories(config: EngineConfig) -> list[SinkFactory]:
    """The known sink variants, plus SQLite when a path is configured."""
    factories = list(DEFAULT_SINK_FACTORIES)
    if config.sqlite_path:
        factories.append(sqlite_sink)
    return factories


def _caller_tag() -> str:
    """Return ``module:lineno`` of the first frame outside this package."""
    try:
        frame = sys._getframe(1)
        while frame is not None and frame.f_code.co_filename.startswith(_PACKAGE_DIR):
            frame = frame.f_back
        if frame is None:
            return "UNKNOWN"
        return f"{Path(frame.f_code.co_filename).stem}:{frame.f_lineno}"
    except Exception:
        return "UNKNOWN"


def _render_stack(error: BaseException) -> str | None:
    if error.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


@dataclass
class TimedOperation:
    """Result object for Engine.timed()."""

    operation: str
    metrics: dict[str, Any] = field(default_factory=dict)
    duration_ms: int | None = None


class Engine:
    """Single entry point for structured logging.

    The engine filters by minimum level, builds an immutable LogEntry with
    context, counts it, fans it out to every registered sink, and escalates
    ERROR/FATAL entries. No public method raises because of a sink or
    context failure; such failures are reported on the console as notices.

    Example:
        ```python
        engine = Engine(EngineConfig.release(log_dir=Path("/var/log/app")))
        engine.initialize()
        engine.info("Server started", data={"port": 8080})
        engine.dispose()
        ```

    Thread safety: logging methods may be called from any thread. dispose()
    must not run concurrently with in-flight logging calls.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        sink_factories: Iterable[SinkFactory] | None = None,
        context_builder: ContextBuilder | None = None,
        alert_hooks: Iterable[AlertHook] | None = None,
    ) -> None:
        """Create an engine. Nothing is opened until initialize().

        Args:
            config: Engine settings. Defaults to a development configuration.
            sink_factories: Callables building the sinks to register. Defaults
                to console, file, remote and crash (plus SQLite if configured).
            context_builder: Source of per-entry context. Defaults to a
                builder with app, platform and thread facts. The builder is
                not modified and may be shared between engines.
            alert_hooks: Called for critical security events and, in release
                builds, for FATAL entries. Defaults to a hook that prints
                the alert as a console notice; pass [] to disable alerts.
        """
        self._config = config or EngineConfig()
        self._sink_factories = (
            list(sink_factories)
            if sink_factories is not None
            else default_sink_factories(self._config)
        )
        self._context = context_builder or ContextBuilder.with_defaults(
            app_version=self._config.app_version,
            build_number=self._config.build_number,
        )
        self._alert_hooks: list[AlertHook] = (
            list(alert_hooks) if alert_hooks is not None else [self._console_alert]
        )
        self._minimum_level = self._config.resolved_minimum_level()
        self._ambient = AmbientState()
        self._stats = StatsAggregator()
        self._sinks: tuple[SinkPort, ...] = ()
        self._console: ConsoleSink | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._stats_task: PeriodicTask | None = None
        self._initialized = False
        self._lifecycle_lock = threading.Lock()

    # --- Properties ---

    @property
    def config(self) -> EngineConfig:
        """Engine settings."""
        return self._config

    @property
    def is_initialized(self) -> bool:
        """True between initialize() and dispose()."""
        return self._initialized

    @property
    def sinks(self) -> tuple[SinkPort, ...]:
        """Registered sinks in dispatch order."""
        return self._sinks

    @property
    def stats(self) -> StatsAggregator:
        """Per-level counters for the current reporting window."""
        return self._stats

    @property
    def context_builder(self) -> ContextBuilder:
        """The context builder used for new entries."""
        return self._context

    @property
    def minimum_level(self) -> LogLevel:
        """Entries below this level are discarded."""
        return self._minimum_level

    @property
    def user_id(self) -> str | None:
        """Ambient user id applied to new entries."""
        return self._ambient.user_id

    @property
    def session_id(self) -> str | None:
        """Ambient session id applied to new entries."""
        return self._ambient.session_id

    def set_minimum_level(self, level: LogLevel | str | int) -> None:
        """Change the minimum level at runtime."""
        self._minimum_level = LogLevel.parse(level)

    def add_alert_hook(self, hook: AlertHook) -> None:
        """Register another alert hook."""
        self._alert_hooks.append(hook)

    # --- Lifecycle ---

    def initialize(self) -> None:
        """Build and initialize every sink, then start stats reporting.

        Calling initialize() on an initialized engine does nothing. A sink
        that fails to build or initialize is skipped; the console sink is
        always present afterwards.
        """
        with self._lifecycle_lock:
            if self._initialized:
                return
            now = time.monotonic()
            self._ambient.started_at = now
            self._ambient.session_started_at = now
            self._executor = ThreadPoolExecutor(
                max_workers=4, thread_name_prefix="logfanout-flush"
            )

            sinks: list[SinkPort] = []
            failures: list[str] = []
            for factory in self._sink_factories:
                label = getattr(factory, "__name__", repr(factory)).removesuffix("_sink")
                try:
                    sink = factory(self._config)
                    label = getattr(sink, "name", label)
                    sink.initialize()
                except Exception as exc:
                    failures.append(f"Sink '{label}' unavailable: {exc}")
                    continue
                sinks.append(sink)

            self._console = next((s for s in sinks if isinstance(s, ConsoleSink)), None)
            if self._console is None:
                try:
                    console = ConsoleSink()
                    console.initialize()
                except Exception as exc:
                    print(f"[logfanout] Console fallback failed: {exc}", file=sys.stderr)
                else:
                    sinks.insert(0, console)
                    self._console = console

            self._sinks = tuple(sinks)
            for failure in failures:
                self._notice(failure)

            if self._config.stats_interval_seconds > 0:
                self._stats_task = PeriodicTask(
                    self._config.stats_interval_seconds,
                    self.report_stats,
                    name="logfanout-stats",
                )
                self._stats_task.start()

            self._initialized = True
            self._notice(
                f"Logging initialized with {len(self._sinks)} sink(s): "
                + ", ".join(getattr(s, "name", type(s).__name__) for s in self._sinks)
            )

    def flush(self, timeout: float | None = None) -> None:
        """Flush every sink, waiting up to ``timeout`` seconds in total.

        Sinks are flushed concurrently; a slow or failing sink is reported
        and does not hold up the others.
        """
        self._flush_sinks(
            self._sinks,
            timeout if timeout is not None else self._config.flush_timeout_seconds,
        )

    def dispose(self) -> None:
        """Stop stats reporting, dispose every sink and reset the engine.

        A later initialize() builds a fresh set of sinks with zeroed stats.
        """
        with self._lifecycle_lock:
            if self._stats_task is not None:
                self._stats_task.cancel()
                self._stats_task = None
            sinks, self._sinks = self._sinks, ()
            for sink in sinks:
                self._guard(sink, "dispose", sink.dispose)
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None
            self._console = None
            self._stats = StatsAggregator()
            self._ambient = AmbientState()
            self._initialized = False

    def __enter__(self) -> "Engine":
        self.initialize()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.flush()
        self.dispose()

    # --- Core logging path ---

    def log(
        self,
        level: LogLevel | str | int,
        message: str,
        *,
        tag: str | None = None,
        data: Mapping[str, Any] | None = None,
        error: BaseException | None = None,
        stack_trace: str | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> None:
        """Log one event. Never raises."""
        try:
            level = LogLevel.parse(level)
            if level.rank < self._minimum_level.rank:
                return
            if stack_trace is None and error is not None:
                stack_trace = _render_stack(error)
            entry = LogEntry(
                timestamp=utc_now(),
                level=level,
                message=message,
                tag=tag or _caller_tag(),
                data=data,
                error=error,
                stack_trace=stack_trace,
                user_id=user_id if user_id is not None else self._ambient.user_id,
                session_id=(
                    session_id if session_id is not None else self._ambient.session_id
                ),
                context=self._build_context(),
            )
            self._stats.record(level)
            self._dispatch(entry)
            if level.rank >= ESCALATION_LEVEL.rank:
                self._escalate(entry)
        except Exception as exc:
            self._notice(f"Logging failed: {exc} - Original message: {message}")

    def _dispatch(self, entry: LogEntry) -> None:
        for sink in self._sinks:
            self._guard(sink, "write", sink.write, entry)

    def _escalate(self, entry: LogEntry) -> None:
        sinks = self._sinks
        durable = [sink for sink in sinks if getattr(sink, "durable", False)]
        self._flush_sinks(durable, self._config.flush_timeout_seconds)

        breadcrumb = f"Critical log: {entry.level.name} - {entry.message}"
        for sink in sinks:
            if isinstance(sink, BreadcrumbSinkPort):
                self._guard(sink, "breadcrumb", sink.add_breadcrumb, breadcrumb)

        if self._config.is_release and entry.level == LogLevel.FATAL:
            self._alert(
                "fatal",
                {
                    "message": entry.message,
                    "tag": entry.tag,
                    "error": str(entry.error) if entry.error is not None else None,
                    "timestamp": entry.timestamp.isoformat(),
                },
            )

    def _flush_sinks(self, sinks: Iterable[SinkPort], timeout: float) -> None:
        sinks = list(sinks)
        if not sinks:
            return
        executor = self._executor
        if executor is None:
            for sink in sinks:
                self._guard(sink, "flush", sink.flush)
            return
        deadline = time.monotonic() + timeout
        pending = []
        for sink in sinks:
            try:
                pending.append((sink, executor.submit(sink.flush)))
            except RuntimeError:
                # Pool already shut down by a concurrent dispose().
                self._guard(sink, "flush", sink.flush)
        for sink, future in pending:
            remaining = max(0.0, deadline - time.monotonic())
            try:
                future.result(timeout=remaining)
            except FutureTimeoutError:
                self._notice(f"Sink '{self._sink_name(sink)}' flush timed out after {timeout}s")
            except Exception as exc:
                self._notice(f"Sink '{self._sink_name(sink)}' flush failed: {exc}")

    def _build_context(self) -> dict[str, Any]:
        # Engine-owned fields; the builder itself may be shared and is left untouched.
        context = self._context.build()
        context["app_uptime"] = self._uptime_seconds()
        context["session_duration"] = self._session_seconds()
        return context

    def _console_alert(self, kind: str, payload: Mapping[str, Any]) -> None:
        """Default alert hook: report the alert on the fallback channel."""
        if kind == "security":
            self._notice(
                f"SECURITY ALERT: {payload.get('security_event')} "
                f"(Severity: {payload.get('severity')})"
            )
        else:
            self._notice(f"FATAL ERROR ALERT: {payload.get('message')}")

    def _alert(self, kind: str, payload: Mapping[str, Any]) -> None:
        for hook in list(self._alert_hooks):
            try:
                hook(kind, payload)
            except Exception as exc:
                self._notice(f"Alert hook for {kind} failed: {exc}")

    def _guard(self, sink: SinkPort, operation: str, func: Callable[..., Any], *args: Any) -> None:
        try:
            func(*args)
        except Exception as exc:
            self._notice(f"Sink '{self._sink_name(sink)}' {operation} failed: {exc}")

    @staticmethod
    def _sink_name(sink: SinkPort) -> str:
        return getattr(sink, "name", type(sink).__name__)

    def _notice(self, text: str) -> None:
        console = self._console
        if console is not None:
            try:
                console.notice(text)
                return
            except Exception:  # noqa: S110
                pass
        print(f"[logfanout] {text}", file=sys.stderr)

    # --- Level methods ---

    def trace(
        self,
        message: str,
        *,
        tag: str | None = None,
        data: Mapping[str, Any] | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> None:
        """Log at TRACE."""
        self.log(
            LogLevel.TRACE, message, tag=tag, data=data, user_id=user_id, session_id=session_id
        )

    def debug(
        self,
        message: str,
        *,
        tag: str | None = None,
        data: Mapping[str, Any] | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> None:
        """Log at DEBUG."""
        self.log(
            LogLevel.DEBUG, message, tag=tag, data=data, user_id=user_id, session_id=session_id
        )

    def info(
        self,
        message: str,
        *,
        tag: str | None = None,
        data: Mapping[str, Any] | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> None:
        """Log at INFO."""
        self.log(
            LogLevel.INFO, message, tag=tag, data=data, user_id=user_id, session_id=session_id
        )

    def warn(
        self,
        message: str,
        *,
        tag: str | None = None,
        data: Mapping[str, Any] | None = None,
        error: BaseException | None = None,
        stack_trace: str | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> None:
        """Log at WARN."""
        self.log(
            LogLevel.WARN,
            message,
            tag=tag,
            data=data,
            error=error,
            stack_trace=stack_trace,
            user_id=user_id,
            session_id=session_id,
        )

    def error(
        self,
        message: str,
        *,
        tag: str | None = None,
        data: Mapping[str, Any] | None = None,
        error: BaseException | None = None,
        stack_trace: str | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> None:
        """Log at ERROR and escalate."""
        self.log(
            LogLevel.ERROR,
            message,
            tag=tag,
            data=data,
            error=error,
            stack_trace=stack_trace,
            user_id=user_id,
            session_id=session_id,
        )

    def fatal(
        self,
        message: str,
        *,
        tag: str | None = None,
        data: Mapping[str, Any] | None = None,
        error: BaseException | None = None,
        stack_trace: str | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> None:
        """Log at FATAL and escalate."""
        self.log(
            LogLevel.FATAL,
            message,
            tag=tag,
            data=data,
            error=error,
            stack_trace=stack_trace,
            user_id=user_id,
            session_id=session_id,
        )

    # --- Specialized events ---

    def user_action(
        self,
        action: str,
        screen: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        """Log a user interaction at INFO."""
        self.info(
            f"User Action: {action}",
            tag="USER_ACTION",
            data={
                "action": action,
                "screen": screen or self._context.get("current_screen", "unknown"),
                "timestamp": utc_now().isoformat(),
                "user_id": self._ambient.user_id,
                "session_duration": self._session_seconds(),
                **(details or {}),
            },
        )

    def performance(
        self,
        operation: str,
        duration: timedelta | float,
        metrics: Mapping[str, Any] | None = None,
    ) -> None:
        """Log an operation's duration at INFO, plus a WARN when it is slow.

        Args:
            operation: Name of the measured operation.
            duration: A timedelta, or elapsed seconds.
            metrics: Extra measurements merged into the entry data.
        """
        try:
            duration_ms = to_milliseconds(duration)
        except Exception as exc:
            self._notice(f"Invalid duration for {operation}: {exc}")
            return
        is_slow = duration_ms > self._config.slow_operation_threshold_ms
        self.info(
            f"Performance: {operation} ({duration_ms}ms)",
            tag="PERFORMANCE",
            data={
                "operation": operation,
                "duration_ms": duration_ms,
                "duration_readable": format_duration(duration_ms),
                "is_slow": is_slow,
                "performance_grade": performance_grade(duration_ms),
                **(metrics or {}),
            },
        )
        if is_slow:
            self.warn(
                f"Slow operation detected: {operation} took {duration_ms}ms",
                tag="PERFORMANCE_WARNING",
                data={"operation": operation, "duration_ms": duration_ms},
            )

    @contextmanager
    def timed(self, operation: str, **metrics: Any) -> Generator[TimedOperation]:
        """Context manager that reports the block's duration via performance().

        Metrics added to the yielded object's ``metrics`` dict are included.
        If the block raises, ``failed`` is recorded and the exception
        propagates.
        """
        result = TimedOperation(operation=operation, metrics=dict(metrics))
        start = time.perf_counter()
        try:
            yield result
        except BaseException:
            result.metrics["failed"] = True
            raise
        finally:
            elapsed = time.perf_counter() - start
            result.duration_ms = to_milliseconds(elapsed)
            self.performance(operation, elapsed, result.metrics)

    def business_event(
        self,
        event: str,
        category: str,
        properties: Mapping[str, Any] | None = None,
    ) -> None:
        """Log a business or analytics event at INFO."""
        self.info(
            f"Business Event: {event}",
            tag="BUSINESS",
            data={
                "event": event,
                "category": category,
                "properties": dict(properties) if properties is not None else None,
                "user_id": self._ambient.user_id,
                "session_id": self._ambient.session_id,
                "app_version": self._context.get("app_version", self._config.app_version),
                "platform": self._context.get("platform", platform.system()),
                "timestamp": utc_now().isoformat(),
            },
        )

    def security_event(
        self,
        event: str,
        severity: str,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        """Log a security event; "critical" logs at ERROR and raises an alert."""
        critical = severity == "critical"
        data = {
            "security_event": event,
            "severity": severity,
            "user_id": self._ambient.user_id,
            "device_id": self._context.get("device_id"),
            "session_id": self._ambient.session_id,
            "auth_status": self._context.get("auth_status"),
            "ip_address": self._context.get("ip_address"),
            "user_agent": self._context.get("user_agent"),
            "location": self._context.get("location"),
            "timestamp": utc_now().isoformat(),
            **(details or {}),
        }
        self.log(
            LogLevel.ERROR if critical else LogLevel.WARN,
            f"Security Event: {event}",
            tag="SECURITY",
            data=data,
        )
        if critical:
            self._alert("security", data)

    def network_event(
        self,
        method: str,
        url: str,
        status_code: int,
        duration: timedelta | float,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        """Log an HTTP exchange; WARN for status >= 400, DEBUG otherwise."""
        try:
            duration_ms = to_milliseconds(duration)
        except Exception as exc:
            self._notice(f"Invalid duration for {method} {url}: {exc}")
            return
        self.log(
            LogLevel.WARN if status_code >= 400 else LogLevel.DEBUG,
            f"Network: {method} {url} ({status_code})",
            tag="NETWORK",
            data={
                "method": method,
                "url": url,
                "status_code": status_code,
                "duration_ms": duration_ms,
                "is_success": status_code < 400,
                "is_client_error": 400 <= status_code < 500,
                "is_server_error": status_code >= 500,
                **(details or {}),
            },
        )

    def lifecycle_event(
        self,
        event: str,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        """Log an application lifecycle transition at INFO."""
        self.info(
            f"Lifecycle: {event}",
            tag="LIFECYCLE",
            data={
                "lifecycle_event": event,
                "timestamp": utc_now().isoformat(),
                "app_state": self._context.get("app_state", "active"),
                "session_id": self._ambient.session_id,
                "uptime": self._uptime_seconds(),
                **(details or {}),
            },
        )

    # --- Identity ---

    def set_user_id(self, user_id: str | None) -> None:
        """Set the ambient user id and log the change."""
        self._ambient.user_id = user_id
        self.info("User context updated", tag="CONTEXT", data={"user_id": user_id})

    def set_session_id(self, session_id: str | None) -> None:
        """Set the ambient session id, restart the session clock and log it."""
        self._ambient.session_id = session_id
        self._ambient.session_started_at = time.monotonic()
        self.info("Session context updated", tag="CONTEXT", data={"session_id": session_id})

    # --- Statistics ---

    def report_stats(self) -> None:
        """Emit the counts since the last report and reset them."""
        try:
            report = self._stats.drain()
            if report is None:
                return
            self.business_event("logging_stats", "system", report.to_properties())
        except Exception as exc:
            self._notice(f"Stats report failed: {exc}")

    def _uptime_seconds(self) -> int:
        if not self._ambient.started_at:
            return 0
        return int(time.monotonic() - self._ambient.started_at)

    def _session_seconds(self) -> int:
        if not self._ambient.session_started_at:
            return 0
        return int(time.monotonic() - self._ambient.session_started_at)
