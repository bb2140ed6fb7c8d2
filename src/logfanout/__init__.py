"""logfanout: structured logging with fan-out to multiple sinks."""

from logfanout.adapters.logging import LogFanoutHandler
from logfanout.adapters.sinks import (
    ConsoleSink,
    CrashSink,
    FileSink,
    HttpTelemetryTransport,
    InMemorySink,
    LoggingCrashReporter,
    RemoteSink,
    SQLiteSink,
)
from logfanout.core.config import EngineConfig
from logfanout.core.context import ContextBuilder
from logfanout.core.encoding.ndjson import decode_level, encode_entries, entry_to_dict
from logfanout.core.errors import (
    ConfigurationError,
    LogFanoutError,
    SinkClosedError,
    TransportError,
)
from logfanout.core.levels import LogLevel
from logfanout.core.models import LogEntry
from logfanout.core.ports import (
    BreadcrumbSinkPort,
    CrashReporterPort,
    SinkPort,
    TelemetryTransportPort,
)
from logfanout.core.stats import StatsAggregator, StatsReport
from logfanout.engine import Engine, TimedOperation, default_sink_factories

__all__ = [
    "BreadcrumbSinkPort",
    "ConfigurationError",
    "ConsoleSink",
    "ContextBuilder",
    "CrashReporterPort",
    "CrashSink",
    "Engine",
    "EngineConfig",
    "FileSink",
    "HttpTelemetryTransport",
    "InMemorySink",
    "LogEntry",
    "LogFanoutError",
    "LogFanoutHandler",
    "LogLevel",
    "LoggingCrashReporter",
    "RemoteSink",
    "SQLiteSink",
    "SinkClosedError",
    "SinkPort",
    "StatsAggregator",
    "StatsReport",
    "TelemetryTransportPort",
    "TimedOperation",
    "decode_level",
    "default_sink_factories",
    "encode_entries",
    "entry_to_dict",
]
