"""Sink adapters implementing SinkPort."""

from logfanout.adapters.sinks.console import ConsoleSink
from logfanout.adapters.sinks.crash import CrashSink, LoggingCrashReporter
from logfanout.adapters.sinks.file import FileSink
from logfanout.adapters.sinks.memory import InMemorySink
from logfanout.adapters.sinks.remote import HttpTelemetryTransport, RemoteSink
from logfanout.adapters.sinks.sqlite import SQLiteSink

__all__ = [
    "ConsoleSink",
    "CrashSink",
    "FileSink",
    "HttpTelemetryTransport",
    "InMemorySink",
    "LoggingCrashReporter",
    "RemoteSink",
    "SQLiteSink",
]
