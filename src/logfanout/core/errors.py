"""Exception hierarchy for logfanout."""


class LogFanoutError(Exception):
    """Base class for all logfanout errors."""


class ConfigurationError(LogFanoutError):
    """Raised when an engine or sink is configured inconsistently."""


class SinkClosedError(LogFanoutError):
    """Raised when a sink is used after it has been disposed."""

    def __init__(self, sink_name: str) -> None:
        super().__init__(f"Sink '{sink_name}' is closed")
        self.sink_name = sink_name


class TransportError(LogFanoutError):
    """Raised when a telemetry batch could not be delivered."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
