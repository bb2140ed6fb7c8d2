"""Python logging handler adapter for logfanout.

This adapter bridges Python's standard library logging module to an Engine,
so records from libraries and legacy code reach the same sinks as direct
engine calls.
"""

import logging
import traceback
from typing import TYPE_CHECKING, Any

from logfanout.core.levels import LogLevel

if TYPE_CHECKING:
    from logfanout.engine import Engine

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

# Default attributes to extract from LogRecord
_DEFAULT_INCLUDE_ATTRS = ["module", "funcName", "lineno"]

# Records from these loggers are dropped to avoid feeding the engine's own
# diagnostics back into it.
_IGNORED_LOGGER_PREFIX = "logfanout"


class LogFanoutHandler(logging.Handler):
    """Logging handler that forwards log records to an Engine.

    Example:
        ```python
        from logfanout import Engine, LogFanoutHandler

        engine = Engine()
        engine.initialize()
        logging.getLogger().addHandler(LogFanoutHandler(engine))
        ```
    """

    def __init__(
        self,
        engine: "Engine",
        include_attrs: list[str] | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler with a target engine.

        Args:
            engine: Engine that receives converted records.
            include_attrs: LogRecord attributes copied into the entry data.
                Defaults to ["module", "funcName", "lineno"].
            level: Handler threshold, as for any logging.Handler.
        """
        super().__init__(level)
        self._engine = engine
        self._include_attrs = include_attrs or _DEFAULT_INCLUDE_ATTRS

    def emit(self, record: logging.LogRecord) -> None:
        """Convert a record to an engine call.

        Args:
            record: The log record to emit.
        """
        if record.name == _IGNORED_LOGGER_PREFIX or record.name.startswith(
            _IGNORED_LOGGER_PREFIX + "."
        ):
            return

        attr_mapping: dict[str, Any] = {
            "module": record.module,
            "funcName": record.funcName or "",
            "lineno": record.lineno,
            "pathname": record.pathname,
            "logger": record.name,
        }
        data: dict[str, Any] = {
            key: attr_mapping[key] for key in self._include_attrs if key in attr_mapping
        }

        # Add any extra attributes passed via logging call
        for key, value in record.__dict__.items():
            if key not in _STANDARD_LOGRECORD_ATTRS and key not in data:
                data[key] = value

        error: BaseException | None = None
        stack_trace: str | None = None
        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            error = exc_value
            if exc_type is not None:
                stack_trace = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )
        elif record.stack_info:
            stack_trace = record.stack_info

        try:
            message = record.getMessage()
        except Exception:
            self.handleError(record)
            return

        self._engine.log(
            LogLevel.from_stdlib(record.levelno),
            message,
            tag=record.name,
            data=data,
            error=error,
            stack_trace=stack_trace,
        )
