"""NDJSON encoder for log entries."""

import json
import zlib
from collections.abc import Iterable, Mapping
from typing import Any

from logfanout.core.levels import LogLevel
from logfanout.core.models import LogEntry


def _dumps(obj: Any) -> str:
    # Values that are not JSON-native (datetimes, exceptions, ...) use str().
    return json.dumps(obj, default=str, ensure_ascii=False)


def message_hash(message: str) -> int:
    """Return a stable CRC-32 of the message text."""
    return zlib.crc32(message.encode("utf-8"))


def entry_to_dict(entry: LogEntry) -> dict[str, Any]:
    """Convert a log entry to its canonical flat JSON-compatible shape.

    Args:
        entry: The entry to serialize.

    Returns:
        Dict with timestamp, level, level_value, message, tag, data, error,
        error_type, stack_trace, user_id, session_id, context, message_hash
        and log_size. log_size is the UTF-8 byte length of the object
        serialized without the log_size key.
    """
    obj: dict[str, Any] = {
        "timestamp": entry.timestamp.isoformat(),
        "level": entry.level.name,
        "level_value": entry.level.rank,
        "message": entry.message,
        "tag": entry.tag,
        "data": dict(entry.data) if entry.data is not None else None,
        "error": str(entry.error) if entry.error is not None else None,
        "error_type": type(entry.error).__name__ if entry.error is not None else None,
        "stack_trace": entry.stack_trace,
        "user_id": entry.user_id,
        "session_id": entry.session_id,
        "context": dict(entry.context),
        "message_hash": message_hash(entry.message),
    }
    obj["log_size"] = len(_dumps(obj).encode("utf-8"))
    return obj


def encode_entry(entry: LogEntry) -> str:
    """Encode a single entry as one JSON line (without trailing newline)."""
    return _dumps(entry_to_dict(entry))


def encode_entries(entries: Iterable[LogEntry]) -> str:
    """Encode log entries to newline-delimited JSON.

    Args:
        entries: An iterable of LogEntry objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no entries.
    """
    lines = [encode_entry(entry) for entry in entries]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def encode_batch(batch: Iterable[Mapping[str, Any]]) -> str:
    """Encode already-serialized entry dicts to newline-delimited JSON."""
    lines = [_dumps(dict(obj)) for obj in batch]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def decode_level(obj: Mapping[str, Any]) -> LogLevel:
    """Recover the LogLevel from a serialized entry.

    The level name is authoritative; level_value is checked against it.

    Raises:
        ValueError: If the level is unknown or disagrees with level_value.
    """
    level = LogLevel.parse(obj["level"])
    rank = obj.get("level_value")
    if rank is not None and rank != level.rank:
        raise ValueError(
            f"level {obj['level']!r} does not match level_value {rank!r}"
        )
    return level
