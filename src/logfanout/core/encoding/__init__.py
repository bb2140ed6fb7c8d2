"""Serialization of log entries."""

from logfanout.core.encoding.ndjson import (
    decode_level,
    encode_batch,
    encode_entries,
    encode_entry,
    entry_to_dict,
)

__all__ = [
    "decode_level",
    "encode_batch",
    "encode_entries",
    "encode_entry",
    "entry_to_dict",
]
