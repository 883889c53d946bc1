"""
Append-only record storage.

Key classes:
- AppendOnlyStore: File-backed stream of records for one user
- Record: Index descriptor of one appended record
- RecordKind: "log" or "content"
"""

from .records import (
    Record,
    RecordKind,
    decode_log_entry,
    encode_log_entry,
    payload_checksum,
)
from .store import DATA_FILE, INDEX_FILE, AppendOnlyStore

__all__ = [
    "AppendOnlyStore",
    "Record",
    "RecordKind",
    "encode_log_entry",
    "decode_log_entry",
    "payload_checksum",
    "INDEX_FILE",
    "DATA_FILE",
]
