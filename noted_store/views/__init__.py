"""
Read/write models over an append-only store.

- logs: JSON log entries with resumable pagination
- content: blobs addressed by caller-supplied IDs
"""

from .content import (
    MIN_CONTENT_ID_LENGTH,
    get_content,
    list_content_ids,
    set_content,
    validate_content_id,
)
from .logs import append_log, count_logs, get_logs

__all__ = [
    "append_log",
    "get_logs",
    "count_logs",
    "set_content",
    "get_content",
    "list_content_ids",
    "validate_content_id",
    "MIN_CONTENT_ID_LENGTH",
]
