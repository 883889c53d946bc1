"""
Log view over an append-only store.

Log entries are "log" records whose payload is a JSON array. Positions
are counted over log records only, so a client that remembers how many
entries it has seen can ask for just the delta.
"""

from __future__ import annotations

from typing import Any

from ..appendstore import AppendOnlyStore, Record, RecordKind, decode_log_entry, encode_log_entry


async def append_log(store: AppendOnlyStore, entry: list[Any]) -> Record:
    """Append one log entry.

    Raises:
        ValidationError: If the entry is not a JSON array
    """
    return await store.append_record(RecordKind.LOG, encode_log_entry(entry))


async def log_records(store: AppendOnlyStore) -> list[Record]:
    """All log records in sequence order."""
    return [r for r in await store.records() if r.kind == RecordKind.LOG]


async def get_logs(store: AppendOnlyStore, start: int = 0) -> list[list[Any]]:
    """Return log entries from position `start` onward.

    Args:
        store: An open store
        start: Number of leading log entries to skip (negative means 0)

    Returns:
        Decoded entries, oldest first; empty if start is past the end

    Raises:
        CorruptionError: If any entry fails to decode; nothing is returned
    """
    start = max(start, 0)
    selected = (await log_records(store))[start:]
    payloads = await store.read_records(selected)
    return [decode_log_entry(p, r.sequence) for r, p in zip(selected, payloads)]


async def count_logs(store: AppendOnlyStore) -> int:
    """Number of log entries in the store."""
    return len(await log_records(store))
