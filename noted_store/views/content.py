"""
Content view over an append-only store.

Content blobs are "content" records whose meta is the caller-chosen ID.
Setting an existing ID appends a new record; reads return the most
recent one.
"""

from __future__ import annotations

import inspect
from typing import Any

from ..appendstore import AppendOnlyStore, Record, RecordKind
from ..exceptions import ContentNotFoundError, ValidationError

MIN_CONTENT_ID_LENGTH = 6


def validate_content_id(content_id: str | None) -> str:
    """Check a content ID is usable.

    Raises:
        ValidationError: If the ID is missing or shorter than 6 characters
    """
    if not content_id or len(content_id) < MIN_CONTENT_ID_LENGTH:
        raise ValidationError(
            "id",
            f"must be at least {MIN_CONTENT_ID_LENGTH} chars",
            content_id,
        )
    return content_id


async def read_body(body: Any) -> bytes:
    """Read a full body from bytes, a sync file-like or an async reader."""
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if hasattr(body, "read"):
        data = body.read()
        if inspect.isawaitable(data):
            data = await data
        return bytes(data)
    raise TypeError(f"Unsupported body type: {type(body).__name__}")


async def set_content(store: AppendOnlyStore, content_id: str, body: Any) -> Record:
    """Store a content blob under an ID.

    Args:
        store: An open store
        content_id: ID chosen by the caller, at least 6 characters
        body: bytes or a readable object

    Raises:
        ValidationError: If the ID is too short; nothing is appended
    """
    validate_content_id(content_id)
    data = await read_body(body)
    return await store.append_record(RecordKind.CONTENT, data, meta=content_id)


async def find_content(store: AppendOnlyStore, content_id: str) -> Record | None:
    """Most recent content record for an ID, or None."""
    for record in reversed(await store.records()):
        if record.kind == RecordKind.CONTENT and record.meta == content_id:
            return record
    return None


async def get_content(store: AppendOnlyStore, content_id: str) -> bytes:
    """Load the most recent blob stored under an ID.

    Raises:
        ContentNotFoundError: If no record matches
    """
    record = await find_content(store, content_id)
    if record is None:
        raise ContentNotFoundError(content_id, store.user_id)
    return await store.read_record(record)


async def list_content_ids(store: AppendOnlyStore) -> list[str]:
    """Distinct content IDs in first-seen order."""
    ids: dict[str, None] = {}
    for record in await store.records():
        if record.kind == RecordKind.CONTENT:
            ids.setdefault(record.meta, None)
    return list(ids)
