"""
Record types and codec for the append-only store.

A record is one durably appended unit in a user's stream. The payload
bytes live in the data file; the index keeps a small JSON descriptor
per record (kind, meta, sequence, offset, length, checksum).
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..exceptions import CorruptionError, ValidationError


class RecordKind(Enum):
    """Kinds of records in a user stream."""

    LOG = "log"
    CONTENT = "content"


@dataclass(frozen=True)
class Record:
    """Index descriptor of one appended record.

    Records are immutable once written. The sequence number provides
    total ordering within a user's stream and is never reused.

    Attributes:
        kind: Record kind ("log" or "content")
        meta: Content ID for blobs, empty for log entries
        sequence: Append order, assigned by the store
        offset: Byte offset of the payload in the data file
        length: Payload size in bytes
        checksum: SHA-256 hex digest of the payload
    """

    kind: RecordKind
    meta: str
    sequence: int
    offset: int
    length: int
    checksum: str

    def __post_init__(self) -> None:
        if not isinstance(self.kind, RecordKind):
            raise ValueError(f"Record kind must be a RecordKind, got {self.kind!r}")
        if self.kind == RecordKind.CONTENT and not self.meta:
            raise ValueError("Content records require a content ID in meta")
        if self.sequence < 0 or self.offset < 0 or self.length < 0:
            raise ValueError("Record sequence, offset and length must be non-negative")
        if not self.checksum:
            raise ValueError("Record checksum is required")

    def to_index_dict(self) -> dict[str, Any]:
        """Serialize to an index descriptor."""
        return {
            "kind": self.kind.value,
            "meta": self.meta,
            "sequence": self.sequence,
            "offset": self.offset,
            "length": self.length,
            "checksum": self.checksum,
        }

    @classmethod
    def from_index_dict(cls, data: dict[str, Any]) -> Record:
        """Deserialize from an index descriptor."""
        return cls(
            kind=RecordKind(data["kind"]),
            meta=data.get("meta", ""),
            sequence=int(data["sequence"]),
            offset=int(data["offset"]),
            length=int(data["length"]),
            checksum=data["checksum"],
        )

    def to_index_line(self) -> bytes:
        """Encode as one newline-terminated index line."""
        return (json.dumps(self.to_index_dict(), separators=(",", ":")) + "\n").encode("utf-8")

    @classmethod
    def from_index_line(cls, line: bytes, line_no: int) -> Record:
        """Decode one committed index line.

        Raises:
            CorruptionError: If the line is not a valid descriptor
        """
        try:
            return cls.from_index_dict(json.loads(line))
        except (ValueError, KeyError, TypeError) as e:
            raise CorruptionError(line_no, f"invalid index entry: {e}") from e


def payload_checksum(payload: bytes) -> str:
    """SHA-256 checksum used to detect corrupted payloads."""
    return hashlib.sha256(payload).hexdigest()


def encode_log_entry(entry: Any) -> bytes:
    """Encode a log entry (a JSON array) as its stored payload.

    Raises:
        ValidationError: If the entry is not a JSON-serializable list
    """
    if not isinstance(entry, (list, tuple)):
        raise ValidationError("entry", "log entry must be a JSON array")
    try:
        return json.dumps(list(entry), separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise ValidationError("entry", f"log entry is not JSON serializable: {e}") from e


def decode_log_entry(payload: bytes | str, sequence: int) -> list[Any]:
    """Decode a stored log payload back into a log entry.

    Raises:
        CorruptionError: If the payload is not a JSON array
    """
    try:
        value = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptionError(sequence, f"log entry is not valid JSON: {e}") from e
    if not isinstance(value, list):
        raise CorruptionError(sequence, "log entry is not a JSON array")
    return value
