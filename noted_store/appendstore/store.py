"""
File-backed append-only record store.

One store owns one user's stream, kept in a directory:

    {path}/
        index.jsonl  - one JSON descriptor per record, in append order
        data.bin     - concatenated payload bytes

Payload bytes are written and fsynced before the index line that
commits them, so a crash mid-append never damages earlier records.
An index line without its terminating newline is an uncommitted
torn write: it is ignored on open and cut off before the next append.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import aiofiles
import aiofiles.os

from ..exceptions import CorruptionError, RecordNotFoundError, StorageIOError
from ..logging_utils import StorageLoggerAdapter, get_storage_logger
from .records import Record, RecordKind, payload_checksum

INDEX_FILE = "index.jsonl"
DATA_FILE = "data.bin"

logger = get_storage_logger("appendstore")

_fsync = aiofiles.os.wrap(os.fsync)
_truncate = aiofiles.os.wrap(os.truncate)


class AppendOnlyStore:
    """Append-only stream of records with an in-memory index.

    Every operation runs under a per-store asyncio.Lock, so readers see
    a record either fully committed or not at all.

    Example:
        >>> store = AppendOnlyStore(Path("/data/alice"))
        >>> await store.open()
        >>> rec = await store.append_record(RecordKind.LOG, b'["edit", 1]')
        >>> await store.read_record(rec)
        b'["edit", 1]'
    """

    def __init__(self, path: Path, user_id: str | None = None) -> None:
        """Initialize the store.

        Args:
            path: Directory holding the index and data files
            user_id: Owner, used for log context only
        """
        self.path = Path(path)
        self.user_id = user_id or self.path.name
        self._records: list[Record] = []
        self._lock = asyncio.Lock()
        self._opened = False
        self._committed_index_size = 0
        self._torn_tail = False
        self._log = StorageLoggerAdapter(logger, {"user_id": self.user_id})

    @property
    def index_path(self) -> Path:
        return self.path / INDEX_FILE

    @property
    def data_path(self) -> Path:
        return self.path / DATA_FILE

    @property
    def is_open(self) -> bool:
        return self._opened

    async def open(self) -> AppendOnlyStore:
        """Create the directory if needed and load the index.

        Returns:
            Self for method chaining

        Raises:
            StorageIOError: If the location cannot be created or read
            CorruptionError: If a committed index line is invalid
        """
        async with self._lock:
            if self._opened:
                return self

            try:
                await aiofiles.os.makedirs(self.path, exist_ok=True)
                raw = b""
                if await aiofiles.os.path.exists(self.index_path):
                    async with aiofiles.open(self.index_path, "rb") as f:
                        raw = await f.read()
            except OSError as e:
                raise StorageIOError("open", str(self.path), e) from e

            self._records = self._parse_index(raw)
            self._opened = True
            self._log.info(
                f"Opened store at {self.path} with {len(self._records)} records",
                extra={"records": len(self._records)},
            )
            return self

    def _parse_index(self, raw: bytes) -> list[Record]:
        committed, sep, tail = raw.rpartition(b"\n")
        if not sep:
            committed, tail = b"", raw
        self._committed_index_size = len(committed) + len(sep)
        self._torn_tail = bool(tail)
        if tail:
            self._log.warning(
                f"Ignoring uncommitted index tail ({len(tail)} bytes) in {self.index_path}"
            )

        records: list[Record] = []
        for line_no, line in enumerate(committed.split(b"\n") if committed else []):
            record = Record.from_index_line(line, line_no)
            if record.sequence != len(records):
                raise CorruptionError(
                    record.sequence,
                    f"index out of order at line {line_no}, expected sequence {len(records)}",
                )
            records.append(record)
        return records

    async def append_record(self, kind: RecordKind, payload: bytes, meta: str = "") -> Record:
        """Durably append a record.

        Args:
            kind: Record kind
            payload: Raw payload bytes
            meta: Content ID for content records, empty for log records

        Returns:
            The committed record

        Raises:
            StorageIOError: If writing fails; earlier records stay intact
        """
        async with self._lock:
            self._require_open()

            try:
                if self._torn_tail:
                    await _truncate(self.index_path, self._committed_index_size)
                    self._torn_tail = False

                async with aiofiles.open(self.data_path, "ab") as f:
                    offset = await f.tell()
                    await f.write(payload)
                    await f.flush()
                    await _fsync(f.fileno())
            except OSError as e:
                raise StorageIOError("append_data", str(self.data_path), e) from e

            record = Record(
                kind=kind,
                meta=meta,
                sequence=len(self._records),
                offset=offset,
                length=len(payload),
                checksum=payload_checksum(payload),
            )
            line = record.to_index_line()

            try:
                async with aiofiles.open(self.index_path, "ab") as f:
                    await f.write(line)
                    await f.flush()
                    await _fsync(f.fileno())
            except OSError as e:
                # A partial line may have reached the disk
                self._torn_tail = True
                raise StorageIOError("append_index", str(self.index_path), e) from e

            self._committed_index_size += len(line)
            self._records.append(record)
            self._log.debug(
                f"Appended {kind.value} record {record.sequence} ({record.length} bytes)"
            )
            return record

    async def records(self) -> list[Record]:
        """Snapshot of all committed records, in append order."""
        async with self._lock:
            self._require_open()
            return list(self._records)

    async def count(self) -> int:
        """Number of committed records."""
        async with self._lock:
            return len(self._records)

    async def read_record(self, record: Record) -> bytes:
        """Load the payload bytes for a record.

        Raises:
            RecordNotFoundError: If the payload is missing or short
            CorruptionError: If the payload does not match its checksum
        """
        payloads = await self.read_records([record])
        return payloads[0]

    async def read_records(self, records: list[Record]) -> list[bytes]:
        """Load payloads for several records with a single file open."""
        async with self._lock:
            self._require_open()
            if not records:
                return []

            payloads: list[bytes] = []
            try:
                async with aiofiles.open(self.data_path, "rb") as f:
                    for record in records:
                        await f.seek(record.offset)
                        payloads.append(await f.read(record.length))
            except FileNotFoundError as e:
                raise RecordNotFoundError(records[0].sequence, "data file is missing") from e
            except OSError as e:
                raise StorageIOError("read", str(self.data_path), e) from e

        for record, payload in zip(records, payloads):
            if len(payload) != record.length:
                raise RecordNotFoundError(
                    record.sequence,
                    f"expected {record.length} bytes, found {len(payload)}",
                )
            if payload_checksum(payload) != record.checksum:
                raise CorruptionError(record.sequence, "checksum mismatch")
        return payloads

    async def close(self) -> None:
        """Close the store. Files are opened per operation, so this only drops the index."""
        async with self._lock:
            self._opened = False
            self._records = []

    def _require_open(self) -> None:
        if not self._opened:
            raise RuntimeError(f"Store at {self.path} is not open")
