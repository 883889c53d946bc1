"""Tests for the log and content views over an append-only store."""

from __future__ import annotations

import io

import pytest

from noted_store.appendstore import DATA_FILE, AppendOnlyStore, RecordKind
from noted_store.exceptions import ContentNotFoundError, CorruptionError, ValidationError
from noted_store.views import (
    append_log,
    count_logs,
    get_content,
    get_logs,
    list_content_ids,
    set_content,
    validate_content_id,
)


class AsyncBody:
    """Minimal async reader, like an aiohttp StreamReader."""

    def __init__(self, data: bytes) -> None:
        self.data = data

    async def read(self) -> bytes:
        return self.data


class TestLogView:
    """Tests for log pagination."""

    async def test_empty_store_returns_empty_list(self, store: AppendOnlyStore) -> None:
        assert await get_logs(store, 0) == []

    async def test_append_and_get(self, store: AppendOnlyStore) -> None:
        await append_log(store, ["create", "n1", "Hello"])
        await append_log(store, ["edit", "n1", {"title": "Hi"}])

        assert await get_logs(store) == [
            ["create", "n1", "Hello"],
            ["edit", "n1", {"title": "Hi"}],
        ]

    async def test_start_skips_leading_entries(self, store: AppendOnlyStore) -> None:
        for i in range(6):
            await append_log(store, ["op", i])

        assert await get_logs(store, 4) == [["op", 4], ["op", 5]]

    async def test_pagination_returns_suffix(self, store: AppendOnlyStore) -> None:
        """Test get_logs(n) equals get_logs(0) without the first n entries."""
        for i in range(7):
            await append_log(store, ["op", i, "x" * i])

        everything = await get_logs(store, 0)
        for n in range(len(everything) + 1):
            assert await get_logs(store, n) == everything[n:]

    async def test_start_is_stable_across_appends(self, store: AppendOnlyStore) -> None:
        """Test a client can resume from the count it has already seen."""
        await append_log(store, ["a"])
        await append_log(store, ["b"])
        seen = len(await get_logs(store, 0))

        await append_log(store, ["c"])
        await append_log(store, ["d"])

        assert await get_logs(store, seen) == [["c"], ["d"]]

    async def test_start_past_end_and_negative(self, store: AppendOnlyStore) -> None:
        await append_log(store, ["only"])

        assert await get_logs(store, 5) == []
        assert await get_logs(store, -3) == [["only"]]

    async def test_content_records_are_not_log_positions(
        self, store: AppendOnlyStore
    ) -> None:
        """Test positions count log entries only, ignoring interleaved blobs."""
        await append_log(store, ["first"])
        await set_content(store, "image1", b"\x89PNG")
        await append_log(store, ["second"])

        assert await get_logs(store, 1) == [["second"]]
        assert await count_logs(store) == 2

    async def test_decode_failure_aborts_call(self, store: AppendOnlyStore) -> None:
        """Test an undecodable entry fails the whole call instead of being skipped."""
        await append_log(store, ["ok"])
        await store.append_record(RecordKind.LOG, b"{not json")
        await append_log(store, ["also ok"])

        with pytest.raises(CorruptionError):
            await get_logs(store, 0)
        assert await get_logs(store, 2) == [["also ok"]]

    async def test_damaged_payload_aborts_call(self, store: AppendOnlyStore) -> None:
        record = await append_log(store, ["fine"])
        (store.path / DATA_FILE).write_bytes(b"X" * record.length)

        with pytest.raises(CorruptionError):
            await get_logs(store)

    async def test_append_rejects_non_array(self, store: AppendOnlyStore) -> None:
        with pytest.raises(ValidationError):
            await append_log(store, {"op": "edit"})
        assert await count_logs(store) == 0


class TestContentView:
    """Tests for content blobs."""

    async def test_round_trip(self, store: AppendOnlyStore) -> None:
        data = b"\x00\x01attachment\xff"
        await set_content(store, "att-0001", data)

        assert await get_content(store, "att-0001") == data

    async def test_round_trip_various_bodies(self, store: AppendOnlyStore) -> None:
        """Test bytes, sync file-likes and async readers are all accepted."""
        await set_content(store, "bytes1", b"one")
        await set_content(store, "sync01", io.BytesIO(b"two"))
        await set_content(store, "async1", AsyncBody(b"three"))

        assert await get_content(store, "bytes1") == b"one"
        assert await get_content(store, "sync01") == b"two"
        assert await get_content(store, "async1") == b"three"

    async def test_short_id_rejected_without_record(self, store: AppendOnlyStore) -> None:
        """Test a 2-char ID fails validation and appends nothing."""
        with pytest.raises(ValidationError) as exc_info:
            await set_content(store, "ab", b"data")

        assert exc_info.value.field == "id"
        assert await store.count() == 0

    async def test_six_char_id_accepted(self, store: AppendOnlyStore) -> None:
        await set_content(store, "abcdef", b"ok")

        assert await get_content(store, "abcdef") == b"ok"

    async def test_missing_id_not_found(self, store: AppendOnlyStore) -> None:
        await set_content(store, "exists", b"x")

        with pytest.raises(ContentNotFoundError) as exc_info:
            await get_content(store, "absent")
        assert exc_info.value.content_id == "absent"

    async def test_duplicate_id_returns_most_recent(self, store: AppendOnlyStore) -> None:
        """Test reusing an ID appends a new record and reads return the latest."""
        await set_content(store, "note-a", b"v1")
        await set_content(store, "note-a", b"v2")

        assert await get_content(store, "note-a") == b"v2"
        assert await store.count() == 2

    async def test_log_meta_does_not_match_content(self, store: AppendOnlyStore) -> None:
        await append_log(store, ["abcdef"])

        with pytest.raises(ContentNotFoundError):
            await get_content(store, "abcdef")

    async def test_list_content_ids(self, store: AppendOnlyStore) -> None:
        await set_content(store, "first1", b"1")
        await append_log(store, ["x"])
        await set_content(store, "second", b"2")
        await set_content(store, "first1", b"3")

        assert await list_content_ids(store) == ["first1", "second"]

    def test_validate_content_id(self) -> None:
        assert validate_content_id("123456") == "123456"
        with pytest.raises(ValidationError):
            validate_content_id("")
        with pytest.raises(ValidationError):
            validate_content_id(None)
