"""
Shared test configuration and fixtures.

Provides temporary store directories and an in-memory stand-in for the
asyncio Redis client, implementing only the commands the remote
backend uses.
"""

from __future__ import annotations

import asyncio
import re
import tempfile
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from noted_store.appendstore import AppendOnlyStore


def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a Redis glob (with backslash escapes) into a regex."""
    out = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "\\")))
        elif ch == "*":
            out.append(".*")
        elif ch == "?":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("".join(out) + r"\Z", re.DOTALL)


class FakeRedis:
    """In-memory replacement for redis.asyncio.Redis (bytes responses).

    Every command yields to the event loop once so concurrent callers
    interleave the way they would against a real server.
    """

    def __init__(self) -> None:
        self.lists: dict[str, list[bytes]] = {}
        self.values: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_commands: set[str] = set()
        self.closed = False

    async def _command(self, name: str, key: str = "") -> None:
        await asyncio.sleep(0)
        self.calls.append((name, key))
        if name in self.fail_commands:
            raise RedisConnectionError(f"simulated failure in {name}")

    @staticmethod
    def _to_bytes(value: bytes | str) -> bytes:
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    async def ping(self) -> bool:
        await self._command("ping")
        return True

    async def keys(self, pattern: str) -> list[bytes]:
        await self._command("keys", pattern)
        regex = _glob_to_regex(pattern)
        names = list(self.lists) + list(self.values)
        return [name.encode("utf-8") for name in names if regex.match(name)]

    async def llen(self, key: str) -> int:
        await self._command("llen", key)
        return len(self.lists.get(key, []))

    async def lrange(self, key: str, start: int, end: int) -> list[bytes]:
        await self._command("lrange", key)
        values = self.lists.get(key, [])
        stop = None if end == -1 else end + 1
        return list(values[start:stop])

    async def rpush(self, key: str, value: bytes | str) -> int:
        await self._command("rpush", key)
        self.lists.setdefault(key, []).append(self._to_bytes(value))
        return len(self.lists[key])

    async def get(self, key: str) -> bytes | None:
        await self._command("get", key)
        return self.values.get(key)

    async def set(self, key: str, value: bytes | str) -> bool:
        await self._command("set", key)
        self.values[key] = self._to_bytes(value)
        return True

    async def aclose(self) -> None:
        self.closed = True

    def command_count(self, name: str) -> int:
        return sum(1 for called, _ in self.calls if called == name)


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
async def store(temp_dir: Path) -> AsyncIterator[AppendOnlyStore]:
    """An opened append-only store in a temporary directory."""
    store = AppendOnlyStore(temp_dir / "alice", user_id="alice@example.com")
    await store.open()
    yield store
    await store.close()


@pytest.fixture
def fake_redis() -> FakeRedis:
    """In-memory Redis stand-in."""
    return FakeRedis()
