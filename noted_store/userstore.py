"""
Per-user store facade.

Defines the contract the HTTP layer relies on and its two backends:
- LocalUserStore: file-backed append-only store with log/content views
- RemoteUserStore: sharded Redis log plus remote content blobs
"""

from __future__ import annotations

import asyncio
import hashlib
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import redis.asyncio as redis

from .appendstore import AppendOnlyStore
from .sharded import RemoteContentStore, ShardedLog
from .views import content as content_view
from .views import logs as log_view

_UNSAFE_CHARS = re.compile(r"[^a-z0-9._-]+")


def user_dir_name(identity: str) -> str:
    """Filesystem-safe directory name derived from a stable identity.

    The readable slug helps operators; the digest keeps distinct
    identities from colliding after slugging.
    """
    if not identity:
        raise ValueError("identity must not be empty")
    slug = _UNSAFE_CHARS.sub("_", identity.lower()).strip("._")[:48] or "user"
    digest = hashlib.sha256(identity.encode("utf-8")).hexdigest()[:12]
    return f"{slug}-{digest}"


class UserStore(ABC):
    """Abstract per-user store.

    Each instance owns one user's stream and serializes its own
    operations, so requests for different users run in parallel.
    """

    def __init__(self, identity: str) -> None:
        self.identity = identity
        self._lock = asyncio.Lock()

    @abstractmethod
    async def open(self) -> UserStore:
        """Open or initialize the underlying storage."""
        ...

    @abstractmethod
    async def append_log(self, entry: list[Any]) -> None:
        """Append one log entry (a JSON array)."""
        ...

    @abstractmethod
    async def get_logs(self, start: int = 0) -> list[list[Any]]:
        """Log entries from position `start` onward."""
        ...

    @abstractmethod
    async def set_content(self, content_id: str, body: Any) -> None:
        """Store a content blob under a caller-chosen ID."""
        ...

    @abstractmethod
    async def get_content(self, content_id: str) -> bytes:
        """Load a content blob."""
        ...

    @abstractmethod
    async def count_logs(self) -> int:
        """Number of log entries."""
        ...

    async def close(self) -> None:
        """Release resources held by the store."""
        pass


class LocalUserStore(UserStore):
    """User store backed by an AppendOnlyStore directory."""

    def __init__(self, identity: str, path: Path) -> None:
        super().__init__(identity)
        self.path = Path(path)
        self.store = AppendOnlyStore(self.path, user_id=identity)

    @classmethod
    def for_identity(cls, data_dir: Path, identity: str) -> LocalUserStore:
        return cls(identity, Path(data_dir) / user_dir_name(identity))

    async def open(self) -> LocalUserStore:
        await self.store.open()
        return self

    async def append_log(self, entry: list[Any]) -> None:
        async with self._lock:
            await log_view.append_log(self.store, entry)

    async def get_logs(self, start: int = 0) -> list[list[Any]]:
        async with self._lock:
            return await log_view.get_logs(self.store, start)

    async def count_logs(self) -> int:
        async with self._lock:
            return await log_view.count_logs(self.store)

    async def set_content(self, content_id: str, body: Any) -> None:
        async with self._lock:
            await content_view.set_content(self.store, content_id, body)

    async def get_content(self, content_id: str) -> bytes:
        async with self._lock:
            return await content_view.get_content(self.store, content_id)

    async def close(self) -> None:
        await self.store.close()


class RemoteUserStore(UserStore):
    """User store backed by the sharded Redis log and remote blobs."""

    def __init__(
        self,
        identity: str,
        client: redis.Redis,
        log_prefix: str = "",
        content_prefix: str = "",
        log: ShardedLog | None = None,
    ) -> None:
        super().__init__(identity)
        self.log = log or ShardedLog(client, prefix=log_prefix)
        self.content = RemoteContentStore(client, prefix=content_prefix)

    async def open(self) -> RemoteUserStore:
        # Remote keys are created lazily on first write
        return self

    async def append_log(self, entry: list[Any]) -> None:
        async with self._lock:
            await self.log.append_log(self.identity, entry)

    async def get_logs(self, start: int = 0) -> list[list[Any]]:
        async with self._lock:
            return await self.log.get_logs(self.identity, start)

    async def count_logs(self) -> int:
        async with self._lock:
            return await self.log.count_logs(self.identity)

    async def set_content(self, content_id: str, body: Any) -> None:
        async with self._lock:
            await self.content.set_content(self.identity, content_id, body)

    async def get_content(self, content_id: str) -> bytes:
        async with self._lock:
            return await self.content.get_content(self.identity, content_id)
