"""
Sharded log on a remote key-value store.

A user's logical log is split across Redis lists named with a
monotonic shard index (log-0, log-1, ...). New entries go to the
highest shard until it holds MAX_LOG_ENTRIES_PER_SHARD entries, then a
new shard is started. Global order is shard order, then list order.
"""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict
from typing import Any

import redis.asyncio as redis

from ..appendstore import decode_log_entry, encode_log_entry
from ..logging_utils import get_storage_logger
from .client import remote_errors
from .keys import ShardKey

MAX_LOG_ENTRIES_PER_SHARD = 1024

logger = get_storage_logger("sharded")


class ShardedLog:
    """Append and paginate a per-user log spread over Redis lists.

    Appends for the same user are serialized with a per-user lock so two
    requests cannot both decide to roll over. Different users never
    share a lock.
    """

    def __init__(
        self,
        client: redis.Redis,
        prefix: str = "",
        max_entries_per_shard: int = MAX_LOG_ENTRIES_PER_SHARD,
    ) -> None:
        """Initialize the sharded log.

        Args:
            client: asyncio Redis client (or anything with the same list API)
            prefix: Key prefix ("dev:" in development)
            max_entries_per_shard: Rollover threshold
        """
        if max_entries_per_shard < 1:
            raise ValueError("max_entries_per_shard must be at least 1")
        self.client = client
        self.prefix = prefix
        self.max_entries_per_shard = max_entries_per_shard
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def lock_for(self, user_id: str) -> asyncio.Lock:
        """The lock serializing writes for one user."""
        return self._locks[user_id]

    async def shard_keys(self, user_id: str) -> list[ShardKey]:
        """All log shards of a user, sorted by shard index."""
        pattern = ShardKey.pattern(user_id, self.prefix)
        with remote_errors("keys", pattern):
            raw_keys = await self.client.keys(pattern)

        shards: list[ShardKey] = []
        for raw in raw_keys:
            try:
                shards.append(ShardKey.parse(raw, user_id, self.prefix))
            except ValueError:
                logger.warning(f"Ignoring unexpected key {raw!r} for user {user_id}")
        shards.sort(key=lambda s: s.index)
        return shards

    async def shard_length(self, shard: ShardKey) -> int:
        key = shard.format()
        with remote_errors("llen", key):
            return int(await self.client.llen(key))

    async def append_log(self, user_id: str, entry: list[Any]) -> ShardKey:
        """Append one entry, rolling over to a new shard when full.

        Returns:
            The shard the entry was written to

        Raises:
            ValidationError: If the entry is not a JSON array
            StorageIOError: If the remote store fails
        """
        payload = encode_log_entry(entry)
        async with self.lock_for(user_id):
            shards = await self.shard_keys(user_id)
            if not shards:
                target = ShardKey(user_id, 0, self.prefix)
            else:
                target = shards[-1]
                if await self.shard_length(target) >= self.max_entries_per_shard:
                    target = target.next()
                    logger.info(f"Rolling over log for {user_id} to shard {target.index}")

            key = target.format()
            with remote_errors("rpush", key):
                await self.client.rpush(key, payload)
        return target

    async def get_logs(self, user_id: str, start: int = 0) -> list[list[Any]]:
        """Return log entries from position `start` onward.

        Whole shards before `start` are skipped using only their length.

        Raises:
            CorruptionError: If a stored entry is not a JSON array
            StorageIOError: If the remote store fails
        """
        start = max(start, 0)
        time_start = time.monotonic()
        logs: list[list[Any]] = []

        for shard in await self.shard_keys(user_id):
            if start > 0:
                length = await self.shard_length(shard)
                if start >= length:
                    start -= length
                    continue

            key = shard.format()
            with remote_errors("lrange", key):
                values = await self.client.lrange(key, 0, -1)
            for position, raw in enumerate(values[start:], start=start):
                logs.append(decode_log_entry(raw, position))
            start = 0

        logger.debug(
            f"{len(logs)} log entries for user {user_id}, "
            f"took {(time.monotonic() - time_start) * 1000:.1f}ms"
        )
        return logs

    async def count_logs(self, user_id: str) -> int:
        """Total entries across all shards of a user."""
        total = 0
        for shard in await self.shard_keys(user_id):
            total += await self.shard_length(shard)
        return total
