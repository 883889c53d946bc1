"""
Content blobs on the remote key-value store.

Each blob is a plain string value under content/{user_id}/{content_id}.
Setting an existing ID replaces the value.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as redis

from ..exceptions import ContentNotFoundError
from ..logging_utils import get_storage_logger
from ..views.content import read_body, validate_content_id
from .client import remote_errors
from .keys import content_key

logger = get_storage_logger("sharded.content")


class RemoteContentStore:
    """Blob store keyed by user and content ID."""

    def __init__(self, client: redis.Redis, prefix: str = "") -> None:
        self.client = client
        self.prefix = prefix

    async def set_content(self, user_id: str, content_id: str, body: Any) -> int:
        """Store a blob.

        Returns:
            Number of bytes stored

        Raises:
            ValidationError: If the ID is shorter than 6 characters
        """
        validate_content_id(content_id)
        data = await read_body(body)
        key = content_key(user_id, content_id, self.prefix)
        with remote_errors("set", key):
            await self.client.set(key, data)
        logger.debug(f"Stored content {content_id} for {user_id} ({len(data)} bytes)")
        return len(data)

    async def get_content(self, user_id: str, content_id: str) -> bytes:
        """Load a blob.

        Raises:
            ContentNotFoundError: If nothing is stored under the ID
        """
        key = content_key(user_id, content_id, self.prefix)
        with remote_errors("get", key):
            data = await self.client.get(key)
        if data is None:
            raise ContentNotFoundError(content_id, user_id)
        return bytes(data)
