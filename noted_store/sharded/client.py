"""
Redis client setup and error translation for the remote backend.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError

from ..exceptions import StorageConnectionError, StorageIOError

logger = logging.getLogger(__name__)


def create_redis_client(url: str) -> redis.Redis:
    """Create an asyncio Redis client from a URL.

    Responses are left as bytes; content blobs are binary.

    Raises:
        StorageConnectionError: If the URL cannot be parsed
    """
    try:
        return redis.from_url(url, decode_responses=False)
    except ValueError as e:
        raise StorageConnectionError(redact_url(url), e) from e


async def ping(client: redis.Redis, endpoint: str = "redis") -> None:
    """Check the remote store is reachable."""
    with remote_errors("ping", endpoint):
        await client.ping()
    logger.info(f"Remote store reachable: {endpoint}")


@contextmanager
def remote_errors(operation: str, key: str | None = None) -> Iterator[None]:
    """Translate redis errors into storage errors."""
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError) as e:
        logger.error(f"Remote store unavailable during {operation}: {e}")
        raise StorageConnectionError(key or "redis", e) from e
    except RedisError as e:
        logger.error(f"Remote store error during {operation} on {key}: {e}")
        raise StorageIOError(operation, key, e) from e


def redact_url(url: str) -> str:
    """Drop credentials from a redis URL before it reaches logs or errors."""
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    return f"{scheme}://***@{rest.rsplit('@', 1)[1]}"
