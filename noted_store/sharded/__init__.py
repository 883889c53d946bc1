"""
Remote key-value backend (Redis).

Stores a user's log as numbered list shards and content blobs as
string values.
"""

from .client import create_redis_client, ping, redact_url, remote_errors
from .content import RemoteContentStore
from .keys import ShardKey, content_key
from .log import MAX_LOG_ENTRIES_PER_SHARD, ShardedLog

__all__ = [
    "ShardedLog",
    "ShardKey",
    "RemoteContentStore",
    "MAX_LOG_ENTRIES_PER_SHARD",
    "content_key",
    "create_redis_client",
    "ping",
    "redact_url",
    "remote_errors",
]
