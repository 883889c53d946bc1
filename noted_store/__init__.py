"""
noted-store

Per-user append-only persistence for a personal notes service.

Provides:
- File-backed append-only record store (index + data file per user)
- Log view with resumable pagination and content blobs by ID
- Legacy remote backend sharding a user's log over Redis lists
- Registry handing out one store per authenticated identity
- aiohttp HTTP surface (/api/store/*)

Usage:

    >>> from noted_store import LocalUserStore, UserStoreRegistry
    >>> async def opener(identity):
    ...     return await LocalUserStore.for_identity(data_dir, identity).open()
    >>> registry = UserStoreRegistry(opener)
    >>> store = await registry.get_or_create("alice@example.com")
    >>> await store.append_log(["create", "note-1", "Hello"])
    >>> await store.get_logs(start=0)
    [['create', 'note-1', 'Hello']]

Running the server:

    python -m noted_store --config noted.yaml
"""

from .appendstore import AppendOnlyStore, Record, RecordKind
from .config import BackendType, ServerConfig
from .exceptions import (
    AuthenticationError,
    AuthenticationRequiredError,
    ContentNotFoundError,
    CorruptionError,
    NotesStorageError,
    NotFoundError,
    RecordNotFoundError,
    StorageConnectionError,
    StorageIOError,
    ValidationError,
)
from .identity import IdentityProvider, UserIdentity
from .registry import UserStoreRegistry
from .sharded import MAX_LOG_ENTRIES_PER_SHARD, RemoteContentStore, ShardedLog, ShardKey
from .userstore import LocalUserStore, RemoteUserStore, UserStore

__all__ = [
    # Core storage
    "AppendOnlyStore",
    "Record",
    "RecordKind",
    # User stores
    "UserStore",
    "LocalUserStore",
    "RemoteUserStore",
    "UserStoreRegistry",
    # Remote backend
    "ShardedLog",
    "ShardKey",
    "RemoteContentStore",
    "MAX_LOG_ENTRIES_PER_SHARD",
    # Identity
    "IdentityProvider",
    "UserIdentity",
    # Configuration
    "ServerConfig",
    "BackendType",
    # Exceptions
    "NotesStorageError",
    "AuthenticationError",
    "AuthenticationRequiredError",
    "ValidationError",
    "NotFoundError",
    "ContentNotFoundError",
    "RecordNotFoundError",
    "CorruptionError",
    "StorageIOError",
    "StorageConnectionError",
]

__version__ = "0.1.0"
