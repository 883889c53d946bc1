"""
Registry of open user stores.

Maps an authenticated identity to its lazily opened UserStore. The
registry is an ordinary object built once at startup and handed to the
HTTP layer; it holds its lock only while deciding whether a store
exists and creating it, never for a whole request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .userstore import UserStore

logger = logging.getLogger(__name__)

StoreOpener = Callable[[str], Awaitable[UserStore]]


class UserStoreRegistry:
    """Process-wide map of identity -> UserStore.

    At most one UserStore exists per identity. The lock is held across
    the existence check, creation and open, so concurrent first requests
    for a new identity cannot create two stores.

    Example:
        >>> async def opener(identity):
        ...     return await LocalUserStore.for_identity(data_dir, identity).open()
        >>> registry = UserStoreRegistry(opener)
        >>> store = await registry.get_or_create("alice@example.com")
    """

    def __init__(self, opener: StoreOpener) -> None:
        """Initialize the registry.

        Args:
            opener: Coroutine building and opening the store for an identity
        """
        self._opener = opener
        self._stores: dict[str, UserStore] = {}
        self._lock = asyncio.Lock()

    async def get_or_create(self, identity: str) -> UserStore:
        """Return the store for an identity, opening it on first use.

        Raises:
            ValueError: If identity is empty
            StorageIOError: If the store cannot be opened; nothing is cached
        """
        if not identity:
            raise ValueError("identity must not be empty")

        async with self._lock:
            store = self._stores.get(identity)
            if store is None:
                store = await self._opener(identity)
                self._stores[identity] = store
                logger.info(f"Opened store for {identity} ({len(self._stores)} open)")
            return store

    def get(self, identity: str) -> UserStore | None:
        """The already opened store for an identity, if any."""
        return self._stores.get(identity)

    def identities(self) -> list[str]:
        """Identities with an open store."""
        return list(self._stores)

    def __len__(self) -> int:
        return len(self._stores)

    async def close_all(self) -> None:
        """Close every store. Called at process shutdown."""
        async with self._lock:
            stores = list(self._stores.values())
            self._stores.clear()
        for store in stores:
            try:
                await store.close()
            except Exception:
                logger.exception(f"Failed to close store for {store.identity}")
        logger.info(f"Closed {len(stores)} user stores")
