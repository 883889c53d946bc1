"""Tests for UserStoreRegistry."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from noted_store.exceptions import StorageIOError
from noted_store.registry import UserStoreRegistry
from noted_store.userstore import LocalUserStore, UserStore


class CountingOpener:
    """Opener that records calls and yields mid-open to expose races."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self.calls: list[str] = []
        self.fail_for: set[str] = set()

    async def __call__(self, identity: str) -> UserStore:
        self.calls.append(identity)
        await asyncio.sleep(0)
        if identity in self.fail_for:
            raise StorageIOError("open", identity)
        return await LocalUserStore.for_identity(self.data_dir, identity).open()


class TestUserStoreRegistry:
    """Tests for the identity -> store map."""

    @pytest.fixture
    def opener(self, temp_dir: Path) -> CountingOpener:
        return CountingOpener(temp_dir)

    @pytest.fixture
    async def registry(self, opener: CountingOpener):
        registry = UserStoreRegistry(opener)
        yield registry
        await registry.close_all()

    async def test_same_identity_same_store(self, registry: UserStoreRegistry) -> None:
        first = await registry.get_or_create("alice@example.com")
        second = await registry.get_or_create("alice@example.com")

        assert first is second
        assert len(registry) == 1

    async def test_concurrent_first_use_creates_one_store(
        self, registry: UserStoreRegistry, opener: CountingOpener
    ) -> None:
        """Test racing first requests for a new identity share one store."""
        stores = await asyncio.gather(
            *(registry.get_or_create("alice@example.com") for _ in range(20))
        )

        assert all(s is stores[0] for s in stores)
        assert opener.calls == ["alice@example.com"]

    async def test_open_failure_is_not_cached(
        self, registry: UserStoreRegistry, opener: CountingOpener
    ) -> None:
        opener.fail_for.add("carol@example.com")

        with pytest.raises(StorageIOError):
            await registry.get_or_create("carol@example.com")
        assert registry.get("carol@example.com") is None

        opener.fail_for.clear()
        store = await registry.get_or_create("carol@example.com")
        assert registry.get("carol@example.com") is store

    async def test_users_are_isolated(self, registry: UserStoreRegistry) -> None:
        alice = await registry.get_or_create("alice@example.com")
        bob = await registry.get_or_create("bob@example.com")

        await alice.append_log(["alice-only"])

        assert await bob.get_logs() == []
        assert await alice.get_logs() == [["alice-only"]]
        assert sorted(registry.identities()) == ["alice@example.com", "bob@example.com"]

    async def test_concurrent_appends_across_users(self, registry: UserStoreRegistry) -> None:
        async def write(identity: str, n: int) -> None:
            store = await registry.get_or_create(identity)
            await store.append_log([identity, n])

        await asyncio.gather(
            *(write(user, n) for n in range(10) for user in ("a@x.io", "b@x.io"))
        )

        for user in ("a@x.io", "b@x.io"):
            entries = await (await registry.get_or_create(user)).get_logs()
            assert sorted(e[1] for e in entries) == list(range(10))
            assert {e[0] for e in entries} == {user}

    async def test_empty_identity_rejected(self, registry: UserStoreRegistry) -> None:
        with pytest.raises(ValueError):
            await registry.get_or_create("")

    async def test_close_all(self, registry: UserStoreRegistry) -> None:
        store = await registry.get_or_create("alice@example.com")

        await registry.close_all()

        assert len(registry) == 0
        assert not store.store.is_open
