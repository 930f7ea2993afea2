"""Tests for the persistent tier record layout and self-healing."""

import asyncio
import json

import pytest

from radiocache.adapters import InMemoryKeyValueStore
from radiocache.core.cache.models import CacheConfig, CacheMetadata
from radiocache.core.cache.persistent_cache import PersistentTier
from radiocache.core.errors import CacheErrorKind, CacheReadError


@pytest.fixture
def tier(store: InMemoryKeyValueStore) -> PersistentTier:
    return PersistentTier(store, CacheConfig(namespace="ns"))


class TestPersistentTier:
    """Test value and metadata records."""

    @pytest.mark.asyncio
    async def test_write_uses_namespaced_records(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        await tier.write("song_1", '{"title":"x"}', CacheMetadata(2000, 1000, 13))

        assert store.data["ns:data:song_1"] == '{"title":"x"}'
        assert json.loads(store.data["ns:meta:song_1"]) == {
            "expiry": 2000,
            "created": 1000,
            "size": 13,
        }

    @pytest.mark.asyncio
    async def test_read_round_trip(self, tier: PersistentTier):
        await tier.write("k", "[1,2,3]", CacheMetadata(2000, 1000, 7))

        record, expired = await tier.read("k", now_ms=1500)
        assert record is not None
        assert record.value == [1, 2, 3]
        assert record.metadata.created == 1000
        assert expired is False

    @pytest.mark.asyncio
    async def test_read_expired_removes_records(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        await tier.write("k", '"v"', CacheMetadata(2000, 1000, 3))

        record, expired = await tier.read("k", now_ms=2001)
        assert record is None
        assert expired is True
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_corrupted_metadata_is_removed_and_raises(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        store.data["ns:data:k"] = '"v"'
        store.data["ns:meta:k"] = "{not json"

        with pytest.raises(CacheReadError) as exc_info:
            await tier.read("k", now_ms=0)

        assert exc_info.value.kind == CacheErrorKind.DESERIALIZATION_FAILED
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_orphan_metadata_reads_as_miss(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        store.data["ns:meta:k"] = CacheMetadata(2000, 1000, 3).to_json()

        record, expired = await tier.read("k", now_ms=0)
        assert record is None
        assert expired is False
        assert "ns:meta:k" not in store.data

    @pytest.mark.asyncio
    async def test_orphan_value_is_removed_on_read(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        await tier.write("k", '"v"', CacheMetadata(2000, 1000, 3))
        del store.data["ns:meta:k"]

        record, expired = await tier.read("k", now_ms=0)
        assert record is None
        assert expired is False
        assert store.data == {}
        assert await tier.item_count() == 0

    @pytest.mark.asyncio
    async def test_orphan_value_is_removed_on_exists(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        store.data["ns:data:k"] = '"v"'

        assert await tier.exists("k", now_ms=0) == (False, False)
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_remove_expired_sweeps_orphan_values(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        await tier.write("fresh", '"v"', CacheMetadata(5000, 2, 3))
        store.data["ns:data:orphan"] = '"v"'
        store.data["other:data:orphan"] = '"v"'

        removed = await tier.remove_expired(now_ms=1000)

        assert removed == ["orphan"]
        assert set(store.data) == {
            "ns:data:fresh",
            "ns:meta:fresh",
            "other:data:orphan",
        }

    @pytest.mark.asyncio
    async def test_value_of_pending_write_is_not_an_orphan(self):
        metadata_released = asyncio.Event()

        class SlowMetadataStore(InMemoryKeyValueStore):
            async def set_string(self, key: str, value: str) -> None:
                if ":meta:" in key:
                    await metadata_released.wait()
                await super().set_string(key, value)

        slow_store = SlowMetadataStore()
        tier = PersistentTier(slow_store, CacheConfig(namespace="ns"))

        write = asyncio.create_task(
            tier.write("k", '"v"', CacheMetadata(2000, 1000, 3))
        )
        await asyncio.sleep(0)
        assert "ns:data:k" in slow_store.data

        assert await tier.read("k", now_ms=0) == (None, False)
        assert await tier.exists("k", now_ms=0) == (False, False)
        assert await tier.remove_expired(now_ms=0) == []
        assert "ns:data:k" in slow_store.data

        metadata_released.set()
        await write

        record, _expired = await tier.read("k", now_ms=0)
        assert record is not None
        assert record.value == "v"

    @pytest.mark.asyncio
    async def test_delete_if_created_skips_rewritten_entry(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        await tier.write("k", '"new"', CacheMetadata(5000, 20, 5))

        assert await tier.delete_if_created("k", created=10) is False
        assert "ns:data:k" in store.data

        assert await tier.delete_if_created("k", created=20) is True
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_scans_ignore_other_namespaces(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        store.data["other:meta:k"] = CacheMetadata(2000, 1000, 99).to_json()
        store.data["unrelated"] = "x"
        await tier.write("k", '"v"', CacheMetadata(2000, 1000, 3))

        assert await tier.total_size() == 3
        assert await tier.item_count() == 1
        assert await tier.clear() == 2
        assert set(store.data) == {"other:meta:k", "unrelated"}

    @pytest.mark.asyncio
    async def test_remove_expired_heals_corruption(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        await tier.write("old", '"v"', CacheMetadata(100, 1, 3))
        await tier.write("fresh", '"v"', CacheMetadata(5000, 2, 3))
        store.data["ns:meta:broken"] = "garbage"

        removed = await tier.remove_expired(now_ms=1000)

        assert sorted(removed) == ["broken", "old"]
        assert set(store.data) == {"ns:data:fresh", "ns:meta:fresh"}

    @pytest.mark.asyncio
    async def test_corrupted_metadata_counts_as_zero_size(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        await tier.write("k", '"v"', CacheMetadata(5000, 1, 3))
        store.data["ns:meta:broken"] = "garbage"

        assert await tier.total_size() == 3

    @pytest.mark.asyncio
    async def test_exists_removes_expired(
        self, tier: PersistentTier, store: InMemoryKeyValueStore
    ):
        await tier.write("k", '"v"', CacheMetadata(100, 1, 3))

        assert await tier.exists("k", now_ms=50) == (True, False)
        assert await tier.exists("k", now_ms=101) == (False, True)
        assert store.data == {}
