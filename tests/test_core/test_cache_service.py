"""Tests for the tiered cache service contract."""

import asyncio
from datetime import timedelta

import pytest

from radiocache.adapters import InMemoryKeyValueStore
from radiocache.core.cache import (
    CacheConfig,
    CacheService,
    EnhancedCacheService,
    create_cache_service,
)
from radiocache.core.errors import CacheConfigurationError, CacheErrorKind
from tests.conftest import FakeClock


class TestCacheServiceBasics:
    """Test get/set/remove/has across both tiers."""

    @pytest.mark.asyncio
    async def test_satisfies_cache_service_protocol(
        self, cache_service: EnhancedCacheService
    ):
        assert isinstance(cache_service, CacheService)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "value",
        [
            {"title": "Kind of Blue", "tracks": [1, 2, 3]},
            ["a", "b"],
            "plain string",
            42,
            3.5,
            True,
        ],
    )
    async def test_round_trip(self, cache_service: EnhancedCacheService, value):
        await cache_service.set("item", value)
        assert await cache_service.get("item") == value

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, cache_service: EnhancedCacheService):
        assert await cache_service.get("missing") is None

    @pytest.mark.asyncio
    async def test_set_writes_both_tiers(
        self, cache_service: EnhancedCacheService, store: InMemoryKeyValueStore
    ):
        await cache_service.set("album_1", {"id": 1})

        assert "album_1" in cache_service.memory_tier
        assert store.data["test_cache:data:album_1"] == '{"id":1}'
        assert "test_cache:meta:album_1" in store.data

    @pytest.mark.asyncio
    async def test_memory_only_set_skips_persistent_tier(
        self, cache_service: EnhancedCacheService, store: InMemoryKeyValueStore
    ):
        await cache_service.set("session", "token", memory_only=True)

        assert await cache_service.get("session") == "token"
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_get_promotes_persistent_hit_into_memory(
        self, cache_service: EnhancedCacheService
    ):
        await cache_service.set("album_1", {"id": 1})
        await cache_service.clear(memory_only=True)
        assert "album_1" not in cache_service.memory_tier

        assert await cache_service.get("album_1") == {"id": 1}
        promoted = cache_service.memory_tier.peek("album_1")
        assert promoted is not None
        assert promoted.persisted is True

    @pytest.mark.asyncio
    async def test_from_memory_only_ignores_persistent_tier(
        self, cache_service: EnhancedCacheService
    ):
        await cache_service.set("album_1", {"id": 1})
        await cache_service.clear(memory_only=True)

        assert await cache_service.get("album_1", from_memory_only=True) is None
        assert await cache_service.has("album_1", check_memory_only=True) is False
        assert await cache_service.has("album_1") is True

    @pytest.mark.asyncio
    async def test_remove_deletes_from_both_tiers(
        self, cache_service: EnhancedCacheService, store: InMemoryKeyValueStore
    ):
        await cache_service.set("k", "v")
        await cache_service.remove("k")

        assert await cache_service.get("k") is None
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_remove_from_memory_only_keeps_persisted_copy(
        self, cache_service: EnhancedCacheService
    ):
        await cache_service.set("k", "v")
        await cache_service.remove("k", from_memory_only=True)

        assert "k" not in cache_service.memory_tier
        assert await cache_service.get("k") == "v"

    @pytest.mark.asyncio
    async def test_none_payload_reads_as_miss(self, cache_service: EnhancedCacheService):
        await cache_service.set("k", None)

        assert await cache_service.get("k") is None
        stats = await cache_service.get_statistics()
        assert stats.misses == 1
        assert stats.hits == 0

    @pytest.mark.asyncio
    async def test_cached_value_is_isolated_from_callers(
        self, cache_service: EnhancedCacheService
    ):
        original = {"tracks": [1, 2]}
        await cache_service.set("playlist", original)
        original["tracks"].append(3)

        returned = await cache_service.get("playlist")
        returned["tracks"].append(4)

        assert await cache_service.get("playlist") == {"tracks": [1, 2]}
        await cache_service.clear(memory_only=True)
        assert await cache_service.get("playlist") == {"tracks": [1, 2]}

    @pytest.mark.asyncio
    async def test_both_tiers_return_the_json_form(
        self, cache_service: EnhancedCacheService
    ):
        await cache_service.set("k", {"pair": (1, 2)})

        assert await cache_service.get("k") == {"pair": [1, 2]}
        await cache_service.clear(memory_only=True)
        assert await cache_service.get("k") == {"pair": [1, 2]}

    @pytest.mark.asyncio
    async def test_value_without_metadata_is_reconciled(
        self, cache_service: EnhancedCacheService, store: InMemoryKeyValueStore
    ):
        await cache_service.set("k", "v")
        await cache_service.clear(memory_only=True)
        del store.data["test_cache:meta:k"]

        assert await cache_service.get("k") is None
        assert "test_cache:data:k" not in store.data
        stats = await cache_service.get_statistics()
        assert stats.disk_item_count == 0

    @pytest.mark.asyncio
    async def test_clear_expired_removes_value_without_metadata(
        self, cache_service: EnhancedCacheService, store: InMemoryKeyValueStore
    ):
        store.data["test_cache:data:lost"] = '"v"'

        assert await cache_service.clear_expired() == 1
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_entries_survive_a_new_service_instance(
        self,
        store: InMemoryKeyValueStore,
        cache_config: CacheConfig,
        clock: FakeClock,
    ):
        first = create_cache_service(store, cache_config, clock)
        await first.set("playlist", ["a", "b"])
        await first.dispose()

        second = create_cache_service(store, cache_config, clock)
        try:
            assert await second.get("playlist") == ["a", "b"]
        finally:
            await second.dispose()


class TestCacheServiceValidation:
    """Test argument validation happens before any I/O."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", "a b", "ns:key", "key\n", "ключ", "a/b"])
    async def test_invalid_keys_rejected(
        self,
        cache_service: EnhancedCacheService,
        store: InMemoryKeyValueStore,
        key: str,
    ):
        with pytest.raises(CacheConfigurationError) as exc_info:
            await cache_service.set(key, "v")

        assert exc_info.value.kind == CacheErrorKind.INVALID_KEY
        assert store.data == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["a", "album_123", "track-1.mp3", "A.b-C_9"])
    async def test_valid_keys_accepted(self, cache_service: EnhancedCacheService, key: str):
        await cache_service.set(key, 1)
        assert await cache_service.has(key)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "expiry",
        [
            timedelta(0),
            timedelta(seconds=-5),
            0,
            -1.5,
            float("nan"),
            float("inf"),
            1e300,
        ],
    )
    async def test_invalid_expiry_rejected(
        self, cache_service: EnhancedCacheService, expiry
    ):
        with pytest.raises(CacheConfigurationError) as exc_info:
            await cache_service.set("k", "v", expiry=expiry)

        assert exc_info.value.kind == CacheErrorKind.INVALID_EXPIRY

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [object(), {1, 2}, b"bytes"])
    async def test_unserializable_value_rejected(
        self,
        cache_service: EnhancedCacheService,
        store: InMemoryKeyValueStore,
        value,
    ):
        with pytest.raises(CacheConfigurationError) as exc_info:
            await cache_service.set("k", value)

        assert exc_info.value.kind == CacheErrorKind.UNSUPPORTED_TYPE
        assert "k" not in cache_service.memory_tier
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_invalid_key_on_get_does_not_count_request(
        self, cache_service: EnhancedCacheService
    ):
        with pytest.raises(CacheConfigurationError):
            await cache_service.get("bad key")

        stats = await cache_service.get_statistics()
        assert stats.total_requests == 0


class TestCacheServiceExpiry:
    """Test expiry boundaries with a controlled clock."""

    @pytest.mark.asyncio
    async def test_entry_expires_after_duration(
        self, cache_service: EnhancedCacheService, clock: FakeClock
    ):
        await cache_service.set("k", "v", expiry=timedelta(seconds=10))
        assert await cache_service.has("k") is True

        clock.advance(10)
        assert await cache_service.get("k") == "v"

        clock.advance(0.01)
        assert await cache_service.has("k") is False
        assert await cache_service.get("k") is None

    @pytest.mark.asyncio
    async def test_numeric_expiry_is_seconds(
        self, cache_service: EnhancedCacheService, clock: FakeClock
    ):
        await cache_service.set("k", "v", expiry=5)

        clock.advance(4)
        assert await cache_service.has("k")
        clock.advance(2)
        assert not await cache_service.has("k")

    @pytest.mark.asyncio
    async def test_default_expiry_applies(
        self, cache_service: EnhancedCacheService, clock: FakeClock
    ):
        await cache_service.set("k", "v")

        clock.advance(3599)
        assert await cache_service.has("k")
        clock.advance(2)
        assert not await cache_service.has("k")

    @pytest.mark.asyncio
    async def test_lazy_expiry_removes_persisted_records(
        self,
        cache_service: EnhancedCacheService,
        store: InMemoryKeyValueStore,
        clock: FakeClock,
    ):
        await cache_service.set("k", "v", expiry=1)
        clock.advance(2)

        assert await cache_service.get("k") is None
        assert store.data == {}
        stats = await cache_service.get_statistics()
        assert stats.expired_items == 1

    @pytest.mark.asyncio
    async def test_clear_expired_sweeps_both_tiers(
        self,
        cache_service: EnhancedCacheService,
        store: InMemoryKeyValueStore,
        clock: FakeClock,
    ):
        await cache_service.set("short", "v", expiry=1)
        await cache_service.set("local", "v", expiry=1, memory_only=True)
        await cache_service.set("long", "v", expiry=100)
        clock.advance(2)

        assert await cache_service.clear_expired() == 2
        assert sorted(cache_service.memory_tier) == ["long"]
        assert set(store.data) == {"test_cache:data:long", "test_cache:meta:long"}
        assert await cache_service.clear_expired() == 0

        stats = await cache_service.get_statistics()
        assert stats.expired_items == 2


class TestCacheServiceStatistics:
    """Test counters and gauges."""

    @pytest.mark.asyncio
    async def test_hits_and_misses_add_up(self, cache_service: EnhancedCacheService):
        await cache_service.set("a", 1)
        await cache_service.get("a")
        await cache_service.get("a")
        await cache_service.get("missing")
        await cache_service.get("a", from_memory_only=True)

        stats = await cache_service.get_statistics()
        assert stats.total_requests == 4
        assert stats.hits == 3
        assert stats.misses == 1
        assert stats.hits + stats.misses == stats.total_requests
        assert stats.hit_ratio == pytest.approx(0.75)

    @pytest.mark.asyncio
    async def test_hit_ratio_zero_without_requests(
        self, cache_service: EnhancedCacheService
    ):
        stats = await cache_service.get_statistics()
        assert stats.hit_ratio == 0.0

    @pytest.mark.asyncio
    async def test_gauges_reflect_tiers(self, cache_service: EnhancedCacheService):
        await cache_service.set("a", "xxxx")
        await cache_service.set("b", "yy", memory_only=True)

        stats = await cache_service.get_statistics()
        assert stats.memory_item_count == 2
        assert stats.disk_item_count == 1
        assert stats.memory_cache_size == 6 + 4
        assert stats.disk_cache_size == 6
        assert stats.total_cache_size == 16
        assert stats.to_dict()["total_item_count"] == 3

    @pytest.mark.asyncio
    async def test_cache_size_counts_each_entry_once(
        self, cache_service: EnhancedCacheService
    ):
        await cache_service.set("a", "xxxx")
        await cache_service.set("b", "yy", memory_only=True)

        assert await cache_service.get_cache_size() == 6 + 4

    @pytest.mark.asyncio
    async def test_reset_statistics(self, cache_service: EnhancedCacheService):
        await cache_service.get("missing")
        cache_service.reset_statistics()

        stats = await cache_service.get_statistics()
        assert stats.total_requests == 0
        assert stats.misses == 0


class TestCacheServiceClear:
    """Test clear and preload."""

    @pytest.mark.asyncio
    async def test_clear_is_idempotent(
        self, cache_service: EnhancedCacheService, store: InMemoryKeyValueStore
    ):
        await cache_service.set("a", 1)
        await cache_service.set("b", 2, memory_only=True)

        await cache_service.clear()
        await cache_service.clear()

        assert await cache_service.get_cache_size() == 0
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_clear_keeps_other_namespaces(
        self, cache_service: EnhancedCacheService, store: InMemoryKeyValueStore
    ):
        store.data["settings_theme"] = "dark"
        await cache_service.set("a", 1)

        await cache_service.clear()
        assert store.data == {"settings_theme": "dark"}

    @pytest.mark.asyncio
    async def test_preload_pulls_persisted_entries_into_memory(
        self, cache_service: EnhancedCacheService
    ):
        await cache_service.set("a", 1)
        await cache_service.set("b", 2)
        await cache_service.clear(memory_only=True)

        await cache_service.preload(["a", "b", "missing"])

        assert "a" in cache_service.memory_tier
        assert "b" in cache_service.memory_tier
        stats = await cache_service.get_statistics()
        assert stats.hits == 2
        assert stats.misses == 1

    @pytest.mark.asyncio
    async def test_preload_skips_resident_keys(self, cache_service: EnhancedCacheService):
        await cache_service.set("a", 1)
        await cache_service.preload(["a"])

        stats = await cache_service.get_statistics()
        assert stats.total_requests == 0


class TestCacheServiceLifecycle:
    """Test initialization, the periodic sweep and disposal."""

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, cache_service: EnhancedCacheService):
        await cache_service.initialize()
        await cache_service.initialize()
        assert cache_service.is_initialized

    @pytest.mark.asyncio
    async def test_periodic_sweep_removes_expired_entries(
        self, store: InMemoryKeyValueStore, clock: FakeClock
    ):
        config = CacheConfig(cleanup_interval=timedelta(milliseconds=10))
        async with EnhancedCacheService(store, config, clock=clock) as service:
            await service.set("k", "v", expiry=1)
            clock.advance(2)

            for _ in range(50):
                await asyncio.sleep(0.01)
                if not store.data:
                    break

            assert store.data == {}
            assert "k" not in service.memory_tier

    @pytest.mark.asyncio
    async def test_dispose_stops_sweep_and_closes_events(
        self, store: InMemoryKeyValueStore, clock: FakeClock
    ):
        service = EnhancedCacheService(store, CacheConfig(), clock=clock)
        await service.initialize()
        subscription = service.events.subscribe()

        await service.dispose()

        assert service.events.is_closed
        assert await subscription.get() is None
        assert not service.is_initialized

    @pytest.mark.asyncio
    async def test_dispose_closes_owned_store(self, clock: FakeClock):
        class ClosingStore(InMemoryKeyValueStore):
            closed = False

            async def close(self) -> None:
                self.closed = True

        owned = ClosingStore()
        borrowed = ClosingStore()
        config = CacheConfig(enable_periodic_cleanup=False)

        async with EnhancedCacheService(owned, config, clock, owns_store=True):
            pass
        async with EnhancedCacheService(borrowed, config, clock):
            pass

        assert owned.closed is True
        assert borrowed.closed is False
