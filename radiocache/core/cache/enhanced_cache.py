"""Two-tier cache service: memory tier in front of a persistent tier."""

import asyncio
import contextlib
import copy
import time
from collections.abc import Callable, Iterable
from typing import Any

from radiocache.core.cache.cache_manager import BaseCacheService, ExpiryArg
from radiocache.core.cache.memory_cache import MemoryTier
from radiocache.core.cache.models import (
    CacheConfig,
    CacheEvent,
    CacheItem,
    CacheMetadata,
    CacheStatistics,
    deserialize_value,
    serialized_size,
)
from radiocache.core.cache.persistent_cache import PersistentRecord, PersistentTier
from radiocache.core.cache.size_governor import SizeGovernor
from radiocache.core.errors import (
    CacheConfigurationError,
    CacheManagementError,
    CacheServiceError,
    CacheWriteError,
    KeyValueStoreError,
)
from radiocache.core.structlog_logger import StructlogMixin
from radiocache.protocols import KeyValueStoreProtocol


LRU_EVICTION = "LRU eviction"


class EnhancedCacheService(StructlogMixin, BaseCacheService):
    """Production cache service.

    Reads check the memory tier first and fall back to the persistent tier,
    promoting hits back into memory. Writes always go to memory and, unless
    memory-only, are mirrored to the persistent tier; the size governor runs
    after every write. A background task sweeps expired entries.

    Each instance is independent; the composition root decides how many to
    create and passes them to consumers.
    """

    service_name = "enhanced_cache"

    def __init__(
        self,
        store: KeyValueStoreProtocol,
        config: CacheConfig | None = None,
        clock: Callable[[], float] = time.time,
        owns_store: bool = False,
    ):
        """Initialize the cache service.

        Args:
            store: Durable key-value store backing the persistent tier
            config: Cache configuration options
            clock: Returns the current time in epoch seconds
            owns_store: Close the store when the service is disposed
        """
        super().__init__(config, clock)
        self.store = store
        self.owns_store = owns_store

        self._memory = MemoryTier(self.config.memory_max_items)
        self._persistent = PersistentTier(store, self.config)
        self._governor = SizeGovernor(
            self._memory,
            self._persistent,
            self.config.max_cache_size_bytes,
            on_evict=self._record_eviction,
        )

        self._initialized = False
        self._cleanup_task: asyncio.Task[None] | None = None

    @property
    def max_cache_size(self) -> int:
        return self._governor.max_size_bytes

    @property
    def memory_tier(self) -> MemoryTier:
        return self._memory

    @property
    def persistent_tier(self) -> PersistentTier:
        return self._persistent

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Verify the store is reachable and start the periodic sweep.

        Safe to call repeatedly; every operation calls it lazily.
        """
        if self._initialized:
            return

        try:
            keys = await self.store.get_all_keys()
        except KeyValueStoreError as e:
            raise CacheManagementError.initialization_failed(e) from e

        if self.config.enable_periodic_cleanup:
            self._start_periodic_cleanup()

        self._initialized = True
        self.logger.info(
            "cache_service_initialized",
            namespace=self.config.namespace,
            stored_records=sum(1 for key in keys if self._persistent.owns(key)),
            max_cache_size=self.max_cache_size,
        )

    async def get(self, key: str, from_memory_only: bool = False) -> Any:
        self.validate_key(key)
        await self.initialize()
        self._total_requests += 1

        now = self.now_ms()
        item, memory_expired = self._memory.get(key, now)
        if item is not None:
            # Stored None is indistinguishable from a miss
            if item.value is None:
                self._record_miss(key)
                return None
            self._record_hit(key)
            return copy.deepcopy(item.value)

        if from_memory_only:
            self._count_expired(memory_expired)
            self._record_miss(key)
            return None

        try:
            record, disk_expired = await self._persistent.read(key, now)
        except CacheServiceError:
            self._count_expired(memory_expired)
            self._record_miss(key)
            raise

        self._count_expired(memory_expired or disk_expired)

        if record is None or record.value is None:
            self._record_miss(key)
            return None

        self._promote(key, record)
        self._record_hit(key)
        return copy.deepcopy(record.value)

    async def set(
        self,
        key: str,
        value: Any,
        expiry: ExpiryArg = None,
        memory_only: bool = False,
    ) -> None:
        self.validate_key(key)
        serialized = self.validate_value(value)
        effective_expiry = self.resolve_expiry(expiry, self.config.default_expiry)
        await self.initialize()

        created = self.next_created_ms()
        expiry_ms = self.now_ms() + int(effective_expiry.total_seconds() * 1000)
        size = serialized_size(serialized)

        # Memory holds a decoded copy, never the caller's object
        item = CacheItem(
            value=deserialize_value(serialized),
            created=created,
            size=size,
            expiry=expiry_ms,
            persisted=not memory_only,
        )
        self._set_in_memory(key, item)

        if not memory_only:
            try:
                await self._persistent.write(
                    key,
                    serialized,
                    CacheMetadata(expiry=expiry_ms, created=created, size=size),
                )
            except CacheWriteError:
                # The memory entry stays as a degraded cache
                item.persisted = False
                raise

        self._emit(CacheEvent.set(key, effective_expiry))
        await self._enforce_max_cache_size()

    async def remove(self, key: str, from_memory_only: bool = False) -> None:
        self.validate_key(key)
        await self.initialize()

        self._memory.delete(key)
        if not from_memory_only:
            await self._persistent.delete(key)

        self._emit(CacheEvent.remove(key))

    async def clear(self, memory_only: bool = False) -> None:
        await self.initialize()

        self._memory.clear()
        if not memory_only:
            try:
                removed = await self._persistent.clear()
            except KeyValueStoreError as e:
                raise CacheManagementError.clear_failed(e) from e
            self.log_operation("clear").debug(
                "persistent_tier_cleared", removed_records=removed
            )

        self._emit(CacheEvent.clear())

    async def has(self, key: str, check_memory_only: bool = False) -> bool:
        self.validate_key(key)
        await self.initialize()

        now = self.now_ms()
        item, memory_expired = self._memory.get(key, now)
        if item is not None:
            return True

        if check_memory_only:
            self._count_expired(memory_expired)
            return False

        exists, disk_expired = await self._persistent.exists(key, now)
        self._count_expired(memory_expired or disk_expired)
        return exists

    async def get_cache_size(self) -> int:
        await self.initialize()
        try:
            return await self._governor.current_size()
        except KeyValueStoreError as e:
            raise CacheManagementError.size_failed(e) from e

    async def get_statistics(self) -> CacheStatistics:
        await self.initialize()
        try:
            disk_size = await self._persistent.total_size()
            disk_count = await self._persistent.item_count()
        except KeyValueStoreError as e:
            raise CacheManagementError.statistics_failed(e) from e

        return CacheStatistics(
            total_requests=self._total_requests,
            hits=self._hits,
            misses=self._misses,
            memory_cache_size=self._memory.total_size(),
            disk_cache_size=disk_size,
            memory_item_count=len(self._memory),
            disk_item_count=disk_count,
            evictions=self._evictions,
            expired_items=self._expired_items,
        )

    async def clear_expired(self) -> int:
        await self.initialize()

        now = self.now_ms()
        memory_keys = self._memory.remove_expired(now)
        try:
            disk_keys = await self._persistent.remove_expired(now)
        except KeyValueStoreError as e:
            raise CacheManagementError.cleanup_failed(e) from e

        expired_count = len(set(memory_keys) | set(disk_keys))
        self._expired_items += expired_count

        if expired_count > 0:
            self.logger.debug(
                "expired_entries_removed",
                count=expired_count,
                memory=len(memory_keys),
                disk=len(disk_keys),
            )
            self._emit(CacheEvent.cleanup(expired_count))

        return expired_count

    async def set_max_cache_size(self, size_in_bytes: int) -> None:
        if size_in_bytes <= 0:
            raise CacheConfigurationError.invalid_cache_size(size_in_bytes)

        await self.initialize()
        self._governor.max_size_bytes = size_in_bytes
        await self._enforce_max_cache_size()

    async def preload(self, keys: Iterable[str]) -> None:
        await self.initialize()
        for key in keys:
            if key not in self._memory:
                await self.get(key)

    async def dispose(self) -> None:
        """Stop the sweep, close the event channel and drop memory entries."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

        await super().dispose()
        self._memory.clear()
        self._initialized = False

        if self.owns_store:
            await self.store.close()

        self.logger.debug("cache_service_disposed")

    def _promote(self, key: str, record: PersistentRecord) -> None:
        self._set_in_memory(
            key,
            CacheItem(
                value=record.value,
                created=record.metadata.created,
                size=record.metadata.size,
                expiry=record.metadata.expiry,
                persisted=True,
            ),
        )

    def _set_in_memory(self, key: str, item: CacheItem) -> None:
        for evicted_key in self._memory.put(key, item):
            self._record_eviction(evicted_key, LRU_EVICTION)

    def _count_expired(self, expired: bool) -> None:
        if expired:
            self._expired_items += 1

    async def _enforce_max_cache_size(self) -> None:
        try:
            evicted = await self._governor.enforce()
        except KeyValueStoreError as e:
            raise CacheManagementError.size_failed(e) from e

        if evicted:
            self.logger.debug(
                "size_limit_enforced",
                evicted=len(evicted),
                max_cache_size=self.max_cache_size,
            )

    def _start_periodic_cleanup(self) -> None:
        self._cleanup_task = asyncio.create_task(
            self._periodic_cleanup_loop(), name="radiocache-periodic-cleanup"
        )

    async def _periodic_cleanup_loop(self) -> None:
        interval = self.config.cleanup_interval.total_seconds()
        while True:
            await asyncio.sleep(interval)
            try:
                removed = await self.clear_expired()
                self.logger.debug("periodic_cleanup_completed", removed=removed)
            except Exception as e:
                self.log_error_with_context("periodic_cleanup_failed", e)
