"""In-process cache service for tests of cache consumers."""

import copy
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from datetime import timedelta
from typing import Any

from radiocache.core.cache.cache_manager import BaseCacheService, ExpiryArg
from radiocache.core.cache.models import (
    CacheConfig,
    CacheEvent,
    CacheItem,
    CacheStatistics,
    deserialize_value,
    serialized_size,
)
from radiocache.core.cache.size_governor import SIZE_LIMIT_EVICTION
from radiocache.core.errors import (
    CacheConfigurationError,
    CacheManagementError,
    CacheReadError,
    CacheServiceError,
    CacheWriteError,
)


logger = logging.getLogger(__name__)

MOCK_DEFAULT_EXPIRY = timedelta(hours=1)
MOCK_MAX_CACHE_SIZE = 50 * 1024 * 1024  # 50MB


class MockCacheService(BaseCacheService):
    """Single-table cache that satisfies the cache service contract.

    There is no persistent tier: the memory-only flags are accepted and
    ignored. Entries are evicted oldest created first once the ceiling is
    exceeded, and expired entries are dropped lazily on access.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(
            config
            or CacheConfig(
                default_expiry=MOCK_DEFAULT_EXPIRY,
                max_cache_size_bytes=MOCK_MAX_CACHE_SIZE,
                enable_periodic_cleanup=False,
            ),
            clock,
        )
        self.max_cache_size = self.config.max_cache_size_bytes
        self._cache: dict[str, CacheItem] = {}
        self._simulated_error: str | None = None

    async def get(self, key: str, from_memory_only: bool = False) -> Any:
        self.validate_key(key)
        self._raise_simulated_error("read", key)
        self._total_requests += 1

        item = self._live_item(key)
        if item is None or item.value is None:
            self._record_miss(key)
            return None

        self._record_hit(key)
        return copy.deepcopy(item.value)

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
        self._raise_simulated_error("write", key)

        self._cache[key] = CacheItem(
            value=deserialize_value(serialized),
            created=self.next_created_ms(),
            size=serialized_size(serialized),
            expiry=self.now_ms() + int(effective_expiry.total_seconds() * 1000),
        )
        self._emit(CacheEvent.set(key, effective_expiry))
        self._enforce_max_cache_size()

    async def remove(self, key: str, from_memory_only: bool = False) -> None:
        self.validate_key(key)
        self._raise_simulated_error("write", key)
        self._cache.pop(key, None)
        self._emit(CacheEvent.remove(key))

    async def clear(self, memory_only: bool = False) -> None:
        self._raise_simulated_error("management")
        self._cache.clear()
        self._emit(CacheEvent.clear())

    async def has(self, key: str, check_memory_only: bool = False) -> bool:
        self.validate_key(key)
        self._raise_simulated_error("read", key)
        return self._live_item(key) is not None

    async def get_cache_size(self) -> int:
        self._raise_simulated_error("management")
        return sum(item.size for item in self._cache.values())

    async def get_statistics(self) -> CacheStatistics:
        self._raise_simulated_error("management")
        return CacheStatistics(
            total_requests=self._total_requests,
            hits=self._hits,
            misses=self._misses,
            memory_cache_size=sum(item.size for item in self._cache.values()),
            disk_cache_size=0,
            memory_item_count=len(self._cache),
            disk_item_count=0,
            evictions=self._evictions,
            expired_items=self._expired_items,
        )

    async def clear_expired(self) -> int:
        self._raise_simulated_error("management")
        now = self.now_ms()
        expired_keys = [key for key, item in self._cache.items() if item.is_expired(now)]
        for key in expired_keys:
            del self._cache[key]

        self._expired_items += len(expired_keys)
        if expired_keys:
            self._emit(CacheEvent.cleanup(len(expired_keys)))
        return len(expired_keys)

    async def set_max_cache_size(self, size_in_bytes: int) -> None:
        if size_in_bytes <= 0:
            raise CacheConfigurationError.invalid_cache_size(size_in_bytes)
        self.max_cache_size = size_in_bytes
        self._enforce_max_cache_size()

    async def preload(self, keys: Iterable[str]) -> None:
        for key in keys:
            await self.get(key)

    # Test helpers

    def reset(self) -> None:
        """Drop every entry, zero the counters and stop simulating errors."""
        self._cache.clear()
        self.reset_statistics()
        self._simulated_error = None
        self.max_cache_size = self.config.max_cache_size_bytes

    def expire_item(self, key: str) -> None:
        """Force an entry to be expired on its next access."""
        item = self._cache.get(key)
        if item is not None:
            item.expiry = self.now_ms() - 1

    def add_test_items(self, items: Mapping[str, Any]) -> None:
        """Insert entries directly, bypassing events and size enforcement."""
        expiry = self.now_ms() + int(self.config.default_expiry.total_seconds() * 1000)
        for key, value in items.items():
            self.validate_key(key)
            serialized = self.validate_value(value)
            self._cache[key] = CacheItem(
                value=deserialize_value(serialized),
                created=self.next_created_ms(),
                size=serialized_size(serialized),
                expiry=expiry,
            )

    def get_cache_contents(self) -> dict[str, Any]:
        """Snapshot of stored values, expired entries included."""
        return {key: copy.deepcopy(item.value) for key, item in self._cache.items()}

    def simulate_error(self, kind: str) -> None:
        """Make subsequent operations of a kind fail.

        Args:
            kind: "read", "write" or "management"; any other value makes every
                operation raise a generic cache error
        """
        self._simulated_error = kind
        logger.debug("Simulating cache %s errors", kind)

    def stop_simulating_errors(self) -> None:
        self._simulated_error = None

    def _raise_simulated_error(self, operation: str, key: str = "all") -> None:
        kind = self._simulated_error
        if kind is None:
            return

        if kind == "read" and operation == "read":
            raise CacheReadError.key_access_failed(key)
        if kind == "write" and operation == "write":
            raise CacheWriteError.key_write_failed(key)
        if kind == "management" and operation == "management":
            raise CacheManagementError.clear_failed()
        if kind not in ("read", "write", "management"):
            raise CacheServiceError(
                f"Simulated cache error: {kind}", "CACHE_SIMULATED_ERROR"
            )

    def _live_item(self, key: str) -> CacheItem | None:
        item = self._cache.get(key)
        if item is None:
            return None
        if item.is_expired(self.now_ms()):
            del self._cache[key]
            self._expired_items += 1
            return None
        return item

    def _enforce_max_cache_size(self) -> None:
        current_size = sum(item.size for item in self._cache.values())
        if current_size <= self.max_cache_size:
            return

        by_creation = sorted(self._cache.items(), key=lambda entry: entry[1].created)
        for key, item in by_creation:
            if current_size <= self.max_cache_size:
                break
            del self._cache[key]
            current_size -= item.size
            self._record_eviction(key, SIZE_LIMIT_EVICTION)
