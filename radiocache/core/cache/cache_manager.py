"""Cache service protocol and shared base implementation."""

import re
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import timedelta
from types import TracebackType
from typing import Any, Protocol, runtime_checkable

from radiocache.core.cache.events import CacheEventBroadcaster
from radiocache.core.cache.models import (
    CacheConfig,
    CacheEvent,
    CacheStatistics,
    serialize_value,
)
from radiocache.core.errors import CacheConfigurationError


KEY_PATTERN = re.compile(r"[\w\-.]+", re.ASCII)

ExpiryArg = timedelta | float | int | None


@runtime_checkable
class CacheService(Protocol):
    """Cache service interface.

    Defines the contract shared by the production tiered cache and the
    mock used in consumer tests.
    """

    @property
    def events(self) -> CacheEventBroadcaster:
        """Broadcast channel of cache events."""
        ...

    async def get(self, key: str, from_memory_only: bool = False) -> Any:
        """Retrieve a value.

        Args:
            key: Cache key to retrieve
            from_memory_only: Skip the persistent tier

        Returns:
            Cached value, or None when absent, expired or stored as None
        """
        ...

    async def set(
        self,
        key: str,
        value: Any,
        expiry: ExpiryArg = None,
        memory_only: bool = False,
    ) -> None:
        """Store a value.

        Args:
            key: Cache key to store under
            value: JSON serializable value
            expiry: Time-to-live (timedelta or seconds), default applied if None
            memory_only: Do not mirror the value to the persistent tier
        """
        ...

    async def remove(self, key: str, from_memory_only: bool = False) -> None:
        """Remove a value from the cache."""
        ...

    async def clear(self, memory_only: bool = False) -> None:
        """Remove every entry."""
        ...

    async def has(self, key: str, check_memory_only: bool = False) -> bool:
        """Check whether a live entry exists. Expired entries are removed."""
        ...

    async def get_cache_size(self) -> int:
        """Aggregate size in bytes governed by the size ceiling."""
        ...

    async def get_statistics(self) -> CacheStatistics:
        """Snapshot of counters and gauges."""
        ...

    async def clear_expired(self) -> int:
        """Sweep expired entries from every tier.

        Returns:
            Number of entries removed
        """
        ...

    async def set_max_cache_size(self, size_in_bytes: int) -> None:
        """Change the size ceiling and enforce it immediately."""
        ...

    async def preload(self, keys: Iterable[str]) -> None:
        """Pull keys that are not memory resident into memory."""
        ...


class BaseCacheService(ABC):
    """Base implementation for cache services.

    Owns the pieces every implementation shares: argument validation, the
    monotonic counters, the event channel and the clock.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize base cache service.

        Args:
            config: Cache configuration options
            clock: Returns the current time in epoch seconds
        """
        super().__init__()
        self.config = config or CacheConfig()
        self._clock = clock
        self._events = CacheEventBroadcaster()
        self._last_created_ms = 0

        self._total_requests = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expired_items = 0

    @property
    def events(self) -> CacheEventBroadcaster:
        return self._events

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def next_created_ms(self) -> int:
        """Creation stamp, strictly increasing within this instance.

        Keeps FIFO-by-creation order total for entries written within the
        same millisecond.
        """
        self._last_created_ms = max(self.now_ms(), self._last_created_ms + 1)
        return self._last_created_ms

    def reset_statistics(self) -> None:
        """Zero the monotonic counters."""
        self._total_requests = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expired_items = 0

    @staticmethod
    def validate_key(key: str) -> None:
        """Raise if key is empty or has characters outside [A-Za-z0-9_.-]."""
        if not isinstance(key, str) or not KEY_PATTERN.fullmatch(key):
            raise CacheConfigurationError.invalid_key(str(key))

    @staticmethod
    def validate_value(value: Any) -> str:
        """Check that value is JSON serializable.

        Returns:
            The compact JSON serialization of value
        """
        try:
            return serialize_value(value)
        except (TypeError, ValueError) as e:
            raise CacheConfigurationError.unsupported_type(
                type(value).__name__, e
            ) from e

    def resolve_expiry(self, expiry: ExpiryArg, default: timedelta) -> timedelta:
        """Apply the default expiry and reject non-positive durations."""
        if expiry is None:
            effective = default
        elif isinstance(expiry, timedelta):
            effective = expiry
        else:
            try:
                effective = timedelta(seconds=expiry)
            except (ValueError, OverflowError) as e:
                raise CacheConfigurationError.invalid_expiry(expiry) from e

        if effective.total_seconds() <= 0:
            raise CacheConfigurationError.invalid_expiry(effective)
        return effective

    def _emit(self, event: CacheEvent) -> None:
        self._events.publish(event)

    def _record_hit(self, key: str) -> None:
        self._hits += 1
        self._emit(CacheEvent.hit(key))

    def _record_miss(self, key: str) -> None:
        self._misses += 1
        self._emit(CacheEvent.miss(key))

    def _record_eviction(self, key: str, reason: str) -> None:
        self._evictions += 1
        self._emit(CacheEvent.eviction(key, reason))

    @abstractmethod
    async def get(self, key: str, from_memory_only: bool = False) -> Any:
        pass

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        expiry: ExpiryArg = None,
        memory_only: bool = False,
    ) -> None:
        pass

    @abstractmethod
    async def remove(self, key: str, from_memory_only: bool = False) -> None:
        pass

    @abstractmethod
    async def clear(self, memory_only: bool = False) -> None:
        pass

    @abstractmethod
    async def has(self, key: str, check_memory_only: bool = False) -> bool:
        pass

    @abstractmethod
    async def get_cache_size(self) -> int:
        pass

    @abstractmethod
    async def get_statistics(self) -> CacheStatistics:
        pass

    @abstractmethod
    async def clear_expired(self) -> int:
        pass

    @abstractmethod
    async def set_max_cache_size(self, size_in_bytes: int) -> None:
        pass

    @abstractmethod
    async def preload(self, keys: Iterable[str]) -> None:
        pass

    async def dispose(self) -> None:
        """Release resources and close the event channel."""
        self._events.close()

    async def __aenter__(self) -> "BaseCacheService":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.dispose()
