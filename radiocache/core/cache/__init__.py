"""Two-tier cache service for the radio client.

Services are built explicitly by the factories below and passed to their
consumers; any number of independent instances may coexist.
"""

import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from radiocache.core.cache.cache_manager import BaseCacheService, CacheService
from radiocache.core.cache.enhanced_cache import EnhancedCacheService
from radiocache.core.cache.events import (
    CacheEventBroadcaster,
    CacheEventSubscription,
    ListenerHandle,
)
from radiocache.core.cache.memory_cache import MemoryTier
from radiocache.core.cache.mock_cache import MockCacheService
from radiocache.core.cache.models import (
    CacheConfig,
    CacheEvent,
    CacheEventType,
    CacheItem,
    CacheMetadata,
    CacheStatistics,
)
from radiocache.core.cache.persistent_cache import PersistentTier
from radiocache.core.cache.size_governor import SizeGovernor
from radiocache.protocols import KeyValueStoreProtocol


def create_cache_service(
    store: KeyValueStoreProtocol,
    config: CacheConfig | None = None,
    clock: Callable[[], float] = time.time,
) -> EnhancedCacheService:
    """Create a tiered cache service over an existing store.

    Args:
        store: Durable key-value store for the persistent tier
        config: Cache configuration options
        clock: Returns the current time in epoch seconds

    Returns:
        Cache service; the caller keeps ownership of the store
    """
    return EnhancedCacheService(store, config, clock)


def create_default_cache_service(user_config: Any) -> EnhancedCacheService:
    """Create a DiskCache backed service from user configuration.

    Args:
        user_config: User configuration object with cache_path, namespace and
            cache attributes

    Returns:
        Cache service that closes its store when disposed
    """
    from radiocache.adapters import create_diskcache_store

    cache_path = Path(user_config.cache_path).expanduser()
    config = user_config.cache.to_cache_config(namespace=user_config.namespace)
    return EnhancedCacheService(
        create_diskcache_store(cache_path), config, owns_store=True
    )


def create_mock_cache_service(
    clock: Callable[[], float] = time.time,
) -> MockCacheService:
    """Create a mock cache service for consumer tests."""
    return MockCacheService(clock=clock)


__all__ = [
    "BaseCacheService",
    "CacheConfig",
    "CacheEvent",
    "CacheEventBroadcaster",
    "CacheEventSubscription",
    "CacheEventType",
    "CacheItem",
    "CacheMetadata",
    "CacheService",
    "CacheStatistics",
    "EnhancedCacheService",
    "ListenerHandle",
    "MemoryTier",
    "MockCacheService",
    "PersistentTier",
    "SizeGovernor",
    "create_cache_service",
    "create_default_cache_service",
    "create_mock_cache_service",
]
