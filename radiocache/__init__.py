"""radiocache - two-tier cache service for a music streaming client."""

from importlib.metadata import PackageNotFoundError, version

from .core.cache import (
    CacheConfig,
    CacheEvent,
    CacheEventType,
    CacheService,
    CacheStatistics,
    EnhancedCacheService,
    MockCacheService,
    create_cache_service,
    create_default_cache_service,
    create_mock_cache_service,
)


try:
    __version__ = version(__package__ or "radiocache")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "CacheConfig",
    "CacheEvent",
    "CacheEventType",
    "CacheService",
    "CacheStatistics",
    "EnhancedCacheService",
    "MockCacheService",
    "create_cache_service",
    "create_default_cache_service",
    "create_mock_cache_service",
    "__version__",
]
