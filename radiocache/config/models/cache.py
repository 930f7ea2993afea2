"""Cache service configuration models."""

from datetime import timedelta

from pydantic import Field

from radiocache.core.cache.models import (
    DEFAULT_CLEANUP_INTERVAL,
    DEFAULT_EXPIRY,
    DEFAULT_MAX_CACHE_SIZE,
    DEFAULT_MEMORY_MAX_ITEMS,
    DEFAULT_NAMESPACE,
    CacheConfig,
)
from radiocache.models.base import RadioCacheBaseModel


class CacheServiceConfig(RadioCacheBaseModel):
    """Tunable limits of the tiered cache service."""

    default_expiry_seconds: int = Field(
        default=int(DEFAULT_EXPIRY.total_seconds()),
        gt=0,
        description="Time-to-live applied when set() receives no expiry",
    )
    max_cache_size_bytes: int = Field(
        default=DEFAULT_MAX_CACHE_SIZE,
        gt=0,
        description="Aggregate size ceiling enforced after every write",
    )
    memory_max_items: int = Field(
        default=DEFAULT_MEMORY_MAX_ITEMS,
        gt=0,
        description="Maximum number of entries held in the memory tier",
    )
    cleanup_interval_seconds: int = Field(
        default=int(DEFAULT_CLEANUP_INTERVAL.total_seconds()),
        gt=0,
        description="Interval of the background expired-entry sweep",
    )
    enable_periodic_cleanup: bool = Field(
        default=True, description="Run the background sweep"
    )

    def to_cache_config(self, namespace: str = DEFAULT_NAMESPACE) -> CacheConfig:
        """Build the runtime configuration consumed by cache services."""
        return CacheConfig(
            namespace=namespace,
            default_expiry=timedelta(seconds=self.default_expiry_seconds),
            max_cache_size_bytes=self.max_cache_size_bytes,
            memory_max_items=self.memory_max_items,
            cleanup_interval=timedelta(seconds=self.cleanup_interval_seconds),
            enable_periodic_cleanup=self.enable_periodic_cleanup,
        )
