"""Key-value store adapters for the persistent cache tier."""

from .diskcache_store import DiskCacheKeyValueStore, create_diskcache_store
from .memory_store import InMemoryKeyValueStore, create_memory_store


__all__ = [
    "DiskCacheKeyValueStore",
    "InMemoryKeyValueStore",
    "create_diskcache_store",
    "create_memory_store",
]
