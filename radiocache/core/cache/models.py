"""Cache data models and types."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


DEFAULT_NAMESPACE = "robin_radio_cache"
DEFAULT_EXPIRY = timedelta(hours=24)
DEFAULT_MAX_CACHE_SIZE = 100 * 1024 * 1024  # 100MB
DEFAULT_MEMORY_MAX_ITEMS = 1000
DEFAULT_CLEANUP_INTERVAL = timedelta(hours=1)


@dataclass
class CacheConfig:
    """Configuration for cache service instances."""

    namespace: str = DEFAULT_NAMESPACE
    default_expiry: timedelta = DEFAULT_EXPIRY
    max_cache_size_bytes: int = DEFAULT_MAX_CACHE_SIZE
    memory_max_items: int = DEFAULT_MEMORY_MAX_ITEMS
    cleanup_interval: timedelta = DEFAULT_CLEANUP_INTERVAL
    enable_periodic_cleanup: bool = True

    @property
    def data_prefix(self) -> str:
        """Store key prefix for value records."""
        return f"{self.namespace}:data:"

    @property
    def metadata_prefix(self) -> str:
        """Store key prefix for metadata records."""
        return f"{self.namespace}:meta:"


@dataclass
class CacheItem:
    """A memory tier entry.

    ``expiry`` and ``created`` are epoch milliseconds. ``persisted`` tells
    whether the entry is mirrored by records in the persistent tier.
    """

    value: Any
    created: int
    size: int
    expiry: int | None = None
    persisted: bool = False

    def is_expired(self, now_ms: int) -> bool:
        return self.expiry is not None and now_ms > self.expiry


@dataclass
class CacheMetadata:
    """Metadata record stored alongside each persisted value."""

    expiry: int
    created: int
    size: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expiry

    def to_json(self) -> str:
        return json.dumps(
            {"expiry": self.expiry, "created": self.created, "size": self.size},
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, raw: str) -> "CacheMetadata":
        """Parse a metadata record.

        Raises:
            ValueError: If the record is not valid metadata JSON
        """
        try:
            data = json.loads(raw)
            return cls(
                expiry=int(data["expiry"]),
                created=int(data.get("created") or 0),
                size=int(data.get("size") or 0),
            )
        except (TypeError, KeyError, AttributeError) as e:
            raise ValueError(f"Malformed cache metadata: {raw!r}") from e


class CacheEventType(str, Enum):
    """Types of events emitted by a cache service."""

    HIT = "hit"
    MISS = "miss"
    SET = "set"
    REMOVE = "remove"
    EVICTION = "eviction"
    CLEAR = "clear"
    CLEANUP = "cleanup"


@dataclass(frozen=True)
class CacheEvent:
    """A discrete notification of a cache state change."""

    type: CacheEventType
    key: str
    data: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def hit(cls, key: str) -> "CacheEvent":
        return cls(CacheEventType.HIT, key)

    @classmethod
    def miss(cls, key: str) -> "CacheEvent":
        return cls(CacheEventType.MISS, key)

    @classmethod
    def set(cls, key: str, expiry: timedelta | None = None) -> "CacheEvent":
        data = {"expiry": int(expiry.total_seconds())} if expiry is not None else None
        return cls(CacheEventType.SET, key, data)

    @classmethod
    def remove(cls, key: str) -> "CacheEvent":
        return cls(CacheEventType.REMOVE, key)

    @classmethod
    def eviction(cls, key: str, reason: str) -> "CacheEvent":
        return cls(CacheEventType.EVICTION, key, {"reason": reason})

    @classmethod
    def clear(cls) -> "CacheEvent":
        return cls(CacheEventType.CLEAR, "all")

    @classmethod
    def cleanup(cls, count: int) -> "CacheEvent":
        return cls(CacheEventType.CLEANUP, "expired", {"count": count})

    def __str__(self) -> str:
        return f"CacheEvent({self.type.value}: {self.key} at {self.timestamp.isoformat()})"


@dataclass(frozen=True)
class CacheStatistics:
    """Point-in-time snapshot of cache statistics."""

    total_requests: int
    hits: int
    misses: int
    memory_cache_size: int
    disk_cache_size: int
    memory_item_count: int
    disk_item_count: int
    evictions: int
    expired_items: int
    last_updated: datetime = field(default_factory=datetime.now)

    @property
    def hit_ratio(self) -> float:
        """Ratio of hits to requests, 0.0 before the first request."""
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests

    @property
    def total_cache_size(self) -> int:
        return self.memory_cache_size + self.disk_cache_size

    @property
    def total_item_count(self) -> int:
        return self.memory_item_count + self.disk_item_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "hits": self.hits,
            "misses": self.misses,
            "hit_ratio": self.hit_ratio,
            "memory_cache_size": self.memory_cache_size,
            "disk_cache_size": self.disk_cache_size,
            "total_cache_size": self.total_cache_size,
            "memory_item_count": self.memory_item_count,
            "disk_item_count": self.disk_item_count,
            "total_item_count": self.total_item_count,
            "evictions": self.evictions,
            "expired_items": self.expired_items,
            "last_updated": self.last_updated.isoformat(),
        }

    def __str__(self) -> str:
        return (
            f"CacheStatistics(requests: {self.total_requests}, "
            f"hitRatio: {self.hit_ratio * 100:.1f}%, "
            f"totalSize: {self.total_cache_size / 1024:.1f}KB, "
            f"items: {self.total_item_count})"
        )


def serialize_value(value: Any) -> str:
    """Serialize a cache payload to compact JSON text.

    Raises:
        TypeError: If the value is not JSON serializable
        ValueError: If the value contains circular references
    """
    return json.dumps(value, separators=(",", ":"))


def serialized_size(serialized: str) -> int:
    """Byte length of a serialized payload."""
    return len(serialized.encode("utf-8"))


def deserialize_value(serialized: str) -> Any:
    """Decode a serialized payload into a fresh object graph."""
    return json.loads(serialized)
