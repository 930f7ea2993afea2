"""In-memory cache tier with LRU eviction."""

import logging
from collections import OrderedDict
from collections.abc import Iterator

from radiocache.core.cache.models import DEFAULT_MEMORY_MAX_ITEMS, CacheItem


logger = logging.getLogger(__name__)


class MemoryTier:
    """Bounded in-process key -> entry table.

    The ``OrderedDict`` is both the entry map and the access-order list:
    iteration order is recency order with the least recently used key first.
    Every successful read or write moves the key to the end, so an entry can
    never exist without its recency slot.

    All methods are synchronous; callers mutate the tier between await
    points only.
    """

    def __init__(self, max_items: int = DEFAULT_MEMORY_MAX_ITEMS):
        if max_items <= 0:
            raise ValueError(f"max_items must be positive, got {max_items}")
        self.max_items = max_items
        self._items: OrderedDict[str, CacheItem] = OrderedDict()
        logger.debug("Initialized memory tier (max items: %d)", max_items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def peek(self, key: str) -> CacheItem | None:
        """Return the entry without touching recency or expiry."""
        return self._items.get(key)

    def get(self, key: str, now_ms: int) -> tuple[CacheItem | None, bool]:
        """Look up an entry.

        Returns:
            Tuple of (entry or None, whether an expired entry was dropped)
        """
        item = self._items.get(key)
        if item is None:
            return None, False

        if item.is_expired(now_ms):
            self.delete(key)
            return None, True

        self._items.move_to_end(key)
        return item, False

    def put(self, key: str, item: CacheItem) -> list[str]:
        """Insert or replace an entry as most recently used.

        Returns:
            Keys evicted to bring the table back within ``max_items``,
            least recently used first
        """
        self._items[key] = item
        self._items.move_to_end(key)
        return self.enforce_limit()

    def enforce_limit(self) -> list[str]:
        """Pop least recently used entries until within bounds."""
        evicted: list[str] = []
        while len(self._items) > self.max_items:
            oldest_key, _item = self._items.popitem(last=False)
            evicted.append(oldest_key)
            logger.debug("LRU evicted memory entry: %s", oldest_key)
        return evicted

    def delete(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    def clear(self) -> None:
        self._items.clear()
        logger.debug("Cleared memory tier")

    def remove_expired(self, now_ms: int) -> list[str]:
        """Drop every expired entry and return their keys."""
        expired_keys = [
            key for key, item in self._items.items() if item.is_expired(now_ms)
        ]
        for key in expired_keys:
            del self._items[key]
        return expired_keys

    def keys_by_recency(self) -> list[str]:
        """Keys from least to most recently used."""
        return list(self._items)

    def memory_only_items(self) -> list[tuple[str, CacheItem]]:
        """Entries that have no persistent mirror."""
        return [(key, item) for key, item in self._items.items() if not item.persisted]

    def total_size(self) -> int:
        return sum(item.size for item in self._items.values())

    def memory_only_size(self) -> int:
        return sum(item.size for item in self._items.values() if not item.persisted)
