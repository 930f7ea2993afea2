"""Aggregate size ceiling enforcement across both cache tiers."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from radiocache.core.cache.memory_cache import MemoryTier
from radiocache.core.cache.persistent_cache import PersistentTier


logger = logging.getLogger(__name__)

SIZE_LIMIT_EVICTION = "Size limit eviction"


@dataclass
class EvictionCandidate:
    key: str
    created: int
    size: int
    persisted: bool


class SizeGovernor:
    """Keeps the aggregate cache size under a byte ceiling.

    Each logical entry is counted once: persisted entries by the size in
    their metadata record, memory-only entries by their in-memory size.
    When the ceiling is exceeded, entries are evicted oldest created first
    (FIFO by creation, independent of access recency) until the excess is
    gone or no candidates remain.
    """

    def __init__(
        self,
        memory: MemoryTier,
        persistent: PersistentTier,
        max_size_bytes: int,
        on_evict: Callable[[str, str], None],
    ):
        self.memory = memory
        self.persistent = persistent
        self.max_size_bytes = max_size_bytes
        self._on_evict = on_evict

    async def current_size(self) -> int:
        return self.memory.memory_only_size() + await self.persistent.total_size()

    async def candidates(self) -> list[EvictionCandidate]:
        """All evictable entries, oldest created first.

        Corrupted metadata is skipped.
        """
        candidates = [
            EvictionCandidate(key, item.created, item.size, persisted=False)
            for key, item in self.memory.memory_only_items()
        ]
        for key, metadata in await self.persistent.scan_metadata():
            if metadata is None:
                continue
            candidates.append(
                EvictionCandidate(key, metadata.created, metadata.size, persisted=True)
            )
        candidates.sort(key=lambda candidate: candidate.created)
        return candidates

    async def enforce(self) -> list[str]:
        """Evict entries until the aggregate size fits the ceiling.

        Returns:
            Evicted keys in eviction order
        """
        current_size = await self.current_size()
        if current_size <= self.max_size_bytes:
            return []

        logger.debug(
            "Cache size %d exceeds limit %d, evicting oldest entries",
            current_size,
            self.max_size_bytes,
        )

        evicted: list[str] = []
        for candidate in await self.candidates():
            if current_size <= self.max_size_bytes:
                break

            resident = self.memory.peek(candidate.key)
            if candidate.persisted:
                # Skip entries rewritten since the scan
                if not await self.persistent.delete_if_created(
                    candidate.key, candidate.created
                ):
                    continue
                # A memory-only overwrite of a persisted key goes with it
                if resident is not None and not resident.persisted:
                    current_size -= resident.size
            elif resident is None or resident.persisted:
                continue
            # Leave entries rewritten while the store call was pending
            if resident is not None and self.memory.peek(candidate.key) is resident:
                self.memory.delete(candidate.key)

            current_size -= candidate.size
            evicted.append(candidate.key)
            self._on_evict(candidate.key, SIZE_LIMIT_EVICTION)

        return evicted
