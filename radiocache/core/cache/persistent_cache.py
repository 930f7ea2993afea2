"""Persistent cache tier over a durable key-value store."""

import json
import logging
from dataclasses import dataclass
from typing import Any

from radiocache.core.cache.models import CacheConfig, CacheMetadata
from radiocache.core.errors import CacheReadError, CacheWriteError, KeyValueStoreError
from radiocache.protocols import KeyValueStoreProtocol


logger = logging.getLogger(__name__)


@dataclass
class PersistentRecord:
    """A value read back from the persistent tier with its metadata."""

    value: Any
    metadata: CacheMetadata


class PersistentTier:
    """Stores each entry as two records: the JSON value and its metadata.

    For logical key ``K`` the value lives at ``<data_prefix>K`` and the
    metadata at ``<metadata_prefix>K``, so size and expiry bookkeeping never
    needs to decode the value payload.

    Writes store the value before the metadata and deletes remove the
    metadata before the value. Scans only look at metadata records, so an
    entry becomes visible to scans once fully written and disappears from
    them before it is partially deleted.

    A value record without metadata is an orphan and is removed when
    reached, unless a write of that key is still in flight.
    """

    def __init__(self, store: KeyValueStoreProtocol, config: CacheConfig):
        self.store = store
        self.data_prefix = config.data_prefix
        self.metadata_prefix = config.metadata_prefix
        self._writes_in_flight: set[str] = set()

    def data_key(self, key: str) -> str:
        return f"{self.data_prefix}{key}"

    def metadata_key(self, key: str) -> str:
        return f"{self.metadata_prefix}{key}"

    async def read(self, key: str, now_ms: int) -> tuple[PersistentRecord | None, bool]:
        """Read an entry.

        Returns:
            Tuple of (record or None, whether an expired entry was dropped)

        Raises:
            CacheReadError: If the store fails or the records are corrupted.
                Corrupted records are deleted before raising.
        """
        try:
            metadata_json = await self.store.get_string(self.metadata_key(key))
            if metadata_json is None:
                await self._remove_orphan(key)
                return None, False

            try:
                metadata = CacheMetadata.from_json(metadata_json)
            except ValueError as e:
                logger.warning("Corrupted cache metadata for %s: %s", key, e)
                await self._delete_records(key)
                raise CacheReadError.deserialization_failed(key, e) from e

            if metadata.is_expired(now_ms):
                logger.debug("Persistent entry %s expired", key)
                await self._delete_records(key)
                return None, True

            data_json = await self.store.get_string(self.data_key(key))
            if data_json is None:
                logger.warning("Cache metadata without value for %s, removing", key)
                await self.store.remove(self.metadata_key(key))
                return None, False

            try:
                value = json.loads(data_json)
            except ValueError as e:
                logger.warning("Corrupted cache value for %s: %s", key, e)
                await self._delete_records(key)
                raise CacheReadError.deserialization_failed(key, e) from e

            return PersistentRecord(value=value, metadata=metadata), False

        except KeyValueStoreError as e:
            raise CacheReadError.key_access_failed(key, e) from e

    async def write(
        self, key: str, serialized: str, metadata: CacheMetadata
    ) -> None:
        """Store the serialized value and its metadata.

        Raises:
            CacheWriteError: If the store fails
        """
        self._writes_in_flight.add(key)
        try:
            await self.store.set_string(self.data_key(key), serialized)
            await self.store.set_string(self.metadata_key(key), metadata.to_json())
        except KeyValueStoreError as e:
            raise CacheWriteError.key_write_failed(key, e) from e
        finally:
            self._writes_in_flight.discard(key)

        logger.debug(
            "Persisted cache entry %s (size: %d bytes, expiry: %d)",
            key,
            metadata.size,
            metadata.expiry,
        )

    async def delete(self, key: str) -> None:
        """Remove both records of an entry.

        Raises:
            CacheWriteError: If the store fails
        """
        try:
            await self._delete_records(key)
        except KeyValueStoreError as e:
            raise CacheWriteError.key_write_failed(key, e) from e

    async def exists(self, key: str, now_ms: int) -> tuple[bool, bool]:
        """Check whether a live entry exists.

        Expired, corrupted and orphaned records are removed on the way.

        Returns:
            Tuple of (exists, whether an expired entry was dropped)

        Raises:
            CacheReadError: If the store fails
        """
        try:
            metadata_json = await self.store.get_string(self.metadata_key(key))
            if metadata_json is None:
                await self._remove_orphan(key)
                return False, False

            try:
                metadata = CacheMetadata.from_json(metadata_json)
            except ValueError as e:
                logger.warning("Corrupted cache metadata for %s: %s", key, e)
                await self._delete_records(key)
                return False, False

            if metadata.is_expired(now_ms):
                await self._delete_records(key)
                return False, True

            if await self.store.get_string(self.data_key(key)) is None:
                logger.warning("Cache metadata without value for %s, removing", key)
                await self.store.remove(self.metadata_key(key))
                return False, False

            return True, False

        except KeyValueStoreError as e:
            raise CacheReadError.key_access_failed(key, e) from e

    async def clear(self) -> int:
        """Remove every record under this cache's namespace.

        Returns:
            Number of store keys removed

        Raises:
            KeyValueStoreError: If the store fails
        """
        keys = [key for key in await self.store.get_all_keys() if self.owns(key)]
        for store_key in keys:
            await self.store.remove(store_key)
        logger.debug("Cleared persistent tier (%d records)", len(keys))
        return len(keys)

    async def scan_metadata(self) -> list[tuple[str, CacheMetadata | None]]:
        """Load all metadata records.

        Records that fail to parse are returned with ``None`` metadata.

        Raises:
            KeyValueStoreError: If the store fails
        """
        entries: list[tuple[str, CacheMetadata | None]] = []
        for store_key in await self.store.get_all_keys():
            if not store_key.startswith(self.metadata_prefix):
                continue
            key = store_key[len(self.metadata_prefix) :]
            metadata_json = await self.store.get_string(store_key)
            if metadata_json is None:
                continue
            try:
                entries.append((key, CacheMetadata.from_json(metadata_json)))
            except ValueError:
                entries.append((key, None))
        return entries

    async def total_size(self) -> int:
        """Sum of metadata sizes, skipping corrupted records."""
        return sum(
            metadata.size
            for _key, metadata in await self.scan_metadata()
            if metadata is not None
        )

    async def item_count(self) -> int:
        """Number of value records under this namespace."""
        return sum(
            1
            for store_key in await self.store.get_all_keys()
            if store_key.startswith(self.data_prefix)
        )

    async def remove_expired(self, now_ms: int) -> list[str]:
        """Remove expired, corrupted and orphaned entries.

        Returns:
            Logical keys that were removed

        Raises:
            KeyValueStoreError: If the store fails
        """
        removed: list[str] = []
        for key, metadata in await self.scan_metadata():
            if metadata is None:
                logger.warning("Removing corrupted cache metadata for %s", key)
            elif not metadata.is_expired(now_ms):
                continue
            await self._delete_records(key)
            removed.append(key)

        store_keys = await self.store.get_all_keys()
        for store_key in store_keys:
            if not store_key.startswith(self.data_prefix):
                continue
            key = store_key[len(self.data_prefix) :]
            if self.metadata_key(key) in store_keys:
                continue
            if await self._remove_orphan(key):
                removed.append(key)
        return removed

    async def delete_if_created(self, key: str, created: int) -> bool:
        """Remove an entry only if its metadata still carries ``created``.

        Returns:
            True if the records were removed

        Raises:
            CacheWriteError: If the store fails
        """
        try:
            metadata_json = await self.store.get_string(self.metadata_key(key))
            if metadata_json is None:
                return False
            metadata: CacheMetadata | None
            try:
                metadata = CacheMetadata.from_json(metadata_json)
            except ValueError:
                metadata = None
            if metadata is not None and metadata.created != created:
                return False
            if key in self._writes_in_flight:
                return False
            await self._delete_records(key)
        except KeyValueStoreError as e:
            raise CacheWriteError.key_write_failed(key, e) from e
        return True

    async def _remove_orphan(self, key: str) -> bool:
        if await self.store.get_string(self.data_key(key)) is None:
            return False
        # The entry may have been written while the value was being read
        if await self.store.get_string(self.metadata_key(key)) is not None:
            return False
        if key in self._writes_in_flight:
            return False

        logger.warning("Cache value without metadata for %s, removing", key)
        await self.store.remove(self.data_key(key))
        return True

    async def _delete_records(self, key: str) -> None:
        await self.store.remove(self.metadata_key(key))
        await self.store.remove(self.data_key(key))

    def owns(self, store_key: str) -> bool:
        return store_key.startswith(self.data_prefix) or store_key.startswith(
            self.metadata_prefix
        )
