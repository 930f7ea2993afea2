"""DiskCache-backed key-value store adapter."""

import asyncio
import logging
import sqlite3
from pathlib import Path

import diskcache  # type: ignore[import-untyped]

from radiocache.core.errors import KeyValueStoreError
from radiocache.protocols import KeyValueStoreProtocol


logger = logging.getLogger(__name__)

_BACKEND_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


class DiskCacheKeyValueStore:
    """Durable key-value store using the DiskCache library.

    DiskCache provides SQLite-backed persistence with its own concurrency
    control. Blocking calls run on a worker thread so the event loop is
    never blocked. Expiry and eviction are handled by the cache service, so
    DiskCache's own eviction is disabled.
    """

    def __init__(self, directory: Path | str, timeout: float = 60.0) -> None:
        self.directory = Path(directory)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._cache = diskcache.Cache(
                directory=str(self.directory),
                timeout=timeout,
                eviction_policy="none",
            )
        except _BACKEND_ERRORS as e:
            raise KeyValueStoreError(
                f"Failed to open key-value store at {self.directory}: {e}"
            ) from e

        logger.debug("DiskCache key-value store opened at %s", self.directory)

    async def get_string(self, key: str) -> str | None:
        try:
            value = await asyncio.to_thread(self._cache.get, key)
        except _BACKEND_ERRORS as e:
            raise KeyValueStoreError(f"Failed to read key {key}: {e}") from e
        if value is None:
            return None
        if not isinstance(value, str):
            raise KeyValueStoreError(
                f"Key {key} holds a {type(value).__name__}, expected str"
            )
        return value

    async def set_string(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._cache.set, key, value)
        except _BACKEND_ERRORS as e:
            raise KeyValueStoreError(f"Failed to write key {key}: {e}") from e

    async def remove(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._cache.delete, key)
        except _BACKEND_ERRORS as e:
            raise KeyValueStoreError(f"Failed to remove key {key}: {e}") from e

    async def get_all_keys(self) -> set[str]:
        try:
            keys = await asyncio.to_thread(lambda: list(self._cache.iterkeys()))
        except _BACKEND_ERRORS as e:
            raise KeyValueStoreError(f"Failed to list keys: {e}") from e
        return {key for key in keys if isinstance(key, str)}

    async def close(self) -> None:
        try:
            await asyncio.to_thread(self._cache.close)
            logger.debug("DiskCache key-value store closed")
        except _BACKEND_ERRORS as e:
            logger.warning("Error closing DiskCache store: %s", e)


def create_diskcache_store(directory: Path | str) -> KeyValueStoreProtocol:
    """Create a DiskCache-backed key-value store rooted at directory."""
    return DiskCacheKeyValueStore(directory)
