"""In-process key-value store adapter."""

import logging

from radiocache.protocols import KeyValueStoreProtocol


logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """Dictionary backed key-value store.

    Data does not survive the process. Useful for tests and for running the
    cache service without a durable backend.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get_string(self, key: str) -> str | None:
        return self._data.get(key)

    async def set_string(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def get_all_keys(self) -> set[str]:
        return set(self._data)

    async def close(self) -> None:
        logger.debug("Closed in-memory key-value store (%d keys)", len(self._data))

    @property
    def data(self) -> dict[str, str]:
        """Direct access to the raw records, for inspection in tests."""
        return self._data


def create_memory_store(initial: dict[str, str] | None = None) -> KeyValueStoreProtocol:
    """Create an in-memory key-value store."""
    return InMemoryKeyValueStore(initial)
