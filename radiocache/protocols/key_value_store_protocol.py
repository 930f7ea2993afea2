"""Protocol for durable key-value stores used by the persistent cache tier."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStoreProtocol(Protocol):
    """Generic persistent string store.

    Keys are opaque strings; the cache layers its own namespacing on top.
    Implementations raise ``KeyValueStoreError`` when the backend fails.
    """

    async def get_string(self, key: str) -> str | None:
        """Return the stored string, or None if the key does not exist."""
        ...

    async def set_string(self, key: str, value: str) -> None:
        """Store a string under key, replacing any previous value."""
        ...

    async def remove(self, key: str) -> None:
        """Remove key. Removing a missing key is not an error."""
        ...

    async def get_all_keys(self) -> set[str]:
        """Return every key currently stored."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...
