"""Protocol definitions for radiocache adapters.

Protocols use ``typing.Protocol`` with ``@runtime_checkable`` to allow both
static type checking and runtime ``isinstance()`` checks.
"""

from .key_value_store_protocol import KeyValueStoreProtocol


__all__ = [
    "KeyValueStoreProtocol",
]
