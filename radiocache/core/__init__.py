from .errors import (
    CacheServiceError,
    ConfigError,
    KeyValueStoreError,
    RadioCacheError,
)
from .logging import setup_logging
from .structlog_logger import get_struct_logger


__all__ = [
    "setup_logging",
    "get_struct_logger",
    "RadioCacheError",
    "CacheServiceError",
    "ConfigError",
    "KeyValueStoreError",
]
