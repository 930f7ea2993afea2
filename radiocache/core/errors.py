"""Error types for radiocache.

Every cache failure is a ``CacheServiceError`` carrying a stable machine
readable ``error_code``, a human message, a ``CacheErrorKind`` and an optional
underlying cause. Subclasses group the failures by operation family and offer
named constructors for each concrete condition.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any


class RadioCacheError(Exception):
    """Base exception for all radiocache errors."""


class KeyValueStoreError(RadioCacheError):
    """Raised by key-value store adapters when the backend fails."""


class ConfigError(RadioCacheError):
    """Error in application configuration."""


class CacheErrorKind(str, Enum):
    """Structured kind of a cache failure."""

    # Configuration
    INVALID_KEY = "invalid_key"
    INVALID_EXPIRY = "invalid_expiry"
    INVALID_CACHE_SIZE = "invalid_cache_size"
    UNSUPPORTED_TYPE = "unsupported_type"

    # Read
    KEY_ACCESS_FAILED = "key_access_failed"
    DESERIALIZATION_FAILED = "deserialization_failed"
    CORRUPTED_DATA = "corrupted_data"
    READ_DISK_ACCESS_FAILED = "read_disk_access_failed"

    # Write
    KEY_WRITE_FAILED = "key_write_failed"
    SERIALIZATION_FAILED = "serialization_failed"
    DISK_SPACE_FULL = "disk_space_full"
    WRITE_DISK_ACCESS_FAILED = "write_disk_access_failed"
    SIZE_LIMIT_EXCEEDED = "size_limit_exceeded"

    # Management
    CLEAR_FAILED = "clear_failed"
    INITIALIZATION_FAILED = "initialization_failed"
    CLEANUP_FAILED = "cleanup_failed"
    STATISTICS_FAILED = "statistics_failed"
    SIZE_FAILED = "size_failed"

    # Timeout
    READ_TIMEOUT = "read_timeout"
    WRITE_TIMEOUT = "write_timeout"
    CLEANUP_TIMEOUT = "cleanup_timeout"

    # Generic
    OTHER = "other"


class CacheServiceError(RadioCacheError):
    """Base class for cache service errors.

    All cache errors are recoverable: callers may retry or fall back to the
    source of truth.
    """

    category = "cache"
    is_recoverable = True

    def __init__(
        self,
        message: str,
        error_code: str,
        kind: CacheErrorKind = CacheErrorKind.OTHER,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.kind = kind
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.error_code}): {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Return a mapping suitable for structured logging."""
        return {
            "type": self.__class__.__name__,
            "error_code": self.error_code,
            "kind": self.kind.value,
            "message": self.message,
            "category": self.category,
            "is_recoverable": self.is_recoverable,
            "cause": str(self.cause) if self.cause is not None else None,
            "timestamp": datetime.now().isoformat(),
        }


class CacheConfigurationError(CacheServiceError):
    """Invalid cache arguments: keys, expiry, sizes or value types."""

    @classmethod
    def invalid_cache_size(cls, size: int) -> "CacheConfigurationError":
        return cls(
            f"Invalid cache size specified: {size}B (must be positive)",
            "CACHE_CONFIG_INVALID_SIZE",
            CacheErrorKind.INVALID_CACHE_SIZE,
        )

    @classmethod
    def invalid_expiry(cls, expiry: timedelta | float) -> "CacheConfigurationError":
        seconds = expiry.total_seconds() if isinstance(expiry, timedelta) else expiry
        return cls(
            f"Invalid cache expiry duration: {seconds}s (must be positive)",
            "CACHE_CONFIG_INVALID_EXPIRY",
            CacheErrorKind.INVALID_EXPIRY,
        )

    @classmethod
    def invalid_key(cls, key: str) -> "CacheConfigurationError":
        return cls(
            f'Invalid cache key: "{key}" (must be non-empty and contain valid characters)',
            "CACHE_CONFIG_INVALID_KEY",
            CacheErrorKind.INVALID_KEY,
        )

    @classmethod
    def unsupported_type(
        cls, type_name: str, cause: BaseException | None = None
    ) -> "CacheConfigurationError":
        return cls(
            f"Unsupported data type for caching: {type_name}",
            "CACHE_CONFIG_UNSUPPORTED_TYPE",
            CacheErrorKind.UNSUPPORTED_TYPE,
            cause,
        )


class CacheReadError(CacheServiceError):
    """Failure while reading cached data."""

    @classmethod
    def key_access_failed(
        cls, key: str, cause: BaseException | None = None
    ) -> "CacheReadError":
        return cls(
            f"Failed to read cache data for key: {key}",
            "CACHE_READ_KEY_ACCESS_FAILED",
            CacheErrorKind.KEY_ACCESS_FAILED,
            cause,
        )

    @classmethod
    def deserialization_failed(
        cls, key: str, cause: BaseException | None = None
    ) -> "CacheReadError":
        return cls(
            f"Failed to deserialize cached data for key: {key}",
            "CACHE_READ_DESERIALIZATION_FAILED",
            CacheErrorKind.DESERIALIZATION_FAILED,
            cause,
        )

    @classmethod
    def corrupted_data(cls, key: str) -> "CacheReadError":
        return cls(
            f"Cache data is corrupted for key: {key}",
            "CACHE_READ_CORRUPTED_DATA",
            CacheErrorKind.CORRUPTED_DATA,
        )

    @classmethod
    def disk_access_failed(
        cls, cause: BaseException | None = None
    ) -> "CacheReadError":
        return cls(
            "Failed to access disk cache storage",
            "CACHE_READ_DISK_ACCESS_FAILED",
            CacheErrorKind.READ_DISK_ACCESS_FAILED,
            cause,
        )


class CacheWriteError(CacheServiceError):
    """Failure while storing cached data."""

    @classmethod
    def key_write_failed(
        cls, key: str, cause: BaseException | None = None
    ) -> "CacheWriteError":
        return cls(
            f"Failed to write cache data for key: {key}",
            "CACHE_WRITE_KEY_FAILED",
            CacheErrorKind.KEY_WRITE_FAILED,
            cause,
        )

    @classmethod
    def serialization_failed(
        cls, key: str, cause: BaseException | None = None
    ) -> "CacheWriteError":
        return cls(
            f"Failed to serialize data for cache key: {key}",
            "CACHE_WRITE_SERIALIZATION_FAILED",
            CacheErrorKind.SERIALIZATION_FAILED,
            cause,
        )

    @classmethod
    def disk_space_full(cls) -> "CacheWriteError":
        return cls(
            "Insufficient disk space for cache operation",
            "CACHE_WRITE_DISK_SPACE_FULL",
            CacheErrorKind.DISK_SPACE_FULL,
        )

    @classmethod
    def disk_access_failed(
        cls, cause: BaseException | None = None
    ) -> "CacheWriteError":
        return cls(
            "Failed to access disk cache storage for writing",
            "CACHE_WRITE_DISK_ACCESS_FAILED",
            CacheErrorKind.WRITE_DISK_ACCESS_FAILED,
            cause,
        )

    @classmethod
    def size_limit_exceeded(cls, current_size: int, max_size: int) -> "CacheWriteError":
        return cls(
            f"Cache size limit exceeded: {current_size}B > {max_size}B",
            "CACHE_WRITE_SIZE_LIMIT_EXCEEDED",
            CacheErrorKind.SIZE_LIMIT_EXCEEDED,
        )


class CacheManagementError(CacheServiceError):
    """Failure in cache maintenance: clear, init, cleanup, stats, sizing."""

    @classmethod
    def clear_failed(
        cls, cause: BaseException | None = None
    ) -> "CacheManagementError":
        return cls(
            "Failed to clear cache",
            "CACHE_MANAGEMENT_CLEAR_FAILED",
            CacheErrorKind.CLEAR_FAILED,
            cause,
        )

    @classmethod
    def initialization_failed(
        cls, cause: BaseException | None = None
    ) -> "CacheManagementError":
        return cls(
            "Failed to initialize cache service",
            "CACHE_MANAGEMENT_INITIALIZATION_FAILED",
            CacheErrorKind.INITIALIZATION_FAILED,
            cause,
        )

    @classmethod
    def cleanup_failed(
        cls, cause: BaseException | None = None
    ) -> "CacheManagementError":
        return cls(
            "Failed to cleanup expired cache entries",
            "CACHE_MANAGEMENT_CLEANUP_FAILED",
            CacheErrorKind.CLEANUP_FAILED,
            cause,
        )

    @classmethod
    def statistics_failed(
        cls, cause: BaseException | None = None
    ) -> "CacheManagementError":
        return cls(
            "Failed to collect cache statistics",
            "CACHE_MANAGEMENT_STATISTICS_FAILED",
            CacheErrorKind.STATISTICS_FAILED,
            cause,
        )

    @classmethod
    def size_failed(cls, cause: BaseException | None = None) -> "CacheManagementError":
        return cls(
            "Failed to calculate cache size",
            "CACHE_MANAGEMENT_SIZE_FAILED",
            CacheErrorKind.SIZE_FAILED,
            cause,
        )


class CacheTimeoutError(CacheServiceError):
    """An operation exceeded a caller supplied duration.

    The cache itself never imposes timeouts; instrumentation layers that wrap
    cache calls with deadlines raise these.
    """

    @classmethod
    def read_timeout(cls, key: str, timeout: timedelta) -> "CacheTimeoutError":
        return cls(
            f"Cache read operation timed out for key: {key} "
            f"(timeout: {timeout.total_seconds()}s)",
            "CACHE_TIMEOUT_READ",
            CacheErrorKind.READ_TIMEOUT,
        )

    @classmethod
    def write_timeout(cls, key: str, timeout: timedelta) -> "CacheTimeoutError":
        return cls(
            f"Cache write operation timed out for key: {key} "
            f"(timeout: {timeout.total_seconds()}s)",
            "CACHE_TIMEOUT_WRITE",
            CacheErrorKind.WRITE_TIMEOUT,
        )

    @classmethod
    def cleanup_timeout(cls, timeout: timedelta) -> "CacheTimeoutError":
        return cls(
            f"Cache cleanup operation timed out (timeout: {timeout.total_seconds()}s)",
            "CACHE_TIMEOUT_CLEANUP",
            CacheErrorKind.CLEANUP_TIMEOUT,
        )


__all__ = [
    "RadioCacheError",
    "KeyValueStoreError",
    "ConfigError",
    "CacheErrorKind",
    "CacheServiceError",
    "CacheConfigurationError",
    "CacheReadError",
    "CacheWriteError",
    "CacheManagementError",
    "CacheTimeoutError",
]
