"""User configuration loaded from the environment."""

import os
import re
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from radiocache.config.models.cache import CacheServiceConfig
from radiocache.core.cache.models import DEFAULT_NAMESPACE
from radiocache.core.errors import ConfigError


NAMESPACE_PATTERN = re.compile(r"[\w\-.]+", re.ASCII)


def _default_cache_path() -> Path:
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache) / "radiocache"
    return Path.home() / ".cache" / "radiocache"


class UserConfigData(BaseSettings):
    """User configuration data model with automatic environment variable support.

    Precedence order (highest to lowest):
    1. Environment variables
    2. Constructor arguments
    3. .env file
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="RADIOCACHE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        return (
            env_settings,
            init_settings,
            dotenv_settings,
            file_secret_settings,
        )

    log_level: str = "WARNING"

    cache_path: Path = Field(
        default_factory=_default_cache_path,
        description="Directory of the DiskCache store backing the persistent tier",
    )
    namespace: str = Field(
        default=DEFAULT_NAMESPACE,
        description="Prefix separating this cache's records from other store users",
    )
    cache: CacheServiceConfig = Field(default_factory=CacheServiceConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a recognized value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper_v = v.strip().upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return upper_v

    @field_validator("cache_path", mode="before")
    @classmethod
    def validate_cache_path(cls, v: Any) -> Path:
        """Expand user home in the cache path."""
        if isinstance(v, str | Path) and str(v):
            path = Path(v).expanduser()
        else:
            path = _default_cache_path()
        return path.resolve()

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        v = v.strip()
        if not NAMESPACE_PATTERN.fullmatch(v):
            raise ValueError(
                "Namespace must be non-empty and contain only letters, digits, '_', '-' or '.'"
            )
        return v


def create_user_config(**overrides: Any) -> UserConfigData:
    """Load user configuration.

    Args:
        **overrides: Values taking precedence over the .env file and defaults

    Raises:
        ConfigError: If the configuration does not validate
    """
    try:
        return UserConfigData(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid radiocache configuration: {e}") from e
