"""Configuration for radiocache."""

from .models import CacheServiceConfig
from .user_config import UserConfigData, create_user_config


__all__ = ["CacheServiceConfig", "UserConfigData", "create_user_config"]
