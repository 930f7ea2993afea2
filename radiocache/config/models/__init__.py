"""Configuration models."""

from .cache import CacheServiceConfig


__all__ = ["CacheServiceConfig"]
