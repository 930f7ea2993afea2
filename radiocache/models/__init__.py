from .base import RadioCacheBaseModel


__all__ = ["RadioCacheBaseModel"]
