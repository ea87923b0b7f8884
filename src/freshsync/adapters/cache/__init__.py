"""Cache backend adapters."""

from freshsync.adapters.cache.file_cache import FileCacheBackend
from freshsync.adapters.cache.memory import MemoryCacheBackend


__all__ = ["FileCacheBackend", "MemoryCacheBackend"]
