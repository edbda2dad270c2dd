"""Process-wide caches owned by the registry."""

from .file import FileCache, cache_directory
from .memory import MemoryCache

__all__ = ["FileCache", "MemoryCache", "cache_directory"]
