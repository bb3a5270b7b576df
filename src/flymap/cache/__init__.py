"""flymap Cache: process-wide engine caches with pluggable adapters."""

from flymap.cache.adapters.memory import InMemoryCache
from flymap.cache.manager import REGIONS, MappingCacheManager
from flymap.cache.ports.outbound import CacheAdapter

__all__ = [
    "CacheAdapter",
    "InMemoryCache",
    "MappingCacheManager",
    "REGIONS",
]
