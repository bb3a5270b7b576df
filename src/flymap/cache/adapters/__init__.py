"""Cache adapters."""

from flymap.cache.adapters.memory import InMemoryCache

__all__ = ["InMemoryCache"]
