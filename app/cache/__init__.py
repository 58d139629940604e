"""Cache module: in-memory or Valkey (Redis-compatible) backends."""

from .cache import (
    Cache,
    CacheBackend,
    MemoryCacheBackend,
    ValkeyCacheBackend,
    cache_key,
    create_backend,
)


__all__ = [
    "Cache",
    "CacheBackend",
    "MemoryCacheBackend",
    "ValkeyCacheBackend",
    "cache_key",
    "create_backend",
]
