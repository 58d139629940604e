"""Cache utilities: pluggable backends behind a small typed wrapper.

Two backends share one interface:

- `MemoryCacheBackend`: per-process dict with monotonic-clock expiry.
- `ValkeyCacheBackend`: shared Valkey (Redis-compatible) store, values as JSON.

Usage:
    cache = Cache(prefix="indicators", default_ttl=30)
    await cache.set(("crypto", None, "name", "asc"), payload)
    payload = await cache.get(("crypto", None, "name", "asc"))
"""

from __future__ import annotations

import asyncio
import copy
import json
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Protocol, Union
from urllib.parse import quote

from redis.asyncio import Redis

from app.core.config import settings
from app.core.logging import get_logger


logger = get_logger("cache")

# Cache key prefixes for namespacing
CACHE_PREFIX = "sentiment"
CACHE_VERSION = "v1"

KeyParts = Union[str, tuple[Union[str, int, float, None], ...]]


def cache_key(*parts: Union[str, int, float, None], prefix: str = "cache") -> str:
    """
    Generate a consistent cache key from parts.

    Each part is percent-encoded (including `_`), so `:` only ever separates
    parts and `_` only ever stands for None.

    Usage:
        cache_key("sentiment", None, "s:p", prefix="indicators")
            -> "sentiment:v1:indicators:sentiment:_:s%3Ap"
    """
    sanitized = ["_" if part is None else _escape_part(part) for part in parts]
    return f"{CACHE_PREFIX}:{CACHE_VERSION}:{prefix}:{':'.join(sanitized)}"


def _escape_part(part: Union[str, int, float]) -> str:
    return quote(str(part), safe="").replace("_", "%5F")


def _serialize(value: Any) -> str:
    """Serialize value to JSON string."""
    return json.dumps(value, default=str)


def _deserialize(value: str) -> Any:
    """Deserialize JSON string to value."""
    return json.loads(value)


# =============================================================================
# BACKENDS
# =============================================================================


class CacheBackend(Protocol):
    """Storage behind `Cache`. Keys arrive fully qualified."""

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class MemoryCacheBackend:
    """In-process TTL cache.

    Entries past their deadline are treated as absent and dropped on access.
    The oldest entry is evicted once `max_entries` is reached. Values are
    copied on the way in and out so callers cannot mutate cached state.
    """

    def __init__(self, max_entries: int = 1024, clock: Callable[[], float] = time.monotonic):
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._max_entries = max_entries
        self._clock = clock

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self._max_entries:
            self._entries.popitem(last=False)
        self._entries[key] = (self._clock() + ttl, copy.deepcopy(value))

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class ValkeyCacheBackend:
    """Valkey-backed cache shared across workers.

    The client is built from `settings.valkey_url` on first use, so the
    in-memory deployment never opens a connection.
    """

    def __init__(self, client: Redis | None = None, url: str | None = None):
        self._client = client
        self._url = url or settings.valkey_url

    def _get_client(self) -> Redis:
        if self._client is None:
            self._client = Redis.from_url(
                self._url,
                max_connections=settings.valkey_max_connections,
                decode_responses=True,
                socket_timeout=5.0,
                socket_connect_timeout=5.0,
            )
            logger.info("Valkey client created", extra={"url": self._url})
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        value = await self._get_client().get(key)
        if value is None:
            return None
        return _deserialize(value)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        await self._get_client().set(key, _serialize(value), ex=ttl)

    async def delete(self, key: str) -> None:
        await self._get_client().delete(key)

    async def clear(self) -> None:
        client = self._get_client()
        keys = [key async for key in client.scan_iter(match=f"{CACHE_PREFIX}:{CACHE_VERSION}:*", count=100)]
        if keys:
            await client.delete(*keys)

    async def ping(self) -> bool:
        try:
            result = await asyncio.wait_for(self._get_client().ping(), timeout=5.0)
        except Exception as e:
            logger.warning(f"Valkey healthcheck failed: {e}")
            return False
        return result is True or result == "PONG"

    async def close(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        logger.info("Valkey client closed")


def create_backend(name: str | None = None) -> CacheBackend:
    """Build the backend named by `name` (defaults to settings.cache_backend)."""
    name = name or settings.cache_backend
    if name == "valkey":
        return ValkeyCacheBackend()
    if name == "memory":
        return MemoryCacheBackend()
    raise ValueError(f"Unknown cache backend: {name}")


# =============================================================================
# WRAPPER
# =============================================================================


class Cache:
    """Typed cache wrapper with common patterns.

    Backend failures are logged and reported as misses so a cache outage
    never fails a request.
    """

    def __init__(
        self,
        prefix: str = "cache",
        default_ttl: int | None = None,
        backend: CacheBackend | None = None,
    ):
        self.prefix = prefix
        self.default_ttl = default_ttl or settings.cache_default_ttl
        self.backend = backend if backend is not None else create_backend()

    def _full_key(self, key: KeyParts) -> str:
        parts = key if isinstance(key, tuple) else (key,)
        return cache_key(*parts, prefix=self.prefix)

    async def get(self, key: KeyParts) -> Optional[Any]:
        """Get value from cache."""
        full_key = self._full_key(key)
        try:
            value = await self.backend.get(full_key)
        except Exception as e:
            logger.warning(f"Cache get failed: {e}")
            return None
        if value is not None:
            logger.debug(f"Cache hit: {full_key}")
        else:
            logger.debug(f"Cache miss: {full_key}")
        return value

    async def set(
        self,
        key: KeyParts,
        value: Any,
        ttl: Optional[int] = None,
    ) -> bool:
        """Set value in cache with TTL."""
        full_key = self._full_key(key)
        try:
            await self.backend.set(full_key, value, ttl or self.default_ttl)
            logger.debug(f"Cache set: {full_key}, TTL: {ttl or self.default_ttl}s")
            return True
        except Exception as e:
            logger.warning(f"Cache set failed: {e}")
            return False

    async def delete(self, key: KeyParts) -> bool:
        """Delete key from cache."""
        full_key = self._full_key(key)
        try:
            await self.backend.delete(full_key)
            logger.debug(f"Cache delete: {full_key}")
            return True
        except Exception as e:
            logger.warning(f"Cache delete failed: {e}")
            return False

    async def clear(self) -> None:
        try:
            await self.backend.clear()
        except Exception as e:
            logger.warning(f"Cache clear failed: {e}")

    async def ping(self) -> bool:
        """Whether the backend is reachable."""
        return await self.backend.ping()

    async def close(self) -> None:
        await self.backend.close()
