"""Tests for the cache wrapper and the in-memory backend."""

from __future__ import annotations

import pytest

from app.cache import Cache, MemoryCacheBackend, cache_key, create_backend
from app.cache.cache import ValkeyCacheBackend
from app.domain import SortDirection, SortField
from app.repositories import indicators_orm
from app.services.indicator_listing import list_indicators, listing_cache_key


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class BrokenBackend:
    async def get(self, key):
        raise ConnectionError("valkey down")

    async def set(self, key, value, ttl):
        raise ConnectionError("valkey down")

    async def delete(self, key):
        raise ConnectionError("valkey down")

    async def clear(self):
        raise ConnectionError("valkey down")


class FakeValkey:
    """Minimal stand-in for a `redis.asyncio.Redis` client."""

    def __init__(self, pong=True):
        self.data = {}
        self.ttls = {}
        self.pong = pong
        self.closed = False

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex

    async def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)

    async def scan_iter(self, match=None, count=None):
        prefix = match.rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key

    async def ping(self):
        if isinstance(self.pong, Exception):
            raise self.pong
        return self.pong

    async def aclose(self):
        self.closed = True


class TestCacheKey:
    def test_namespaced_and_versioned(self):
        assert cache_key("a", "b", prefix="indicators") == "sentiment:v1:indicators:a:b"

    def test_none_and_colons_escaped(self):
        assert cache_key(None, "x:y", prefix="p") == "sentiment:v1:p:_:x%3Ay"

    def test_separator_and_underscore_do_not_collide(self):
        assert cache_key("s:p", prefix="p") != cache_key("s_p", prefix="p")

    def test_none_differs_from_literal_underscore(self):
        assert cache_key(None, prefix="p") != cache_key("_", prefix="p")

    def test_parts_do_not_run_together(self):
        assert cache_key("a:b", "c", prefix="p") != cache_key("a", "b:c", prefix="p")


class TestListingCacheKey:
    """Equivalent listing parameters share one cache entry."""

    def test_all_category_equals_no_category(self):
        assert listing_cache_key("all", None, SortField.NAME, SortDirection.ASC) == listing_cache_key(
            None, None, SortField.NAME, SortDirection.ASC
        )

    def test_search_normalized(self):
        assert listing_cache_key(None, "  Fear ", SortField.VIEW_COUNT, SortDirection.DESC) == (
            None,
            "fear",
            "view_count",
            "desc",
        )

    def test_sort_distinguishes_entries(self):
        a = listing_cache_key("crypto", None, SortField.NAME, SortDirection.ASC)
        b = listing_cache_key("crypto", None, SortField.NAME, SortDirection.DESC)
        assert a != b


class TestMemoryCacheBackend:
    """Tests for MemoryCacheBackend."""

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        backend = MemoryCacheBackend(clock=clock)

        await backend.set("k", {"v": 1}, ttl=30)
        clock.advance(29.9)
        assert await backend.get("k") == {"v": 1}

        clock.advance(0.1)
        assert await backend.get("k") is None
        assert len(backend) == 0

    @pytest.mark.asyncio
    async def test_values_are_copied(self):
        backend = MemoryCacheBackend()
        value = [{"id": "vix"}]

        await backend.set("k", value, ttl=30)
        value[0]["id"] = "mutated"
        fetched = await backend.get("k")
        fetched.append({"id": "extra"})

        assert await backend.get("k") == [{"id": "vix"}]

    @pytest.mark.asyncio
    async def test_oldest_entry_evicted(self):
        backend = MemoryCacheBackend(max_entries=2)

        await backend.set("a", 1, ttl=30)
        await backend.set("b", 2, ttl=30)
        await backend.set("c", 3, ttl=30)

        assert await backend.get("a") is None
        assert await backend.get("b") == 2
        assert await backend.get("c") == 3

    @pytest.mark.asyncio
    async def test_delete_and_clear(self):
        backend = MemoryCacheBackend()
        await backend.set("a", 1, ttl=30)
        await backend.set("b", 2, ttl=30)

        await backend.delete("a")
        assert await backend.get("a") is None

        await backend.clear()
        assert len(backend) == 0


class TestValkeyCacheBackend:
    @pytest.mark.asyncio
    async def test_values_stored_as_json_with_ttl(self):
        client = FakeValkey()
        backend = ValkeyCacheBackend(client=client)

        await backend.set("sentiment:v1:indicators:k", [{"id": "vix"}], ttl=30)

        assert client.data["sentiment:v1:indicators:k"] == '[{"id": "vix"}]'
        assert client.ttls["sentiment:v1:indicators:k"] == 30
        assert await backend.get("sentiment:v1:indicators:k") == [{"id": "vix"}]
        assert await backend.get("sentiment:v1:indicators:other") is None

    @pytest.mark.asyncio
    async def test_clear_only_removes_namespaced_keys(self):
        client = FakeValkey()
        client.data = {"sentiment:v1:indicators:a": "1", "other:key": "2"}

        await ValkeyCacheBackend(client=client).clear()

        assert client.data == {"other:key": "2"}

    @pytest.mark.asyncio
    async def test_ping(self):
        assert await ValkeyCacheBackend(client=FakeValkey()).ping() is True
        assert await ValkeyCacheBackend(client=FakeValkey(pong=ConnectionError("down"))).ping() is False

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        client = FakeValkey()
        backend = ValkeyCacheBackend(client=client)

        await backend.close()
        await backend.close()

        assert client.closed is True


class TestCreateBackend:
    def test_known_backends(self):
        assert isinstance(create_backend("memory"), MemoryCacheBackend)
        assert isinstance(create_backend("valkey"), ValkeyCacheBackend)

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValueError):
            create_backend("memcached")


class TestCache:
    """Tests for the Cache wrapper."""

    @pytest.mark.asyncio
    async def test_round_trip_with_default_ttl(self):
        clock = FakeClock()
        cache = Cache(prefix="indicators", default_ttl=30, backend=MemoryCacheBackend(clock=clock))

        assert await cache.set("key", ["x"]) is True
        assert await cache.get("key") == ["x"]

        clock.advance(30)
        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_backend_failures_are_misses(self):
        cache = Cache(prefix="indicators", default_ttl=30, backend=BrokenBackend())

        assert await cache.get("key") is None
        assert await cache.set("key", 1) is False
        assert await cache.delete("key") is False
        await cache.clear()


class TestListIndicatorsCache:
    """Distinct listing parameters never share a cache entry."""

    @pytest.fixture
    def searches(self, monkeypatch):
        seen = []

        async def fake_list_with_latest(search=None, **kwargs):
            seen.append(search)
            if search == "s:p":
                return [{"id": "s-p", "name": "s:p", "category": "other", "source": "test"}]
            return []

        monkeypatch.setattr(indicators_orm, "list_with_latest", fake_list_with_latest)
        return seen

    @pytest.mark.asyncio
    async def test_colon_and_underscore_searches_cached_separately(self, searches):
        cache = Cache(prefix="indicators", default_ttl=30, backend=MemoryCacheBackend())

        first = await list_indicators(cache, search="s:p")
        second = await list_indicators(cache, search="s_p")

        assert searches == ["s:p", "s_p"]
        assert [i.id for i in first] == ["s-p"]
        assert second == []

    @pytest.mark.asyncio
    async def test_repeated_search_is_served_from_cache(self, searches):
        cache = Cache(prefix="indicators", default_ttl=30, backend=MemoryCacheBackend())

        await list_indicators(cache, search="s:p")
        again = await list_indicators(cache, search=" S:P ")

        assert searches == ["s:p"]
        assert [i.id for i in again] == ["s-p"]
