"""
Property-based tests for the multi-tier cache.

Covers the local TTL map, the Redis tier's failure modes, tier composition
and the search cache key.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from hypothesis import given, settings, strategies as st
from redis.exceptions import ConnectionError as RedisConnectionError

from ridesearch.caching import (
    CacheSweeper,
    LocalTTLCache,
    RedisSearchCache,
    SearchCache,
    TieredCache,
    build_search_cache_key,
)
from ridesearch.config import CacheConfig
from ridesearch.error_handling import CacheUnavailableError
from ridesearch.models import PopularRoute, SearchFilter, SearchResult

from tests.factories import make_ride


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeRedis:
    """Minimal async Redis stand-in keyed like the real client."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    async def scan_iter(self, match=None):
        prefix = match.rstrip("*") if match else ""
        for key in list(self.data):
            if key.startswith(prefix):
                yield key

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed


def make_result(filters, prices=(200.0, 450.0)):
    rides = [make_ride(f"r{i}", price=price).to_summary() for i, price in enumerate(prices)]
    return SearchResult(
        rides=rides,
        total=len(rides),
        filters=filters,
        timestamp=datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc),
    )


city_names = st.sampled_from(["Mumbai", "Pune", "Nashik", "Goa", "Surat"])
filter_inputs = st.fixed_dictionaries(
    {},
    optional={
        "originCity": city_names,
        "destinationCity": city_names,
        "minSeats": st.integers(min_value=1, max_value=6),
        "maxPrice": st.integers(min_value=0, max_value=2000),
        "sortBy": st.sampled_from(["price", "rating", "availableSeats", "duration", "departureTime"]),
        "sortOrder": st.sampled_from(["asc", "desc"]),
        "limit": st.integers(min_value=1, max_value=50),
        "amenities": st.lists(st.sampled_from(["wifi", "ac", "charger", "music"]), max_size=4),
        "flexibleDates": st.booleans(),
    },
)


# Local tier

def test_local_entry_expires_after_ttl():
    clock = FakeClock()
    cache = LocalTTLCache(ttl_seconds=60, clock=clock)
    cache.set("k", "v")

    clock.now += 59
    assert cache.get("k") == "v"

    clock.now += 1
    assert cache.get("k") is None
    assert len(cache) == 0


def test_local_cache_evicts_oldest_when_full():
    cache = LocalTTLCache(ttl_seconds=60, max_entries=3, clock=FakeClock())
    for key in ("a", "b", "c", "d"):
        cache.set(key, key.upper())

    assert cache.get("a") is None
    assert [cache.get(key) for key in ("b", "c", "d")] == ["B", "C", "D"]


def test_sweep_drops_only_stale_entries():
    clock = FakeClock()
    cache = LocalTTLCache(ttl_seconds=600, clock=clock)
    cache.set("old", 1)
    clock.now += 301
    cache.set("fresh", 2)

    removed = cache.sweep(max_age_seconds=300)

    assert removed == 1
    assert cache.get("old") is None
    assert cache.get("fresh") == 2


@given(keys=st.lists(st.text(min_size=1, max_size=8), max_size=30))
@settings(max_examples=50)
def test_local_cache_never_exceeds_bound(keys):
    cache = LocalTTLCache(ttl_seconds=60, max_entries=10, clock=FakeClock())
    for key in keys:
        cache.set(key, key)
        assert len(cache) <= 10


@pytest.mark.asyncio
async def test_sweeper_runs_in_background():
    clock = FakeClock()
    cache = LocalTTLCache(ttl_seconds=600, clock=clock)
    cache.set("old", 1)
    clock.now += 1000

    sweeper = CacheSweeper(cache, interval_seconds=0.01, max_age_seconds=300)
    sweeper.start()
    assert sweeper.running
    await asyncio.sleep(0.05)
    await sweeper.stop()

    assert not sweeper.running
    assert len(cache) == 0


# Distributed tier

@pytest.mark.asyncio
async def test_redis_failures_are_misses_outside_production():
    client = MagicMock()
    client.get = AsyncMock(side_effect=RedisConnectionError("down"))
    client.setex = AsyncMock(side_effect=RedisConnectionError("down"))
    cache = RedisSearchCache(client, strict=False)

    assert await cache.get("k") is None
    await cache.set("k", "v", 60)


@pytest.mark.asyncio
async def test_redis_failures_raise_in_production():
    client = MagicMock()
    client.get = AsyncMock(side_effect=RedisConnectionError("down"))
    cache = RedisSearchCache(client, strict=True)

    with pytest.raises(CacheUnavailableError):
        await cache.get("k")


@pytest.mark.asyncio
async def test_flush_all_only_touches_namespace():
    client = FakeRedis()
    client.data["other:key"] = "keep"
    cache = RedisSearchCache(client, prefix="ridesearch")
    await cache.set("search:abc", "v1", 300)
    await cache.set("popular_routes", "v2", 3600)

    deleted = await cache.flush_all()

    assert deleted == 2
    assert client.data == {"other:key": "keep"}
    assert client.ttls["ridesearch:search:abc"] == 300


# Tier composition

@pytest.mark.asyncio
async def test_distributed_hit_backfills_local():
    client = FakeRedis()
    local = LocalTTLCache(clock=FakeClock())
    tiers = TieredCache(local, RedisSearchCache(client))
    await RedisSearchCache(client).set("k", "v", 60)

    assert local.get("k") is None
    assert await tiers.get("k") == "v"
    assert local.get("k") == "v"


@pytest.mark.asyncio
async def test_tiered_cache_recovers_from_unavailable_tier():
    client = MagicMock()
    client.get = AsyncMock(side_effect=RedisConnectionError("down"))
    client.setex = AsyncMock(side_effect=RedisConnectionError("down"))
    client.scan_iter = MagicMock(side_effect=RedisConnectionError("down"))
    tiers = TieredCache(LocalTTLCache(clock=FakeClock()), RedisSearchCache(client, strict=True))

    assert await tiers.get("missing") is None
    await tiers.set("k", "v", 60)
    assert await tiers.get("k") == "v"
    await tiers.invalidate_all()
    assert await tiers.get("k") is None


# Search cache

@given(raw=filter_inputs)
@settings(max_examples=50, deadline=None)
def test_search_cache_round_trip(raw):
    """set(f, r) followed by get(f) returns a result equal to r."""
    filters = SearchFilter.parse(raw)
    result = make_result(filters)
    cache = SearchCache(TieredCache(LocalTTLCache(clock=FakeClock()), RedisSearchCache(FakeRedis())))

    async def round_trip():
        await cache.set(filters, result)
        return await cache.get(filters)

    assert asyncio.run(round_trip()) == result


@given(raw=filter_inputs, calls=st.integers(min_value=1, max_value=3))
@settings(max_examples=30, deadline=None)
def test_invalidate_all_is_idempotent(raw, calls):
    filters = SearchFilter.parse(raw)
    cache = SearchCache(TieredCache(LocalTTLCache(clock=FakeClock()), RedisSearchCache(FakeRedis())))

    async def scenario():
        await cache.set(filters, make_result(filters))
        for _ in range(calls):
            await cache.invalidate_all()
        return await cache.get(filters)

    assert asyncio.run(scenario()) is None


@pytest.mark.asyncio
async def test_popular_routes_and_cities_are_cached():
    cache = SearchCache.create(CacheConfig())
    routes = [PopularRoute(origin="Mumbai", destination="Pune", count=3)]

    await cache.set_popular_routes(routes)
    await cache.set_cities(["Mumbai", "Pune"])

    assert await cache.get_popular_routes() == routes
    assert await cache.get_cities() == ["Mumbai", "Pune"]


@pytest.mark.asyncio
async def test_unreadable_distributed_entries_are_misses():
    client = FakeRedis()
    distributed = RedisSearchCache(client)
    cache = SearchCache(TieredCache(LocalTTLCache(clock=FakeClock()), distributed))
    filters = SearchFilter.parse({"originCity": "Mumbai"})
    key = build_search_cache_key(filters)

    await distributed.set(key, '{"results": [], "schema": 1}', 60)
    await distributed.set("popular_routes", '[{"from": "Mumbai"}]', 60)
    await distributed.set("city_data", "[\"Mumbai\"", 60)

    assert await cache.get(filters) is None
    assert await cache.get_popular_routes() is None
    assert await cache.get_cities() is None

    await cache.set(filters, make_result(filters))
    assert await cache.get(filters) == make_result(filters)


# Cache key

def test_cache_key_format():
    key = build_search_cache_key(SearchFilter(origin_city="Mumbai"))
    assert key.startswith("search:")
    assert len(key) == len("search:") + 32


def test_cache_key_ignores_include_alternatives():
    base = {"originCity": "Mumbai", "destinationCity": "Pune"}
    assert build_search_cache_key(SearchFilter.parse(base)) == build_search_cache_key(
        SearchFilter.parse({**base, "includeAlternatives": True})
    )


def test_cache_key_is_order_independent_for_amenities():
    a = SearchFilter.parse({"amenities": ["wifi", "ac"]})
    b = SearchFilter.parse({"amenities": ["ac", "wifi", "ac"]})
    assert build_search_cache_key(a) == build_search_cache_key(b)


def test_cache_key_rounds_coordinates():
    a = SearchFilter.parse({"originCoordinates": {"lat": 19.07601, "lng": 72.87771}})
    b = SearchFilter.parse({"originCoordinates": {"lat": 19.07604, "lng": 72.87774}})
    c = SearchFilter.parse({"originCoordinates": {"lat": 19.08, "lng": 72.87774}})
    assert build_search_cache_key(a) == build_search_cache_key(b)
    assert build_search_cache_key(a) != build_search_cache_key(c)


@pytest.mark.parametrize("field,value", [
    ("minPrice", 100),
    ("maxPrice", 500),
    ("minSeats", 2),
    ("limit", 5),
    ("sortBy", "price"),
    ("minRating", 4),
    ("flexibleDates", True),
])
def test_cache_key_changes_with_selection_fields(field, value):
    base = SearchFilter.parse({"originCity": "Mumbai"})
    changed = SearchFilter.parse({"originCity": "Mumbai", field: value})
    assert build_search_cache_key(base) != build_search_cache_key(changed)
