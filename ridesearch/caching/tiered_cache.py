"""
Tiered cache composition.

``TieredCache`` reads the local tier first and falls back to Redis, filling
the local tier on a distributed hit. ``SearchCache`` layers typed entries
(search results, popular routes, city data) on top of it. Values cross tiers
as JSON strings.
"""

import json
import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from ridesearch.config import CacheConfig
from ridesearch.error_handling import CacheUnavailableError
from ridesearch.models import PopularRoute, SearchFilter, SearchResult
from .cache_keys import CITY_DATA_KEY, POPULAR_ROUTES_KEY, build_search_cache_key
from .distributed_cache import RedisSearchCache
from .local_cache import LocalTTLCache

logger = logging.getLogger(__name__)


class TieredCache:
    """
    Local tier in front of an optional distributed tier.

    Distributed tier failures are logged and treated as misses; nothing in
    this class raises to the caller.
    """

    def __init__(self, local: LocalTTLCache, distributed: Optional[RedisSearchCache] = None):
        self.local = local
        self.distributed = distributed

    async def get(self, key: str) -> Optional[str]:
        value = self.local.get(key)
        if value is not None:
            logger.debug(f"Local cache hit: {key}")
            return value

        if self.distributed is None:
            return None

        try:
            value = await self.distributed.get(key)
        except CacheUnavailableError as e:
            logger.warning(f"Distributed cache unavailable on get: {e}")
            return None

        if value is not None:
            logger.debug(f"Distributed cache hit: {key}")
            self.local.set(key, value)
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.local.set(key, value)
        if self.distributed is None:
            return
        try:
            await self.distributed.set(key, value, ttl_seconds)
        except CacheUnavailableError as e:
            logger.warning(f"Distributed cache unavailable on set: {e}")

    async def invalidate_all(self) -> None:
        self.local.clear()
        if self.distributed is None:
            return
        try:
            await self.distributed.flush_all()
        except CacheUnavailableError as e:
            logger.warning(f"Distributed cache unavailable on flush: {e}")


class SearchCache:
    """Typed cache entries for the search engine"""

    def __init__(self, tiers: TieredCache, config: CacheConfig = None):
        self.tiers = tiers
        self.config = config or CacheConfig()

    @classmethod
    def create(
        cls,
        config: CacheConfig = None,
        distributed: Optional[RedisSearchCache] = None
    ) -> "SearchCache":
        config = config or CacheConfig()
        local = LocalTTLCache(
            ttl_seconds=config.local_ttl_seconds,
            max_entries=config.local_max_entries,
        )
        return cls(TieredCache(local, distributed), config)

    @property
    def local(self) -> LocalTTLCache:
        return self.tiers.local

    async def get(self, filters: SearchFilter) -> Optional[SearchResult]:
        key = build_search_cache_key(filters)
        raw = await self.tiers.get(key)
        if raw is None:
            logger.debug(f"Search cache miss: {key}")
            return None
        try:
            return SearchResult.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

    async def set(self, filters: SearchFilter, result: SearchResult) -> None:
        key = build_search_cache_key(filters)
        payload = json.dumps(result.model_dump(mode="json", by_alias=True))
        await self.tiers.set(key, payload, self.config.search_ttl_seconds)

    async def get_popular_routes(self) -> Optional[List[PopularRoute]]:
        data = await self._get_json(POPULAR_ROUTES_KEY)
        if data is None:
            return None
        try:
            return [PopularRoute.model_validate(item) for item in data]
        except (TypeError, ValidationError) as e:
            logger.warning(f"Discarding unreadable popular routes entry: {e}")
            return None

    async def set_popular_routes(self, routes: List[PopularRoute]) -> None:
        data = [route.model_dump(mode="json", by_alias=True) for route in routes]
        await self._set_json(POPULAR_ROUTES_KEY, data, self.config.popular_routes_ttl_seconds)

    async def get_cities(self) -> Optional[List[str]]:
        return await self._get_json(CITY_DATA_KEY)

    async def set_cities(self, cities: List[str]) -> None:
        await self._set_json(CITY_DATA_KEY, list(cities), self.config.city_data_ttl_seconds)

    async def invalidate_all(self) -> None:
        await self.tiers.invalidate_all()
        logger.info("Search cache invalidated")

    async def _get_json(self, key: str) -> Optional[Any]:
        raw = await self.tiers.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

    async def _set_json(self, key: str, data: Any, ttl_seconds: int) -> None:
        await self.tiers.set(key, json.dumps(data), ttl_seconds)
