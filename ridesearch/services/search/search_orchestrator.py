"""
Search orchestrator - coordinates caching, filtering, flexible expansion,
scoring and alternative routes for a ride search.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ridesearch.caching import CacheSweeper, SearchCache
from ridesearch.config import SearchSettings
from ridesearch.error_handling import ErrorHandler, SearchTimeoutError
from ridesearch.filtering import RideFilter, build_store_query, sort_rides
from ridesearch.models import (
    PopularRoute,
    RideOffer,
    RideStatus,
    RideSummary,
    SearchFilter,
    SearchResult,
    Suggestion,
)
from ridesearch.scoring import RouteScorer
from ridesearch.store import EQ, Predicate, RideStore, SortClause
from ..mapping import MappingService
from .alternate_routes import AlternateRouteFinder
from .flexible_search import FlexibleSearchExpander, is_exact_match

logger = logging.getLogger(__name__)

SUGGESTION_TYPES = ("city",)


class SearchOrchestrator:
    """
    Orchestrate the complete search workflow.

    Collaborators are injected; only the store is required. Without a cache
    every search goes to the store, without a mapping service no direct
    alternative is produced.
    """

    def __init__(
        self,
        store: RideStore,
        cache: Optional[SearchCache] = None,
        mapping: Optional[MappingService] = None,
        settings: Optional[SearchSettings] = None
    ):
        self.settings = settings or SearchSettings()
        self.store = store
        self.cache = cache
        self.mapping = mapping

        self.error_handler = ErrorHandler(self.settings.retry)
        self.scorer = RouteScorer()
        self.expander = FlexibleSearchExpander(self._run_pipeline)
        self.route_finder = AlternateRouteFinder(store, mapping, self.settings.limits)

        self._sweeper = None
        if cache is not None:
            self._sweeper = CacheSweeper(
                cache.local,
                interval_seconds=self.settings.cache.sweep_interval_seconds,
                max_age_seconds=self.settings.cache.sweep_max_age_seconds,
            )

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def start(self) -> None:
        """Start background cache maintenance (needs a running event loop)"""
        if self._sweeper is not None:
            self._sweeper.start()

    async def close(self) -> None:
        if self._sweeper is not None:
            await self._sweeper.stop()

    def normalize(self, filters: Any) -> SearchFilter:
        """
        Validate filters, fill omitted radius and limit from settings, and
        clamp the limit.

        Raises:
            InvalidFilterError: on malformed or out-of-range filters
        """
        parsed = SearchFilter.parse(filters)
        limits = self.settings.limits

        updates = {}
        if "max_distance" not in parsed.model_fields_set:
            updates["max_distance"] = limits.max_distance_km
        limit = parsed.limit if "limit" in parsed.model_fields_set else limits.default_limit
        updates["limit"] = min(limit, limits.max_limit)

        return parsed.model_copy(update=updates)

    async def search(self, filters: Any, timeout: Optional[float] = None) -> SearchResult:
        """
        Run a ride search.

        Args:
            filters: SearchFilter or raw camelCase/snake_case mapping
            timeout: Overall deadline in seconds (defaults to settings)

        Returns:
            SearchResult envelope

        Raises:
            InvalidFilterError: filters failed validation
            StoreUnavailableError: store still failing after retry
            SearchTimeoutError: the deadline elapsed
        """
        normalized = self.normalize(filters)
        if timeout is None:
            timeout = self.settings.request_timeout_seconds

        started = time.perf_counter()
        try:
            if timeout and timeout > 0:
                result = await asyncio.wait_for(self._search(normalized, started), timeout=timeout)
            else:
                result = await self._search(normalized, started)
        except asyncio.TimeoutError as e:
            logger.error(f"Search timed out after {timeout}s")
            raise SearchTimeoutError(f"Search timed out after {timeout}s") from e

        logger.info(
            f"Search returned {result.total} rides "
            f"({'cached' if result.cached else 'fresh'}, {result.search_time_ms:.1f}ms)"
        )
        return result

    async def _search(self, filters: SearchFilter, started: float) -> SearchResult:
        if self.cache is not None:
            cached = await self.cache.get(filters)
            if cached is not None:
                return await self._from_cache(cached, filters, started)

        rides = await self._run_pipeline(filters)
        flexible = filters.flexible_dates or filters.flexible_times
        if flexible:
            rides = await self.expander.expand(filters, rides)

        summaries = self._rank(rides, filters, flexible)[:filters.limit]

        alternatives = None
        if filters.include_alternatives:
            alternatives = await self.route_finder.find(filters)

        result = SearchResult(
            rides=summaries,
            total=len(summaries),
            filters=filters,
            timestamp=datetime.now(timezone.utc),
            alternative_routes=alternatives,
            cached=False,
            search_time_ms=_elapsed_ms(started),
        )

        if self.cache is not None:
            await self.cache.set(filters, result)
        return result

    async def _from_cache(
        self,
        cached: SearchResult,
        filters: SearchFilter,
        started: float
    ) -> SearchResult:
        alternatives = None
        if filters.include_alternatives:
            alternatives = cached.alternative_routes
            if alternatives is None and filters.has_coordinates:
                alternatives = await self.route_finder.find(filters)
                if alternatives is not None:
                    stored = cached.model_copy(update={"alternative_routes": alternatives, "filters": filters})
                    await self.cache.set(filters, stored)

        return cached.model_copy(update={
            "filters": filters,
            "alternative_routes": alternatives,
            "cached": True,
            "search_time_ms": _elapsed_ms(started),
        })

    async def _run_pipeline(self, filters: SearchFilter) -> List[RideOffer]:
        """Stage A store query, then proximity and Stage B filtering"""
        store_query = build_store_query(filters, self.settings.limits)
        rides = await self.error_handler.retry_with_backoff(self.store.execute, store_query)
        filtered = RideFilter(filters).apply(rides)
        logger.debug(f"Pipeline: {len(rides)} store rows, {len(filtered)} after filtering")
        return filtered

    def _rank(self, rides: List[RideOffer], filters: SearchFilter, flexible: bool) -> List[RideSummary]:
        def flag(ride):
            return (not is_exact_match(ride, filters)) if flexible else None

        if filters.optimize_route and filters.has_coordinates:
            ranked = self.scorer.rank(
                rides, filters.origin_coordinates, filters.destination_coordinates
            )
            return [
                item.ride.to_summary(
                    optimization_score=item.score,
                    route_efficiency=item.efficiency,
                    is_flexible_result=flag(item.ride),
                )
                for item in ranked
            ]

        ordered = sort_rides(rides, filters.sort_by, filters.sort_order)
        return [ride.to_summary(is_flexible_result=flag(ride)) for ride in ordered]

    async def popular_routes(self, limit: int = 10) -> List[PopularRoute]:
        """
        Most frequent origin/destination pairs among recently published rides.

        Raises:
            StoreUnavailableError: store still failing after retry
        """
        if self.cache is not None:
            cached = await self.cache.get_popular_routes()
            if cached is not None:
                return cached[:limit]

        rides = await self._recent_published_rides()

        counts: Dict[tuple, int] = {}
        for ride in rides:
            pair = (ride.origin.city, ride.destination.city)
            counts[pair] = counts.get(pair, 0) + 1

        ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        routes = [
            PopularRoute(origin=origin, destination=destination, count=count)
            for (origin, destination), count in ordered[:self.settings.limits.popular_routes_cached]
        ]

        if self.cache is not None:
            await self.cache.set_popular_routes(routes)
        return routes[:limit]

    async def suggestions(self, query_text: str, type: str = "city") -> List[Suggestion]:
        """
        Case-insensitive substring match over known city names.

        Unknown suggestion types and blank text yield an empty list.
        """
        if type not in SUGGESTION_TYPES or not query_text or not query_text.strip():
            return []

        needle = query_text.strip().lower()
        cities = await self._known_cities()
        matched = [city for city in cities if needle in city.lower()]
        return [
            Suggestion(name=city, type=type)
            for city in matched[:self.settings.limits.suggestions_limit]
        ]

    async def invalidate_all(self) -> None:
        """Clear every cache tier; call after any ride mutation"""
        if self.cache is not None:
            await self.cache.invalidate_all()

    async def _known_cities(self) -> List[str]:
        if self.cache is not None:
            cached = await self.cache.get_cities()
            if cached is not None:
                return cached

        rides = await self._recent_published_rides()
        cities: List[str] = []
        seen = set()
        for ride in rides:
            for city in (ride.origin.city, ride.destination.city):
                if city and city not in seen:
                    seen.add(city)
                    cities.append(city)

        if self.cache is not None:
            await self.cache.set_cities(cities)
        return cities

    async def _recent_published_rides(self) -> List[RideOffer]:
        return await self.error_handler.retry_with_backoff(
            self.store.query,
            [Predicate("status", EQ, RideStatus.PUBLISHED)],
            SortClause(("publishedAt",), descending=True),
            self.settings.limits.popular_routes_sample,
        )


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
