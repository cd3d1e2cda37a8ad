"""
Alternative itineraries for a search.

A direct route from the mapping collaborator plus up to two multi-leg
itineraries found by a two-hop search over published rides.
"""

import logging
from typing import List, Optional

from ridesearch.config import SearchLimitsConfig
from ridesearch.error_handling import MappingUnavailableError, StoreUnavailableError
from ridesearch.geometry import distance
from ridesearch.models import AlternativeRoute, Coordinates, RideOffer, RideStatus, SearchFilter
from ridesearch.store import EQ, Predicate, RideStore
from ..mapping import MappingService

logger = logging.getLogger(__name__)


class AlternateRouteFinder:
    """
    Builds the ``alternativeRoutes`` list for a search result.

    Hop 1 scans a capped set of published rides for ones that start near the
    request origin or end near the request destination; each distinct
    destination city of those rides becomes an intermediate stop. Hop 2
    queries rides leaving that city and keeps the ones ending near the final
    destination. The search never goes beyond two legs.
    """

    def __init__(
        self,
        store: RideStore,
        mapping: Optional[MappingService] = None,
        limits: SearchLimitsConfig = None
    ):
        self.store = store
        self.mapping = mapping
        self.limits = limits or SearchLimitsConfig()

    async def find(self, filters: SearchFilter) -> Optional[List[AlternativeRoute]]:
        """
        Returns:
            Up to ``max_alternatives`` entries, or None when the request has
            no coordinate pair
        """
        if not filters.has_coordinates:
            return None

        origin = filters.origin_coordinates
        destination = filters.destination_coordinates

        alternatives = []
        direct = await self.direct_route(origin, destination)
        if direct is not None:
            alternatives.append(direct)

        alternatives.extend(await self.multi_leg_routes(origin, destination))
        return alternatives[:self.limits.max_alternatives]

    async def direct_route(
        self,
        origin: Coordinates,
        destination: Coordinates
    ) -> Optional[AlternativeRoute]:
        if self.mapping is None:
            return None
        try:
            route = await self.mapping.route(origin, destination)
        except MappingUnavailableError as e:
            logger.warning(f"Direct route unavailable: {e}")
            return None
        return AlternativeRoute(type="direct", route=route, description="Direct route")

    async def multi_leg_routes(
        self,
        origin: Coordinates,
        destination: Coordinates
    ) -> List[AlternativeRoute]:
        published = Predicate("status", EQ, RideStatus.PUBLISHED)
        try:
            candidates = await self.store.query([published], limit=self.limits.candidate_pool_cap)
        except StoreUnavailableError as e:
            logger.error(f"Skipping multi-leg alternatives, candidate scan failed: {e}")
            return []

        routes = []
        visited_cities = set()
        for first_leg in candidates:
            if len(routes) >= self.limits.max_multi_leg:
                break
            if not self._is_first_leg(first_leg, origin, destination):
                continue

            via = first_leg.destination.city
            if via in visited_cities:
                continue
            visited_cities.add(via)

            connecting = await self.connecting_rides(via, destination)
            if not connecting:
                continue

            routes.append(AlternativeRoute(
                type="multi-leg",
                via=via,
                first_leg=first_leg.to_summary(),
                connecting_rides=[ride.to_summary() for ride in connecting[:2]],
                description=f"Route via {via}",
            ))

        return routes

    def _is_first_leg(self, ride: RideOffer, origin: Coordinates, destination: Coordinates) -> bool:
        radius = self.limits.alternative_radius_km
        return (
            distance(origin, ride.origin.coordinates) <= radius
            or distance(destination, ride.destination.coordinates) <= radius
        )

    async def connecting_rides(self, city: str, destination: Coordinates) -> List[RideOffer]:
        """Published rides leaving ``city`` that end near ``destination``"""
        predicates = [
            Predicate("status", EQ, RideStatus.PUBLISHED),
            Predicate("origin.city", EQ, city),
        ]
        try:
            rides = await self.store.query(predicates, limit=self.limits.connecting_rides_limit)
        except StoreUnavailableError as e:
            logger.error(f"Skipping connections from {city}: {e}")
            return []

        radius = self.limits.connection_radius_km
        return [
            ride for ride in rides
            if distance(destination, ride.destination.coordinates) <= radius
        ]
