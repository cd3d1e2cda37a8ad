"""
Client-side ride filtering and sorting.

Geo proximity runs first, then the business-rule checks that the store
cannot express (Stage B). Sorting is stable and puts rides without a sort
value last in either direction.
"""

from typing import Callable, List

from ridesearch.geometry import distance
from ridesearch.models import Coordinates, RideOffer, SearchFilter, SortKey, SortOrder


class RideFilter:
    """Filters ride offers against a search request.

    Every constraint is optional; a constraint that is not set in the filter
    never excludes a ride. Rides without a vehicle fail every vehicle
    constraint.
    """

    def __init__(self, filters: SearchFilter):
        self.filters = filters

    def apply(self, rides: List[RideOffer]) -> List[RideOffer]:
        """Proximity filter followed by every Stage B check, order preserved."""
        return [ride for ride in rides if self.is_nearby(ride) and self.matches(ride)]

    def is_nearby(self, ride: RideOffer) -> bool:
        """Check each supplied coordinate against the ride's endpoint.

        Args:
            ride: Candidate ride

        Returns:
            True when every supplied origin/destination point lies within
            the configured radius of the ride's matching endpoint
        """
        origin = self.filters.origin_coordinates
        if origin is not None and not self._within(origin, ride.origin.coordinates):
            return False

        destination = self.filters.destination_coordinates
        if destination is not None and not self._within(destination, ride.destination.coordinates):
            return False

        return True

    def _within(self, point: Coordinates, other: Coordinates) -> bool:
        return distance(point, other) <= self.filters.max_distance

    def matches(self, ride: RideOffer) -> bool:
        f = self.filters

        if f.min_price is not None and ride.price_per_seat < f.min_price:
            return False
        if f.max_price is not None and ride.price_per_seat > f.max_price:
            return False
        if f.min_seats is not None and ride.available_seats < f.min_seats:
            return False

        if f.departure_time_from is not None and ride.departure_time < f.departure_time_from:
            return False
        if f.departure_time_to is not None and ride.departure_time > f.departure_time_to:
            return False

        if not self._matches_vehicle(ride):
            return False

        if f.min_rating is not None and ride.driver.rating < f.min_rating:
            return False

        if f.preferences is not None:
            for name in ("smoking", "pets", "music"):
                wanted = getattr(f.preferences, name)
                if wanted is not None and getattr(ride.preferences, name) != wanted:
                    return False

        return True

    def _matches_vehicle(self, ride: RideOffer) -> bool:
        f = self.filters
        vehicle = ride.vehicle

        if f.amenities:
            available = set(vehicle.amenities) if vehicle else set()
            if not set(f.amenities).issubset(available):
                return False

        if f.vehicle_type:
            if vehicle is None:
                return False
            vehicle_name = f"{vehicle.make} {vehicle.model}".lower()
            if f.vehicle_type.lower() not in vehicle_name:
                return False

        if f.fuel_type and (vehicle is None or vehicle.fuel_type != f.fuel_type):
            return False

        if f.transmission and (vehicle is None or vehicle.transmission != f.transmission):
            return False

        if f.min_vehicle_seats is not None:
            if vehicle is None or vehicle.seats is None or vehicle.seats < f.min_vehicle_seats:
                return False

        if f.verified_vehicles_only and (vehicle is None or not vehicle.verified):
            return False

        if f.min_vehicle_year is not None or f.max_vehicle_year is not None:
            if vehicle is None or not vehicle.year:
                return False
            if f.min_vehicle_year is not None and vehicle.year < f.min_vehicle_year:
                return False
            if f.max_vehicle_year is not None and vehicle.year > f.max_vehicle_year:
                return False

        return True


SORT_VALUES = {
    SortKey.PRICE: lambda ride: ride.price_per_seat,
    SortKey.RATING: lambda ride: ride.driver.rating,
    SortKey.AVAILABLE_SEATS: lambda ride: ride.available_seats,
    SortKey.DURATION: lambda ride: ride.route.estimated_duration,
    SortKey.DEPARTURE_TIME: lambda ride: (ride.departure_date, ride.departure_time),
}


def sort_value(sort_by: SortKey) -> Callable:
    return SORT_VALUES[SortKey(sort_by)]


def sort_rides(
    rides: List,
    sort_by: SortKey = SortKey.DEPARTURE_TIME,
    sort_order: SortOrder = SortOrder.ASC
) -> List:
    """Sort rides by a single key.

    Python's sort is stable for ``reverse=True`` as well, so equal keys keep
    their input order in both directions. Accepts RideOffer or RideSummary.
    """
    key = sort_value(sort_by)
    present = [ride for ride in rides if key(ride) is not None]
    missing = [ride for ride in rides if key(ride) is None]
    present.sort(key=key, reverse=SortOrder(sort_order) == SortOrder.DESC)
    return present + missing
