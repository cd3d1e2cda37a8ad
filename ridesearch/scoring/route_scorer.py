"""
Route efficiency scoring.

Scores each candidate ride against the requested origin and destination:
detour, pickup and drop-off distance, price per kilometer, driver rating and
seat availability. Higher is better.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ridesearch.error_handling import GeometryError
from ridesearch.geometry import distance
from ridesearch.models import Coordinates, RideOffer, RouteEfficiency

logger = logging.getLogger(__name__)

# Score component weights, summing to 1.0
WEIGHTS = {
    "detour": 0.30,
    "pickup": 0.20,
    "dropoff": 0.20,
    "price": 0.15,
    "rating": 0.10,
    "seats": 0.05,
}


def calculate_optimization_score(
    detour_factor: float,
    pickup_distance: float,
    dropoff_distance: float,
    price_per_km: float,
    driver_rating: float,
    available_seats: int
) -> float:
    """
    Weighted route efficiency score.

    Nominally in [0, 100]; the result is not clamped, so very cheap per-km
    prices or ratings above 5 can push it outside that range.
    """
    detour_score = max(0.0, (2 - detour_factor) / 2) * 100
    pickup_score = max(0.0, (10 - pickup_distance) / 10) * 100
    dropoff_score = max(0.0, (10 - dropoff_distance) / 10) * 100
    price_score = max(0.0, (2 - price_per_km) / 2) * 100
    rating_score = (driver_rating / 5) * 100
    seats_score = min(available_seats / 4, 1) * 100

    return (
        detour_score * WEIGHTS["detour"]
        + pickup_score * WEIGHTS["pickup"]
        + dropoff_score * WEIGHTS["dropoff"]
        + price_score * WEIGHTS["price"]
        + rating_score * WEIGHTS["rating"]
        + seats_score * WEIGHTS["seats"]
    )


@dataclass
class ScoredRide:
    """A ride with its score; unscored rides carry None for both fields"""
    ride: RideOffer
    score: Optional[float] = None
    efficiency: Optional[RouteEfficiency] = None

    @property
    def scored(self) -> bool:
        return self.score is not None


class RouteScorer:
    """Score and rank rides for a requested origin/destination pair"""

    def score(
        self,
        ride: RideOffer,
        origin: Coordinates,
        destination: Coordinates
    ) -> ScoredRide:
        """
        Score a single ride.

        Raises:
            GeometryError: when the requested trip or the ride has zero length
        """
        direct_distance = distance(origin, destination)
        if direct_distance <= 0:
            raise GeometryError("Request origin and destination coincide")

        # a stored distance of 0 means unknown
        ride_distance = ride.route.total_distance
        if not ride_distance:
            ride_distance = distance(ride.origin.coordinates, ride.destination.coordinates)
        if ride_distance <= 0:
            raise GeometryError(f"Ride {ride.id} has zero route distance")

        detour_factor = ride_distance / direct_distance
        pickup_distance = distance(origin, ride.origin.coordinates)
        dropoff_distance = distance(destination, ride.destination.coordinates)
        price_per_km = ride.price_per_seat / ride_distance

        score = calculate_optimization_score(
            detour_factor=detour_factor,
            pickup_distance=pickup_distance,
            dropoff_distance=dropoff_distance,
            price_per_km=price_per_km,
            driver_rating=ride.driver.rating,
            available_seats=ride.available_seats,
        )
        efficiency = RouteEfficiency(
            detour_factor=round(detour_factor, 2),
            pickup_distance=round(pickup_distance, 2),
            dropoff_distance=round(dropoff_distance, 2),
            direct_distance=round(direct_distance, 2),
        )
        return ScoredRide(ride=ride, score=score, efficiency=efficiency)

    def rank(
        self,
        rides: List[RideOffer],
        origin: Coordinates,
        destination: Coordinates
    ) -> List[ScoredRide]:
        """
        Score every ride and order by score.

        Scored rides come first, highest score first (stable for ties);
        rides that could not be scored follow in their input order.
        """
        scored = []
        unscored = []
        for ride in rides:
            try:
                scored.append(self.score(ride, origin, destination))
            except GeometryError as e:
                logger.debug(f"Ride {ride.id} left unscored: {e}")
                unscored.append(ScoredRide(ride=ride))

        scored.sort(key=lambda item: item.score, reverse=True)
        return scored + unscored
