"""
Great-circle distance helpers.

Points are anything with ``lat`` and ``lng`` attributes (Coordinates) or
``(lat, lng)`` tuples.
"""

import math
from typing import Tuple, Union

from ridesearch.error_handling import GeometryError

EARTH_RADIUS_KM = 6371.0

LatLng = Tuple[float, float]


def to_radians(degrees: float) -> float:
    """Convert degrees to radians."""
    return degrees * (math.pi / 180)


def _as_lat_lng(point: Union[LatLng, object]) -> LatLng:
    if isinstance(point, (tuple, list)):
        lat, lng = point
    else:
        lat, lng = point.lat, point.lng
    if lat is None or lng is None or not (math.isfinite(lat) and math.isfinite(lng)):
        raise GeometryError(f"Non-finite coordinates: ({lat}, {lng})")
    return float(lat), float(lng)


def distance_between(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Haversine distance in kilometers between two lat/lng pairs.

    Raises:
        GeometryError: if any input is not a finite number
    """
    for value in (lat1, lng1, lat2, lng2):
        if value is None or not math.isfinite(value):
            raise GeometryError(f"Non-finite coordinate value: {value}")

    d_lat = to_radians(lat2 - lat1)
    d_lng = to_radians(lng2 - lng1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(to_radians(lat1)) * math.cos(to_radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    # clamp float drift so sqrt(1 - a) stays real
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance(a, b) -> float:
    """Haversine distance in kilometers between two points."""
    lat1, lng1 = _as_lat_lng(a)
    lat2, lng2 = _as_lat_lng(b)
    return distance_between(lat1, lng1, lat2, lng2)
