"""Deterministic cache keys for search requests"""

import hashlib
import json

from ridesearch.models import SearchFilter

SEARCH_KEY_PREFIX = "search"
POPULAR_ROUTES_KEY = "popular_routes"
CITY_DATA_KEY = "city_data"

# Fields that change which rides are selected or how they are ordered.
# includeAlternatives only adds display data and is left out.
SEARCH_KEY_FIELDS = (
    "status",
    "originCity",
    "destinationCity",
    "departureDate",
    "minSeats",
    "maxPrice",
    "minPrice",
    "sortBy",
    "sortOrder",
    "limit",
    "originCoordinates",
    "destinationCoordinates",
    "maxDistance",
    "departureTimeFrom",
    "departureTimeTo",
    "amenities",
    "vehicleType",
    "fuelType",
    "transmission",
    "minVehicleSeats",
    "verifiedVehiclesOnly",
    "minVehicleYear",
    "maxVehicleYear",
    "minRating",
    "preferences",
    "optimizeRoute",
    "flexibleDates",
    "flexibleTimes",
    "flexibleDaysBefore",
    "flexibleDaysAfter",
    "timeBuffer",
)


def _round_coordinates(value):
    if value is None:
        return None
    return {"lat": round(value["lat"], 3), "lng": round(value["lng"], 3)}


def search_key_payload(filters: SearchFilter) -> dict:
    """The subset of filter fields that participates in the cache key"""
    data = filters.model_dump(mode="json", by_alias=True)
    payload = {name: data.get(name) for name in SEARCH_KEY_FIELDS}
    payload["originCoordinates"] = _round_coordinates(payload["originCoordinates"])
    payload["destinationCoordinates"] = _round_coordinates(payload["destinationCoordinates"])
    payload["amenities"] = sorted(set(payload["amenities"] or []))
    if payload["preferences"] is not None:
        payload["preferences"] = {
            name: value for name, value in payload["preferences"].items() if value is not None
        } or None
    return payload


def build_search_cache_key(filters: SearchFilter) -> str:
    """Generate cache key from search filters"""
    serialized = json.dumps(search_key_payload(filters), sort_keys=True)
    hash_obj = hashlib.md5(serialized.encode())
    return f"{SEARCH_KEY_PREFIX}:{hash_obj.hexdigest()}"
