"""Data models for the ride search engine"""

from .ride import (
    RideStatus,
    Coordinates,
    RideLocation,
    DriverInfo,
    VehicleInfo,
    VehicleSummary,
    RidePreferences,
    RouteInfo,
    RideOffer,
    RouteEfficiency,
    RideSummary,
)
from .search import (
    SortKey,
    SortOrder,
    PreferenceFilter,
    SearchFilter,
    MappedRoute,
    AlternativeRoute,
    SearchResult,
    PopularRoute,
    Suggestion,
)

__all__ = [
    "RideStatus",
    "Coordinates",
    "RideLocation",
    "DriverInfo",
    "VehicleInfo",
    "VehicleSummary",
    "RidePreferences",
    "RouteInfo",
    "RideOffer",
    "RouteEfficiency",
    "RideSummary",
    "SortKey",
    "SortOrder",
    "PreferenceFilter",
    "SearchFilter",
    "MappedRoute",
    "AlternativeRoute",
    "SearchResult",
    "PopularRoute",
    "Suggestion",
]
