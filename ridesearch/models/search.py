"""Search data models"""

from datetime import date, datetime, time
from enum import Enum
from typing import Any, List, Literal, Mapping, Optional

from pydantic import Field, ValidationError, model_validator

from ridesearch.error_handling import InvalidFilterError
from .ride import CamelModel, Coordinates, RideStatus, RideSummary


class SortKey(str, Enum):
    """Supported sort keys"""
    PRICE = "price"
    RATING = "rating"
    AVAILABLE_SEATS = "availableSeats"
    DURATION = "duration"
    DEPARTURE_TIME = "departureTime"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class PreferenceFilter(CamelModel):
    """Preference constraints; None means unconstrained"""
    smoking: Optional[bool] = None
    pets: Optional[bool] = None
    music: Optional[bool] = None

    class Config:
        extra = "forbid"


class SearchFilter(CamelModel):
    """Normalized ride search request"""
    origin_city: Optional[str] = None
    destination_city: Optional[str] = None
    origin_coordinates: Optional[Coordinates] = None
    destination_coordinates: Optional[Coordinates] = None
    departure_date: Optional[date] = None
    departure_time_from: Optional[time] = None
    departure_time_to: Optional[time] = None

    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    min_seats: Optional[int] = Field(default=None, ge=0)
    max_distance: float = Field(default=10.0, gt=0)

    amenities: List[str] = []
    vehicle_type: Optional[str] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    min_vehicle_seats: Optional[int] = Field(default=None, ge=0)
    verified_vehicles_only: bool = False
    min_vehicle_year: Optional[int] = Field(default=None, ge=0)
    max_vehicle_year: Optional[int] = Field(default=None, ge=0)
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    preferences: Optional[PreferenceFilter] = None

    status: RideStatus = RideStatus.PUBLISHED
    sort_by: SortKey = SortKey.DEPARTURE_TIME
    sort_order: SortOrder = SortOrder.ASC
    limit: int = Field(default=20, ge=1)

    optimize_route: bool = False
    flexible_dates: bool = False
    flexible_times: bool = False
    flexible_days_before: int = Field(default=1, ge=0, le=7)
    flexible_days_after: int = Field(default=1, ge=0, le=7)
    time_buffer: int = Field(default=2, ge=1, le=12)
    include_alternatives: bool = False

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def _check_ranges(self) -> "SearchFilter":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("minPrice must not exceed maxPrice")
        if (
            self.min_vehicle_year is not None
            and self.max_vehicle_year is not None
            and self.min_vehicle_year > self.max_vehicle_year
        ):
            raise ValueError("minVehicleYear must not exceed maxVehicleYear")
        if (
            self.departure_time_from is not None
            and self.departure_time_to is not None
            and self.departure_time_from > self.departure_time_to
        ):
            raise ValueError("departureTimeFrom must not be later than departureTimeTo")
        return self

    @classmethod
    def parse(cls, raw: Any) -> "SearchFilter":
        """
        Validate raw filter input.

        Raises:
            InvalidFilterError: on unknown fields or out-of-range values
        """
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, Mapping):
            raise InvalidFilterError(f"Search filters must be a mapping, got {type(raw).__name__}")
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as e:
            errors = e.errors(include_url=False)
            fields = ", ".join(".".join(str(p) for p in err["loc"]) or "filters" for err in errors)
            raise InvalidFilterError(f"Invalid search filters: {fields}", errors=errors) from e

    @property
    def has_coordinates(self) -> bool:
        return self.origin_coordinates is not None and self.destination_coordinates is not None


class MappedRoute(CamelModel):
    """Route from the mapping collaborator: meters and seconds"""
    distance: float
    duration: float
    geometry: Optional[Any] = None


class AlternativeRoute(CamelModel):
    """A direct route or a synthesized two-leg itinerary"""
    type: Literal["direct", "multi-leg"]
    description: str
    route: Optional[MappedRoute] = None
    via: Optional[str] = None
    first_leg: Optional[RideSummary] = None
    connecting_rides: List[RideSummary] = []


class SearchResult(CamelModel):
    """Search results with metadata"""
    rides: List[RideSummary]
    total: int
    filters: SearchFilter
    timestamp: datetime
    alternative_routes: Optional[List[AlternativeRoute]] = None
    cached: bool = False
    search_time_ms: Optional[float] = None

    def to_response(self) -> dict:
        """camelCase JSON-ready envelope"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PopularRoute(CamelModel):
    origin: str
    destination: str
    count: int


class Suggestion(CamelModel):
    name: str
    type: str = "city"


