"""Ride offer data models"""

import math
from datetime import date, datetime, time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting both camelCase and snake_case field names"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class RideStatus(str, Enum):
    """Lifecycle state of a ride offer"""
    DRAFT = "draft"
    PUBLISHED = "published"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Coordinates(CamelModel):
    """A WGS84 point"""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    @field_validator("lat", "lng")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinates must be finite")
        return value


class RideLocation(CamelModel):
    """Origin or destination of a ride"""
    city: str
    address: Optional[str] = None
    coordinates: Coordinates


class DriverInfo(CamelModel):
    id: str
    name: Optional[str] = None
    rating: float = 0.0


class VehicleInfo(CamelModel):
    make: str = ""
    model: str = ""
    amenities: List[str] = []
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    seats: Optional[int] = None
    year: Optional[int] = None
    verified: bool = False


class RidePreferences(CamelModel):
    smoking: bool = False
    pets: bool = False
    music: bool = True


class RouteInfo(CamelModel):
    """Stored route metrics: duration in minutes, distance in kilometers"""
    estimated_duration: Optional[float] = None
    total_distance: Optional[float] = None


class RideOffer(CamelModel):
    """A published ride, read-only for the search engine"""
    id: str
    origin: RideLocation
    destination: RideLocation
    departure_date: date
    departure_time: time
    price_per_seat: float
    available_seats: int
    driver: DriverInfo
    vehicle: Optional[VehicleInfo] = None
    preferences: RidePreferences = Field(default_factory=RidePreferences)
    status: RideStatus = RideStatus.PUBLISHED
    route: RouteInfo = Field(default_factory=RouteInfo)
    published_at: Optional[datetime] = None

    def to_summary(self, **extra) -> "RideSummary":
        """Reduced projection used in search results"""
        vehicle = None
        if self.vehicle is not None:
            vehicle = VehicleSummary(
                make=self.vehicle.make,
                model=self.vehicle.model,
                amenities=list(self.vehicle.amenities),
            )
        return RideSummary(
            id=self.id,
            origin=self.origin,
            destination=self.destination,
            departure_date=self.departure_date,
            departure_time=self.departure_time,
            price_per_seat=self.price_per_seat,
            available_seats=self.available_seats,
            driver=self.driver,
            vehicle=vehicle,
            route=self.route,
            preferences=self.preferences,
            status=self.status,
            **extra,
        )


class VehicleSummary(CamelModel):
    make: str = ""
    model: str = ""
    amenities: List[str] = []


class RouteEfficiency(CamelModel):
    """Per-candidate route metrics, distances in kilometers"""
    detour_factor: float
    pickup_distance: float
    dropoff_distance: float
    direct_distance: float


class RideSummary(CamelModel):
    """Search result entry"""
    id: str
    origin: RideLocation
    destination: RideLocation
    departure_date: date
    departure_time: time
    price_per_seat: float
    available_seats: int
    driver: DriverInfo
    vehicle: Optional[VehicleSummary] = None
    route: RouteInfo = Field(default_factory=RouteInfo)
    preferences: RidePreferences = Field(default_factory=RidePreferences)
    status: RideStatus = RideStatus.PUBLISHED

    optimization_score: Optional[float] = None
    route_efficiency: Optional[RouteEfficiency] = None
    is_flexible_result: Optional[bool] = None
