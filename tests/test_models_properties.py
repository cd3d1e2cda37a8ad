"""
Property-based tests for data models.

These tests verify validation and serialization of ride records and
search filters.
"""

from datetime import date, time

import pytest
from hypothesis import given, settings, strategies as st

from ridesearch.error_handling import InvalidFilterError
from ridesearch.models import Coordinates, RideOffer, RideStatus, SearchFilter, SortKey, SortOrder

from tests.factories import make_ride


def test_search_filter_defaults():
    filters = SearchFilter()

    assert filters.status == RideStatus.PUBLISHED
    assert filters.sort_by == SortKey.DEPARTURE_TIME
    assert filters.sort_order == SortOrder.ASC
    assert filters.limit == 20
    assert filters.max_distance == 10
    assert filters.flexible_days_before == 1
    assert filters.flexible_days_after == 1
    assert filters.time_buffer == 2
    assert filters.include_alternatives is False


def test_search_filter_accepts_camel_and_snake_case():
    camel = SearchFilter.parse({"originCity": "Mumbai", "minSeats": 2, "departureDate": "2024-03-01"})
    snake = SearchFilter.parse({"origin_city": "Mumbai", "min_seats": 2, "departure_date": "2024-03-01"})

    assert camel == snake
    assert camel.departure_date == date(2024, 3, 1)


def test_unknown_filter_fields_rejected():
    with pytest.raises(InvalidFilterError) as exc_info:
        SearchFilter.parse({"originCity": "Mumbai", "colour": "red"})

    assert exc_info.value.errors
    assert "colour" in str(exc_info.value)


def test_unknown_preference_fields_rejected():
    with pytest.raises(InvalidFilterError):
        SearchFilter.parse({"preferences": {"karaoke": True}})


def test_non_mapping_filters_rejected():
    with pytest.raises(InvalidFilterError):
        SearchFilter.parse(["originCity", "Mumbai"])


@given(
    low=st.integers(min_value=0, max_value=10000),
    high=st.integers(min_value=0, max_value=10000),
)
@settings(max_examples=100)
def test_price_range_ordering_enforced(low, high):
    raw = {"minPrice": low, "maxPrice": high}
    if low <= high:
        assert SearchFilter.parse(raw).min_price == low
    else:
        with pytest.raises(InvalidFilterError):
            SearchFilter.parse(raw)


@given(
    low=st.integers(min_value=1990, max_value=2030),
    high=st.integers(min_value=1990, max_value=2030),
)
@settings(max_examples=50)
def test_vehicle_year_ordering_enforced(low, high):
    raw = {"minVehicleYear": low, "maxVehicleYear": high}
    if low <= high:
        SearchFilter.parse(raw)
    else:
        with pytest.raises(InvalidFilterError):
            SearchFilter.parse(raw)


@pytest.mark.parametrize("raw", [
    {"minRating": 5.5},
    {"minSeats": -1},
    {"limit": 0},
    {"maxDistance": 0},
    {"timeBuffer": 13},
    {"flexibleDaysAfter": -1},
    {"originCoordinates": {"lat": 91, "lng": 0}},
    {"destinationCoordinates": {"lat": 0, "lng": -181}},
])
def test_out_of_range_values_rejected(raw):
    with pytest.raises(InvalidFilterError):
        SearchFilter.parse(raw)


def test_coordinates_must_be_finite():
    with pytest.raises(ValueError):
        Coordinates(lat=float("nan"), lng=0)


def test_ride_offer_reads_store_record():
    ride = make_ride(
        "r1",
        vehicle={"make": "Honda", "model": "City", "amenities": ["ac"], "fuelType": "petrol", "year": 2020},
        estimated_duration=180,
    )

    assert ride.departure_time == time(9, 0)
    assert ride.vehicle.fuel_type == "petrol"
    assert ride.route.estimated_duration == 180
    assert ride.status == RideStatus.PUBLISHED


def test_ride_offer_ignores_unknown_store_fields():
    record = make_ride("r1").model_dump(by_alias=True)
    record["bookingIds"] = ["b1", "b2"]

    assert RideOffer.model_validate(record).id == "r1"


def test_summary_projection():
    ride = make_ride("r1", vehicle={"make": "Honda", "model": "City", "amenities": ["ac"], "seats": 4})

    summary = ride.to_summary(is_flexible_result=True)
    data = summary.model_dump(mode="json", by_alias=True, exclude_none=True)

    assert data["id"] == "r1"
    assert data["vehicle"] == {"make": "Honda", "model": "City", "amenities": ["ac"]}
    assert data["isFlexibleResult"] is True
    assert data["pricePerSeat"] == 300.0
    assert "optimizationScore" not in data


def test_zero_seats_means_unconstrained():
    filters = SearchFilter.parse({"minSeats": 0})
    assert filters.min_seats == 0
