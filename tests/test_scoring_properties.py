"""
Property-based tests for route efficiency scoring.
"""

import math

import pytest
from hypothesis import given, settings, strategies as st

from ridesearch.error_handling import GeometryError
from ridesearch.models import Coordinates
from ridesearch.scoring import WEIGHTS, RouteScorer, calculate_optimization_score

from tests.factories import MUMBAI, PUNE, make_ride


MUMBAI_POINT = Coordinates(lat=MUMBAI[0], lng=MUMBAI[1])
PUNE_POINT = Coordinates(lat=PUNE[0], lng=PUNE[1])


def test_weights_sum_to_one():
    assert math.isclose(sum(WEIGHTS.values()), 1.0)


@given(
    detour=st.floats(min_value=1, max_value=2),
    pickup=st.floats(min_value=0, max_value=10),
    dropoff=st.floats(min_value=0, max_value=10),
    price_per_km=st.floats(min_value=0, max_value=2),
    rating=st.floats(min_value=0, max_value=5),
    seats=st.integers(min_value=0, max_value=4),
)
@settings(max_examples=300)
def test_score_bounds_under_valid_inputs(detour, pickup, dropoff, price_per_km, rating, seats):
    score = calculate_optimization_score(detour, pickup, dropoff, price_per_km, rating, seats)
    assert -1e-9 <= score <= 100 + 1e-9


def test_score_not_clamped_for_negative_price_per_km():
    score = calculate_optimization_score(0, 0, 0, -10, 5, 4)
    assert score > 100


def test_perfect_components():
    # detour 0 is outside normal range but maxes every component
    assert calculate_optimization_score(0, 0, 0, 0, 5, 4) == pytest.approx(100)


def test_score_fills_route_efficiency():
    ride = make_ride("r1", price=300, seats=3, rating=4.0)

    scored = RouteScorer().score(ride, MUMBAI_POINT, PUNE_POINT)

    assert scored.scored
    assert scored.efficiency.detour_factor == pytest.approx(1.0)
    assert scored.efficiency.pickup_distance == 0
    assert scored.efficiency.dropoff_distance == 0
    assert 118 <= scored.efficiency.direct_distance <= 122
    assert scored.efficiency.direct_distance == round(scored.efficiency.direct_distance, 2)


def test_stored_total_distance_used_for_detour():
    ride = make_ride("r1", total_distance=240)

    scored = RouteScorer().score(ride, MUMBAI_POINT, PUNE_POINT)

    assert 1.95 <= scored.efficiency.detour_factor <= 2.05


def test_zero_direct_distance_raises():
    with pytest.raises(GeometryError):
        RouteScorer().score(make_ride("r1"), MUMBAI_POINT, MUMBAI_POINT)


def test_zero_ride_distance_raises():
    ride = make_ride("r1", destination=MUMBAI)
    with pytest.raises(GeometryError):
        RouteScorer().score(ride, MUMBAI_POINT, PUNE_POINT)


def test_zero_stored_distance_falls_back_to_endpoints():
    ride = make_ride("r1", total_distance=0)

    scored = RouteScorer().score(ride, MUMBAI_POINT, PUNE_POINT)

    assert scored.scored
    assert scored.efficiency.detour_factor == pytest.approx(1.0)


def test_rank_includes_degenerate_request_unscored():
    """Origin equal to destination leaves every ride unscored instead of failing."""
    rides = [make_ride("a"), make_ride("b")]

    ranked = RouteScorer().rank(rides, MUMBAI_POINT, MUMBAI_POINT)

    assert [item.ride.id for item in ranked] == ["a", "b"]
    assert all(item.score is None and item.efficiency is None for item in ranked)


def test_rank_orders_scored_first_then_unscored():
    rides = [
        make_ride("loop", destination=MUMBAI),
        make_ride("pricey", price=900, rating=3.0),
        make_ride("cheap", price=100, rating=5.0, seats=4),
    ]

    ranked = RouteScorer().rank(rides, MUMBAI_POINT, PUNE_POINT)

    assert [item.ride.id for item in ranked] == ["cheap", "pricey", "loop"]
    assert ranked[0].score > ranked[1].score
    assert ranked[2].score is None


@given(seat_counts=st.lists(st.integers(min_value=1, max_value=8), min_size=1, max_size=12))
@settings(max_examples=50)
def test_rank_is_sorted_descending(seat_counts):
    rides = [make_ride(f"r{i}", seats=seats) for i, seats in enumerate(seat_counts)]

    ranked = RouteScorer().rank(rides, MUMBAI_POINT, PUNE_POINT)
    scores = [item.score for item in ranked]

    assert scores == sorted(scores, reverse=True)
    assert sorted(item.ride.id for item in ranked) == sorted(r.id for r in rides)
