"""
Stage A query construction.

Translates a SearchFilter into store-native predicates. Range predicates are
always pushed down; the sort clause is pushed only when every range predicate
is on the sort field. When the store cannot express the whole selection and
ordering, the fetch window widens to the candidate pool cap and the rest is
done client-side.
"""

from ridesearch.config import SearchLimitsConfig
from ridesearch.models import SearchFilter, SortKey, SortOrder
from ridesearch.store import EQ, GTE, LTE, Predicate, SortClause, StoreQuery

SORT_FIELDS = {
    SortKey.PRICE: ("pricePerSeat",),
    SortKey.RATING: ("driver.rating",),
    SortKey.AVAILABLE_SEATS: ("availableSeats",),
    SortKey.DURATION: ("route.estimatedDuration",),
    SortKey.DEPARTURE_TIME: ("departureDate", "departureTime"),
}


def needs_client_side_selection(filters: SearchFilter) -> bool:
    """True when any constraint beyond Stage A is set"""
    preferences_set = filters.preferences is not None and any(
        value is not None for value in filters.preferences.model_dump().values()
    )
    return any((
        filters.min_price is not None,
        filters.departure_time_from is not None,
        filters.departure_time_to is not None,
        bool(filters.amenities),
        bool(filters.vehicle_type),
        bool(filters.fuel_type),
        bool(filters.transmission),
        filters.min_vehicle_seats is not None,
        filters.verified_vehicles_only,
        filters.min_vehicle_year is not None,
        filters.max_vehicle_year is not None,
        filters.min_rating is not None,
        preferences_set,
        filters.origin_coordinates is not None,
        filters.destination_coordinates is not None,
    ))


def build_store_query(filters: SearchFilter, limits: SearchLimitsConfig = None) -> StoreQuery:
    """
    Build the store query for a search.

    Equality predicates come in selectivity order (status, date, origin
    city, destination city), followed by range predicates.

    Args:
        filters: Normalized search filters (limit already clamped)
        limits: Search limits, for the candidate pool cap

    Returns:
        StoreQuery with predicates, optional sort clause and fetch window
    """
    limits = limits or SearchLimitsConfig()

    predicates = [Predicate("status", EQ, filters.status)]
    if filters.departure_date is not None:
        predicates.append(Predicate("departureDate", EQ, filters.departure_date))
    if filters.origin_city:
        predicates.append(Predicate("origin.city", EQ, filters.origin_city))
    if filters.destination_city:
        predicates.append(Predicate("destination.city", EQ, filters.destination_city))

    ranges = []
    if filters.min_seats:
        ranges.append(Predicate("availableSeats", GTE, filters.min_seats))
    if filters.max_price is not None:
        ranges.append(Predicate("pricePerSeat", LTE, filters.max_price))
    predicates.extend(ranges)

    sort_fields = SORT_FIELDS[filters.sort_by]
    sort = None
    if all(predicate.field in sort_fields for predicate in ranges):
        sort = SortClause(sort_fields, descending=filters.sort_order == SortOrder.DESC)

    if sort is not None and not needs_client_side_selection(filters):
        limit = filters.limit
    else:
        limit = limits.candidate_pool_cap

    return StoreQuery(predicates=tuple(predicates), sort=sort, limit=limit)
