"""
Filtering module for ride offers.

Stage A store query construction plus client-side proximity, business-rule
filtering and sorting.
"""

from .query_builder import SORT_FIELDS, build_store_query, needs_client_side_selection
from .ride_filter import RideFilter, sort_rides, sort_value

__all__ = [
    'SORT_FIELDS',
    'build_store_query',
    'needs_client_side_selection',
    'RideFilter',
    'sort_rides',
    'sort_value',
]
