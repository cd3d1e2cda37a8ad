"""Ride store adapters"""

from .base import EQ, GTE, LTE, Predicate, SortClause, StoreQuery, RideStore
from .memory_store import InMemoryRideStore
from .postgres_store import PostgresRideStore, build_query_sql

__all__ = [
    "EQ",
    "GTE",
    "LTE",
    "Predicate",
    "SortClause",
    "StoreQuery",
    "RideStore",
    "InMemoryRideStore",
    "PostgresRideStore",
    "build_query_sql",
]
