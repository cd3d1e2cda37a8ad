"""Search services"""

from .flexible_search import FlexibleSearchExpander, deduplicate_rides, is_exact_match, widen_time_window
from .alternate_routes import AlternateRouteFinder
from .search_orchestrator import SearchOrchestrator

__all__ = [
    "FlexibleSearchExpander",
    "deduplicate_rides",
    "is_exact_match",
    "widen_time_window",
    "AlternateRouteFinder",
    "SearchOrchestrator",
]
