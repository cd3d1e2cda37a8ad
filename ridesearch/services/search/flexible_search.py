"""
Flexible date/time expansion.

Re-runs the filter pipeline for neighbouring days and for a widened time
window, then merges everything into one deduplicated list.
"""

import asyncio
import logging
from datetime import time, timedelta
from typing import Awaitable, Callable, List, Set

from ridesearch.models import RideOffer, SearchFilter

logger = logging.getLogger(__name__)

Pipeline = Callable[[SearchFilter], Awaitable[List[RideOffer]]]

LAST_MINUTE = 23 * 60 + 59


def _to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _from_minutes(minutes: int) -> time:
    minutes = max(0, min(LAST_MINUTE, minutes))
    return time(hour=minutes // 60, minute=minutes % 60)


def widen_time_window(filters: SearchFilter):
    """
    Widen ``[from, to or from]`` by ``time_buffer`` hours on each side.

    Returns:
        (start, end) clamped to [00:00, 23:59]
    """
    buffer_minutes = filters.time_buffer * 60
    start = _to_minutes(filters.departure_time_from)
    end = _to_minutes(filters.departure_time_to or filters.departure_time_from)
    return _from_minutes(start - buffer_minutes), _from_minutes(end + buffer_minutes)


def is_exact_match(ride: RideOffer, filters: SearchFilter) -> bool:
    """True when the ride satisfies the requested date and time window"""
    if filters.departure_date is not None and ride.departure_date != filters.departure_date:
        return False
    if filters.departure_time_from is not None and ride.departure_time < filters.departure_time_from:
        return False
    if filters.departure_time_to is not None and ride.departure_time > filters.departure_time_to:
        return False
    return True


def deduplicate_rides(rides: List[RideOffer]) -> List[RideOffer]:
    """
    Remove duplicate rides by ID, keeping the first occurrence.
    """
    seen_ids: Set[str] = set()
    unique_rides = []

    for ride in rides:
        if ride.id not in seen_ids:
            seen_ids.add(ride.id)
            unique_rides.append(ride)

    return unique_rides


class FlexibleSearchExpander:
    """Fan out a search over nearby days and a wider time window"""

    def __init__(self, pipeline: Pipeline):
        self.pipeline = pipeline

    def window_queries(self, filters: SearchFilter) -> List[SearchFilter]:
        """
        The extra queries to run, in merge order: earlier days (calendar
        order), later days, then the widened time window.
        """
        queries = []

        if filters.flexible_dates and filters.departure_date is not None:
            base = filters.departure_date
            for offset in range(filters.flexible_days_before, 0, -1):
                queries.append(filters.model_copy(update={"departure_date": base - timedelta(days=offset)}))
            for offset in range(1, filters.flexible_days_after + 1):
                queries.append(filters.model_copy(update={"departure_date": base + timedelta(days=offset)}))

        if filters.flexible_times and filters.departure_time_from is not None:
            start, end = widen_time_window(filters)
            queries.append(filters.model_copy(update={
                "departure_time_from": start,
                "departure_time_to": end,
            }))

        return queries

    async def expand(self, filters: SearchFilter, base_rides: List[RideOffer]) -> List[RideOffer]:
        """
        Run the window queries concurrently and merge with the base results.

        Merge order is fixed by ``window_queries`` regardless of which query
        finishes first.
        """
        queries = self.window_queries(filters)
        if not queries:
            return list(base_rides)

        logger.debug(f"Flexible search: running {len(queries)} extra window queries")
        window_results = await asyncio.gather(*(self.pipeline(query) for query in queries))

        merged = list(base_rides)
        for rides in window_results:
            merged.extend(rides)
        return deduplicate_rides(merged)
