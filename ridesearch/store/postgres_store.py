"""
PostgreSQL ride store backed by an asyncpg pool.

Rides are stored as JSONB documents in the ``rides`` table (see
``ridesearch.db.create_tables``); predicates are translated to JSONB path
expressions from a fixed whitelist.
"""

import asyncio
import json
import logging
from datetime import date, time
from enum import Enum
from typing import Any, List, Optional, Tuple

import asyncpg

from ridesearch.error_handling import StoreUnavailableError
from ridesearch.models import RideOffer
from .base import EQ, GTE, LTE, Predicate, RideStore, SortClause

logger = logging.getLogger(__name__)

# record path -> SQL expression over the JSONB document
FIELD_EXPRESSIONS = {
    "id": "id",
    "status": "data->>'status'",
    "departureDate": "data->>'departureDate'",
    "departureTime": "data->>'departureTime'",
    "origin.city": "data#>>'{origin,city}'",
    "destination.city": "data#>>'{destination,city}'",
    "availableSeats": "(data->>'availableSeats')::int",
    "pricePerSeat": "(data->>'pricePerSeat')::numeric",
    "driver.rating": "(data#>>'{driver,rating}')::numeric",
    "route.estimatedDuration": "(data#>>'{route,estimatedDuration}')::numeric",
    "publishedAt": "data->>'publishedAt'",
}

SQL_OPERATORS = {EQ: "=", GTE: ">=", LTE: "<="}


def _sql_value(value: Any) -> Any:
    """Convert predicate values to the text/numeric form stored in JSONB"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return value


def build_query_sql(
    predicates: List[Predicate],
    sort: Optional[SortClause],
    limit: int
) -> Tuple[str, list]:
    """
    Translate predicates into a parameterized SELECT.

    Raises:
        ValueError: for fields outside the whitelist
    """
    clauses = []
    args = []
    for predicate in predicates:
        expression = FIELD_EXPRESSIONS.get(predicate.field)
        if expression is None:
            raise ValueError(f"Field not queryable: {predicate.field}")
        args.append(_sql_value(predicate.value))
        clauses.append(f"{expression} {SQL_OPERATORS[predicate.op]} ${len(args)}")

    sql = "SELECT data FROM rides"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)

    if sort is not None:
        direction = "DESC" if sort.descending else "ASC"
        order_parts = []
        for name in sort.fields:
            expression = FIELD_EXPRESSIONS.get(name)
            if expression is None:
                raise ValueError(f"Field not sortable: {name}")
            order_parts.append(f"{expression} {direction} NULLS LAST")
        sql += " ORDER BY " + ", ".join(order_parts)

    args.append(int(limit))
    sql += f" LIMIT ${len(args)}"
    return sql, args


def _to_ride(data: Any) -> RideOffer:
    if isinstance(data, str):
        data = json.loads(data)
    return RideOffer.model_validate(data)


class PostgresRideStore(RideStore):
    """Ride store over the shared asyncpg pool"""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def query(
        self,
        predicates: List[Predicate],
        sort: Optional[SortClause] = None,
        limit: int = 50
    ) -> List[RideOffer]:
        sql, args = build_query_sql(predicates, sort, limit)
        logger.debug(f"Ride store query: {sql} {args}")
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(sql, *args)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Ride store query failed: {e}")
            raise StoreUnavailableError(f"Ride store query failed: {e}") from e

        return [_to_ride(row["data"]) for row in rows]

    async def get(self, ride_id: str) -> Optional[RideOffer]:
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow("SELECT data FROM rides WHERE id = $1", ride_id)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Ride lookup failed for {ride_id}: {e}")
            raise StoreUnavailableError(f"Ride lookup failed: {e}") from e

        if row is None:
            return None
        return _to_ride(row["data"])
