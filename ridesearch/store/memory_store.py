"""
In-memory ride store.

Holds rides in process memory and evaluates predicates the same way the
PostgreSQL store does. Used for development and tests.
"""

from typing import Any, Dict, Iterable, List, Optional

from ridesearch.models import RideOffer
from .base import EQ, GTE, LTE, Predicate, RideStore, SortClause


def resolve_field(record: Dict[str, Any], path: str) -> Any:
    """Walk a dot-separated camelCase path through a dumped record"""
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def matches(record: Dict[str, Any], predicate: Predicate) -> bool:
    value = resolve_field(record, predicate.field)
    if value is None:
        return False
    if predicate.op == EQ:
        return value == predicate.value
    if predicate.op == GTE:
        return value >= predicate.value
    if predicate.op == LTE:
        return value <= predicate.value
    return False


class InMemoryRideStore(RideStore):
    """Process-local ride store keyed by ride id"""

    def __init__(self, rides: Iterable[RideOffer] = ()):
        self._rides: Dict[str, RideOffer] = {}
        for ride in rides:
            self.add(ride)

    def add(self, ride: RideOffer) -> None:
        self._rides[ride.id] = ride

    def remove(self, ride_id: str) -> None:
        self._rides.pop(ride_id, None)

    def __len__(self) -> int:
        return len(self._rides)

    async def query(
        self,
        predicates: List[Predicate],
        sort: Optional[SortClause] = None,
        limit: int = 50
    ) -> List[RideOffer]:
        selected = []
        for ride in self._rides.values():
            record = ride.model_dump(by_alias=True)
            if all(matches(record, predicate) for predicate in predicates):
                selected.append((record, ride))

        if sort is not None:
            present = [item for item in selected if _sort_value(item[0], sort) is not None]
            missing = [item for item in selected if _sort_value(item[0], sort) is None]
            present.sort(key=lambda item: _sort_value(item[0], sort), reverse=sort.descending)
            selected = present + missing

        return [ride for _, ride in selected[:limit]]

    async def get(self, ride_id: str) -> Optional[RideOffer]:
        return self._rides.get(ride_id)


def _sort_value(record: Dict[str, Any], sort: SortClause):
    values = tuple(resolve_field(record, name) for name in sort.fields)
    if any(value is None for value in values):
        return None
    return values
