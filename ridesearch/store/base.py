"""
Persistent ride store interface.

Field names in predicates and sort clauses are the ride-management record
paths (camelCase, dot-separated for nested objects).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from ridesearch.models import RideOffer

EQ = "=="
GTE = ">="
LTE = "<="

OPERATORS = (EQ, GTE, LTE)


@dataclass(frozen=True)
class Predicate:
    """A store-native filter: ``field op value``"""
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {self.op}")


@dataclass(frozen=True)
class SortClause:
    """Ordering on one or more fields in a single direction"""
    fields: Tuple[str, ...]
    descending: bool = False


@dataclass(frozen=True)
class StoreQuery:
    """A complete store query (Stage A output)"""
    predicates: Tuple[Predicate, ...] = ()
    sort: Optional[SortClause] = None
    limit: int = 50


class RideStore(ABC):
    """Read-only access to published ride offers"""

    @abstractmethod
    async def query(
        self,
        predicates: List[Predicate],
        sort: Optional[SortClause] = None,
        limit: int = 50
    ) -> List[RideOffer]:
        """
        Return rides matching every predicate.

        Raises:
            StoreUnavailableError: when the store cannot be reached
        """

    @abstractmethod
    async def get(self, ride_id: str) -> Optional[RideOffer]:
        """Return a single ride or None"""

    async def execute(self, store_query: StoreQuery) -> List[RideOffer]:
        return await self.query(list(store_query.predicates), store_query.sort, store_query.limit)
