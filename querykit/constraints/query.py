"""
Query constraints: filter, sort and limit a set of records in one object.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from itertools import islice
from typing import Any, Iterable, List, Optional

from ..exceptions import ConstraintError
from ..ranking import MISSING
from .base import Constraint, FilterOperator, SortDirection, get_field
from .filter import EMPTY_FILTERS, FilterConstraint, FilterConstraints, FilterList
from .sort import EMPTY_SORTS, SortConstraints, SortList

ORDER_PROP = "$order"
LIMIT_PROP = "$limit"

# (operator for every sort but the last, operator for the last sort)
_AFTER_OPERATORS = {
    SortDirection.ASC: (FilterOperator.GTE, FilterOperator.GT),
    SortDirection.DESC: (FilterOperator.LTE, FilterOperator.LT),
}
_BEFORE_OPERATORS = {
    SortDirection.ASC: (FilterOperator.LTE, FilterOperator.LT),
    SortDirection.DESC: (FilterOperator.GTE, FilterOperator.GT),
}


@dataclass(frozen=True)
class QueryConstraints(Constraint):
    """
    Allows filtering, sorting, and limiting a set of records.

    Every method that changes the query returns a new instance; parts that
    did not change are shared with the original by reference.

    Attributes:
        filters: FilterConstraints every record must match
        sorts: SortConstraints defining the order of results
        limit: Maximum number of results, or None for no limit
    """
    filters: FilterConstraints = EMPTY_FILTERS
    sorts: SortConstraints = EMPTY_SORTS
    limit: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.filters, FilterConstraints):
            object.__setattr__(self, "filters", FilterConstraints(self.filters))
        if not isinstance(self.sorts, SortConstraints):
            object.__setattr__(self, "sorts", SortConstraints(self.sorts))
        _check_limit(self.limit)

    @classmethod
    def from_props(cls, props: Mapping) -> "QueryConstraints":
        """
        Create a query from a flat props mapping.

        Example:
            QueryConstraints.from_props({
                "type": "alert",
                "priority>=": 5,
                "$order": ["!priority", "id"],
                "$limit": 10
            })
        """
        filters = {k: v for k, v in props.items() if k not in (ORDER_PROP, LIMIT_PROP)}
        return cls(filters, props.get(ORDER_PROP), props.get(LIMIT_PROP))

    # Filtering

    def filter(self, *filter_lists: FilterList) -> "QueryConstraints":
        """Return a new query with additional filters."""
        return replace(self, filters=self.filters.filter(*filter_lists))

    @property
    def unfilter(self) -> "QueryConstraints":
        """Return a new query with no filters."""
        return replace(self, filters=EMPTY_FILTERS) if self.filters.size else self

    def match(self, record: Any) -> bool:
        return self.filters.match(record)

    # Sorting

    def sort(self, *sort_lists: SortList) -> "QueryConstraints":
        """Return a new query with additional (lower priority) sorts."""
        return replace(self, sorts=self.sorts.sort(*sort_lists))

    @property
    def unsort(self) -> "QueryConstraints":
        """Return a new query with no sorts."""
        return replace(self, sorts=EMPTY_SORTS) if self.sorts.size else self

    def rank(self, left: Any, right: Any) -> int:
        return self.sorts.rank(left, right)

    # Limiting and paging

    def max(self, limit: Optional[int]) -> "QueryConstraints":
        """Return a new query with a limit set (or removed with `None`)."""
        return replace(self, limit=limit)

    def after(self, record: Any) -> "QueryConstraints":
        """
        Return a new query for the records that sort after `record`.

        Adds one filter per sort: a non-strict comparison for every sort but
        the last, and a strict comparison for the last one.

        Raises:
            ConstraintError: If this query has no sorts, or `record` is
                missing a sorted field
        """
        return replace(self, filters=self.filters.with_(*_get_paging_filters(self.sorts, record, _AFTER_OPERATORS)))

    def before(self, record: Any) -> "QueryConstraints":
        """Return a new query for the records that sort before `record`."""
        return replace(self, filters=self.filters.with_(*_get_paging_filters(self.sorts, record, _BEFORE_OPERATORS)))

    # Applying

    def transform(self, records: Iterable[Any]) -> Iterable[Any]:
        """Filter, then sort, then limit a set of records."""
        results = self.sorts.transform(self.filters.transform(records))
        if self.limit is None:
            return results
        if isinstance(results, list):
            return results if len(results) <= self.limit else results[:self.limit]
        return islice(results, self.limit)

    def __str__(self):
        parts = [str(self.filters), str(self.sorts)]
        if self.limit is not None:
            parts.append(f'"limit":{self.limit}')
        return ",".join(part for part in parts if part)


def _check_limit(limit: Any) -> None:
    if limit is None:
        return
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ConstraintError(f"Limit must be a non-negative integer or None, got {limit!r}")


def _get_paging_filters(sorts: SortConstraints, record: Any, operators: dict) -> List[FilterConstraint]:
    if not sorts.size:
        raise ConstraintError("Cannot page relative to a record on a query with no sort constraints")
    last = sorts.size - 1
    filters = []
    for index, sort in enumerate(sorts):
        value = get_field(record, sort.key)
        if value is MISSING:
            raise ConstraintError(f"Record has no value for sorted field '{sort.key}'")
        operator = operators[sort.direction][1 if index == last else 0]
        filters.append(FilterConstraint(sort.key, operator, value))
    return filters
