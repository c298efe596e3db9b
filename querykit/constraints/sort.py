"""
Sort constraints: decide the order of records.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Union

from ..ranking import rank, rank_asc, rank_desc, sort_items
from .base import Constraint, Constraints, SortDirection, get_field
from .filter import to_json
from .keys import format_sort_key, parse_sort_key

# Sort key string, `SortConstraint`, or an iterable of either.
SortList = Union[str, "SortConstraint", Iterable[Any], None]


@dataclass(frozen=True)
class SortConstraint(Constraint):
    """
    Rank records by a single field.

    Attributes:
        key: Field name (dotted path into the record) or `id`
        direction: SortDirection.ASC or SortDirection.DESC
    """
    key: str
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def from_key(cls, sort_key: str) -> "SortConstraint":
        """Create a sort from a string key, e.g. `date` or `!date`."""
        parsed = parse_sort_key(sort_key)
        return cls(parsed.field, parsed.direction)

    @property
    def sort_key(self) -> str:
        return format_sort_key(self.key, self.direction)

    def rank(self, left: Any, right: Any) -> int:
        ranker = rank_asc if self.direction == SortDirection.ASC else rank_desc
        return rank(get_field(left, self.key), ranker, get_field(right, self.key))

    def transform(self, records: Iterable[Any]) -> List[Any]:
        return sort_items(records, self.rank)

    def __str__(self):
        return to_json(self.sort_key)


def get_sorts(sort_list: SortList) -> Iterator[SortConstraint]:
    """Flatten a flexible list of sorts into `SortConstraint` instances."""
    if sort_list is None:
        return
    if isinstance(sort_list, str):
        yield SortConstraint.from_key(sort_list)
    elif isinstance(sort_list, SortConstraint):
        yield sort_list
    else:
        for item in sort_list:
            yield from get_sorts(item)


class SortConstraints(Constraints[SortConstraint]):
    """
    A set of sorts applied in priority order.
    Earlier sorts take precedence; later sorts break ties.
    """

    def __init__(self, *sort_lists: SortList):
        super().__init__(*get_sorts(sort_lists))

    def sort(self, *sort_lists: SortList) -> "SortConstraints":
        """Clone this set with additional (lower priority) sorts."""
        return self.with_(*get_sorts(sort_lists))

    @property
    def unsorted(self) -> "SortConstraints":
        """Clone this set with no sorts."""
        return self._copy(()) if self._constraints else self

    def rank(self, left: Any, right: Any) -> int:
        for constraint in self._constraints:
            result = constraint.rank(left, right)
            if result != 0:
                return result
        return 0

    def transform(self, records: Iterable[Any]) -> Iterable[Any]:
        # Single stable pass with the combined comparator.
        if not self._constraints:
            return records
        return sort_items(records, self.rank)

    def __str__(self):
        if not self._constraints:
            return ""
        return f'"sorts":[{",".join(map(str, self._constraints))}]'


EMPTY_SORTS = SortConstraints()
