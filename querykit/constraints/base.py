"""
Base classes shared by filter, sort and query constraints.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any, Generic, Iterable, Iterator, Optional, Tuple, TypeVar

from ..ranking import MISSING

# Field name that resolves to a record's external identifier.
ID_KEY = "id"

C = TypeVar("C")


class FilterOperator(Enum):
    """Operators a filter constraint can apply."""
    IS = "IS"
    NOT = "NOT"
    IN = "IN"
    OUT = "OUT"
    CONTAINS = "CONTAINS"
    LT = "LT"
    LTE = "LTE"
    GT = "GT"
    GTE = "GTE"


class SortDirection(Enum):
    """Directions a sort constraint can rank in."""
    ASC = "ASC"
    DESC = "DESC"


def get_field(record: Any, key: str) -> Any:
    """
    Get the value of a field from a record.

    Records are either mappings, or `(id, mapping)` entries as produced by
    `dict.items()`. The `id` key resolves to the entry's id; any other key is
    a dotted path into nested mappings.

    Args:
        record: The record to read from
        key: Field name, dotted path, or `id`

    Returns:
        The field value, or `MISSING` if the field does not exist
    """
    if isinstance(record, tuple) and len(record) == 2:
        record_id, data = record
        if key == ID_KEY:
            return record_id
        record = data

    value = record
    for part in key.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return MISSING
        value = value[part]
    return value


class Constraint(ABC):
    """A rule that can be applied to an iterable of records."""

    @abstractmethod
    def transform(self, records: Iterable[Any]) -> Iterable[Any]:
        """Apply this constraint to a set of records."""
        pass


class Constraints(Constraint, Generic[C]):
    """
    Ordered, immutable set of sub-constraints.
    `FilterConstraints` and `SortConstraints` extend this.
    """

    __slots__ = ("_constraints",)

    def __init__(self, *constraints: C):
        self._constraints: Tuple[C, ...] = tuple(constraints)

    def _copy(self, constraints: Tuple[C, ...]):
        clone = object.__new__(self.__class__)
        clone._constraints = constraints
        return clone

    @property
    def first(self) -> Optional[C]:
        """Get the first constraint."""
        return self._constraints[0] if self._constraints else None

    @property
    def last(self) -> Optional[C]:
        """Get the last constraint."""
        return self._constraints[-1] if self._constraints else None

    @property
    def size(self) -> int:
        """Get the number of constraints."""
        return len(self._constraints)

    def with_(self, *constraints: C):
        """Clone this set of constraints with additional constraints appended."""
        if not constraints:
            return self
        return self._copy(self._constraints + tuple(constraints))

    def omit(self, *constraints: C):
        """Clone this set of constraints without specific constraints."""
        kept = tuple(c for c in self._constraints if c not in constraints)
        return self if len(kept) == len(self._constraints) else self._copy(kept)

    def __iter__(self) -> Iterator[C]:
        return iter(self._constraints)

    def __len__(self) -> int:
        return len(self._constraints)

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        return self._constraints == other._constraints

    def __hash__(self):
        return hash((self.__class__, self._constraints))

    def __repr__(self):
        return f"{self.__class__.__name__}({', '.join(map(repr, self._constraints))})"
