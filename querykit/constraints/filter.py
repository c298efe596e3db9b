"""
Filter constraints: decide which records match.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Union

from ..exceptions import ConstraintError
from .base import Constraint, Constraints, FilterOperator, get_field
from .keys import format_filter_key, is_list_value, parse_filter_key
from .matchers import MATCHERS

# `FilterConstraint`, a mapping of `{filter_key: value}`, or an iterable of either.
FilterList = Union["FilterConstraint", Mapping, Iterable[Any], None]


def to_json(value: Any) -> str:
    """Compact JSON serialization used for constraint strings."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class FilterConstraint(Constraint):
    """
    A single `key operator value` predicate.

    Attributes:
        key: Field name (dotted path into the record) or `id`
        operator: FilterOperator to match with
        value: Value to match against; a tuple of values for IN and OUT
    """
    key: str
    operator: FilterOperator
    value: Any

    def __post_init__(self):
        if is_list_value(self.value) and not isinstance(self.value, tuple):
            object.__setattr__(self, "value", tuple(self.value))
        # The filter key must parse back to this key and operator, so that
        # different filters never share a string form.
        parsed = parse_filter_key(self.filter_key, self.value)
        if parsed.operator != self.operator or parsed.field != self.key:
            raise ConstraintError(
                f"{self.operator.value} filter on {self.key!r} with value {self.value!r} "
                f"can't be written as a filter key"
            )

    @classmethod
    def from_key(cls, filter_key: str, value: Any) -> "FilterConstraint":
        """
        Create a filter from a string key, e.g. `age>` or `!status`.
        IS/IN and NOT/OUT are chosen by whether `value` is a list.
        """
        parsed = parse_filter_key(filter_key, value)
        return cls(parsed.field, parsed.operator, value)

    @property
    def filter_key(self) -> str:
        """The string key that parses back to this filter's key and operator."""
        return format_filter_key(self.key, self.operator)

    def match(self, record: Any) -> bool:
        return MATCHERS[self.operator](get_field(record, self.key), self.value)

    def transform(self, records: Iterable[Any]) -> Iterator[Any]:
        match = self.match
        return (record for record in records if match(record))

    def __str__(self):
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return f"{to_json(self.filter_key)}:{to_json(value)}"


def get_filters(filter_list: FilterList) -> Iterator[FilterConstraint]:
    """
    Flatten a flexible list of filters into `FilterConstraint` instances.

    Args:
        filter_list: A FilterConstraint, a `{filter_key: value}` mapping,
            or any (nested) iterable of those; `None` entries are skipped

    Yields:
        FilterConstraint instances in order
    """
    if filter_list is None:
        return
    if isinstance(filter_list, FilterConstraint):
        yield filter_list
    elif isinstance(filter_list, Mapping):
        for key, value in filter_list.items():
            yield FilterConstraint.from_key(key, value)
    elif isinstance(filter_list, str):
        raise TypeError(f"Filters must be given with a value, got bare key {filter_list!r}")
    else:
        for item in filter_list:
            yield from get_filters(item)


class FilterConstraints(Constraints[FilterConstraint]):
    """A set of filters that records must all match."""

    def __init__(self, *filter_lists: FilterList):
        super().__init__(*get_filters(filter_lists))

    def filter(self, *filter_lists: FilterList) -> "FilterConstraints":
        """Clone this set with additional filters."""
        return self.with_(*get_filters(filter_lists))

    @property
    def unfiltered(self) -> "FilterConstraints":
        """Clone this set with no filters."""
        return self._copy(()) if self._constraints else self

    def match(self, record: Any) -> bool:
        for constraint in self._constraints:
            if not constraint.match(record):
                return False
        return True

    def transform(self, records: Iterable[Any]) -> Iterable[Any]:
        if not self._constraints:
            return records
        match = self.match
        return (record for record in records if match(record))

    def __str__(self):
        if not self._constraints:
            return ""
        return f'"filters":{{{",".join(map(str, self._constraints))}}}'


EMPTY_FILTERS = FilterConstraints()
