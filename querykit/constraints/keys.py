"""
String-key grammar for filters and sorts.

Filter keys:
    "name"      name IS value (or IN when value is a list)
    "!name"     name NOT value (or OUT when value is a list)
    "tags[]"    tags array CONTAINS value
    "age<"      age LT value
    "age<="     age LTE value
    "age>"      age GT value
    "age>="     age GTE value

Sort keys:
    "name"      ascending by name
    "!name"     descending by name

Parsing is permissive: a key that matches no qualifier is a plain field name.
Only one qualifier applies per key, and `!` is checked first, so `"!age>"`
means "field `age>` is not value".
"""

from dataclasses import dataclass
from typing import Any

from .base import FilterOperator, SortDirection

NEGATE_PREFIX = "!"
CONTAINS_SUFFIX = "[]"

# Longer suffixes first so `>=` is not read as `>`.
COMPARISON_SUFFIXES = (
    (">=", FilterOperator.GTE),
    ("<=", FilterOperator.LTE),
    (">", FilterOperator.GT),
    ("<", FilterOperator.LT),
)

NEGATED = {
    FilterOperator.IS: FilterOperator.NOT,
    FilterOperator.NOT: FilterOperator.IS,
    FilterOperator.IN: FilterOperator.OUT,
    FilterOperator.OUT: FilterOperator.IN,
}


@dataclass(frozen=True)
class ParsedFilterKey:
    """Result of tokenizing a filter key."""
    operator: FilterOperator
    field: str


@dataclass(frozen=True)
class ParsedSortKey:
    """Result of tokenizing a sort key."""
    direction: SortDirection
    field: str


def is_list_value(value: Any) -> bool:
    """Whether a filter value is a list of scalars (selects IN/OUT)."""
    return isinstance(value, (list, tuple))


def parse_filter_key(filter_key: str, value: Any) -> ParsedFilterKey:
    """
    Tokenize a filter key into an operator and field.

    Args:
        filter_key: Key in the filter grammar, e.g. `age>` or `!status`
        value: The filter value, used to choose IS/IN and NOT/OUT

    Returns:
        ParsedFilterKey with the operator and the bare field name
    """
    base = FilterOperator.IN if is_list_value(value) else FilterOperator.IS

    if filter_key.startswith(NEGATE_PREFIX):
        return ParsedFilterKey(NEGATED[base], filter_key[len(NEGATE_PREFIX):])

    if filter_key.endswith(CONTAINS_SUFFIX):
        return ParsedFilterKey(FilterOperator.CONTAINS, filter_key[:-len(CONTAINS_SUFFIX)])

    for suffix, operator in COMPARISON_SUFFIXES:
        if filter_key.endswith(suffix):
            return ParsedFilterKey(operator, filter_key[:-len(suffix)])

    return ParsedFilterKey(base, filter_key)


def format_filter_key(field: str, operator: FilterOperator) -> str:
    """Reconstruct the filter key for a field and operator."""
    if operator in (FilterOperator.NOT, FilterOperator.OUT):
        return f"{NEGATE_PREFIX}{field}"
    if operator == FilterOperator.CONTAINS:
        return f"{field}{CONTAINS_SUFFIX}"
    for suffix, suffix_operator in COMPARISON_SUFFIXES:
        if operator == suffix_operator:
            return f"{field}{suffix}"
    return field


def parse_sort_key(sort_key: str) -> ParsedSortKey:
    """Tokenize a sort key into a direction and field."""
    if sort_key.startswith(NEGATE_PREFIX):
        return ParsedSortKey(SortDirection.DESC, sort_key[len(NEGATE_PREFIX):])
    return ParsedSortKey(SortDirection.ASC, sort_key)


def format_sort_key(field: str, direction: SortDirection) -> str:
    """Reconstruct the sort key for a field and direction."""
    return f"{NEGATE_PREFIX}{field}" if direction == SortDirection.DESC else field
