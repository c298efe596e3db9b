"""
Constraint engine: filters, sorts and queries over keyed records.

Constraints can be applied to any iterable of records in memory, or
translated by a provider into its native query format.

Example usage:
    from querykit.constraints import QueryConstraints

    query = QueryConstraints().filter({"type": "alert", "priority>=": 5}).sort("!priority").max(10)
    results = list(query.transform(records))

    # Next page
    next_page = query.after(results[-1])
"""

from .base import ID_KEY, Constraint, Constraints, FilterOperator, SortDirection, get_field
from .filter import EMPTY_FILTERS, FilterConstraint, FilterConstraints, FilterList, get_filters
from .keys import format_filter_key, format_sort_key, parse_filter_key, parse_sort_key
from .matchers import MATCHERS
from .query import QueryConstraints
from .sort import EMPTY_SORTS, SortConstraint, SortConstraints, SortList, get_sorts

__all__ = [
    # Core classes
    'Constraint',
    'Constraints',
    'FilterOperator',
    'SortDirection',
    'FilterConstraint',
    'FilterConstraints',
    'SortConstraint',
    'SortConstraints',
    'QueryConstraints',

    # Empty sets
    'EMPTY_FILTERS',
    'EMPTY_SORTS',

    # Helpers
    'ID_KEY',
    'MATCHERS',
    'FilterList',
    'SortList',
    'get_field',
    'get_filters',
    'get_sorts',
    'parse_filter_key',
    'format_filter_key',
    'parse_sort_key',
    'format_sort_key',
]
