#!/usr/bin/env python3
"""
Qdrant backend for query constraints.
Converts FilterConstraints to Qdrant Filter objects over point payloads.

Qdrant conditions match any element of an array payload, so a converted
filter selects a superset of the matching points. The provider narrows the
scrolled points with the exact in-memory filters, then sorts and limits them.
Constraints with no safe native condition (NOT, OUT, GT, GTE, non-scalar
values) are left out of the Qdrant filter.
"""

import math
from typing import Any, List, Optional

from qdrant_client.models import (
    Filter, FieldCondition, Range, MatchValue, MatchAny,
    IsNullCondition, PayloadField
)

from ..constraints import FilterConstraint, FilterConstraints, FilterOperator, QueryConstraints
from ..ranking import BAND_FALSE, BAND_NULL, BAND_NUMBER, BAND_STRING, BAND_TRUE, get_band
from .base import QueryBackend

Condition = Any

# Characters with a meaning in Qdrant key paths.
RESERVED_KEY_CHARS = frozenset('[]"')


class QdrantQueryBackend(QueryBackend):
    """
    Converts query filters to Qdrant prefilters.
    """

    SUPPORTED_OPERATORS = frozenset({
        FilterOperator.IS,
        FilterOperator.IN,
        FilterOperator.CONTAINS,
        FilterOperator.LT, FilterOperator.LTE,
    })

    def convert(self, query: QueryConstraints) -> Optional[Filter]:
        """
        Convert the filters of a query to a Qdrant Filter.

        Args:
            query: The query to convert

        Returns:
            Qdrant Filter selecting a superset of the matching points, or
            None if no filter can narrow the scroll
        """
        return self.convert_filters(query.filters)

    def convert_filters(self, filters: FilterConstraints) -> Optional[Filter]:
        """Convert a set of filters to a Qdrant Filter (None if nothing converts)."""
        must: List[Condition] = []
        for constraint in filters:
            condition = self.convert_filter(constraint)
            if condition is not None:
                must.append(condition)
        return Filter(must=must) if must else None

    def convert_filter(self, constraint: FilterConstraint) -> Optional[Condition]:
        """
        Convert a single filter.

        Returns:
            A condition matched by at least every point the filter matches,
            or None if the filter has no such condition
        """
        op = constraint.operator
        key = constraint.key
        value = constraint.value

        if not self.supports_operator(op) or RESERVED_KEY_CHARS.intersection(key):
            return None

        if op == FilterOperator.IS:
            return self._build_equality(key, value)

        elif op == FilterOperator.IN:
            return self._build_in(key, value)

        elif op == FilterOperator.CONTAINS:
            if get_band(value) == BAND_NULL:
                return None
            return self._build_equality(key, value)

        # Numbers rank below every other type, so LT/LTE only match numbers.
        if get_band(value) != BAND_NUMBER or math.isinf(value):
            return None

        if op == FilterOperator.LT:
            return FieldCondition(key=key, range=Range(lt=value))
        elif op == FilterOperator.LTE:
            return FieldCondition(key=key, range=Range(lte=value))

        return None

    def _build_equality(self, key: str, value: Any) -> Optional[Condition]:
        band = get_band(value)
        if band == BAND_NUMBER:
            if math.isinf(value):
                return None
            # Range matches integer and float payloads alike.
            return FieldCondition(key=key, range=Range(gte=value, lte=value))
        elif band in (BAND_STRING, BAND_TRUE, BAND_FALSE):
            return FieldCondition(key=key, match=MatchValue(value=value))
        elif band == BAND_NULL:
            return IsNullCondition(is_null=PayloadField(key=key))
        return None

    def _build_in(self, key: str, values: Any) -> Optional[Condition]:
        if not isinstance(values, (list, tuple)) or not values:
            return None
        if all(isinstance(v, str) for v in values):
            return FieldCondition(key=key, match=MatchAny(any=list(values)))
        conditions = [self._build_equality(key, v) for v in values]
        if any(condition is None for condition in conditions):
            return None
        return Filter(should=conditions)
