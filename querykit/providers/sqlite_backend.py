#!/usr/bin/env python3
"""
SQLite backend for query constraints.
Converts QueryConstraints to SQLite WHERE / ORDER BY / LIMIT clauses over a
table of `(id TEXT, data TEXT)` rows, where `data` holds the item as JSON.

Values of different types are compared with the same type bands the
in-memory ranker uses (numbers < strings < true < false < null < other <
missing), so results match `QueryConstraints.transform()`. Strings compare
by code point rather than locale collation.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from ..constraints import ID_KEY, FilterConstraint, FilterConstraints, FilterOperator, QueryConstraints, SortConstraints, SortDirection
from ..exceptions import UnsupportedOperatorError, UnsupportedQueryError
from ..ranking import (
    BAND_FALSE, BAND_MISSING, BAND_NULL, BAND_NUMBER, BAND_OTHER, BAND_STRING, BAND_TRUE,
    get_band
)
from .base import QueryBackend

# SQL for the type band of a JSON value, keyed by json_type() result.
_JSON_TYPE_BANDS = (
    ("integer", BAND_NUMBER),
    ("real", BAND_NUMBER),
    ("text", BAND_STRING),
    ("true", BAND_TRUE),
    ("false", BAND_FALSE),
    ("null", BAND_NULL),
    ("missing", BAND_MISSING),
)

_COMPARISONS = {
    FilterOperator.LT: "<",
    FilterOperator.LTE: "<=",
    FilterOperator.GT: ">",
    FilterOperator.GTE: ">=",
}


@dataclass
class SQLiteQuery:
    """A converted query, ready to be turned into a SELECT statement."""
    where: str
    order_by: str
    limit: Optional[int] = None
    params: List[Any] = field(default_factory=list)

    def select(self, table: str, alias: str = "r", columns: str = "r.id, r.data") -> Tuple[str, List[Any]]:
        """
        Build the SELECT statement for a table.

        Returns:
            Tuple of (sql, params)
        """
        sql = f'SELECT {columns} FROM "{table}" AS {alias} WHERE {self.where} ORDER BY {self.order_by}'
        params = list(self.params)
        if self.limit is not None:
            sql += " LIMIT ?"
            params.append(self.limit)
        return sql, params


class SQLiteQueryBackend(QueryBackend):
    """
    Converts QueryConstraints to SQLite clauses.
    Uses SQLite's JSON functions to reach into the data column.
    """

    def __init__(self,
                 data_column: str = "data",
                 id_column: str = "id",
                 table_alias: str = "r"):
        """
        Initialize SQLite backend.

        Args:
            data_column: Name of the JSON data column
            id_column: Name of the id column
            table_alias: Table alias to use in generated SQL
        """
        self.data_column = data_column
        self.id_column = id_column
        self.table_alias = table_alias
        self.params: List[Any] = []

    def convert(self, query: QueryConstraints) -> SQLiteQuery:
        """
        Convert QueryConstraints to SQLite clauses.

        Args:
            query: The query to convert

        Returns:
            SQLiteQuery with where clause, order by clause, limit and params

        Raises:
            UnsupportedQueryError: If a filter or sort can't be expressed
        """
        self.params = []
        self.validate_query(query)
        where = self.convert_filters(query.filters)
        order_by = self.convert_sorts(query.sorts)
        return SQLiteQuery(where, order_by, query.limit, self.params)

    def convert_filters(self, filters: FilterConstraints) -> str:
        """Convert a set of filters to a WHERE clause (params go to `self.params`)."""
        if not filters.size:
            return "1=1"
        parts = [self._convert_filter(f) for f in filters]
        return parts[0] if len(parts) == 1 else f"({' AND '.join(parts)})"

    def convert_sorts(self, sorts: SortConstraints) -> str:
        """Convert a set of sorts to an ORDER BY clause."""
        parts = []
        for sort in sorts:
            direction = "DESC" if sort.direction == SortDirection.DESC else "ASC"
            if sort.key != ID_KEY:
                parts.append(f"{self._band(sort.key)} {direction}")
            parts.append(f"{self._sort_value(sort.key)} {direction}")
        # Ties keep insertion order.
        parts.append(self._column("rowid"))
        return ", ".join(parts)

    # Field references

    def _column(self, name: str) -> str:
        return f"{self.table_alias}.{name}" if self.table_alias else name

    def _path(self, key: str) -> str:
        """JSON path literal for a (dotted) field name."""
        if '"' in key:
            raise UnsupportedQueryError(f"Field name {key!r} can't be used in a SQLite JSON path")
        path = "$" + "".join(f'."{part}"' for part in key.split("."))
        return "'" + path.replace("'", "''") + "'"

    def _ref(self, key: str) -> str:
        if key == ID_KEY:
            return self._column(self.id_column)
        return f"json_extract({self._column(self.data_column)}, {self._path(key)})"

    def _type(self, key: str) -> str:
        if key == ID_KEY:
            return "'text'"
        return f"COALESCE(json_type({self._column(self.data_column)}, {self._path(key)}), 'missing')"

    def _band(self, key: str) -> str:
        if key == ID_KEY:
            return str(BAND_STRING)
        whens = " ".join(f"WHEN '{json_type}' THEN {band}" for json_type, band in _JSON_TYPE_BANDS)
        return f"CASE {self._type(key)} {whens} ELSE {BAND_OTHER} END"

    def _sort_value(self, key: str) -> str:
        if key == ID_KEY:
            return self._ref(key)
        return f"CASE WHEN {self._type(key)} IN ('integer', 'real', 'text') THEN {self._ref(key)} END"

    # Filters

    def _convert_filter(self, constraint: FilterConstraint) -> str:
        """Convert a single filter to SQL."""
        op = constraint.operator
        key = constraint.key
        value = constraint.value

        if op == FilterOperator.IS:
            return self._build_equality(op, key, value)

        elif op == FilterOperator.NOT:
            return f"NOT {self._build_equality(op, key, value)}"

        elif op == FilterOperator.IN:
            return self._build_in(op, key, value)

        elif op == FilterOperator.OUT:
            return f"NOT {self._build_in(op, key, value)}"

        elif op == FilterOperator.CONTAINS:
            return self._build_contains(op, key, value)

        elif op in _COMPARISONS:
            return self._build_comparison(op, key, value)

        else:
            raise UnsupportedOperatorError(op, "SQLite")

    def _build_equality(self, op: FilterOperator, key: str, value: Any) -> str:
        """Build a strict equality check that never evaluates to NULL."""
        band = get_band(value)

        if key == ID_KEY:
            if band != BAND_STRING:
                return "0=1"
            self.params.append(value)
            return f"{self._ref(key)} = ?"

        if band == BAND_NUMBER:
            self.params.append(value)
            return f"({self._type(key)} IN ('integer', 'real') AND {self._ref(key)} = ?)"
        elif band == BAND_STRING:
            self.params.append(value)
            return f"({self._type(key)} = 'text' AND {self._ref(key)} = ?)"
        elif band == BAND_TRUE:
            return f"{self._type(key)} = 'true'"
        elif band == BAND_FALSE:
            return f"{self._type(key)} = 'false'"
        elif band == BAND_NULL:
            return f"{self._type(key)} = 'null'"
        else:
            raise UnsupportedOperatorError(op, "SQLite", f"can't compare {type(value).__name__} values")

    def _build_in(self, op: FilterOperator, key: str, values: Any) -> str:
        """Build a check for the field equalling one of several values."""
        if not isinstance(values, (list, tuple)):
            raise UnsupportedOperatorError(op, "SQLite", "value must be a list")
        if not values:
            return "(0=1)"
        parts = [self._build_equality(op, key, value) for value in values]
        return f"({' OR '.join(parts)})"

    def _build_contains(self, op: FilterOperator, key: str, value: Any) -> str:
        """Build array contains check."""
        if key == ID_KEY:
            return "0=1"

        band = get_band(value)
        if band == BAND_NUMBER:
            self.params.append(value)
            element = "e.type IN ('integer', 'real') AND e.value = ?"
        elif band == BAND_STRING:
            self.params.append(value)
            element = "e.type = 'text' AND e.value = ?"
        elif band == BAND_TRUE:
            element = "e.type = 'true'"
        elif band == BAND_FALSE:
            element = "e.type = 'false'"
        elif band == BAND_NULL:
            element = "e.type = 'null'"
        else:
            raise UnsupportedOperatorError(op, "SQLite", f"can't match {type(value).__name__} array items")

        data = self._column(self.data_column)
        exists = f"EXISTS (SELECT 1 FROM json_each({data}, {self._path(key)}) AS e WHERE {element})"
        return f"({self._type(key)} = 'array' AND {exists})"

    def _build_comparison(self, op: FilterOperator, key: str, value: Any) -> str:
        """Build LT/LTE/GT/GTE using type bands, then natural order within a band."""
        sql_op = _COMPARISONS[op]
        band = get_band(value)
        field_band = self._band(key)

        if band not in (BAND_NUMBER, BAND_STRING):
            # Every value within the other bands ranks equally.
            return f"{field_band} {sql_op} {band}"

        strict = ">" if op in (FilterOperator.GT, FilterOperator.GTE) else "<"
        self.params.append(value)
        return f"({field_band} {strict} {band} OR ({field_band} = {band} AND {self._ref(key)} {sql_op} ?))"
