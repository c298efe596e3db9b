"""
Ranking functions that define a total order over heterogeneous values.

Strings are collated with `locale.strcoll`, which follows the process
LC_COLLATE setting. Under the default "C" locale that is code point order
(so "B" sorts before "a"). Call `locale.setlocale(locale.LC_COLLATE, ...)`
with a language locale, e.g. "en_US.UTF-8", for dictionary order.
"""

import locale
import math
from functools import cmp_to_key
from typing import Any, Callable, Iterable, List


class _Missing:
    """Sentinel for a field that does not exist on a record."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "MISSING"

    def __bool__(self):
        return False


MISSING = _Missing()

Ranker = Callable[[Any, Any], int]

# Rank bands in ascending order.
BAND_NUMBER = 0
BAND_STRING = 1
BAND_TRUE = 2
BAND_FALSE = 3
BAND_NULL = 4
BAND_OTHER = 5
BAND_MISSING = 6


def get_band(value: Any) -> int:
    """
    Get the rank band a value sorts into.

    1. Numbers (ints and floats, but not NaN or booleans)
    2. Strings
    3. `True`
    4. `False`
    5. `None`
    6. Anything else (dicts, lists, objects, NaN)
    7. `MISSING`
    """
    if value is MISSING:
        return BAND_MISSING
    if value is True:
        return BAND_TRUE
    if value is False:
        return BAND_FALSE
    if value is None:
        return BAND_NULL
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return BAND_OTHER if math.isnan(value) else BAND_NUMBER
    if isinstance(value, str):
        return BAND_STRING
    return BAND_OTHER


def rank_asc(left: Any, right: Any) -> int:
    """
    Compare two values in ascending order.
    Values of different types are ordered by their band (see `get_band()`),
    numbers compare numerically and strings compare locale-aware.

    Args:
        left: The first value to compare
        right: The second value to compare

    Returns:
        -1 if left sorts first, 1 if right sorts first, 0 if they sort equally
    """
    if left is right:
        return 0

    left_band = get_band(left)
    right_band = get_band(right)
    if left_band != right_band:
        return -1 if left_band < right_band else 1

    if left_band == BAND_NUMBER:
        if left < right:
            return -1
        return 1 if left > right else 0

    if left_band == BAND_STRING:
        try:
            result = locale.strcoll(left, right)
        except ValueError:
            # strcoll rejects embedded NUL characters.
            result = 0
        if result == 0 and left != right:
            # Collation ties fall back to code point order to stay a total order.
            result = -1 if left < right else 1
        return -1 if result < 0 else 1 if result > 0 else 0

    # Everything else within a band sorts equally.
    return 0


def rank_desc(left: Any, right: Any) -> int:
    """Compare two values in descending order."""
    return 0 - rank_asc(left, right)


def rank(left: Any, ranker: Ranker, right: Any) -> int:
    """Compare two values with a ranker function."""
    return ranker(left, right)


def sort_items(items: Iterable[Any], ranker: Ranker) -> List[Any]:
    """
    Stable sort of an iterable of items using a ranker function.
    The input is materialized into a new list.
    """
    return sorted(items, key=cmp_to_key(ranker))
