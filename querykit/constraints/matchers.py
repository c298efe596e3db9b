"""
Matcher functions used by filter constraints.
Every matcher takes `(field_value, target_value)` and returns a bool; none of
them raise, whatever types they are given.
"""

from typing import Any, Callable, Dict

from ..ranking import rank_asc
from .base import FilterOperator

Matcher = Callable[[Any, Any], bool]


def is_equal(value: Any, target: Any) -> bool:
    """Strict equality: booleans never equal numbers."""
    if value is target:
        return True
    if isinstance(value, bool) != isinstance(target, bool):
        return False
    try:
        return bool(value == target)
    except Exception:
        return False


def not_equal(value: Any, target: Any) -> bool:
    return not is_equal(value, target)


def is_in(value: Any, targets: Any) -> bool:
    """Value is one of a list of targets."""
    if not isinstance(targets, (list, tuple)):
        return False
    return any(is_equal(value, target) for target in targets)


def not_in(value: Any, targets: Any) -> bool:
    return not is_in(value, targets)


def contains(value: Any, target: Any) -> bool:
    """Value is an array that contains the target."""
    if not isinstance(value, (list, tuple)):
        return False
    return any(is_equal(item, target) for item in value)


def is_less(value: Any, target: Any) -> bool:
    return rank_asc(value, target) < 0


def is_less_or_equal(value: Any, target: Any) -> bool:
    return rank_asc(value, target) <= 0


def is_greater(value: Any, target: Any) -> bool:
    return rank_asc(value, target) > 0


def is_greater_or_equal(value: Any, target: Any) -> bool:
    return rank_asc(value, target) >= 0


MATCHERS: Dict[FilterOperator, Matcher] = {
    FilterOperator.IS: is_equal,
    FilterOperator.NOT: not_equal,
    FilterOperator.IN: is_in,
    FilterOperator.OUT: not_in,
    FilterOperator.CONTAINS: contains,
    FilterOperator.LT: is_less,
    FilterOperator.LTE: is_less_or_equal,
    FilterOperator.GT: is_greater,
    FilterOperator.GTE: is_greater_or_equal,
}
