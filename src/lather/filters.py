"""Built-in filtering macros."""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from typing import Any

from lather.types import Record

COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "==": operator.eq,
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
    "!=": operator.ne,
    "<>": operator.ne,
}


def _as_number(value: Any) -> int | float | None:
    """Parse a whole numeric value; strings with trailing text are not numbers here."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return None
    return None


def _loose_operands(left: Any, right: Any) -> tuple[Any, Any]:
    # text from the wire compares numerically when both sides are numbers
    if not (isinstance(left, str) or isinstance(right, str)):
        return left, right
    left_number = _as_number(left)
    right_number = _as_number(right)
    if left_number is None or right_number is None:
        return left, right
    return left_number, right_number


def compare(left: Any, check: str, right: Any) -> bool:
    """Evaluate ``left <check> right``; unknown operators and incomparable types give False."""

    comparator = COMPARATORS.get(check)
    if comparator is None:
        return False
    left, right = _loose_operands(left, right)
    try:
        return bool(comparator(left, right))
    except TypeError:
        return False


def where(record: Mapping[str, Any], key: str, check: str, value: Any) -> Record:
    """Keep the entry named ``key`` when its value satisfies the comparison.

    This matches on the field name, so the result holds at most one entry.
    """

    return {name: item for name, item in record.items() if name == key and compare(item, check, value)}
