"""Per-field type casts applied to raw SOAP responses."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from lather.types import Record

INT_TAGS = frozenset({"int", "integer"})
STRING_TAGS = frozenset({"string", "str"})
KNOWN_TAGS = INT_TAGS | STRING_TAGS

_NUMERIC_PREFIX = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def to_int(value: Any) -> int:
    """Coerce any value to an int without raising.

    Strings are read from their leading numeric prefix, so ``"42px"`` gives
    ``42`` and ``"n/a"`` gives ``0``.
    """

    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return int(value)
    if value is None:
        return 0
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value)
        if match is None:
            return 0
        number = match.group(0).strip()
        if match.group(2) is None and match.group(3) is None and not number.lstrip("+-").startswith("."):
            return int(number)
        return to_int(float(number))
    if isinstance(value, (list, tuple, dict)):
        return 1 if value else 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def apply_cast(tag: str, value: Any) -> Any:
    """Convert one value according to a cast tag; unknown tags pass through."""

    normalized = tag.lower() if isinstance(tag, str) else tag
    if normalized in INT_TAGS:
        return to_int(value)
    if normalized in STRING_TAGS:
        return to_text(value)
    return value


def apply_casts(casts: Mapping[str, str], record: Mapping[str, Any]) -> Record:
    """Return a new record with every declared cast applied once."""

    return {key: apply_cast(casts[key], value) if key in casts else value for key, value in record.items()}
