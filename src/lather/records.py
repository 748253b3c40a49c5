"""Helpers that expand structured SOAP values into plain records."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from lather.types import Record

_SCALARS = (str, bytes, int, float, bool, type(None))


def plain_record(value: Any) -> Any:
    """Recursively expand mappings, attribute objects and sequences to plain data."""

    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, Mapping):
        return {str(key): plain_record(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain_record(item) for item in value]
    if hasattr(value, "__values__"):
        # zeep CompoundValue keeps its fields here
        return {str(key): plain_record(item) for key, item in value.__values__.items()}
    if hasattr(value, "__dict__") and not callable(value):
        return {key: plain_record(item) for key, item in vars(value).items() if not key.startswith("_")}
    return value


def as_record(value: Any, key: str = "result") -> Record:
    """Normalize one transport result to a field -> value mapping."""

    if value is None:
        return {}
    expanded = plain_record(value)
    if isinstance(expanded, dict):
        return expanded
    return {key: expanded}
