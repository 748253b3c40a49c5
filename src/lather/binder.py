"""Parameter binding for operation calls."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from lather.errors import MissingParameterError, UnknownParameterError
from lather.types import Record


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def bind(declared: Iterable[str], state: Mapping[str, Any], *groups: Mapping[str, Any]) -> Record:
    """Resolve the parameter bag for one call.

    With explicit groups every key must be declared; later groups win on
    collisions. Without groups every declared parameter must already be set
    on the call state.
    """

    allowed = frozenset(declared)
    if groups:
        bound: Record = {}
        for group in groups:
            for key, value in group.items():
                if key not in allowed:
                    raise UnknownParameterError(key)
                bound[key] = value
        return bound

    bound = {}
    for key in sorted(allowed):
        value = state.get(key)
        if is_empty(value):
            raise MissingParameterError(key)
        bound[key] = value
    return bound
