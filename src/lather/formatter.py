"""Turns merged SOAP responses into the formatted response."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from lather.casts import apply_casts
from lather.macros import MacroSet
from lather.types import Record


class ResponseFormatter:
    """Applies declared casts, then runtime macros, to a merged response."""

    def __init__(self, casts: Mapping[str, str], macros: MacroSet) -> None:
        self.casts = dict(casts)
        self.macros = macros

    def format(self, merged: Mapping[str, Any]) -> Record:
        return self.macros.apply(apply_casts(self.casts, merged))
