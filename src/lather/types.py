"""Declarative data shapes shared across the call pipeline."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lather.operation import Operation

type Record = dict[str, Any]
type RuntimeMacro = Callable[[Record], Mapping[str, Any]]
type CallableMacro = Callable[..., Any]
type JoinTarget = type[Operation] | str


@dataclass(frozen=True)
class HeaderSpec:
    """One SOAP header attached to every call of an operation."""

    namespace: str
    name: str
    data: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class JoinSpec:
    """A secondary operation seeded from a field of the primary response."""

    target: JoinTarget
    source_field: str
    target_field: str

    @property
    def target_name(self) -> str:
        if isinstance(self.target, str):
            return self.target
        return self.target.__name__


@dataclass(frozen=True)
class OperationDescriptor:
    """Fixed, class-level description of one SOAP operation."""

    endpoint: str | None
    operation_name: str
    params: frozenset[str] = frozenset()
    headers: tuple[HeaderSpec, ...] = ()
    casts: Mapping[str, str] = field(default_factory=dict)
    joins: tuple[JoinSpec, ...] = ()

    def summary(self) -> dict[str, Any]:
        """Return a JSON-friendly view of the descriptor."""

        return {
            "endpoint": self.endpoint,
            "operation_name": self.operation_name,
            "params": sorted(self.params),
            "headers": [
                {"namespace": header.namespace, "name": header.name, "data": dict(header.data)}
                for header in self.headers
            ],
            "casts": dict(self.casts),
            "joins": [
                {"target": join.target_name, "source_field": join.source_field, "target_field": join.target_field}
                for join in self.joins
            ],
        }
