"""Secondary operation calls merged into a primary response."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from loguru import logger

from lather.errors import UnknownJoinTargetError
from lather.records import plain_record
from lather.registry import OperationRegistry, get_registry
from lather.types import JoinSpec, Record

if TYPE_CHECKING:
    from lather.operation import Operation

type OperationFactory = Callable[[type[Operation]], Operation]


class JoinResolver:
    """Runs joined operations in declaration order and merges their responses."""

    def __init__(self, factory: OperationFactory, registry: OperationRegistry | None = None) -> None:
        self._factory = factory
        self._registry = registry or get_registry()

    def target_class(self, join: JoinSpec) -> type[Operation]:
        from lather.operation import Operation

        target = join.target
        if isinstance(target, str):
            return self._registry.get_or_raise(target)
        if isinstance(target, type) and issubclass(target, Operation):
            return target
        raise UnknownJoinTargetError(target)

    def resolve(self, joins: Iterable[JoinSpec], raw: Mapping[str, Any]) -> Record:
        """Return ``raw`` with every joined response merged over it."""

        joined: Record = {}
        for join in joins:
            operation_class = self.target_class(join)
            if join.source_field not in raw:
                raise UnknownJoinTargetError(join.target_name, join.source_field)

            operation = self._factory(operation_class)
            operation.set_param(join.target_field, raw[join.source_field])
            logger.info(
                "operation.join name={} source={} target={}",
                join.target_name,
                join.source_field,
                join.target_field,
            )
            response = operation.call()
            joined.update(plain_record(response))

        merged = dict(raw)
        merged.update(joined)
        return merged
