"""Name-based registry of operation classes used to resolve joins."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lather.errors import UnknownJoinTargetError

if TYPE_CHECKING:
    from lather.operation import Operation


class OperationRegistry:
    """Maps operation names to their classes."""

    def __init__(self) -> None:
        self._operations: dict[str, type[Operation]] = {}

    def register(self, operation_class: type[Operation], name: str | None = None) -> type[Operation]:
        """Register an operation class.

        Args:
            operation_class: The operation class to register
            name: Registry name, the class name by default

        Returns:
            The same class (for decorator usage)

        Raises:
            ValueError: If the name is already taken by a different class
        """
        key = name or operation_class.__name__
        existing = self._operations.get(key)
        if existing is not None and existing is not operation_class:
            msg = f"Operation '{key}' already registered with different class: {existing.__name__} vs {operation_class.__name__}"
            raise ValueError(msg)
        self._operations[key] = operation_class
        return operation_class

    def get(self, name: str) -> type[Operation] | None:
        return self._operations.get(name)

    def get_or_raise(self, name: str) -> type[Operation]:
        operation_class = self.get(name)
        if operation_class is None:
            raise UnknownJoinTargetError(name)
        return operation_class

    def unregister(self, name: str) -> bool:
        return self._operations.pop(name, None) is not None

    def names(self) -> list[str]:
        return sorted(self._operations)


_global_registry = OperationRegistry()


def register_operation(operation_class: type[Operation]) -> type[Operation]:
    """Class decorator adding an operation to the global registry so joins can name it."""

    return _global_registry.register(operation_class)


def get_registry() -> OperationRegistry:
    return _global_registry
