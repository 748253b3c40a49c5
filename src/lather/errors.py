"""Exception types raised by Lather operations."""

from __future__ import annotations

from typing import Any


class LatherError(Exception):
    """Base exception for Lather."""


class ConfigurationError(LatherError):
    """Raised when an operation declaration cannot be used."""


class UnknownParameterError(LatherError):
    """Raised when a call binds a parameter the operation does not declare."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Param: {key} does not exist")
        self.key = key


class MissingParameterError(LatherError):
    """Raised when a declared parameter has no value at call time."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Param: {key} is required but was not set")
        self.key = key


class UnknownJoinTargetError(LatherError):
    """Raised when a join cannot be resolved against the primary response."""

    def __init__(self, target: Any, source_field: str | None = None) -> None:
        if source_field is None:
            message = f"Join target: {target} is not a known operation"
        else:
            message = f"Join target: {target} needs field '{source_field}' missing from the response"
        super().__init__(message)
        self.target = target
        self.source_field = source_field


class DuplicateMacroError(LatherError):
    """Raised when a runtime macro name is registered twice."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Runtime macro: {name} already defined")
        self.name = name


class UnknownMethodError(LatherError, AttributeError):
    """Raised when no callable macro matches a dispatched name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Method: {name} does not exist")
        self.name = name


class FieldNotFoundError(LatherError, KeyError):
    """Raised when a formatted response has no such field."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Field: {self.key} is not in the response"


class TransportError(LatherError):
    """Raised when the SOAP transport fails to complete an operation."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"SOAP call {operation} failed: {detail}")
        self.operation = operation
        self.detail = detail
