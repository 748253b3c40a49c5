"""Lather - declarative SOAP operations with casts, joins and macros."""

from .errors import (
    DuplicateMacroError,
    FieldNotFoundError,
    LatherError,
    MissingParameterError,
    TransportError,
    UnknownJoinTargetError,
    UnknownMethodError,
    UnknownParameterError,
)
from .macros import DEFAULT_MACROS, MacroSet
from .operation import Operation
from .registry import register_operation
from .transport import InMemoryTransport, ZeepTransport
from .types import HeaderSpec, JoinSpec

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_MACROS",
    "DuplicateMacroError",
    "FieldNotFoundError",
    "HeaderSpec",
    "InMemoryTransport",
    "JoinSpec",
    "LatherError",
    "MacroSet",
    "MissingParameterError",
    "Operation",
    "TransportError",
    "UnknownJoinTargetError",
    "UnknownMethodError",
    "UnknownParameterError",
    "ZeepTransport",
    "register_operation",
]
