"""Registration and dispatch of response macros."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

from loguru import logger

from lather.errors import DuplicateMacroError, LatherError, UnknownMethodError
from lather.filters import where
from lather.types import CallableMacro, Record, RuntimeMacro


def _dispatch_key(name: str) -> str:
    return name[:1].upper() + name[1:]


class MacroSet:
    """Ordered runtime macros plus a table of on-demand callable macros.

    Runtime macros run on every formatted response in registration order.
    Callable macros run only when dispatched by name and receive the
    formatted response followed by the caller's arguments.
    """

    def __init__(
        self,
        runtime: Mapping[str, RuntimeMacro] | None = None,
        callables: Mapping[str, CallableMacro] | None = None,
    ) -> None:
        self._runtime: dict[str, RuntimeMacro] = {}
        self._callables: dict[str, tuple[str, CallableMacro]] = {}
        for name, func in (runtime or {}).items():
            self.add_runtime(name, func)
        for name, func in (callables or {}).items():
            self.add_callable(name, func)

    def add_runtime(self, name: str, func: RuntimeMacro) -> None:
        if name in self._runtime:
            raise DuplicateMacroError(name)
        self._runtime[name] = func

    def add_callable(self, name: str, func: CallableMacro) -> None:
        if not name:
            raise LatherError("Callable macro name must not be empty")
        self._callables[_dispatch_key(name)] = (name, func)

    def runtime(self, name: str | None = None) -> Callable[[RuntimeMacro], RuntimeMacro]:
        """Decorator registering a runtime macro, named after the function by default."""

        def decorator(func: RuntimeMacro) -> RuntimeMacro:
            self.add_runtime(name or func.__name__, func)
            return func

        return decorator

    def callable(self, name: str | None = None) -> Callable[[CallableMacro], CallableMacro]:
        """Decorator registering a callable macro, named after the function by default."""

        def decorator(func: CallableMacro) -> CallableMacro:
            self.add_callable(name or func.__name__, func)
            return func

        return decorator

    @property
    def runtime_names(self) -> list[str]:
        return list(self._runtime)

    @property
    def callable_names(self) -> list[str]:
        return sorted(name for name, _ in self._callables.values())

    def has_callable(self, name: str) -> bool:
        return bool(name) and _dispatch_key(name) in self._callables

    def __iter__(self) -> Iterator[tuple[str, RuntimeMacro]]:
        return iter(list(self._runtime.items()))

    def __len__(self) -> int:
        return len(self._runtime) + len(self._callables)

    def apply(self, record: Record) -> Record:
        """Run every runtime macro in order, feeding each one the previous output."""

        current = dict(record)
        for name, func in self._runtime.items():
            logger.debug("macro.runtime.apply name={} fields={}", name, len(current))
            current = dict(func(current))
        return current

    def dispatch(self, name: str, record: Record, *args: Any, **kwargs: Any) -> Any:
        entry = self._callables.get(_dispatch_key(name)) if name else None
        if entry is None:
            raise UnknownMethodError(name)
        registered_name, func = entry
        logger.debug("macro.callable.dispatch name={}", registered_name)
        return func(dict(record), *args, **kwargs)

    @classmethod
    def compose(cls, *sets: MacroSet | None) -> MacroSet:
        """Merge macro sets in order.

        Runtime macros keep the order of the sets and may not repeat a name.
        Later callable macros replace earlier ones of the same name.
        """

        merged = cls()
        for macro_set in sets:
            if macro_set is None:
                continue
            for name, func in macro_set._runtime.items():
                merged.add_runtime(name, func)
            for name, func in macro_set._callables.values():
                merged.add_callable(name, func)
        return merged


DEFAULT_MACROS = MacroSet(callables={"where": where})
