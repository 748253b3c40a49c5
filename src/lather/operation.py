"""Base class for declarative SOAP operations."""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextvars import ContextVar
from functools import partial
from typing import Any, ClassVar

from loguru import logger

from lather.binder import bind
from lather.casts import KNOWN_TAGS
from lather.config import Settings
from lather.errors import ConfigurationError, FieldNotFoundError, UnknownMethodError, UnknownParameterError
from lather.formatter import ResponseFormatter
from lather.joins import JoinResolver
from lather.macros import DEFAULT_MACROS, MacroSet
from lather.records import plain_record
from lather.registry import OperationRegistry
from lather.transport import SoapTransport, transport_for
from lather.types import HeaderSpec, JoinSpec, JoinTarget, OperationDescriptor, Record

type TransportFactory = Callable[[str | None], SoapTransport]

_current_operation: ContextVar[str] = ContextVar("lather_operation", default="-")


def current_operation() -> str:
    """Name of the operation whose call is running, or ``-``."""

    return _current_operation.get()


def _shorten_text(text: str, width: int = 30, placeholder: str = "...") -> str:
    if len(text) <= width:
        return text
    available = width - len(placeholder)
    if available <= 0:
        return placeholder
    return text[:available] + placeholder


def _render_params(params: Mapping[str, Any]) -> str:
    rendered: list[str] = []
    for key, value in params.items():
        try:
            text = json.dumps(value, ensure_ascii=False)
        except TypeError:
            text = repr(value)
        rendered.append(f"{key}={_shorten_text(text)}")
    return ", ".join(rendered)


def _header_spec(value: HeaderSpec | Mapping[str, Any]) -> HeaderSpec:
    if isinstance(value, HeaderSpec):
        return value
    try:
        return HeaderSpec(namespace=value["namespace"], name=value["name"], data=dict(value.get("data") or {}))
    except (KeyError, TypeError) as exc:
        raise ConfigurationError(f"Invalid header declaration: {value!r}") from exc


def _join_specs(joins: Mapping[JoinTarget, Sequence[str]] | Iterable[JoinSpec]) -> tuple[JoinSpec, ...]:
    if not isinstance(joins, Mapping):
        return tuple(joins)
    specs: list[JoinSpec] = []
    for target, fields in joins.items():
        if isinstance(fields, str) or len(fields) != 2:
            raise ConfigurationError(f"Join on {target!r} needs a (source_field, target_field) pair")
        source_field, target_field = fields
        specs.append(JoinSpec(target=target, source_field=source_field, target_field=target_field))
    return tuple(specs)


def describe_operation(operation_class: type[Operation]) -> OperationDescriptor:
    """Validate the class-level declarations of an operation and freeze them."""

    params = operation_class.params
    if isinstance(params, str):
        raise ConfigurationError(f"{operation_class.__name__}.params must be a collection of names, not a string")
    casts = dict(operation_class.casts)
    for key, tag in casts.items():
        if not isinstance(tag, str):
            raise ConfigurationError(f"Cast for '{key}' must be a tag name such as 'int' or 'string'")
        if tag.lower() not in KNOWN_TAGS:
            logger.debug("operation.cast.passthrough operation={} field={} tag={}", operation_class.__name__, key, tag)

    return OperationDescriptor(
        endpoint=operation_class.wsdl,
        operation_name=operation_class.operation_name or operation_class.__name__,
        params=frozenset(params),
        headers=tuple(_header_spec(header) for header in operation_class.headers),
        casts=casts,
        joins=_join_specs(operation_class.joins),
    )


class Operation:
    """One SOAP remote procedure.

    Subclasses declare what the procedure looks like::

        class GetUser(Operation):
            wsdl = "https://example.com/users?wsdl"
            params = {"user_id"}
            casts = {"age": "int"}
            joins = {GetAddress: ("address_id", "id")}

    and instances perform calls::

        user = GetUser()
        user.call({"user_id": 7})
        user.get("age")
    """

    wsdl: ClassVar[str | None] = None
    operation_name: ClassVar[str | None] = None
    params: ClassVar[Iterable[str]] = ()
    headers: ClassVar[Sequence[HeaderSpec | Mapping[str, Any]]] = ()
    casts: ClassVar[Mapping[str, str]] = {}
    joins: ClassVar[Mapping[JoinTarget, Sequence[str]] | Sequence[JoinSpec]] = {}
    macros: ClassVar[MacroSet | None] = None

    _descriptor: ClassVar[OperationDescriptor | None] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._descriptor = describe_operation(cls)

    @classmethod
    def describe(cls) -> OperationDescriptor:
        descriptor = cls.__dict__.get("_descriptor")
        if descriptor is None:
            descriptor = describe_operation(cls)
        return descriptor

    def __init__(
        self,
        transport: SoapTransport | None = None,
        *,
        transport_factory: TransportFactory | None = None,
        settings: Settings | None = None,
        default_macros: MacroSet | None = DEFAULT_MACROS,
        registry: OperationRegistry | None = None,
        join_chain: tuple[type[Operation], ...] = (),
    ) -> None:
        self.descriptor = self.describe()
        self._join_chain = (*join_chain, type(self))
        self._settings = settings
        self._transport_factory = transport_factory or partial(transport_for, settings=settings)
        self._default_macros = default_macros
        self._registry = registry
        self._macros = MacroSet.compose(default_macros, type(self).macros)

        self._transport = transport if transport is not None else self._transport_factory(self.descriptor.endpoint)
        if self.descriptor.headers:
            self._transport.set_headers(self.descriptor.headers)

        self._formatter = ResponseFormatter(self.descriptor.casts, self._macros)
        self._joins = JoinResolver(self._spawn, registry)
        self._state: Record = {}
        self._response: Record = {}

    def _spawn(self, operation_class: type[Operation]) -> Operation:
        if operation_class in self._join_chain:
            cycle = " -> ".join(cls.__name__ for cls in (*self._join_chain, operation_class))
            raise ConfigurationError(f"Join cycle: {cycle}")
        return operation_class(
            transport_factory=self._transport_factory,
            settings=self._settings,
            default_macros=self._default_macros,
            registry=self._registry,
            join_chain=self._join_chain,
        )

    @property
    def name(self) -> str:
        return self.descriptor.operation_name

    @property
    def transport(self) -> SoapTransport:
        return self._transport

    @property
    def macro_set(self) -> MacroSet:
        return self._macros

    @property
    def params_state(self) -> Record:
        """Parameters assigned with :meth:`set_param` so far."""
        return dict(self._state)

    def set_param(self, key: str, value: Any) -> None:
        if key not in self.descriptor.params:
            raise UnknownParameterError(key)
        self._state[key] = value

    def call(self, *groups: Mapping[str, Any], **params: Any) -> Record:
        """Run the operation and return its formatted response.

        Explicit parameter groups (and keyword parameters) are validated against
        the declared parameters. Without them, every declared parameter must
        have been assigned with :meth:`set_param`.
        """
        if params:
            groups = (*groups, params)

        token = _current_operation.set(self.name)
        start = time.monotonic()
        try:
            bound = bind(self.descriptor.params, self._state, *groups)
            logger.info("operation.call.start name={} params={}", self.name, ",".join(bound))
            logger.debug("operation.call.params name={} {{ {} }}", self.name, _render_params(bound))
            self._transport.set_headers(self.descriptor.headers)
            raw = self._transport.invoke(self.name, bound)
            merged = self._joins.resolve(self.descriptor.joins, raw)
            formatted = self._formatter.format(merged)
        except Exception as exc:
            logger.warning("operation.call.error name={} error={}", self.name, exc)
            raise
        finally:
            duration = time.monotonic() - start
            logger.info("operation.call.end name={} duration={:.3f}ms", self.name, duration * 1000)
            _current_operation.reset(token)

        self._response = formatted
        return self.all()

    def all(self) -> Record:
        return dict(self._response)

    def get(self, key: str) -> Any:
        try:
            return self._response[key]
        except KeyError:
            raise FieldNotFoundError(key) from None

    def has(self, key: str) -> bool:
        return key in self._response

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._response

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._response))

    def __len__(self) -> int:
        return len(self._response)

    def to_record(self) -> Record:
        """Plain-data copy of the formatted response for serialization."""
        return plain_record(self._response)

    def to_json(self, **kwargs: Any) -> str:
        kwargs.setdefault("ensure_ascii", False)
        kwargs.setdefault("default", str)
        return json.dumps(self.to_record(), **kwargs)

    def dispatch(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Run a callable macro against the current formatted response."""
        return self._macros.dispatch(name, self._response, *args, **kwargs)

    def where(self, key: str, check: str, value: Any) -> Any:
        return self.dispatch("where", key, check, value)

    def __getattr__(self, name: str) -> Any:
        macros = self.__dict__.get("_macros")
        if name.startswith("_") or macros is None:
            raise AttributeError(name)
        if not macros.has_callable(name):
            raise UnknownMethodError(name)
        return partial(self.dispatch, name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} operation={self.name!r} fields={len(self._response)}>"
