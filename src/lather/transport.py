"""SOAP transports used by operations."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol

from loguru import logger
from zeep import Client, Settings as ZeepSettings, xsd
from zeep.cache import SqliteCache
from zeep.exceptions import Error as ZeepError
from zeep.exceptions import Fault
from zeep.helpers import serialize_object
from zeep.transports import Transport

from lather.config import Settings, get_settings
from lather.errors import ConfigurationError, TransportError
from lather.records import as_record
from lather.types import HeaderSpec, Record

type InMemoryReply = Mapping[str, Any] | Callable[[Record], Mapping[str, Any]]


class SoapTransport(Protocol):
    """Minimal contract the call pipeline needs from a SOAP client."""

    def set_headers(self, headers: Sequence[HeaderSpec]) -> None: ...

    def invoke(self, operation_name: str, params: Mapping[str, Any]) -> Record: ...


def build_header(header: HeaderSpec) -> Any:
    """Build one namespaced zeep header element carrying ``header.data``."""

    children = [xsd.Element(f"{{{header.namespace}}}{key}", xsd.String()) for key in header.data]
    element = xsd.Element(f"{{{header.namespace}}}{header.name}", xsd.ComplexType(children))
    return element(**dict(header.data))


class ZeepTransport:
    """SOAP transport backed by a lazily created zeep client."""

    def __init__(self, wsdl: str, settings: Settings | None = None, *, client: Client | None = None) -> None:
        self.wsdl = wsdl
        self.settings = settings or get_settings()
        self._client = client
        self._headers: list[Any] = []

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _build_client(self) -> Client:
        logger.info("soap.client.connect wsdl={}", self.wsdl)
        cache = None
        if self.settings.wsdl_cache:
            path = str(self.settings.wsdl_cache_path) if self.settings.wsdl_cache_path else None
            cache = SqliteCache(path=path)
        zeep_settings = ZeepSettings(strict=self.settings.strict, xml_huge_tree=self.settings.xml_huge_tree)
        try:
            client = Client(wsdl=self.wsdl, transport=Transport(cache=cache), settings=zeep_settings)
        except (ZeepError, OSError) as exc:
            raise TransportError("<wsdl>", f"{self.wsdl}: {exc}") from exc
        if self._headers:
            client.set_default_soapheaders(self._headers)
        return client

    def set_headers(self, headers: Sequence[HeaderSpec]) -> None:
        self._headers = [build_header(header) for header in headers]
        if self._client is not None:
            self._client.set_default_soapheaders(self._headers)

    def invoke(self, operation_name: str, params: Mapping[str, Any]) -> Record:
        try:
            method = self.client.service[operation_name]
        except (AttributeError, KeyError) as exc:
            raise TransportError(operation_name, "operation not found in WSDL service") from exc

        try:
            response = method(**dict(params))
        except Fault as exc:
            raise TransportError(operation_name, f"SOAP fault [{exc.code}]: {exc.message}") from exc
        except (ZeepError, OSError) as exc:
            raise TransportError(operation_name, str(exc)) from exc
        return as_record(serialize_object(response, dict))


class InMemoryTransport:
    """Offline transport answering from canned replies."""

    def __init__(self, responses: Mapping[str, InMemoryReply] | None = None) -> None:
        self.responses: dict[str, InMemoryReply] = dict(responses or {})
        self.headers: list[HeaderSpec] = []
        self.calls: list[tuple[str, Record]] = []

    def set_headers(self, headers: Sequence[HeaderSpec]) -> None:
        self.headers = list(headers)

    def invoke(self, operation_name: str, params: Mapping[str, Any]) -> Record:
        bound = dict(params)
        self.calls.append((operation_name, bound))
        if operation_name not in self.responses:
            raise TransportError(operation_name, "no canned response")
        reply = self.responses[operation_name]
        if callable(reply):
            reply = reply(bound)
        return as_record(reply)


def transport_for(endpoint: str | None, settings: Settings | None = None) -> SoapTransport:
    """Default transport factory: a zeep client for the operation's WSDL."""

    if not endpoint:
        raise ConfigurationError("Operation has no WSDL endpoint and no transport was supplied")
    return ZeepTransport(endpoint, settings)
