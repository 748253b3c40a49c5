from __future__ import annotations

import json

import pytest
from fixtures_operations.users import GetAuditedUser, GetUser

from lather import (
    DuplicateMacroError,
    FieldNotFoundError,
    HeaderSpec,
    InMemoryTransport,
    MacroSet,
    MissingParameterError,
    Operation,
    TransportError,
    UnknownMethodError,
    UnknownParameterError,
)
from lather.errors import ConfigurationError


def test_call_applies_casts_and_exposes_response(transport: InMemoryTransport) -> None:
    user = GetUser(transport)

    result = user.call({"user_id": 7})

    assert transport.calls == [("GetUser", {"user_id": 7})]
    assert result["age"] == 36
    assert result["user_id"] == "7"
    assert result["name"] == "Ada"
    assert user.all() == result
    assert user.get("age") == 36
    assert user["name"] == "Ada"
    assert "age" in user
    assert user.has("name")
    assert len(user) == len(result)
    assert sorted(user) == sorted(result)


def test_call_accepts_keyword_params(transport: InMemoryTransport) -> None:
    GetUser(transport).call({"user_id": 1}, tenant="acme")
    assert transport.calls[-1] == ("GetUser", {"user_id": 1, "tenant": "acme"})


def test_call_rejects_unknown_param(transport: InMemoryTransport) -> None:
    user = GetUser(transport)
    with pytest.raises(UnknownParameterError, match="Param: email does not exist"):
        user.call({"user_id": 7, "email": "a@b"})
    assert transport.calls == []


def test_call_without_params_uses_call_state(transport: InMemoryTransport) -> None:
    user = GetUser(transport)

    with pytest.raises(MissingParameterError):
        user.call()

    user.set_param("user_id", 9)
    user.set_param("tenant", "acme")
    result = user.call()

    assert result["user_id"] == "9"
    assert user.params_state == {"user_id": 9, "tenant": "acme"}


def test_set_param_rejects_undeclared_key(transport: InMemoryTransport) -> None:
    with pytest.raises(UnknownParameterError):
        GetUser(transport).set_param("email", "a@b")


def test_headers_are_attached_to_transport(transport: InMemoryTransport) -> None:
    GetUser(transport)
    assert transport.headers == [HeaderSpec(namespace="urn:example:auth", name="Auth", data={"token": "secret"})]


def test_get_missing_field_fails(transport: InMemoryTransport) -> None:
    user = GetUser(transport)
    user.call({"user_id": 7})
    with pytest.raises(FieldNotFoundError):
        user.get("nope")
    with pytest.raises(KeyError):
        user["nope"]


def test_recall_replaces_previous_response() -> None:
    replies = iter([{"a": 1, "b": 2}, {"c": 3}])
    transport = InMemoryTransport({"Flip": lambda _params: next(replies)})

    class Flip(Operation):
        wsdl = "https://soap.example.test/flip?wsdl"

    flip = Flip(transport)
    assert flip.call() == {"a": 1, "b": 2}
    assert flip.call() == {"c": 3}
    assert flip.all() == {"c": 3}
    assert not flip.has("a")


def test_failed_call_keeps_previous_response() -> None:
    replies = iter([{"a": 1}])

    def reply(_params: dict) -> dict:
        try:
            return next(replies)
        except StopIteration:
            raise TransportError("Once", "boom") from None

    class Once(Operation):
        wsdl = "https://soap.example.test/once?wsdl"

    once = Once(InMemoryTransport({"Once": reply}))
    once.call()

    with pytest.raises(TransportError, match="boom"):
        once.call()
    assert once.all() == {"a": 1}


def test_transport_errors_pass_through_unchanged() -> None:
    class Broken:
        def set_headers(self, headers) -> None:
            return None

        def invoke(self, operation_name, params):
            raise ConnectionResetError("peer went away")

    class Ping(Operation):
        wsdl = "https://soap.example.test/ping?wsdl"

    with pytest.raises(ConnectionResetError):
        Ping(Broken()).call()


def test_all_returns_a_snapshot(transport: InMemoryTransport) -> None:
    user = GetUser(transport)
    user.call({"user_id": 7})
    snapshot = user.all()
    snapshot["age"] = 0
    assert user.get("age") == 36


def test_runtime_and_callable_macros_from_class(transport: InMemoryTransport) -> None:
    user = GetAuditedUser(transport)
    result = user.call({"user_id": 7})

    assert result["audited"] is True
    assert user.dispatch("pick", "name", "age") == {"name": "Ada", "age": "36"}
    assert user.pick("name") == {"name": "Ada"}
    assert user.where("name", "=", "Ada") == {"name": "Ada"}


def test_where_filters_formatted_response(transport: InMemoryTransport) -> None:
    user = GetUser(transport)
    user.call({"user_id": 7})

    assert user.where("age", ">", 30) == {"age": 36}
    assert user.where("age", "<", 30) == {}
    assert user.Where("age", ">=", 36) == {"age": 36}


def test_unknown_method_dispatch_fails(transport: InMemoryTransport) -> None:
    user = GetUser(transport)
    with pytest.raises(UnknownMethodError, match="Method: explode does not exist"):
        user.explode()
    assert not hasattr(user, "explode")


def test_duplicate_runtime_macro_between_default_and_class_fails_on_construction(transport) -> None:
    shared = MacroSet(runtime={"normalize": lambda response: response})

    class Normalized(Operation):
        wsdl = "https://soap.example.test/n?wsdl"
        macros = MacroSet(runtime={"normalize": lambda response: response})

    with pytest.raises(DuplicateMacroError, match="normalize"):
        Normalized(transport, default_macros=shared)


def test_default_macros_can_be_replaced(transport: InMemoryTransport) -> None:
    shout = MacroSet(runtime={"shout": lambda response: {key.upper(): value for key, value in response.items()}})
    user = GetUser(transport, default_macros=shout)
    result = user.call({"user_id": 7})

    assert "NAME" in result
    with pytest.raises(UnknownMethodError):
        user.where("NAME", "=", "Ada")


def test_serialization(transport: InMemoryTransport) -> None:
    user = GetUser(transport)
    user.call({"user_id": 7})

    assert user.to_record() == user.all()
    assert json.loads(user.to_json())["age"] == 36


def test_describe_freezes_declarations() -> None:
    descriptor = GetUser.describe()

    assert descriptor.operation_name == "GetUser"
    assert descriptor.endpoint == "https://soap.example.test/users?wsdl"
    assert descriptor.params == frozenset({"user_id", "tenant"})
    assert descriptor.casts == {"age": "int", "user_id": "string"}
    assert descriptor.summary()["headers"][0]["data"] == {"token": "secret"}


def test_operation_name_defaults_to_class_name(transport: InMemoryTransport) -> None:
    class GetAddress(Operation):
        wsdl = "https://soap.example.test/address?wsdl"

    assert GetAddress(transport).name == "GetAddress"


def test_header_mappings_are_accepted() -> None:
    class Headed(Operation):
        wsdl = "https://soap.example.test/h?wsdl"
        headers = [{"namespace": "urn:x", "name": "Session", "data": {"id": "1"}}]

    assert Headed.describe().headers == (HeaderSpec(namespace="urn:x", name="Session", data={"id": "1"}),)


def test_invalid_declarations_fail_at_class_definition() -> None:
    with pytest.raises(ConfigurationError):

        class BadParams(Operation):
            params = "user_id"

    with pytest.raises(ConfigurationError):

        class BadHeader(Operation):
            headers = [{"name": "NoNamespace"}]

    with pytest.raises(ConfigurationError):

        class BadJoin(Operation):
            joins = {"GetUser": ("only_one",)}


def test_missing_endpoint_without_transport_fails() -> None:
    class Nowhere(Operation):
        pass

    with pytest.raises(ConfigurationError):
        Nowhere()


def test_call_logs_start_and_end(monkeypatch, transport: InMemoryTransport) -> None:
    logs: list[str] = []

    def _capture(message: str, *args: object) -> None:
        logs.append(message)

    monkeypatch.setattr("lather.operation.logger.info", _capture)

    GetUser(transport).call({"user_id": 7})

    assert logs.count("operation.call.start name={} params={}") == 1
    assert logs.count("operation.call.end name={} duration={:.3f}ms") == 1


def test_param_values_are_logged_at_debug_only(monkeypatch, transport: InMemoryTransport) -> None:
    info: list[tuple[str, tuple[object, ...]]] = []
    debug: list[tuple[str, tuple[object, ...]]] = []

    monkeypatch.setattr("lather.operation.logger.info", lambda message, *args: info.append((message, args)))
    monkeypatch.setattr("lather.operation.logger.debug", lambda message, *args: debug.append((message, args)))

    GetUser(transport).call({"user_id": 7, "tenant": "s3cret-token"})

    start = [args for message, args in info if message.startswith("operation.call.start")]
    assert start == [("GetUser", "user_id,tenant")]
    assert not any("s3cret-token" in str(args) for _, args in info)
    assert any("s3cret-token" in str(args) for message, args in debug if message.startswith("operation.call.params"))


def test_joined_operation_headers_do_not_replace_parent_headers() -> None:
    parent_auth = HeaderSpec(namespace="urn:example:auth", name="ParentAuth", data={"token": "p"})
    child_auth = HeaderSpec(namespace="urn:example:auth", name="ChildAuth", data={"token": "c"})
    sent: list[tuple[str, list[str]]] = []
    transport = InMemoryTransport()

    def reply(operation_name: str, record: dict):
        def _reply(_params: dict) -> dict:
            sent.append((operation_name, [header.name for header in transport.headers]))
            return record

        return _reply

    transport.responses.update(
        {
            "Child": reply("Child", {"child_field": 1}),
            "Parent": reply("Parent", {"ref": 5}),
        }
    )

    class Child(Operation):
        wsdl = "https://soap.example.test/child?wsdl"
        params = {"ref"}
        headers = [child_auth]

    class Parent(Operation):
        wsdl = "https://soap.example.test/parent?wsdl"
        headers = [parent_auth]
        joins = {Child: ("ref", "ref")}

    parent = Parent(transport_factory=lambda _endpoint: transport)
    parent.call()
    parent.call()

    assert sent == [
        ("Parent", ["ParentAuth"]),
        ("Child", ["ChildAuth"]),
        ("Parent", ["ParentAuth"]),
        ("Child", ["ChildAuth"]),
    ]


def test_operation_without_headers_clears_shared_transport_headers() -> None:
    transport = InMemoryTransport({"Plain": {"ok": True}})
    transport.set_headers([HeaderSpec(namespace="urn:x", name="Stale", data={})])

    class Plain(Operation):
        wsdl = "https://soap.example.test/plain?wsdl"

    Plain(transport).call()

    assert transport.headers == []
