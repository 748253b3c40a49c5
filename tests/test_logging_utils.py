from __future__ import annotations

import pytest
from fixtures_operations.users import GetUser, GetUserProfile
from loguru import logger

from lather import MacroSet
from lather import logging_utils
from lather.logging_utils import configure_logging
from lather.operation import current_operation


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(logging_utils, "_CONFIGURED_PROFILE", None)
    yield
    logger.remove()


def test_current_operation_follows_nested_joins(transport, factory) -> None:
    seen: list[str] = []

    def spy(response: dict) -> dict:
        seen.append(current_operation())
        return response

    profile = GetUserProfile(transport_factory=factory, default_macros=MacroSet(runtime={"spy": spy}))
    profile.call({"user_id": 7})

    assert seen == ["GetAddress", "GetCompany", "GetUser"]
    assert current_operation() == "-"


def test_configure_logging_injects_operation_name(monkeypatch, transport) -> None:
    configure_logging(profile="default", level="INFO")
    assert logging_utils._CONFIGURED_PROFILE == "default"

    operations: list[str] = []
    sink_id = logger.add(lambda message: operations.append(message.record["extra"]["operation"]), level="INFO")
    try:
        GetUser(transport).call({"user_id": 7})
    finally:
        logger.remove(sink_id)

    assert "GetUser" in operations


def test_configure_logging_console_profile() -> None:
    configure_logging(profile="console", level="WARNING")
    assert logging_utils._CONFIGURED_PROFILE == "console"
    configure_logging(profile="default")
    assert logging_utils._CONFIGURED_PROFILE == "default"
