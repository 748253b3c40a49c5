from __future__ import annotations

from typing import Any

import pytest

from lather.transport import InMemoryTransport

USER_RECORD: dict[str, Any] = {
    "user_id": 7,
    "name": "Ada",
    "age": "36",
    "address_id": 11,
    "company_id": 3,
}


@pytest.fixture
def transport() -> InMemoryTransport:
    return InMemoryTransport(
        {
            "GetUser": lambda params: {**USER_RECORD, "user_id": params.get("user_id", USER_RECORD["user_id"])},
            "GetAddress": {"street": "1 Loop Rd", "zip": "02139", "name": "Home"},
            "GetCompany": {"company": "Analytical Engines", "employees": "12"},
        }
    )


@pytest.fixture
def factory(transport: InMemoryTransport):
    def _factory(_endpoint: str | None) -> InMemoryTransport:
        return transport

    return _factory
