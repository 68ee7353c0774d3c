from __future__ import annotations

from typing import Any, Iterator

import pytest

from wifeed_mcp.client import WiFeedClient, reset_client
from wifeed_mcp.constants import WIFEED_BASE_URL

API_KEY = "test-key"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Force pytest-anyio to use asyncio (not trio)."""
    return "asyncio"


@pytest.fixture
def client() -> WiFeedClient:
    return WiFeedClient(API_KEY)


@pytest.fixture(autouse=True)
def _no_global_client() -> Iterator[None]:
    reset_client()
    yield
    reset_client()


def endpoint_url(path: str) -> str:
    return f"{WIFEED_BASE_URL}{path}"


def query(route: Any) -> dict:
    """Query parameters of the last request a respx route received."""
    return dict(route.calls.last.request.url.params)
