"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import httpx
import pytest

from federated_search.config import SearchSettings
from federated_search.models.source import SourceDescriptor

CONVERSION_HOST = "api.zhconvert.org"

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


# ============================================================
# Fake HTTP servers
# ============================================================


class FakeServers:
    """
    Routes requests to per-host handlers and records every request.

    Hosts without a handler answer 404.
    """

    conversion_host = CONVERSION_HOST

    def __init__(self) -> None:
        self.handlers: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def route(self, host: str, handler: Handler) -> None:
        self.handlers[host] = handler

    def json(self, host: str, payload: object, status_code: int = 200) -> None:
        self.route(host, lambda request: httpx.Response(status_code, json=payload))

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.handlers.get(request.url.host)
        if handler is None:
            return httpx.Response(404, json={"error": "no route"})
        response = handler(request)
        if isinstance(response, Awaitable):
            response = await response
        return response

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def servers():
    """Fresh set of fake HTTP servers."""
    return FakeServers()


@pytest.fixture
async def http_client(servers):
    """httpx client wired to the fake servers."""
    async with servers.client() as client:
        yield client


# ============================================================
# Settings / Sources
# ============================================================


@pytest.fixture
def fast_settings():
    """Settings with no retry delays and short timeouts."""
    return SearchSettings(
        normalization_timeout=0.5,
        request_timeout=1.0,
        max_attempts=3,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )


def _make_source(source_id: str, **kwargs) -> SourceDescriptor:
    return SourceDescriptor(
        id=source_id,
        name=kwargs.pop("name", source_id.title()),
        base_url=kwargs.pop("base_url", f"https://{source_id}.example.com"),
        search_path=kwargs.pop("search_path", "/api.php/provide/vod"),
        headers=kwargs.pop("headers", {}),
    )


def _vod_payload(*names: str, code: int | str = 1) -> dict:
    return {
        "code": code,
        "msg": "数据列表",
        "page": 1,
        "list": [{"vod_id": i + 1, "vod_name": name} for i, name in enumerate(names)],
    }


def _conversion_payload(text: str) -> dict:
    return {"code": 0, "msg": "", "data": {"converter": "Simplified", "text": text}}


@pytest.fixture
def make_source():
    """Factory: make_source("alpha") served at https://alpha.example.com."""
    return _make_source


@pytest.fixture
def three_sources():
    return [_make_source("alpha"), _make_source("beta"), _make_source("gamma")]


@pytest.fixture
def vod_payload():
    """Factory for source search responses, one item per name."""
    return _vod_payload


@pytest.fixture
def conversion_payload():
    """Factory for zhconvert success responses."""
    return _conversion_payload
