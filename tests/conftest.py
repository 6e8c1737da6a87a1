import json
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from pytest_socket import disable_socket

from http_client import get_http_client
from settings import KPLCSettings, PushoverSettings, Settings

FIXTURES = Path(__file__).parent / "fixtures"


def pytest_runtest_setup():
    """
    Runs before every test.
    We disable network access. Every attempt to connect
    (HTTP, DNS, etc) will immediately raise a SocketBlockedError.
    """
    disable_socket(allow_unix_socket=True)


def load_fixture(filename: str) -> str:
    """Raw text of a JSON fixture under tests/fixtures"""
    return (FIXTURES / filename).read_text()


def json_response(status_code: int, filename: str | None = None, body=None) -> httpx.Response:
    """Build a JSON response from a fixture file or a Python object"""
    content = load_fixture(filename) if filename else json.dumps(body)
    return httpx.Response(
        status_code,
        content=content.encode(),
        headers={"Content-Type": "application/json"}
    )


class Router:
    """
    Minimal request router for httpx.MockTransport.

    Maps (method, path) to a list of responses served in order and records
    every request it sees.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method: str, path: str, response: httpx.Response):
        self.routes.setdefault((method, path), []).append(response)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responses = self.routes.get((request.method, request.url.path))
        if not responses:
            return httpx.Response(404, json={"unexpected": str(request.url)})
        return responses.pop(0)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


@pytest.fixture
def router():
    return Router()


@pytest_asyncio.fixture
async def http_client(router):
    async with get_http_client(transport=httpx.MockTransport(router)) as client:
        yield client


@pytest.fixture
def kplc_settings():
    return KPLCSettings(
        account_number="12345",
        basic_auth="Basic dGVzdC1jbGllbnQ6dGVzdC1zZWNyZXQ=",
        token_url="https://kplc.test/api/token",
        bill_url="https://kplc.test/api/publicData/bill",
        token_scope="token_public",
        token_grant_type="client_credentials"
    )


@pytest.fixture
def pushover_settings():
    return PushoverSettings(
        enabled=True,
        token="asdasd",
        user_key="a1213qd",
        api_url="https://pushover.test/1/messages.json"
    )


@pytest.fixture
def settings(kplc_settings, pushover_settings):
    return Settings(kplc=kplc_settings, pushover=pushover_settings)
