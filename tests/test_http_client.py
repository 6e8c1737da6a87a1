import httpx
import pytest

from http_client import USER_AGENT, get_http_client


@pytest.mark.asyncio
async def test_http_client_default_headers():
    """Test that every request carries the fixed headers"""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    async with get_http_client(transport=httpx.MockTransport(handler)) as client:
        await client.get("https://kplc.test/ping")

    assert USER_AGENT.startswith("kplc-bill-alert/")
    assert seen[0].headers["User-Agent"] == USER_AGENT
    assert seen[0].headers["Accept"] == "*/*"
    assert seen[0].headers["Connection"] == "keep-alive"


@pytest.mark.asyncio
async def test_http_client_rejects_plaintext():
    """Test that http:// requests never reach a transport"""
    handler_calls = []

    def handler(request):
        handler_calls.append(request)
        return httpx.Response(200)

    async with get_http_client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.UnsupportedProtocol, match="only https is allowed"):
            await client.get("http://kplc.test/api/token")

    assert handler_calls == []


@pytest.mark.asyncio
async def test_http_client_default_transport_rejects_plaintext():
    """Test plaintext rejection with the real transport (no socket is opened)"""
    async with get_http_client() as client:
        with pytest.raises(httpx.UnsupportedProtocol):
            await client.post("http://api.pushover.net/1/messages.json", data={"a": "b"})


def test_http_client_timeout():
    """Test that a per-request deadline is configured"""
    client = get_http_client(timeout=5.0)

    assert client.timeout.read == 5.0
    assert client.timeout.connect == 5.0
