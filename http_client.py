"""Shared HTTP client factory - one httpx.AsyncClient per run, TLS only"""
import httpx

VERSION = "0.1.0"
USER_AGENT = f"kplc-bill-alert/{VERSION}"

# Per-request deadline in seconds
DEFAULT_TIMEOUT = 30.0


class PlaintextRejectingTransport(httpx.AsyncBaseTransport):
    """Transport mounted on http:// that refuses to send anything."""

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        raise httpx.UnsupportedProtocol(
            f"Refusing plaintext request to {request.url}, only https is allowed",
            request=request
        )


def get_http_client(
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = DEFAULT_TIMEOUT
) -> httpx.AsyncClient:
    """
    Build the HTTP client shared by the bill query and every channel.

    Args:
        transport: Transport for https:// traffic (default: httpx's own).
            Tests pass an httpx.MockTransport here.
        timeout: Per-request timeout in seconds

    Returns:
        An httpx.AsyncClient. Callers own it and must close it, preferably
        with `async with`.
    """
    headers = {
        "User-Agent": USER_AGENT,
        "Accept": "*/*",
        "Connection": "keep-alive"
    }

    return httpx.AsyncClient(
        headers=headers,
        timeout=timeout,
        transport=transport,
        mounts={"http://": PlaintextRejectingTransport()}
    )
