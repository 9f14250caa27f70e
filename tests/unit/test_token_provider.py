from __future__ import annotations

import base64
from urllib.parse import parse_qs

import httpx
import pytest

from sierra_gateway.errors import (
    AuthenticationError,
    DecodeError,
    TransportError,
    TTLTooShortError,
)
from sierra_gateway.webclient.OAuth2TokenProvider import OAuth2TokenProvider

TOKEN_URL = "https://sierra.test/iii/sierra-api/v1/token"


def provider_for(handler, token_url: str = TOKEN_URL) -> OAuth2TokenProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OAuth2TokenProvider(token_url, "dingding", "secret", client=client)


@pytest.mark.asyncio
async def test_acquire_sends_client_credentials_grant() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["content_type"] = request.headers["content-type"]
        seen["auth"] = request.headers["authorization"]
        seen["body"] = parse_qs(request.content.decode())
        return httpx.Response(200, json={"access_token": "test", "token_type": "bearer", "expires_in": 3600})

    token, ttl = await provider_for(handler).acquire()

    assert (token, ttl) == ("test", 3600)
    assert seen["method"] == "POST"
    assert seen["content_type"] == "application/x-www-form-urlencoded"
    assert seen["body"] == {"grant_type": ["client_credentials"]}
    expected = base64.b64encode(b"dingding:secret").decode()
    assert seen["auth"] == f"Basic {expected}"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 403, 500])
async def test_acquire_rejects_non_success_status(status) -> None:
    provider = provider_for(lambda request: httpx.Response(status, json={"error": "nope"}))
    with pytest.raises(AuthenticationError) as exc_info:
        await provider.acquire()
    assert exc_info.value.status_code == status


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"[]",
        b'{"token_type": "bearer", "expires_in": 3600}',
        b'{"access_token": "", "expires_in": 3600}',
        b'{"access_token": "T"}',
        b'{"access_token": "T", "expires_in": "soon"}',
    ],
)
async def test_acquire_rejects_malformed_body(body) -> None:
    provider = provider_for(lambda request: httpx.Response(200, content=body))
    with pytest.raises(DecodeError):
        await provider.acquire()


@pytest.mark.asyncio
async def test_acquire_rejects_short_ttl() -> None:
    provider = provider_for(lambda request: httpx.Response(200, json={"access_token": "T", "expires_in": 1}))
    with pytest.raises(TTLTooShortError) as exc_info:
        await provider.acquire()
    assert exc_info.value.ttl == 1


@pytest.mark.asyncio
async def test_acquire_accepts_ttl_at_minimum() -> None:
    provider = provider_for(lambda request: httpx.Response(200, json={"access_token": "T", "expires_in": 10}))
    assert await provider.acquire() == ("T", 10)


@pytest.mark.asyncio
async def test_acquire_wraps_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        await provider_for(handler).acquire()


@pytest.mark.asyncio
async def test_acquire_wraps_malformed_url() -> None:
    provider = OAuth2TokenProvider("not a url", "k", "s")
    with pytest.raises(TransportError):
        await provider.acquire()


@pytest.mark.asyncio
async def test_acquire_rejects_ttl_beyond_a_year() -> None:
    provider = provider_for(
        lambda request: httpx.Response(200, json={"access_token": "T", "expires_in": 400 * 24 * 3600})
    )
    with pytest.raises(DecodeError):
        await provider.acquire()
