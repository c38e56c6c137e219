"""
Tests for ModelsApiClient against a local aiohttp server.
"""

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from talentrank.core.exceptions import (
    AuthenticationError,
    InvalidResponseError,
    MalformedRequestError,
    RateLimitedError,
    TransientProviderError,
)
from talentrank.core.models_api import ModelsApiClient


class ProviderStub:
    """Scripted OpenAI-compatible endpoint. Records every request."""

    def __init__(self):
        self.requests = []
        self.replies = {}

    def reply(self, path, status=200, body=None, headers=None, raw=None):
        self.replies[path] = (status, body, headers or {}, raw)

    async def handle(self, request):
        payload = await request.json() if request.can_read_body else None
        self.requests.append(
            {
                "path": request.path,
                "payload": payload,
                "authorization": request.headers.get("Authorization"),
            }
        )
        status, body, headers, raw = self.replies.get(request.path, (404, {"error": "nope"}, {}, None))
        if raw is not None:
            return web.Response(status=status, text=raw, headers=headers)
        return web.json_response(body, status=status, headers=headers)


@pytest_asyncio.fixture
async def provider():
    stub = ProviderStub()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", stub.handle)
    server = test_utils.TestServer(app)
    await server.start_server()
    stub.base_url = str(server.make_url("/"))
    yield stub
    await server.close()


@pytest_asyncio.fixture
async def client(provider):
    api = ModelsApiClient(provider.base_url, token="sk-test-token", timeout=5)
    yield api
    await api.close()


@pytest.mark.asyncio
async def test_embed(provider, client):
    provider.reply("/embeddings", body={"data": [{"embedding": [0.1, 0.2, 0.3]}]})

    vector = await client.embed("python developer", "text-embedding-3-small")

    assert vector == pytest.approx([0.1, 0.2, 0.3])
    request = provider.requests[0]
    assert request["authorization"] == "Bearer sk-test-token"
    assert request["payload"] == {
        "model": "text-embedding-3-small",
        "input": "python developer",
        "encoding_format": "float",
    }


@pytest.mark.asyncio
async def test_complete(provider, client):
    provider.reply("/chat/completions", body={"choices": [{"message": {"content": "Hello"}}]})

    content = await client.complete([{"role": "user", "content": "hi"}], "gpt-4o-mini", 100, 0.5)

    assert content == "Hello"
    assert provider.requests[0]["payload"]["max_tokens"] == 100
    assert provider.requests[0]["payload"]["temperature"] == 0.5


@pytest.mark.asyncio
async def test_rate_limited_with_retry_after(provider, client):
    provider.reply("/embeddings", status=429, body={"error": "slow down"}, headers={"Retry-After": "3"})

    with pytest.raises(RateLimitedError) as excinfo:
        await client.embed("text", "model")

    assert excinfo.value.retry_after == 3.0
    assert excinfo.value.is_retryable()


@pytest.mark.parametrize(
    "status, expected",
    [
        (500, TransientProviderError),
        (503, TransientProviderError),
        (401, AuthenticationError),
        (400, MalformedRequestError),
    ],
)
@pytest.mark.asyncio
async def test_status_mapping(provider, client, status, expected):
    provider.reply("/embeddings", status=status, body={"error": "failure"})

    with pytest.raises(expected):
        await client.embed("text", "model")


@pytest.mark.asyncio
async def test_malformed_body(provider, client):
    provider.reply("/embeddings", body={"data": []})

    with pytest.raises(InvalidResponseError):
        await client.embed("text", "model")


@pytest.mark.asyncio
async def test_non_json_body(provider, client):
    provider.reply("/embeddings", raw="<html>gateway</html>")

    with pytest.raises(InvalidResponseError):
        await client.embed("text", "model")


@pytest.mark.asyncio
async def test_missing_token_fails_without_request(provider):
    api = ModelsApiClient(provider.base_url, token=None)

    with pytest.raises(AuthenticationError):
        await api.embed("text", "model")

    assert provider.requests == []
    assert await api.check_health() is False
    await api.close()


@pytest.mark.asyncio
async def test_check_health(provider, client):
    provider.reply("/models", body={"data": []})
    assert await client.check_health() is True

    provider.reply("/models", status=500, body={"error": "down"})
    assert await client.check_health() is False


@pytest.mark.asyncio
async def test_connection_failure_is_transient():
    app = web.Application()
    server = test_utils.TestServer(app)
    await server.start_server()
    base_url = str(server.make_url("/"))
    await server.close()

    api = ModelsApiClient(base_url, token="sk-test-token", timeout=5)
    try:
        with pytest.raises(TransientProviderError):
            await api.embed("text", "model")
    finally:
        await api.close()
