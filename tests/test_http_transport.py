"""
Tests for the HTTP transport (FastAPI app) driven through httpx.ASGITransport.

Backend traffic goes to an httpx.MockTransport so no network is touched.
"""

import json

import httpx
import pytest
import pytest_asyncio

from assistants_gateway.config import GatewayConfig, ProviderConfig
from assistants_gateway.errors import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    LEGACY_UNAUTHORIZED,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)
from assistants_gateway.transports.http import create_app, parse_provider_from_path

API_KEY = "sk-test-key-1234567890"


class Backend:
    def __init__(self):
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/assistants/asst_missing"):
            return httpx.Response(404, json={"error": {"message": "No assistant found"}})
        return httpx.Response(200, json={"id": "asst_abc123", "object": "assistant"})


@pytest.fixture
def backend():
    return Backend()


@pytest_asyncio.fixture
async def gateway(backend):
    backend_client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    app = create_app(GatewayConfig(), http_client=backend_client)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://gateway") as client:
        yield client
    await backend_client.aclose()


def rpc(method, params=None, request_id=1):
    body = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        body["params"] = params
    return body


class TestPathParsing:
    def test_provider_segment(self):
        assert parse_provider_from_path(f"/mcp/openai/{API_KEY}") == ("openai", f"/mcp/{API_KEY}")

    def test_plain_path(self):
        assert parse_provider_from_path(f"/mcp/{API_KEY}") == (None, f"/mcp/{API_KEY}")

    def test_reserved_segment_is_not_a_provider(self):
        assert parse_provider_from_path("/mcp/tools/list") == (None, "/mcp/tools/list")


@pytest.mark.asyncio
class TestHttpTransport:
    async def test_options_preflight(self, gateway):
        response = await gateway.options(f"/mcp/{API_KEY}")
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]

    async def test_get_not_allowed(self, gateway):
        response = await gateway.get(f"/mcp/{API_KEY}")
        assert response.status_code == 405
        assert response.text == "Method not allowed"

    async def test_bad_path(self, gateway):
        response = await gateway.post("/api/v1/anything", json=rpc("tools/list"))
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == INVALID_REQUEST
        assert error["message"] == "Invalid URL format"
        assert error["data"]["receivedPath"] == "/api/v1/anything"
        assert error["data"]["transport"] == "http"

    async def test_short_key(self, gateway):
        response = await gateway.post("/mcp/short", json=rpc("tools/list"))
        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == INTERNAL_ERROR
        assert error["message"] == "Invalid API key"
        assert error["data"]["originalCode"] == LEGACY_UNAUTHORIZED
        assert error["data"]["keyLength"] == 5

    async def test_parse_error(self, gateway):
        response = await gateway.post(
            f"/mcp/{API_KEY}", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        body = response.json()
        assert body["id"] is None
        assert body["error"]["code"] == PARSE_ERROR

    async def test_invalid_envelope(self, gateway):
        response = await gateway.post(f"/mcp/{API_KEY}", json={"jsonrpc": "1.0", "id": 9, "method": "tools/list"})
        assert response.status_code == 400
        body = response.json()
        assert body["id"] == 9
        assert body["error"]["code"] == INVALID_REQUEST

    async def test_tools_list(self, gateway):
        response = await gateway.post(f"/mcp/{API_KEY}", json=rpc("tools/list"))
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert len(response.json()["result"]["tools"]) == 22

    async def test_tools_call_uses_key_from_path(self, gateway, backend):
        response = await gateway.post(
            f"/mcp/{API_KEY}",
            json=rpc("tools/call", {"name": "assistant-get", "arguments": {"assistant_id": "asst_abc123"}}),
        )
        result = response.json()["result"]
        assert json.loads(result["content"][0]["text"])["id"] == "asst_abc123"
        assert backend.requests[0].headers["Authorization"] == f"Bearer {API_KEY}"

    async def test_backend_not_found_is_in_band(self, gateway):
        response = await gateway.post(
            f"/mcp/{API_KEY}",
            json=rpc("tools/call", {"name": "assistant-get", "arguments": {"assistant_id": "asst_missing"}}),
        )
        assert response.status_code == 200
        result = response.json()["result"]
        assert result["isError"] is True
        assert "[openai] getAssistant failed" in result["content"][0]["text"]

    async def test_explicit_provider(self, gateway):
        response = await gateway.post(
            f"/mcp/openai/{API_KEY}",
            json=rpc("tools/call", {"name": "assistant-get", "arguments": {"assistant_id": "asst_abc123"}}),
        )
        assert "result" in response.json()

    async def test_unknown_provider(self, gateway):
        response = await gateway.post(
            f"/mcp/gemini/{API_KEY}",
            json=rpc("tools/call", {"name": "assistant-list", "arguments": {}}),
        )
        assert response.status_code == 200
        error = response.json()["error"]
        assert error["code"] == METHOD_NOT_FOUND
        assert error["data"]["availableProviders"] == ["openai"]

    async def test_notification_gets_no_body(self, gateway):
        response = await gateway.post(
            f"/mcp/{API_KEY}", json={"jsonrpc": "2.0", "method": "notifications/initialized"}
        )
        assert response.status_code == 202
        assert response.content == b""


@pytest_asyncio.fixture
async def multi_gateway(backend):
    backend_client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    config = GatewayConfig(
        providers={
            "openai": ProviderConfig(api_key="sk-configured-openai-key"),
            "anthropic": ProviderConfig(api_key="anthropic-configured-key"),
        },
        default_provider="openai",
    )
    app = create_app(config, http_client=backend_client)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://gateway") as client:
        yield client
    await backend_client.aclose()


@pytest.mark.asyncio
class TestConfiguredProviders:
    async def test_configured_provider_is_routed(self, multi_gateway, backend):
        response = await multi_gateway.post(
            "/mcp/anthropic/sk-abcdefghijkl",
            json=rpc("tools/call", {"name": "assistant-get", "arguments": {"assistant_id": "asst_abc123"}}),
        )
        assert response.status_code == 200
        body = response.json()
        assert "error" not in body
        assert body["result"]["isError"] is True
        assert "not implemented" in body["result"]["content"][0]["text"]
        assert backend.requests == []

    async def test_path_key_replaces_configured_key(self, multi_gateway, backend):
        response = await multi_gateway.post(
            f"/mcp/{API_KEY}",
            json=rpc("tools/call", {"name": "assistant-get", "arguments": {"assistant_id": "asst_abc123"}}),
        )
        assert "isError" not in response.json()["result"]
        assert backend.requests[0].headers["Authorization"] == f"Bearer {API_KEY}"

    async def test_unconfigured_provider_lists_configured_ones(self, multi_gateway):
        response = await multi_gateway.post(
            f"/mcp/gemini/{API_KEY}",
            json=rpc("tools/call", {"name": "assistant-list", "arguments": {}}),
        )
        error = response.json()["error"]
        assert error["code"] == METHOD_NOT_FOUND
        assert sorted(error["data"]["availableProviders"]) == ["anthropic", "openai"]
