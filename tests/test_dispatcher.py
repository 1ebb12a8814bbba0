"""
Tests for ProtocolDispatcher — JSON-RPC routing and the tools/call failure rule.
"""

import asyncio
import base64
import json

import pytest

from assistants_gateway.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    McpError,
)
from assistants_gateway.mcp.dispatcher import ProtocolDispatcher, is_notification
from assistants_gateway.mcp.protocol import PROTOCOL_VERSION
from assistants_gateway.providers.registry import ProviderRegistry
from assistants_gateway.transports.base import TransportAdapter


def rpc(method, params=None, request_id=1):
    request = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        request["params"] = params
    return request


@pytest.fixture
def dispatcher(provider_registry):
    return ProtocolDispatcher(provider_registry)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_initialize(self, dispatcher):
        response = await dispatcher.handle_request(
            rpc("initialize", {"protocolVersion": "2024-11-05", "clientInfo": {"name": "test", "version": "1"}})
        )
        result = response["result"]
        assert response["id"] == 1
        assert result["protocolVersion"] == PROTOCOL_VERSION
        assert result["serverInfo"]["name"] == "assistants-gateway"
        assert set(result["capabilities"]) >= {"tools", "resources", "prompts", "completions"}
        assert dispatcher.initialized is True

    @pytest.mark.asyncio
    async def test_notifications_return_empty_result(self, dispatcher):
        request = {"jsonrpc": "2.0", "method": "notifications/initialized"}
        assert is_notification(request)
        response = await dispatcher.handle_request(request)
        assert response["result"] == {}

    @pytest.mark.asyncio
    async def test_unknown_method(self, dispatcher):
        response = await dispatcher.handle_request(rpc("tools/destroy"))
        error = response["error"]
        assert error["code"] == METHOD_NOT_FOUND
        assert error["data"]["method"] == "tools/destroy"
        assert "tools/call" in error["data"]["supportedMethods"]

    @pytest.mark.asyncio
    async def test_malformed_requests_never_raise(self, dispatcher):
        assert (await dispatcher.handle_request("not a dict"))["error"]["code"] == INVALID_REQUEST
        assert (await dispatcher.handle_request({"jsonrpc": "2.0", "id": 4}))["error"]["code"] == INVALID_REQUEST
        bad_params = await dispatcher.handle_request(rpc("tools/list", params=[1, 2]))
        assert bad_params["error"]["code"] == INVALID_PARAMS
        assert bad_params["id"] == 1


class TestTools:
    @pytest.mark.asyncio
    async def test_list_returns_all_tools(self, dispatcher):
        first = await dispatcher.handle_request(rpc("tools/list"))
        second = await dispatcher.handle_request(rpc("tools/list"))
        assert len(first["result"]["tools"]) == 22
        assert "nextCursor" not in first["result"]
        assert first == second

    @pytest.mark.asyncio
    async def test_list_with_nested_cursor_is_invalid_params(self, dispatcher):
        nested = base64.b64encode(("[" * 100_000 + "]" * 100_000).encode("ascii")).decode("ascii")
        response = await dispatcher.handle_request(rpc("tools/list", {"cursor": nested}))
        assert response["error"]["code"] == INVALID_PARAMS
        assert response["error"]["message"] == "Invalid pagination cursor"

    @pytest.mark.asyncio
    async def test_call_success_serializes_result(self, dispatcher, provider):
        provider.get_assistant.return_value = {"id": "asst_abc123", "name": "Helper"}
        response = await dispatcher.handle_request(
            rpc("tools/call", {"name": "assistant-get", "arguments": {"assistant_id": "asst_abc123"}})
        )
        result = response["result"]
        assert "isError" not in result
        assert result["content"][0]["type"] == "text"
        assert json.loads(result["content"][0]["text"]) == {"id": "asst_abc123", "name": "Helper"}

    @pytest.mark.asyncio
    async def test_handler_failure_is_in_band(self, dispatcher, provider):
        response = await dispatcher.handle_request(
            rpc("tools/call", {"name": "assistant-get", "arguments": {}})
        )
        assert "error" not in response
        result = response["result"]
        assert result["isError"] is True
        assert result["content"][0]["text"].startswith("Error: [assistant-get]")
        assert "assistant_id" in result["content"][0]["text"]
        provider.get_assistant.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_failure_is_in_band(self, dispatcher, provider):
        provider.delete_thread.side_effect = McpError(INVALID_PARAMS, "[openai] deleteThread failed: gone")
        response = await dispatcher.handle_request(
            rpc("tools/call", {"name": "thread-delete", "arguments": {"thread_id": "thread_abc"}})
        )
        assert response["result"]["isError"] is True
        assert response["result"]["content"][0]["text"] == "Error: [openai] deleteThread failed: gone"

    @pytest.mark.asyncio
    async def test_unknown_tool_is_protocol_error(self, dispatcher):
        response = await dispatcher.handle_request(rpc("tools/call", {"name": "assistant-gte", "arguments": {}}))
        error = response["error"]
        assert error["code"] == METHOD_NOT_FOUND
        assert "assistant-get" in error["data"]["suggestions"]

    @pytest.mark.asyncio
    async def test_bad_call_params(self, dispatcher):
        missing_name = await dispatcher.handle_request(rpc("tools/call", {"arguments": {}}))
        assert missing_name["error"]["code"] == INVALID_PARAMS
        bad_args = await dispatcher.handle_request(rpc("tools/call", {"name": "assistant-list", "arguments": "x"}))
        assert bad_args["error"]["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_unknown_provider(self, dispatcher):
        response = await dispatcher.handle_request(
            rpc("tools/call", {"name": "assistant-list", "arguments": {}}), provider_name="gemini"
        )
        error = response["error"]
        assert error["code"] == METHOD_NOT_FOUND
        assert error["message"] == "Provider not found: gemini"
        assert error["data"]["availableProviders"] == ["openai"]

    @pytest.mark.asyncio
    async def test_no_providers(self):
        dispatcher = ProtocolDispatcher(ProviderRegistry(factories={}))
        response = await dispatcher.handle_request(rpc("tools/call", {"name": "assistant-list"}))
        assert response["error"]["code"] == INTERNAL_ERROR

    @pytest.mark.asyncio
    async def test_large_results_are_truncated(self, dispatcher, provider, monkeypatch):
        monkeypatch.setenv("GATEWAY_TOOL_RESPONSE_MAX_CHARS", "2000")
        provider.list_assistants.return_value = {"data": ["x" * 5000]}
        response = await dispatcher.handle_request(rpc("tools/call", {"name": "assistant-list", "arguments": {}}))
        text = response["result"]["content"][0]["text"]
        assert len(text) == 2000
        assert text.endswith("[Response truncated due to size limits]")

    @pytest.mark.asyncio
    async def test_concurrent_calls_keep_their_own_results(self, dispatcher, provider):
        async def slow_get(assistant_id):
            await asyncio.sleep(0.01 if assistant_id.endswith("1") else 0)
            return {"id": assistant_id}

        provider.get_assistant.side_effect = slow_get
        requests = [
            rpc("tools/call", {"name": "assistant-get", "arguments": {"assistant_id": f"asst_n{i}"}}, request_id=i)
            for i in range(1, 6)
        ]
        responses = await asyncio.gather(*(dispatcher.handle_request(r) for r in requests))
        for i, response in enumerate(responses, start=1):
            assert response["id"] == i
            assert json.loads(response["result"]["content"][0]["text"]) == {"id": f"asst_n{i}"}


class TestResourcesPromptsCompletion:
    @pytest.mark.asyncio
    async def test_resources(self, dispatcher):
        listed = await dispatcher.handle_request(rpc("resources/list"))
        assert len(listed["result"]["resources"]) == 9
        assert "nextCursor" not in listed["result"]
        read = await dispatcher.handle_request(rpc("resources/read", {"uri": "docs://best-practices"}))
        assert read["result"]["contents"][0]["mimeType"] == "text/markdown"
        missing = await dispatcher.handle_request(rpc("resources/read", {"uri": "docs://nope"}))
        assert missing["error"]["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_prompts(self, dispatcher):
        listed = await dispatcher.handle_request(rpc("prompts/list"))
        assert len(listed["result"]["prompts"]) == 10
        assert "nextCursor" not in listed["result"]
        got = await dispatcher.handle_request(
            rpc("prompts/get", {"name": "explain-code", "arguments": {"code": "print(1)"}})
        )
        assert "print(1)" in got["result"]["messages"][0]["content"]["text"]
        missing_arg = await dispatcher.handle_request(rpc("prompts/get", {"name": "explain-code"}))
        assert missing_arg["error"]["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_completion(self, dispatcher):
        response = await dispatcher.handle_request(
            rpc(
                "completion/complete",
                {"ref": {"type": "ref/prompt", "name": "create-coding-assistant"}, "argument": {"name": "model", "value": "gpt-4o"}},
            )
        )
        assert response["result"]["completion"]["values"] == ["gpt-4o", "gpt-4o-mini"]

    @pytest.mark.asyncio
    async def test_unexpected_prompt_failure_is_wrapped(self, dispatcher, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("template store offline")

        monkeypatch.setattr(dispatcher.prompt_registry, "list_prompts", explode)
        response = await dispatcher.handle_request(rpc("prompts/list"))
        error = response["error"]
        assert error["code"] == INTERNAL_ERROR
        assert error["message"] == "Failed to list prompts"
        assert error["data"]["originalError"]["message"] == "template store offline"


class _TaggingAdapter(TransportAdapter):
    name = "tagging"

    def postprocess_response(self, response):
        return {**response, "tagged": True}


class _BrokenFormatter(TransportAdapter):
    def format_error(self, error, request_id):
        raise RuntimeError("formatter broke")


class TestAdapters:
    @pytest.mark.asyncio
    async def test_adapter_hooks(self, provider_registry):
        dispatcher = ProtocolDispatcher(provider_registry, adapter=_TaggingAdapter())
        ok = await dispatcher.handle_request(rpc("tools/list"))
        assert ok["tagged"] is True
        failed = await dispatcher.handle_request(rpc("nope"))
        assert failed["error"]["data"]["transport"] == "tagging"
        assert "timestamp" in failed["error"]["data"]

    @pytest.mark.asyncio
    async def test_formatter_failure_falls_back(self, provider_registry):
        dispatcher = ProtocolDispatcher(provider_registry, adapter=_BrokenFormatter())
        response = await dispatcher.handle_request(rpc("nope", request_id="abc"))
        assert response["id"] == "abc"
        assert response["error"]["code"] == METHOD_NOT_FOUND
