"""
Tests for the tool catalog, handlers and tool registry.

Coverage targets:
  - every declared tool has exactly one handler in the right category
  - minimal valid arguments reach the matching provider operation
  - validation failures never reach the provider
  - registry lookup, suggestions and stats
"""

import pytest
from unittest.mock import AsyncMock

from assistants_gateway.errors import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, McpError
from assistants_gateway.mcp.context import RequestContext
from assistants_gateway.mcp.definitions import (
    DESTRUCTIVE_TOOLS,
    READ_ONLY_TOOLS,
    TOOL_NAMES,
    build_tool_definitions,
    tool_category,
)
from assistants_gateway.mcp.handlers import (
    AssistantGetHandler,
    BaseToolHandler,
    HANDLER_CLASSES,
    create_tool_handlers,
)
from assistants_gateway.mcp.registry import ToolRegistry, create_tool_registry

ASST = "asst_abc123"
THREAD = "thread_abc123"
MSG = "msg_abc123"
RUN = "run_abc123"
STEP = "step_abc123"

# (tool, minimal args, provider operation, expected positional call args)
MINIMAL_CALLS = [
    ("assistant-create", {"model": "gpt-4o"}, "create_assistant", ({"model": "gpt-4o"},)),
    ("assistant-list", {}, "list_assistants", ({},)),
    ("assistant-get", {"assistant_id": ASST}, "get_assistant", (ASST,)),
    ("assistant-update", {"assistant_id": ASST, "name": "n"}, "update_assistant", (ASST, {"name": "n"})),
    ("assistant-delete", {"assistant_id": ASST}, "delete_assistant", (ASST,)),
    ("thread-create", {}, "create_thread", ({},)),
    ("thread-get", {"thread_id": THREAD}, "get_thread", (THREAD,)),
    ("thread-update", {"thread_id": THREAD, "metadata": {"a": "b"}}, "update_thread", (THREAD, {"metadata": {"a": "b"}})),
    ("thread-delete", {"thread_id": THREAD}, "delete_thread", (THREAD,)),
    (
        "message-create",
        {"thread_id": THREAD, "role": "user", "content": "hi"},
        "create_message",
        (THREAD, {"role": "user", "content": "hi"}),
    ),
    ("message-list", {"thread_id": THREAD}, "list_messages", (THREAD, {})),
    ("message-get", {"thread_id": THREAD, "message_id": MSG}, "get_message", (THREAD, MSG)),
    ("message-update", {"thread_id": THREAD, "message_id": MSG}, "update_message", (THREAD, MSG, {})),
    ("message-delete", {"thread_id": THREAD, "message_id": MSG}, "delete_message", (THREAD, MSG)),
    ("run-create", {"thread_id": THREAD, "assistant_id": ASST}, "create_run", (THREAD, {"assistant_id": ASST})),
    ("run-list", {"thread_id": THREAD}, "list_runs", (THREAD, {})),
    ("run-get", {"thread_id": THREAD, "run_id": RUN}, "get_run", (THREAD, RUN)),
    ("run-update", {"thread_id": THREAD, "run_id": RUN}, "update_run", (THREAD, RUN, {})),
    ("run-cancel", {"thread_id": THREAD, "run_id": RUN}, "cancel_run", (THREAD, RUN)),
    (
        "run-submit-tool-outputs",
        {"thread_id": THREAD, "run_id": RUN, "tool_outputs": [{"tool_call_id": "call_abc", "output": "42"}]},
        "submit_tool_outputs",
        (THREAD, RUN, {"tool_outputs": [{"tool_call_id": "call_abc", "output": "42"}]}),
    ),
    ("run-step-list", {"thread_id": THREAD, "run_id": RUN}, "list_run_steps", (THREAD, RUN, {})),
    ("run-step-get", {"thread_id": THREAD, "run_id": RUN, "step_id": STEP}, "get_run_step", (THREAD, RUN, STEP, None)),
]


class TestCatalog:
    def test_twenty_two_tools(self):
        assert len(TOOL_NAMES) == 22
        assert len(set(TOOL_NAMES)) == 22
        assert len(HANDLER_CLASSES) == 22

    def test_definitions_have_schema_and_annotations(self):
        for tool in build_tool_definitions():
            assert tool["inputSchema"]["type"] == "object"
            assert tool["annotations"]["title"] == tool["title"]
            assert tool["annotations"]["openWorldHint"] is True

    def test_annotation_sets(self):
        assert "assistant-delete" in DESTRUCTIVE_TOOLS
        assert "run-cancel" in DESTRUCTIVE_TOOLS
        assert "assistant-list" in READ_ONLY_TOOLS
        assert "assistant-create" not in READ_ONLY_TOOLS

    def test_required_fields(self):
        schemas = {tool["name"]: tool["inputSchema"] for tool in build_tool_definitions()}
        assert schemas["assistant-create"]["required"] == ["model"]
        assert set(schemas["run-submit-tool-outputs"]["required"]) == {"thread_id", "run_id", "tool_outputs"}

    def test_categories(self):
        assert tool_category("assistant-create") == "assistant"
        assert tool_category("run-step-get") == "run-step"
        assert tool_category("run-submit-tool-outputs") == "run"
        for name, handler in create_tool_handlers().items():
            assert handler.category == tool_category(name)


class TestHandlers:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool,args,operation,expected", MINIMAL_CALLS)
    async def test_minimal_args_reach_provider(self, tool, args, operation, expected, provider, context):
        handler = create_tool_handlers()[tool]
        result = await handler.handle(args, context)
        assert result == {"object": operation, "ok": True}
        getattr(provider, operation).assert_awaited_once_with(*expected)

    @pytest.mark.asyncio
    async def test_missing_id_is_invalid_params(self, provider, context):
        with pytest.raises(McpError) as exc_info:
            await AssistantGetHandler().handle({}, context)
        error = exc_info.value
        assert error.code == INVALID_PARAMS
        assert error.message.startswith("[assistant-get]")
        assert "assistant_id" in error.message
        provider.get_assistant.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_tool_output_never_reaches_provider(self, provider, context):
        handler = create_tool_handlers()["run-submit-tool-outputs"]
        args = {"thread_id": THREAD, "run_id": RUN, "tool_outputs": [{"tool_call_id": "call_abc"}]}
        with pytest.raises(McpError) as exc_info:
            await handler.handle(args, context)
        assert "tool_outputs[0].output" in exc_info.value.message
        provider.submit_tool_outputs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_fields_are_not_forwarded(self, provider, context):
        handler = create_tool_handlers()["assistant-create"]
        await handler.handle({"model": "gpt-4o", "bogus": 1, "name": "Helper"}, context)
        provider.create_assistant.assert_awaited_once_with({"model": "gpt-4o", "name": "Helper"})

    @pytest.mark.asyncio
    async def test_list_passes_pagination_and_filters(self, provider, context):
        handlers = create_tool_handlers()
        await handlers["message-list"].handle({"thread_id": THREAD, "limit": 5, "run_id": RUN}, context)
        provider.list_messages.assert_awaited_once_with(THREAD, {"limit": 5, "run_id": RUN})
        await handlers["run-step-get"].handle(
            {"thread_id": THREAD, "run_id": RUN, "step_id": STEP, "include": ["step_details"]}, context
        )
        provider.get_run_step.assert_awaited_once_with(THREAD, RUN, STEP, {"include": ["step_details"]})

    @pytest.mark.asyncio
    async def test_provider_failure_is_wrapped(self, provider, context):
        provider.get_thread.side_effect = RuntimeError("socket closed")
        with pytest.raises(McpError) as exc_info:
            await create_tool_handlers()["thread-get"].handle({"thread_id": THREAD}, context)
        error = exc_info.value
        assert error.code == INTERNAL_ERROR
        assert error.message == "[thread-get] Execution failed: socket closed"
        assert error.data["originalError"]["name"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_provider_mcp_error_passes_through(self, provider, context):
        provider.get_run.side_effect = McpError(INVALID_PARAMS, "[openai] getRun failed: not found")
        with pytest.raises(McpError) as exc_info:
            await create_tool_handlers()["run-get"].handle({"thread_id": THREAD, "run_id": RUN}, context)
        assert exc_info.value.message == "[openai] getRun failed: not found"

    @pytest.mark.asyncio
    async def test_assistant_validation_rules(self, context):
        handler = create_tool_handlers()["assistant-create"]
        with pytest.raises(McpError):
            await handler.handle({"model": "gpt-4o", "temperature": 3}, context)
        with pytest.raises(McpError):
            await handler.handle(
                {
                    "model": "gpt-4o",
                    "tools": [{"type": "code_interpreter"}],
                    "tool_resources": {"file_search": {"vector_store_ids": ["vs_1"]}},
                },
                context,
            )

    @pytest.mark.asyncio
    async def test_update_with_only_tool_resources(self, provider, context):
        resources = {"file_search": {"vector_store_ids": ["vs_abc"]}}
        await create_tool_handlers()["assistant-update"].handle(
            {"assistant_id": ASST, "tool_resources": resources}, context
        )
        provider.update_assistant.assert_awaited_once_with(ASST, {"tool_resources": resources})

    @pytest.mark.asyncio
    async def test_update_tool_resources_still_shape_checked(self, provider, context):
        with pytest.raises(McpError):
            await create_tool_handlers()["assistant-update"].handle(
                {"assistant_id": ASST, "tool_resources": ["vs_abc"]}, context
            )
        provider.update_assistant.assert_not_awaited()


class _BrokenHandler(BaseToolHandler):
    tool_name = "broken-tool"
    category = "broken"

    def validate(self, args):
        return None

    async def execute(self, args, context):
        return None

    async def handle(self, args, context):
        raise KeyError("unexpected")


class TestToolRegistry:
    def test_create_registers_all(self):
        registry = create_tool_registry()
        assert registry.get_registered_tools() == sorted(TOOL_NAMES)
        stats = registry.get_stats()
        assert stats["totalHandlers"] == 22
        assert stats["handlersByCategory"] == {
            "assistant": 5, "message": 5, "run": 6, "run-step": 2, "thread": 4,
        }

    def test_duplicate_and_mismatched_registration(self):
        registry = ToolRegistry()
        registry.register("assistant-get", AssistantGetHandler())
        with pytest.raises(ValueError):
            registry.register("assistant-get", AssistantGetHandler())
        with pytest.raises(ValueError):
            registry.register("assistant-list", AssistantGetHandler())

    def test_unregister_and_clear(self):
        registry = create_tool_registry()
        assert registry.unregister("run-cancel") is True
        assert registry.unregister("run-cancel") is False
        assert not registry.is_registered("run-cancel")
        registry.clear()
        assert registry.get_registered_tools() == []

    def test_suggestions(self):
        registry = create_tool_registry()
        assert "assistant-get" in registry.suggest("assistant-gte")
        assert len(registry.suggest("assistant")) <= 3
        error = registry.unknown_tool_error("assistant-gte")
        assert error.code == METHOD_NOT_FOUND
        assert error.message == "Unknown tool: assistant-gte"
        assert "assistant-get" in error.data["suggestions"]
        assert len(error.data["availableTools"]) == 22

    @pytest.mark.asyncio
    async def test_execute_unknown_tool(self, context):
        with pytest.raises(McpError) as exc_info:
            await create_tool_registry().execute("nope", {}, context)
        assert exc_info.value.code == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_execute_wraps_unexpected_errors(self, context):
        registry = ToolRegistry()
        registry.register("broken-tool", _BrokenHandler())
        with pytest.raises(McpError) as exc_info:
            await registry.execute("broken-tool", {"api_key": "sk-aaaaaaaaaaaaaaaaaaaa"}, context)
        error = exc_info.value
        assert error.code == INTERNAL_ERROR
        assert error.message == "Tool execution failed for 'broken-tool'"
        assert error.data["args"] == {"api_key": "[REDACTED]"}

    @pytest.mark.asyncio
    async def test_handlers_are_stateless_across_contexts(self, context):
        other = AsyncMock()
        other.get_assistant.return_value = {"id": "other"}
        registry = create_tool_registry()
        first = await registry.execute("assistant-get", {"assistant_id": ASST}, context)
        second = await registry.execute(
            "assistant-get", {"assistant_id": ASST}, RequestContext(provider=other, tool_name="assistant-get")
        )
        assert first == {"object": "get_assistant", "ok": True}
        assert second == {"id": "other"}
