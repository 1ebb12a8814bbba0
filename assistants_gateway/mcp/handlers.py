"""
Gateway MCP Tool Handlers
=========================
One handler class per tool.  Every handler follows the same strategy:

  1. ``validate(args)``  - raise ``ParameterError`` on the first bad parameter
  2. ``execute(args, context)`` - call the matching provider operation

``handle`` stitches the two together, prefixes failures with the tool name and
logs them with redacted arguments.  Handlers are stateless; the provider and
request id travel in the ``RequestContext`` passed to each call.
"""

import logging
from typing import Any, Dict, List

from assistants_gateway.errors import INTERNAL_ERROR, INVALID_PARAMS, McpError, describe_exception
from assistants_gateway.utils import redact_sensitive

from .context import RequestContext
from .definitions import TOOL_NAMES, tool_category
from .validation import (
    ParameterError,
    collect_pagination,
    example_id,
    pick,
    validate_array,
    validate_id,
    validate_message_content,
    validate_message_role,
    validate_metadata,
    validate_model,
    validate_numeric_range,
    validate_optional_string,
    validate_pagination_params,
    validate_tool_outputs,
    validate_tool_resources,
    validate_tools,
)

logger = logging.getLogger("Gateway.mcp.handlers")

_ASSISTANT_FIELDS = (
    "model", "name", "description", "instructions", "tools",
    "tool_resources", "metadata", "temperature", "top_p", "response_format",
)
_RUN_FIELDS = (
    "assistant_id", "model", "instructions", "additional_instructions", "tools",
    "metadata", "temperature", "top_p", "max_prompt_tokens", "max_completion_tokens",
    "truncation_strategy", "tool_choice", "parallel_tool_calls", "response_format",
)


class BaseToolHandler:
    tool_name: str = ""
    category: str = ""

    def validate(self, args: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def execute(self, args: Dict[str, Any], context: RequestContext) -> Any:
        raise NotImplementedError

    async def handle(self, args: Dict[str, Any], context: RequestContext) -> Any:
        try:
            try:
                self.validate(args)
            except ParameterError as exc:
                raise McpError(INVALID_PARAMS, f"[{self.tool_name}] {exc.message}", exc.data) from exc
            try:
                return await self.execute(args, context)
            except McpError:
                raise
            except Exception as exc:
                raise McpError(
                    INTERNAL_ERROR,
                    f"[{self.tool_name}] Execution failed: {exc}",
                    {"originalError": describe_exception(exc)},
                ) from exc
        except McpError as exc:
            logger.error(
                "Tool %s failed (category=%s, request_id=%s, args=%s): %s",
                self.tool_name,
                self.category,
                context.request_id,
                redact_sensitive(args),
                exc.message,
            )
            raise

    def __repr__(self) -> str:
        return f"<{type(self).__name__} tool={self.tool_name}>"


# ----------------------------------------------------------------------
# Shared validation fragments
# ----------------------------------------------------------------------

def _validate_assistant_fields(args: Dict[str, Any]) -> None:
    validate_optional_string(args.get("name"), "name", "Customer Support Bot")
    validate_optional_string(args.get("description"), "description")
    validate_optional_string(args.get("instructions"), "instructions", "You are a helpful assistant.")
    validate_tools(args.get("tools"))
    validate_tool_resources(args.get("tool_resources"), args.get("tools"))
    validate_metadata(args.get("metadata"))
    validate_numeric_range(args.get("temperature"), "temperature", 0, 2)
    validate_numeric_range(args.get("top_p"), "top_p", 0, 1)


def _validate_thread_messages(messages: Any) -> None:
    validate_array(messages, "messages")
    for i, message in enumerate(messages or []):
        if not isinstance(message, dict):
            raise ParameterError(
                f"messages[{i}]", "Each message must be an object.", {"role": "user", "content": "Hello"}
            )
        validate_message_role(message.get("role"), f"messages[{i}].role")
        validate_message_content(message.get("content"), f"messages[{i}].content")
        validate_metadata(message.get("metadata"), f"messages[{i}].metadata")


def _validate_attachments(attachments: Any) -> None:
    validate_array(attachments, "attachments")
    for i, attachment in enumerate(attachments or []):
        if not isinstance(attachment, dict):
            raise ParameterError(
                f"attachments[{i}]",
                "Each attachment must be an object.",
                {"file_id": example_id("file"), "tools": [{"type": "file_search"}]},
            )
        validate_id(attachment.get("file_id"), "file", f"attachments[{i}].file_id")
        validate_tools(attachment.get("tools"), f"attachments[{i}].tools")


def _validate_include(value: Any) -> None:
    validate_array(value, "include")
    for i, item in enumerate(value or []):
        if not isinstance(item, str) or not item:
            raise ParameterError(
                f"include[{i}]",
                "Each include entry must be a non-empty string.",
                "step_details.tool_calls[*].file_search.results[*].content",
            )


# ----------------------------------------------------------------------
# Assistants
# ----------------------------------------------------------------------

class AssistantCreateHandler(BaseToolHandler):
    tool_name = "assistant-create"
    category = "assistant"

    def validate(self, args):
        validate_model(args.get("model"))
        _validate_assistant_fields(args)

    async def execute(self, args, context):
        return await context.provider.create_assistant(pick(args, _ASSISTANT_FIELDS))


class AssistantListHandler(BaseToolHandler):
    tool_name = "assistant-list"
    category = "assistant"

    def validate(self, args):
        validate_pagination_params(args)

    async def execute(self, args, context):
        return await context.provider.list_assistants(collect_pagination(args))


class AssistantGetHandler(BaseToolHandler):
    tool_name = "assistant-get"
    category = "assistant"

    def validate(self, args):
        validate_id(args.get("assistant_id"), "assistant", "assistant_id")

    async def execute(self, args, context):
        return await context.provider.get_assistant(args["assistant_id"])


class AssistantUpdateHandler(BaseToolHandler):
    tool_name = "assistant-update"
    category = "assistant"

    def validate(self, args):
        validate_id(args.get("assistant_id"), "assistant", "assistant_id")
        if args.get("model") is not None:
            validate_model(args["model"])
        _validate_assistant_fields(args)

    async def execute(self, args, context):
        return await context.provider.update_assistant(args["assistant_id"], pick(args, _ASSISTANT_FIELDS))


class AssistantDeleteHandler(BaseToolHandler):
    tool_name = "assistant-delete"
    category = "assistant"

    def validate(self, args):
        validate_id(args.get("assistant_id"), "assistant", "assistant_id")

    async def execute(self, args, context):
        return await context.provider.delete_assistant(args["assistant_id"])


# ----------------------------------------------------------------------
# Threads
# ----------------------------------------------------------------------

class ThreadCreateHandler(BaseToolHandler):
    tool_name = "thread-create"
    category = "thread"

    def validate(self, args):
        _validate_thread_messages(args.get("messages"))
        validate_metadata(args.get("metadata"))
        if args.get("tool_resources") is not None and not isinstance(args["tool_resources"], dict):
            raise ParameterError(
                "tool_resources", "Must be an object.", {"code_interpreter": {"file_ids": [example_id("file")]}}
            )

    async def execute(self, args, context):
        return await context.provider.create_thread(pick(args, ("messages", "tool_resources", "metadata")))


class ThreadGetHandler(BaseToolHandler):
    tool_name = "thread-get"
    category = "thread"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")

    async def execute(self, args, context):
        return await context.provider.get_thread(args["thread_id"])


class ThreadUpdateHandler(BaseToolHandler):
    tool_name = "thread-update"
    category = "thread"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_metadata(args.get("metadata"))
        if args.get("tool_resources") is not None and not isinstance(args["tool_resources"], dict):
            raise ParameterError(
                "tool_resources", "Must be an object.", {"code_interpreter": {"file_ids": [example_id("file")]}}
            )

    async def execute(self, args, context):
        return await context.provider.update_thread(args["thread_id"], pick(args, ("tool_resources", "metadata")))


class ThreadDeleteHandler(BaseToolHandler):
    tool_name = "thread-delete"
    category = "thread"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")

    async def execute(self, args, context):
        return await context.provider.delete_thread(args["thread_id"])


# ----------------------------------------------------------------------
# Messages
# ----------------------------------------------------------------------

class MessageCreateHandler(BaseToolHandler):
    tool_name = "message-create"
    category = "message"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_message_role(args.get("role"))
        validate_message_content(args.get("content"))
        _validate_attachments(args.get("attachments"))
        validate_metadata(args.get("metadata"))

    async def execute(self, args, context):
        return await context.provider.create_message(
            args["thread_id"], pick(args, ("role", "content", "attachments", "metadata"))
        )


class MessageListHandler(BaseToolHandler):
    tool_name = "message-list"
    category = "message"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_pagination_params(args)
        if args.get("run_id") is not None:
            validate_id(args["run_id"], "run", "run_id")

    async def execute(self, args, context):
        params = collect_pagination(args)
        if args.get("run_id"):
            params["run_id"] = args["run_id"]
        return await context.provider.list_messages(args["thread_id"], params)


class MessageGetHandler(BaseToolHandler):
    tool_name = "message-get"
    category = "message"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_id(args.get("message_id"), "message", "message_id")

    async def execute(self, args, context):
        return await context.provider.get_message(args["thread_id"], args["message_id"])


class MessageUpdateHandler(BaseToolHandler):
    tool_name = "message-update"
    category = "message"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_id(args.get("message_id"), "message", "message_id")
        validate_metadata(args.get("metadata"))

    async def execute(self, args, context):
        return await context.provider.update_message(
            args["thread_id"], args["message_id"], pick(args, ("metadata",))
        )


class MessageDeleteHandler(BaseToolHandler):
    tool_name = "message-delete"
    category = "message"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_id(args.get("message_id"), "message", "message_id")

    async def execute(self, args, context):
        return await context.provider.delete_message(args["thread_id"], args["message_id"])


# ----------------------------------------------------------------------
# Runs
# ----------------------------------------------------------------------

class RunCreateHandler(BaseToolHandler):
    tool_name = "run-create"
    category = "run"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_id(args.get("assistant_id"), "assistant", "assistant_id")
        if args.get("model") is not None:
            validate_model(args["model"])
        validate_optional_string(args.get("instructions"), "instructions")
        validate_optional_string(args.get("additional_instructions"), "additional_instructions")
        validate_tools(args.get("tools"))
        validate_metadata(args.get("metadata"))
        validate_numeric_range(args.get("temperature"), "temperature", 0, 2)
        validate_numeric_range(args.get("top_p"), "top_p", 0, 1)

    async def execute(self, args, context):
        return await context.provider.create_run(args["thread_id"], pick(args, _RUN_FIELDS))


class RunListHandler(BaseToolHandler):
    tool_name = "run-list"
    category = "run"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_pagination_params(args)

    async def execute(self, args, context):
        return await context.provider.list_runs(args["thread_id"], collect_pagination(args))


class RunGetHandler(BaseToolHandler):
    tool_name = "run-get"
    category = "run"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_id(args.get("run_id"), "run", "run_id")

    async def execute(self, args, context):
        return await context.provider.get_run(args["thread_id"], args["run_id"])


class RunUpdateHandler(BaseToolHandler):
    tool_name = "run-update"
    category = "run"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_id(args.get("run_id"), "run", "run_id")
        validate_metadata(args.get("metadata"))

    async def execute(self, args, context):
        return await context.provider.update_run(args["thread_id"], args["run_id"], pick(args, ("metadata",)))


class RunCancelHandler(BaseToolHandler):
    tool_name = "run-cancel"
    category = "run"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_id(args.get("run_id"), "run", "run_id")

    async def execute(self, args, context):
        return await context.provider.cancel_run(args["thread_id"], args["run_id"])


class RunSubmitToolOutputsHandler(BaseToolHandler):
    tool_name = "run-submit-tool-outputs"
    category = "run"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_id(args.get("run_id"), "run", "run_id")
        validate_tool_outputs(args.get("tool_outputs"))

    async def execute(self, args, context):
        outputs = [
            {"tool_call_id": entry["tool_call_id"], "output": entry["output"]}
            for entry in args["tool_outputs"]
        ]
        return await context.provider.submit_tool_outputs(
            args["thread_id"], args["run_id"], {"tool_outputs": outputs}
        )


# ----------------------------------------------------------------------
# Run steps
# ----------------------------------------------------------------------

class RunStepListHandler(BaseToolHandler):
    tool_name = "run-step-list"
    category = "run-step"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_id(args.get("run_id"), "run", "run_id")
        validate_pagination_params(args)
        _validate_include(args.get("include"))

    async def execute(self, args, context):
        params = collect_pagination(args)
        if args.get("include"):
            params["include"] = list(args["include"])
        return await context.provider.list_run_steps(args["thread_id"], args["run_id"], params)


class RunStepGetHandler(BaseToolHandler):
    tool_name = "run-step-get"
    category = "run-step"

    def validate(self, args):
        validate_id(args.get("thread_id"), "thread", "thread_id")
        validate_id(args.get("run_id"), "run", "run_id")
        validate_id(args.get("step_id"), "step", "step_id")
        _validate_include(args.get("include"))

    async def execute(self, args, context):
        params = {"include": list(args["include"])} if args.get("include") else None
        return await context.provider.get_run_step(args["thread_id"], args["run_id"], args["step_id"], params)


HANDLER_CLASSES: List[type] = [
    AssistantCreateHandler,
    AssistantListHandler,
    AssistantGetHandler,
    AssistantUpdateHandler,
    AssistantDeleteHandler,
    ThreadCreateHandler,
    ThreadGetHandler,
    ThreadUpdateHandler,
    ThreadDeleteHandler,
    MessageCreateHandler,
    MessageListHandler,
    MessageGetHandler,
    MessageUpdateHandler,
    MessageDeleteHandler,
    RunCreateHandler,
    RunListHandler,
    RunGetHandler,
    RunUpdateHandler,
    RunCancelHandler,
    RunSubmitToolOutputsHandler,
    RunStepListHandler,
    RunStepGetHandler,
]


def create_tool_handlers() -> Dict[str, BaseToolHandler]:
    """Instantiate one handler per declared tool, keyed by tool name."""
    handlers = {cls.tool_name: cls() for cls in HANDLER_CLASSES}
    missing = set(TOOL_NAMES) - set(handlers)
    extra = set(handlers) - set(TOOL_NAMES)
    if missing or extra:
        raise RuntimeError(f"Tool handler table out of sync (missing={sorted(missing)}, extra={sorted(extra)})")
    for name, handler in handlers.items():
        if handler.category != tool_category(name):
            raise RuntimeError(f"Handler {handler!r} has category '{handler.category}', expected '{tool_category(name)}'")
    return handlers
