from typing import Any, Dict, List

TOOL_CATEGORIES = ("assistant", "thread", "message", "run", "run-step")

_METADATA_PROPERTY = {
    "type": "object",
    "description": "Up to 16 key-value pairs for storing additional information (e.g., {\"department\": \"support\"}).",
}


def _id_property(kind: str, example: str) -> Dict[str, Any]:
    return {"type": "string", "description": f"The {kind} ID (format: \"{example}\")."}


def _pagination_properties(subject: str, id_example: str) -> Dict[str, Any]:
    return {
        "limit": {
            "type": "integer",
            "minimum": 1,
            "maximum": 100,
            "description": f"Maximum number of {subject} to return (1-100, default: 20).",
        },
        "order": {
            "type": "string",
            "enum": ["asc", "desc"],
            "description": "Sort order by creation time: \"desc\" for newest first (default), \"asc\" for oldest first.",
        },
        "after": {
            "type": "string",
            "description": f"Cursor: list {subject} after this ID (format: \"{id_example}\").",
        },
        "before": {
            "type": "string",
            "description": f"Cursor: list {subject} before this ID (format: \"{id_example}\").",
        },
    }


_ASSISTANT_ID = _id_property("assistant", "asst_abc123...")
_THREAD_ID = _id_property("thread", "thread_abc123...")
_MESSAGE_ID = _id_property("message", "msg_abc123...")
_RUN_ID = _id_property("run", "run_abc123...")
_STEP_ID = _id_property("run step", "step_abc123...")

_TOOLS_PROPERTY = {
    "type": "array",
    "description": "Tools to enable: code_interpreter, file_search, or function (custom function calls).",
    "items": {
        "type": "object",
        "properties": {
            "type": {"type": "string", "enum": ["code_interpreter", "file_search", "function"]},
            "function": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "parameters": {"type": "object"},
                },
            },
        },
        "required": ["type"],
    },
}

_TOOL_RESOURCES_PROPERTY = {
    "type": "object",
    "description": "Resources for file_search (vector_store_ids) and code_interpreter (file_ids). Must match the enabled tools.",
    "properties": {
        "file_search": {
            "type": "object",
            "properties": {"vector_store_ids": {"type": "array", "items": {"type": "string"}}},
        },
        "code_interpreter": {
            "type": "object",
            "properties": {"file_ids": {"type": "array", "items": {"type": "string"}}},
        },
    },
}

_MODEL_PROPERTY = {
    "type": "string",
    "description": "The model to use (e.g., \"gpt-4o\", \"gpt-4-turbo\", \"gpt-3.5-turbo\").",
}

TOOLS_SCHEMAS: List[Dict[str, Any]] = [
    # ------------------------------------------------------------------ assistants
    {
        "name": "assistant-create",
        "title": "Create AI Assistant",
        "description": "Create a new AI assistant with custom instructions and tools (code interpreter, file search, functions). Returns the assistant object including its ID for later operations.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "model": _MODEL_PROPERTY,
                "name": {"type": "string", "description": "Descriptive name (e.g., \"Customer Support Bot\")."},
                "description": {"type": "string", "description": "What the assistant does and its intended use case."},
                "instructions": {"type": "string", "description": "System instructions defining behavior, tone and role."},
                "tools": _TOOLS_PROPERTY,
                "tool_resources": _TOOL_RESOURCES_PROPERTY,
                "metadata": _METADATA_PROPERTY,
                "temperature": {"type": "number", "minimum": 0, "maximum": 2, "description": "Sampling temperature (0-2)."},
                "top_p": {"type": "number", "minimum": 0, "maximum": 1, "description": "Nucleus sampling probability mass (0-1)."},
            },
            "required": ["model"],
        },
    },
    {
        "name": "assistant-list",
        "title": "List All Assistants",
        "description": "List assistants with cursor pagination. Returns names, models, descriptions and creation dates.",
        "inputSchema": {
            "type": "object",
            "properties": _pagination_properties("assistants", "asst_abc123..."),
        },
    },
    {
        "name": "assistant-get",
        "title": "Get Assistant Details",
        "description": "Retrieve one assistant's configuration, tools and metadata.",
        "inputSchema": {
            "type": "object",
            "properties": {"assistant_id": _ASSISTANT_ID},
            "required": ["assistant_id"],
        },
    },
    {
        "name": "assistant-update",
        "title": "Update Assistant",
        "description": "Modify an existing assistant. Only the supplied fields change.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "assistant_id": _ASSISTANT_ID,
                "model": _MODEL_PROPERTY,
                "name": {"type": "string", "description": "New name."},
                "description": {"type": "string", "description": "New description."},
                "instructions": {"type": "string", "description": "New system instructions."},
                "tools": _TOOLS_PROPERTY,
                "tool_resources": _TOOL_RESOURCES_PROPERTY,
                "metadata": _METADATA_PROPERTY,
                "temperature": {"type": "number", "minimum": 0, "maximum": 2},
                "top_p": {"type": "number", "minimum": 0, "maximum": 1},
            },
            "required": ["assistant_id"],
        },
    },
    {
        "name": "assistant-delete",
        "title": "Delete Assistant",
        "description": "Permanently delete an assistant. This cannot be undone.",
        "inputSchema": {
            "type": "object",
            "properties": {"assistant_id": _ASSISTANT_ID},
            "required": ["assistant_id"],
        },
    },
    # ------------------------------------------------------------------ threads
    {
        "name": "thread-create",
        "title": "Create Conversation Thread",
        "description": "Create a new conversation thread, optionally seeded with initial messages.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "messages": {
                    "type": "array",
                    "description": "Initial messages for the thread.",
                    "items": {
                        "type": "object",
                        "properties": {
                            "role": {"type": "string", "enum": ["user", "assistant"]},
                            "content": {"type": "string"},
                            "metadata": {"type": "object"},
                        },
                        "required": ["role", "content"],
                    },
                },
                "tool_resources": _TOOL_RESOURCES_PROPERTY,
                "metadata": _METADATA_PROPERTY,
            },
        },
    },
    {
        "name": "thread-get",
        "title": "Get Thread Details",
        "description": "Retrieve a thread's metadata and tool resources.",
        "inputSchema": {
            "type": "object",
            "properties": {"thread_id": _THREAD_ID},
            "required": ["thread_id"],
        },
    },
    {
        "name": "thread-update",
        "title": "Update Thread",
        "description": "Modify a thread's metadata or tool resources.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "thread_id": _THREAD_ID,
                "tool_resources": _TOOL_RESOURCES_PROPERTY,
                "metadata": _METADATA_PROPERTY,
            },
            "required": ["thread_id"],
        },
    },
    {
        "name": "thread-delete",
        "title": "Delete Thread",
        "description": "Permanently delete a thread and its messages. This cannot be undone.",
        "inputSchema": {
            "type": "object",
            "properties": {"thread_id": _THREAD_ID},
            "required": ["thread_id"],
        },
    },
    # ------------------------------------------------------------------ messages
    {
        "name": "message-create",
        "title": "Add Message to Thread",
        "description": "Append a message to a thread. Use role \"user\" for user input.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "thread_id": _THREAD_ID,
                "role": {"type": "string", "enum": ["user", "assistant"], "description": "Message author role."},
                "content": {"type": "string", "description": "The text content of the message."},
                "attachments": {
                    "type": "array",
                    "description": "Files to attach, each with a file_id and the tools that may use it.",
                    "items": {"type": "object"},
                },
                "metadata": _METADATA_PROPERTY,
            },
            "required": ["thread_id", "role", "content"],
        },
    },
    {
        "name": "message-list",
        "title": "List Thread Messages",
        "description": "List messages in a thread with cursor pagination, optionally filtered to one run.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "thread_id": _THREAD_ID,
                **_pagination_properties("messages", "msg_abc123..."),
                "run_id": {"type": "string", "description": "Only return messages created by this run."},
            },
            "required": ["thread_id"],
        },
    },
    {
        "name": "message-get",
        "title": "Get Message Details",
        "description": "Retrieve one message from a thread.",
        "inputSchema": {
            "type": "object",
            "properties": {"thread_id": _THREAD_ID, "message_id": _MESSAGE_ID},
            "required": ["thread_id", "message_id"],
        },
    },
    {
        "name": "message-update",
        "title": "Update Message",
        "description": "Modify a message's metadata.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "thread_id": _THREAD_ID,
                "message_id": _MESSAGE_ID,
                "metadata": _METADATA_PROPERTY,
            },
            "required": ["thread_id", "message_id"],
        },
    },
    {
        "name": "message-delete",
        "title": "Delete Message",
        "description": "Permanently delete a message from a thread.",
        "inputSchema": {
            "type": "object",
            "properties": {"thread_id": _THREAD_ID, "message_id": _MESSAGE_ID},
            "required": ["thread_id", "message_id"],
        },
    },
    # ------------------------------------------------------------------ runs
    {
        "name": "run-create",
        "title": "Start Assistant Run",
        "description": "Run an assistant on a thread. The run processes the thread's messages and may request tool outputs.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "thread_id": _THREAD_ID,
                "assistant_id": _ASSISTANT_ID,
                "model": _MODEL_PROPERTY,
                "instructions": {"type": "string", "description": "Override the assistant's instructions for this run."},
                "additional_instructions": {"type": "string", "description": "Appended to the assistant's instructions."},
                "tools": _TOOLS_PROPERTY,
                "metadata": _METADATA_PROPERTY,
                "temperature": {"type": "number", "minimum": 0, "maximum": 2},
                "top_p": {"type": "number", "minimum": 0, "maximum": 1},
            },
            "required": ["thread_id", "assistant_id"],
        },
    },
    {
        "name": "run-list",
        "title": "List Thread Runs",
        "description": "List runs on a thread with cursor pagination.",
        "inputSchema": {
            "type": "object",
            "properties": {"thread_id": _THREAD_ID, **_pagination_properties("runs", "run_abc123...")},
            "required": ["thread_id"],
        },
    },
    {
        "name": "run-get",
        "title": "Get Run Details",
        "description": "Retrieve a run's status, usage and any required action.",
        "inputSchema": {
            "type": "object",
            "properties": {"thread_id": _THREAD_ID, "run_id": _RUN_ID},
            "required": ["thread_id", "run_id"],
        },
    },
    {
        "name": "run-update",
        "title": "Update Run",
        "description": "Modify a run's metadata.",
        "inputSchema": {
            "type": "object",
            "properties": {"thread_id": _THREAD_ID, "run_id": _RUN_ID, "metadata": _METADATA_PROPERTY},
            "required": ["thread_id", "run_id"],
        },
    },
    {
        "name": "run-cancel",
        "title": "Cancel Run",
        "description": "Cancel a run that is queued or in progress.",
        "inputSchema": {
            "type": "object",
            "properties": {"thread_id": _THREAD_ID, "run_id": _RUN_ID},
            "required": ["thread_id", "run_id"],
        },
    },
    {
        "name": "run-submit-tool-outputs",
        "title": "Submit Tool Outputs",
        "description": "Submit function results for a run in status \"requires_action\" so it can continue.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "thread_id": _THREAD_ID,
                "run_id": _RUN_ID,
                "tool_outputs": {
                    "type": "array",
                    "description": "One entry per requested tool call.",
                    "items": {
                        "type": "object",
                        "properties": {
                            "tool_call_id": {"type": "string", "description": "Tool call ID (format: \"call_abc123...\")."},
                            "output": {"type": "string", "description": "The tool's result as a string."},
                        },
                        "required": ["tool_call_id", "output"],
                    },
                },
            },
            "required": ["thread_id", "run_id", "tool_outputs"],
        },
    },
    # ------------------------------------------------------------------ run steps
    {
        "name": "run-step-list",
        "title": "List Run Steps",
        "description": "List the steps a run took (message creation, tool calls) with cursor pagination.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "thread_id": _THREAD_ID,
                "run_id": _RUN_ID,
                **_pagination_properties("run steps", "step_abc123..."),
                "include": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Additional fields to include (e.g., file_search result content).",
                },
            },
            "required": ["thread_id", "run_id"],
        },
    },
    {
        "name": "run-step-get",
        "title": "Get Run Step Details",
        "description": "Retrieve one run step, including tool call details.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "thread_id": _THREAD_ID,
                "run_id": _RUN_ID,
                "step_id": _STEP_ID,
                "include": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["thread_id", "run_id", "step_id"],
        },
    },
]

READ_ONLY_TOOLS = {
    "assistant-list", "assistant-get",
    "thread-get",
    "message-list", "message-get",
    "run-list", "run-get",
    "run-step-list", "run-step-get",
}

DESTRUCTIVE_TOOLS = {"assistant-delete", "thread-delete", "message-delete", "run-cancel"}

IDEMPOTENT_TOOLS = READ_ONLY_TOOLS.union({
    "assistant-update", "assistant-delete",
    "thread-update", "thread-delete",
    "message-update", "message-delete",
    "run-update",
})

TOOL_NAMES = tuple(schema["name"] for schema in TOOLS_SCHEMAS)


def tool_category(name: str) -> str:
    """Category is the name minus its trailing verb ("run-step-get" -> "run-step")."""
    return name.rsplit("-", 1)[0] if name != "run-submit-tool-outputs" else "run"


def tool_annotations(name: str) -> Dict[str, bool]:
    return {
        "readOnlyHint": name in READ_ONLY_TOOLS,
        "destructiveHint": name in DESTRUCTIVE_TOOLS,
        "idempotentHint": name in IDEMPOTENT_TOOLS,
        "openWorldHint": True,
    }


def build_tool_definitions() -> List[Dict[str, Any]]:
    """Tool definitions as served by tools/list, with behavioural annotations attached."""
    tools = []
    for schema in TOOLS_SCHEMAS:
        tool = dict(schema)
        tool["annotations"] = {"title": schema["title"], **tool_annotations(schema["name"])}
        tools.append(tool)
    return tools
