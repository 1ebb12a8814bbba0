"""
Static MCP resources: assistant templates, reference docs and workflow examples.

Templates are served as JSON; docs and examples as markdown.
"""

import json
from typing import Any, Dict, List, Optional

from assistants_gateway.errors import LEGACY_NOT_FOUND, create_enhanced_error

JSON_MIME = "application/json"
MARKDOWN_MIME = "text/markdown"

_CODING_ASSISTANT = {
    "model": "gpt-4",
    "name": "Expert Coding Assistant",
    "description": "Reviews code, helps debug, and gives architecture and security guidance. "
                   "Runs snippets with the code interpreter and searches uploaded sources.",
    "instructions": (
        "You are an expert software engineer acting as a coding assistant.\n\n"
        "Responsibilities:\n"
        "1. Review code for correctness, structure and maintainability\n"
        "2. Trace bugs to their root cause and propose fixes\n"
        "3. Recommend design patterns and architecture changes where they pay off\n"
        "4. Point out performance bottlenecks and security problems\n"
        "5. Suggest tests and documentation for the code under review\n\n"
        "Explain the reasoning behind each recommendation and include short code "
        "examples. Adjust the depth of explanation to the user's experience."
    ),
    "tools": [{"type": "code_interpreter"}, {"type": "file_search"}],
    "metadata": {
        "category": "development",
        "use_case": "code_assistance",
        "expertise_level": "expert",
    },
}

_DATA_ANALYST = {
    "model": "gpt-4",
    "name": "Data Analyst Assistant",
    "description": "Analyses datasets, builds visualisations and explains statistical findings.",
    "instructions": (
        "You are a data analyst skilled in statistics, visualisation and business reporting.\n\n"
        "1. Explore the data before drawing conclusions\n"
        "2. Choose statistical methods that fit the data and state their assumptions\n"
        "3. Support findings with charts\n"
        "4. Finish with concrete, actionable recommendations\n\n"
        "Explain analytical concepts in plain language."
    ),
    "tools": [{"type": "code_interpreter"}, {"type": "file_search"}],
    "metadata": {"category": "analytics", "use_case": "data_analysis", "expertise_level": "expert"},
}

_CUSTOMER_SUPPORT = {
    "model": "gpt-3.5-turbo",
    "name": "Customer Support Assistant",
    "description": "A friendly support agent that resolves customer issues.",
    "instructions": (
        "You are a customer support assistant.\n\n"
        "Be friendly and professional, identify the customer's problem quickly, "
        "ask clarifying questions when the request is ambiguous, and confirm the "
        "issue is resolved before closing the conversation."
    ),
    "tools": [{"type": "file_search"}],
    "metadata": {"category": "support", "use_case": "customer_service", "expertise_level": "professional"},
}

_API_REFERENCE = """# Assistants API Reference

## Identifier formats

| Object | Prefix | Example |
|---|---|---|
| Assistant | `asst_` | `asst_abc123def456ghi789jkl012` |
| Thread | `thread_` | `thread_abc123def456ghi789jkl012` |
| Message | `msg_` | `msg_abc123def456ghi789jkl012` |
| Run | `run_` | `run_abc123def456ghi789jkl012` |
| Run step | `step_` | `step_abc123def456ghi789jkl012` |
| Tool call | `call_` | `call_abc123def456ghi789jkl012` |

## Models
- `gpt-4o`, `gpt-4-turbo`, `gpt-4`: complex reasoning
- `gpt-3.5-turbo`: fast, inexpensive tasks

## Tool types
- `code_interpreter`: runs Python in a sandbox
- `file_search`: searches attached vector stores
- `function`: custom functions; the run pauses in `requires_action` until outputs are submitted

## Metadata
An object of at most 16 string keys, serialized size under 16384 characters.

## Pagination
- `limit`: 1-100, default 20
- `order`: `asc` or `desc` (default)
- `after` / `before`: object ID cursors; supply at most one
"""

_BEST_PRACTICES = """# Best Practices

## Assistants
- Give specific instructions that define the role and its limits
- Enable only the tools the assistant needs
- Use `gpt-4` class models for reasoning and `gpt-3.5-turbo` for simple, high-volume work

## Threads and messages
- One thread per conversation or topic
- Tag threads with metadata (user, project, priority) so they can be found later
- Keep messages focused and include the context the run needs

## Runs
- Poll run status until it reaches a terminal state
- Answer `requires_action` promptly with `run-submit-tool-outputs`, or cancel the run

## Cost and hygiene
- Use pagination instead of fetching whole collections
- Delete threads and assistants that are no longer used
- Never store secrets in metadata
"""

_TROUBLESHOOTING = """# Troubleshooting

## 429 Too Many Requests
The backend is rate limiting. Wait before retrying; the error data carries `retryAfter`.

## 401 Authentication failed
The API key is missing, malformed or revoked. Check the key passed in the request path or `OPENAI_API_KEY`.

## 404 Resource not found
The ID does not exist or belongs to another organisation. IDs are case sensitive.

## Run stuck in `requires_action`
The assistant called a function. Submit outputs for every listed `tool_call_id`:

```json
{"tool": "run-submit-tool-outputs",
 "arguments": {"thread_id": "thread_abc123", "run_id": "run_abc123",
               "tool_outputs": [{"tool_call_id": "call_abc123", "output": "42"}]}}
```

## `tool_resources` rejected
`file_search` resources require a `file_search` tool; `code_interpreter` resources require a `code_interpreter` tool.

## Invalid pagination cursor
Cursors expire after one hour. Restart the listing without a cursor.
"""

_BASIC_WORKFLOW = """# Basic Workflow

1. Create an assistant
   `assistant-create` with `{"model": "gpt-3.5-turbo", "name": "Helper", "instructions": "Answer clearly."}`
2. Create a thread
   `thread-create` with `{"metadata": {"user_id": "user_123"}}`
3. Add the user's message
   `message-create` with `{"thread_id": "thread_abc123", "role": "user", "content": "Hello!"}`
4. Start a run
   `run-create` with `{"thread_id": "thread_abc123", "assistant_id": "asst_abc123"}`
5. Poll the run
   `run-get` with `{"thread_id": "thread_abc123", "run_id": "run_abc123"}` until `completed`
6. Read the reply
   `message-list` with `{"thread_id": "thread_abc123", "order": "asc"}`
"""

_ADVANCED_WORKFLOW = """# Advanced Workflow

1. `assistant-create` with `code_interpreter` and `file_search` tools and detailed instructions
2. `thread-create` with project metadata (owner, priority, deadline)
3. `message-create` describing the task, with file attachments
4. `run-create` with `additional_instructions` for this run only
5. `run-get` until the status is `requires_action` or terminal
6. `run-submit-tool-outputs` for each requested `tool_call_id`
7. `run-step-list` with `order: "asc"` to audit what the run did
8. `assistant-update` to refine instructions from what was learned
9. `thread-update` to record the outcome in metadata

On failure, `run-cancel` the run and start a new one with adjusted parameters.
"""

_BATCH_PROCESSING = """# Batch Processing

1. Create one specialised assistant per task type (writer, reviewer, analyst)
2. Create one thread per work item, tagging each with `task_type` and `priority` metadata
3. For each thread issue `message-create` then `run-create`; independent threads can run concurrently
4. Poll the runs with `run-get` and collect results with `message-list`
5. Delete finished threads with `thread-delete`
"""

RESOURCES: Dict[str, Dict[str, Any]] = {
    "assistant://templates/coding-assistant": {
        "name": "Coding Assistant Template",
        "description": "Assistant configuration for code review, debugging and programming guidance",
        "mimeType": JSON_MIME,
        "content": _CODING_ASSISTANT,
    },
    "assistant://templates/data-analyst": {
        "name": "Data Analyst Template",
        "description": "Assistant configuration for statistical analysis and visualisation",
        "mimeType": JSON_MIME,
        "content": _DATA_ANALYST,
    },
    "assistant://templates/customer-support": {
        "name": "Customer Support Template",
        "description": "Assistant configuration for friendly customer support",
        "mimeType": JSON_MIME,
        "content": _CUSTOMER_SUPPORT,
    },
    "docs://openai-assistants-api": {
        "name": "Assistants API Reference",
        "description": "ID formats, parameters and limits",
        "mimeType": MARKDOWN_MIME,
        "content": _API_REFERENCE,
    },
    "docs://best-practices": {
        "name": "Best Practices Guide",
        "description": "Guidelines for assistant design, runs, cost and hygiene",
        "mimeType": MARKDOWN_MIME,
        "content": _BEST_PRACTICES,
    },
    "docs://troubleshooting/common-issues": {
        "name": "Troubleshooting Guide",
        "description": "Common errors and how to resolve them",
        "mimeType": MARKDOWN_MIME,
        "content": _TROUBLESHOOTING,
    },
    "examples://workflows/basic-workflow": {
        "name": "Basic Workflow Example",
        "description": "Create an assistant, talk to it on a thread and read the reply",
        "mimeType": MARKDOWN_MIME,
        "content": _BASIC_WORKFLOW,
    },
    "examples://workflows/advanced-workflow": {
        "name": "Advanced Workflow Example",
        "description": "Tool calls, run steps and iterative assistant refinement",
        "mimeType": MARKDOWN_MIME,
        "content": _ADVANCED_WORKFLOW,
    },
    "examples://workflows/batch-processing": {
        "name": "Batch Processing Workflow",
        "description": "Processing many independent tasks concurrently",
        "mimeType": MARKDOWN_MIME,
        "content": _BATCH_PROCESSING,
    },
}


def list_resources() -> List[Dict[str, str]]:
    return [
        {"uri": uri, "name": entry["name"], "description": entry["description"], "mimeType": entry["mimeType"]}
        for uri, entry in RESOURCES.items()
    ]


def get_resource(uri: str) -> Optional[Dict[str, Any]]:
    return RESOURCES.get(uri)


def get_resources_by_category(category: str) -> List[Dict[str, str]]:
    lowered = category.lower()
    return [
        resource for resource in list_resources()
        if lowered in resource["uri"] or lowered in resource["name"].lower()
    ]


def read_resource(uri: Any) -> Dict[str, Any]:
    """Body of a ``resources/read`` result for ``uri``."""
    entry = RESOURCES.get(uri) if isinstance(uri, str) else None
    if entry is None:
        raise create_enhanced_error(
            LEGACY_NOT_FOUND,
            f"Resource not found: {uri}",
            {"resourceUri": uri, "availableResources": list(RESOURCES)},
        )
    content = entry["content"]
    text = content if isinstance(content, str) else json.dumps(content, indent=2)
    return {
        "contents": [
            {"uri": uri, "name": entry["name"], "mimeType": entry["mimeType"], "text": text}
        ]
    }
