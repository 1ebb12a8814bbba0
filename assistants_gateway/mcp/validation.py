"""
Parameter validation for the assistant/thread/message/run tools.

Validators raise ``ParameterError`` naming the offending parameter, a reason,
and (where useful) a corrective example.  Tool handlers turn these into
``InvalidParams`` errors prefixed with the tool name.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, Iterable, Optional, Sequence

from assistants_gateway.errors import INVALID_PARAMS, McpError

SUPPORTED_MODELS = (
    "gpt-4",
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4-turbo",
    "gpt-4-turbo-preview",
    "gpt-4-0125-preview",
    "gpt-4-1106-preview",
    "gpt-4-vision-preview",
    "gpt-3.5-turbo",
    "gpt-3.5-turbo-0125",
    "gpt-3.5-turbo-1106",
    "gpt-3.5-turbo-16k",
)

# Dated snapshots and newer families are accepted by prefix.
SUPPORTED_MODEL_PREFIXES = ("gpt-4", "gpt-3.5-turbo", "o1", "o3", "o4")

ID_PREFIXES = {
    "assistant": "asst_",
    "thread": "thread_",
    "message": "msg_",
    "run": "run_",
    "step": "step_",
    "file": "file-",
    "tool_call": "call_",
}

ID_PATTERNS = {
    kind: re.compile(rf"^{re.escape(prefix)}[A-Za-z0-9]+$") for kind, prefix in ID_PREFIXES.items()
}

_ID_EXAMPLE_BODY = "abc123def456ghi789jkl012"

ALLOWED_TOOL_TYPES = ("code_interpreter", "file_search", "function")
MESSAGE_ROLES = ("user", "assistant")
SORT_ORDERS = ("asc", "desc")

METADATA_MAX_CHARS = 16384
METADATA_MAX_KEYS = 16
LIST_LIMIT_MIN = 1
LIST_LIMIT_MAX = 100


class ParameterError(McpError):
    """A single parameter failed validation."""

    def __init__(self, param: str, reason: str, example: Optional[Any] = None) -> None:
        self.param = param
        self.reason = reason
        self.example = example
        data: Dict[str, Any] = {"parameter": param}
        if example is not None:
            data["example"] = example
        super().__init__(INVALID_PARAMS, f"Parameter '{param}': {reason}", data)


def example_id(kind: str) -> str:
    return f"{ID_PREFIXES[kind]}{_ID_EXAMPLE_BODY}"


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def validate_id(value: Any, kind: str, param: str) -> None:
    example = example_id(kind)
    if is_missing(value):
        raise ParameterError(
            param,
            f"Required parameter is missing. Provide a valid {kind} ID starting with "
            f"'{ID_PREFIXES[kind]}' (e.g., '{example}').",
            example,
        )
    if not isinstance(value, str):
        raise ParameterError(
            param,
            f"Must be a string, but received: {_type_name(value)}. Expected format: '{example}'.",
            example,
        )
    if not ID_PATTERNS[kind].match(value):
        raise ParameterError(
            param,
            f"Invalid {kind} ID format. Expected '{ID_PREFIXES[kind]}' followed by letters and "
            f"digits (e.g., '{example}'), but received: '{value}'.",
            example,
        )


def validate_model(value: Any, param: str = "model") -> None:
    example = "gpt-4o"
    if is_missing(value):
        raise ParameterError(
            param,
            "Required parameter is missing. Specify a supported model like 'gpt-4o', "
            "'gpt-4-turbo', or 'gpt-3.5-turbo'.",
            example,
        )
    if not isinstance(value, str):
        raise ParameterError(param, f"Must be a string, but received: {_type_name(value)}.", example)
    if value in SUPPORTED_MODELS or value.startswith(SUPPORTED_MODEL_PREFIXES):
        return
    raise ParameterError(
        param,
        f"Invalid model '{value}'. Supported models include: {', '.join(SUPPORTED_MODELS)}.",
        example,
    )


def validate_required_string(value: Any, param: str, examples: Optional[Sequence[str]] = None) -> None:
    example_text = f" Examples: {', '.join(examples)}." if examples else ""
    example = examples[0] if examples else None
    if value is None:
        raise ParameterError(param, f"Required parameter is missing. Provide a non-empty string value.{example_text}", example)
    if not isinstance(value, str):
        raise ParameterError(param, f"Must be a string, but received: {_type_name(value)}.{example_text}", example)
    if not value.strip():
        raise ParameterError(param, f"Cannot be empty. Provide a non-empty string value.{example_text}", example)


def validate_optional_string(value: Any, param: str, example: Optional[str] = None) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        hint = f" Example: \"{example}\"." if example else ""
        raise ParameterError(param, f"Must be a string, but received: {_type_name(value)}.{hint}", example)


def validate_numeric_range(
    value: Any,
    param: str,
    minimum: float,
    maximum: float,
    *,
    required: bool = False,
) -> None:
    if value is None:
        if required:
            raise ParameterError(
                param, f"Required parameter is missing. Provide a number between {minimum} and {maximum} (inclusive).", minimum
            )
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise ParameterError(
            param,
            f"Must be a valid number between {minimum} and {maximum} (inclusive), but received: {value!r}.",
            minimum,
        )
    if value < minimum or value > maximum:
        raise ParameterError(
            param,
            f"Must be between {minimum} and {maximum} (inclusive), but received: {value}.",
            max(minimum, min(maximum, value)),
        )


def validate_enum(value: Any, param: str, allowed: Sequence[str], *, required: bool = False) -> None:
    if value is None:
        if required:
            raise ParameterError(
                param, f"Required parameter is missing. Allowed values: {', '.join(allowed)}.", allowed[0]
            )
        return
    if value not in allowed:
        raise ParameterError(
            param,
            f"Invalid value '{value}'. Allowed values: {', '.join(allowed)}.",
            allowed[0],
        )


def validate_array(value: Any, param: str, *, required: bool = False) -> None:
    if value is None:
        if required:
            raise ParameterError(param, "Required parameter is missing. Provide an array value.", [])
        return
    if not isinstance(value, list):
        raise ParameterError(param, f"Must be an array, but received: {_type_name(value)}.", [])


def validate_metadata(value: Any, param: str = "metadata") -> None:
    example = {"key": "value", "category": "support"}
    if value is None:
        return
    if not isinstance(value, dict):
        raise ParameterError(
            param, f"Must be an object with key-value pairs, but received: {_type_name(value)}.", example
        )
    if len(value) > METADATA_MAX_KEYS:
        raise ParameterError(
            param, f"Supports at most {METADATA_MAX_KEYS} keys, but received: {len(value)}.", example
        )
    serialized = json.dumps(value, separators=(",", ":"), default=str)
    if len(serialized) > METADATA_MAX_CHARS:
        raise ParameterError(
            param,
            f"Exceeds the {METADATA_MAX_CHARS} character size limit (current size: {len(serialized)}). "
            "Reduce the amount of metadata or use shorter keys/values.",
            example,
        )


def validate_tools(value: Any, param: str = "tools") -> None:
    if value is None:
        return
    validate_array(value, param)
    for i, tool in enumerate(value):
        if not isinstance(tool, dict):
            raise ParameterError(
                f"{param}[{i}]", "Each tool must be an object.", {"type": "code_interpreter"}
            )
        tool_type = tool.get("type")
        if tool_type not in ALLOWED_TOOL_TYPES:
            raise ParameterError(
                f"{param}[{i}].type",
                f"Invalid tool type '{tool_type}'. Allowed types: {', '.join(ALLOWED_TOOL_TYPES)}.",
                {"type": "code_interpreter"},
            )
        if tool_type == "function":
            function = tool.get("function")
            function_example = {"type": "function", "function": {"name": "calculate_sum"}}
            if not isinstance(function, dict):
                raise ParameterError(
                    f"{param}[{i}].function", "Function tools require a 'function' object.", function_example
                )
            name = function.get("name")
            if not isinstance(name, str) or not name.strip():
                raise ParameterError(
                    f"{param}[{i}].function.name",
                    "Function tools require a non-empty string name.",
                    function_example,
                )


def validate_tool_resources(value: Any, tools: Optional[Iterable[Dict[str, Any]]], param: str = "tool_resources") -> None:
    if value is None:
        return
    if not isinstance(value, dict):
        raise ParameterError(
            param,
            f"Must be an object, but received: {_type_name(value)}.",
            {"file_search": {"vector_store_ids": ["vs_123"]}},
        )
    # Without a tools list in the same call the target may already carry the tool.
    if tools is None:
        return
    tool_types = {t.get("type") for t in tools if isinstance(t, dict)}
    for resource_type in ("file_search", "code_interpreter"):
        if value.get(resource_type) and resource_type not in tool_types:
            raise ParameterError(
                param,
                f"Cannot specify '{resource_type}' resources without a {resource_type} tool. "
                f"Add {{\"type\": \"{resource_type}\"}} to tools or remove it from tool_resources.",
                {"type": resource_type},
            )


def validate_message_role(value: Any, param: str = "role") -> None:
    validate_enum(value, param, MESSAGE_ROLES, required=True)


def validate_pagination_params(args: Dict[str, Any]) -> None:
    limit = args.get("limit")
    if limit is not None:
        if isinstance(limit, float) and limit.is_integer():
            limit = int(limit)
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise ParameterError("limit", f"Must be an integer between {LIST_LIMIT_MIN} and {LIST_LIMIT_MAX}.", 20)
        validate_numeric_range(limit, "limit", LIST_LIMIT_MIN, LIST_LIMIT_MAX)

    validate_enum(args.get("order"), "order", SORT_ORDERS)

    for param, hint in (("after", "last item of the previous page"), ("before", "first item of the next page")):
        value = args.get(param)
        if value is not None and (not isinstance(value, str) or not value.strip()):
            raise ParameterError(
                param,
                f"Must be a non-empty string cursor ID. Use the ID from the {hint}.",
                example_id("assistant"),
            )

    if args.get("after") and args.get("before"):
        raise ParameterError(
            "after",
            "Cannot specify both 'after' and 'before'. Use 'after' for forward pagination "
            "or 'before' for backward pagination, but not both.",
        )


def validate_tool_outputs(value: Any, param: str = "tool_outputs") -> None:
    example = [{"tool_call_id": example_id("tool_call"), "output": "42"}]
    if value is None:
        raise ParameterError(param, "Required parameter is missing. Provide an array of tool outputs.", example)
    if not isinstance(value, list):
        raise ParameterError(param, f"Must be an array, but received: {_type_name(value)}.", example)
    if not value:
        raise ParameterError(param, "Must contain at least one tool output.", example)
    for i, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise ParameterError(f"{param}[{i}]", "Each tool output must be an object.", example[0])
        validate_id(entry.get("tool_call_id"), "tool_call", f"{param}[{i}].tool_call_id")
        output = entry.get("output")
        if output is None:
            raise ParameterError(
                f"{param}[{i}].output",
                "Required field is missing. Provide the tool's result as a string.",
                example[0],
            )
        if not isinstance(output, str):
            raise ParameterError(
                f"{param}[{i}].output",
                f"Must be a string, but received: {_type_name(output)}. Serialize structured results as JSON text.",
                example[0],
            )


def validate_message_content(value: Any, param: str = "content") -> None:
    validate_required_string(value, param, ["Hello, can you help me?", "Summarize the attached report."])


def collect_pagination(args: Dict[str, Any]) -> Dict[str, Any]:
    """Pick the list query parameters that were actually supplied."""
    return {key: args[key] for key in ("limit", "order", "after", "before") if args.get(key) is not None}


def pick(args: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    return {key: args[key] for key in keys if key in args and args[key] is not None}