"""
Argument completion for ``completion/complete``.

``ref/prompt`` completes prompt arguments from fixed suggestion lists;
``ref/resource`` completes resource URIs.  Values are prefix-filtered
case-insensitively, de-duplicated, sorted and capped.
"""

from typing import Any, Dict, List, Optional

from assistants_gateway.errors import INVALID_PARAMS, McpError

from .protocol import MAX_COMPLETION_VALUES
from .resources import RESOURCES
from .validation import ID_PREFIXES

MODEL_SUGGESTIONS = ["gpt-4", "gpt-4-turbo", "gpt-4o", "gpt-4o-mini", "gpt-3.5-turbo"]
TOOL_SUGGESTIONS = ["code_interpreter", "file_search", "function"]

_GENERIC_SUGGESTIONS: Dict[str, List[str]] = {
    "model": MODEL_SUGGESTIONS,
    "tools": TOOL_SUGGESTIONS,
    "additional_tools": TOOL_SUGGESTIONS + ["code_interpreter, file_search"],
    "order": ["asc", "desc"],
    "limit": ["10", "20", "50", "100"],
    "tool_choice": ["auto", "none", "required"],
    "experience_level": ["beginner", "intermediate", "expert", "senior"],
    "detail_level": ["basic", "intermediate", "advanced"],
    "complexity": ["simple", "moderate", "complex"],
    "time_sensitivity": ["low", "medium", "high"],
    "organization_type": ["chronological", "by_topic", "by_importance"],
    "run_status": ["queued", "in_progress", "requires_action", "cancelled", "failed", "completed", "expired"],
    "data_format": ["CSV", "JSON", "Parquet", "Excel", "database"],
}

_PROMPT_SUGGESTIONS: Dict[str, Dict[str, List[str]]] = {
    "create-coding-assistant": {
        "specialization": [
            "Python web development",
            "React frontend development",
            "Node.js backend development",
            "DevOps and infrastructure",
            "Mobile app development",
            "Machine learning and AI",
            "Database design and optimization",
            "API development and integration",
            "Cloud architecture",
            "Data engineering",
            "Cybersecurity",
        ],
    },
    "create-data-analyst": {
        "domain": ["business intelligence", "scientific research", "marketing", "finance", "healthcare"],
        "tools_focus": ["python", "r", "sql", "visualization"],
        "data_type": [
            "financial data", "customer data", "sales data", "survey data",
            "time series data", "geospatial data", "web analytics data",
        ],
    },
    "create-writing-assistant": {
        "writing_type": [
            "technical documentation", "marketing copy", "academic papers",
            "blog posts", "email campaigns", "product descriptions",
        ],
        "tone": ["professional", "casual", "academic", "creative"],
        "writing_style": ["professional", "casual", "academic", "creative", "technical", "conversational"],
    },
    "configure-assistant-run": {
        "task_type": ["code_review", "data_analysis", "writing", "general_qa"],
    },
}

# Argument names completed with an ID prefix plus illustrative IDs.
_ID_ARGUMENTS = {
    "assistant_id": "assistant",
    "thread_id": "thread",
    "message_id": "message",
    "run_id": "run",
    "step_id": "step",
    "file_id": "file",
}


def _id_suggestions(kind: str, current: str) -> List[str]:
    prefix = ID_PREFIXES[kind]
    suggestions = [] if len(current) >= len(prefix) else [prefix]
    suggestions.extend(f"{prefix}{body}" for body in ("abc123", "def456", "ghi789"))
    return suggestions


def prompt_argument_suggestions(prompt_name: Optional[str], argument_name: str, current: str = "") -> List[str]:
    specific = _PROMPT_SUGGESTIONS.get(prompt_name or "", {})
    if argument_name in specific:
        return list(specific[argument_name])
    if argument_name in _ID_ARGUMENTS:
        return _id_suggestions(_ID_ARGUMENTS[argument_name], current)
    return list(_GENERIC_SUGGESTIONS.get(argument_name, []))


def resource_uri_suggestions() -> List[str]:
    return list(RESOURCES) + ["assistant://templates/", "docs://", "examples://workflows/"]


def filter_values(values: List[str], current: str, limit: int = MAX_COMPLETION_VALUES) -> Dict[str, Any]:
    lowered = current.lower()
    matches = sorted({value for value in values if value.lower().startswith(lowered)})
    return {
        "values": matches[:limit],
        "total": len(matches),
        "hasMore": len(matches) > limit,
    }


def complete(params: Any) -> Dict[str, Any]:
    """Body of a ``completion/complete`` result."""
    if not isinstance(params, dict):
        raise McpError(INVALID_PARAMS, "completion/complete params must be an object")
    ref = params.get("ref")
    argument = params.get("argument")
    if not isinstance(ref, dict) or not isinstance(argument, dict):
        raise McpError(
            INVALID_PARAMS,
            "completion/complete requires 'ref' and 'argument' objects",
            {"example": {"ref": {"type": "ref/prompt", "name": "review-code"}, "argument": {"name": "language", "value": "py"}}},
        )

    argument_name = argument.get("name") if isinstance(argument.get("name"), str) else ""
    current = argument.get("value") if isinstance(argument.get("value"), str) else ""
    ref_type = ref.get("type")

    if ref_type == "ref/prompt":
        values = prompt_argument_suggestions(ref.get("name"), argument_name, current)
    elif ref_type == "ref/resource":
        values = resource_uri_suggestions()
    else:
        raise McpError(
            INVALID_PARAMS,
            f"Unsupported reference type: {ref_type}",
            {"supportedTypes": ["ref/prompt", "ref/resource"]},
        )
    return {"completion": filter_values(values, current)}
