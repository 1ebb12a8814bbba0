"""
Gateway MCP Tool Registry
=========================
Maps tool names onto handler instances and runs them.

The registry is populated once at startup and read concurrently afterwards;
execution never mutates it.
"""

import difflib
import logging
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

from assistants_gateway.errors import INTERNAL_ERROR, METHOD_NOT_FOUND, McpError, describe_exception
from assistants_gateway.utils import redact_sensitive

from .context import RequestContext
from .handlers import BaseToolHandler, create_tool_handlers

logger = logging.getLogger("Gateway.mcp.registry")

MAX_SUGGESTIONS = 3


class ToolRegistry:
    def __init__(self) -> None:
        self._handlers: Dict[str, BaseToolHandler] = {}

    def register(self, name: str, handler: BaseToolHandler) -> None:
        if name in self._handlers:
            raise ValueError(f"Tool '{name}' is already registered")
        if handler.tool_name != name:
            raise ValueError(
                f"Handler tool name '{handler.tool_name}' does not match registration name '{name}'"
            )
        self._handlers[name] = handler
        logger.debug("Registered tool handler '%s' (%s)", name, handler.category)

    def register_batch(self, handlers: Mapping[str, BaseToolHandler]) -> None:
        for name, handler in handlers.items():
            self.register(name, handler)
        logger.info("Registered %d tool handlers", len(handlers))

    def unregister(self, name: str) -> bool:
        return self._handlers.pop(name, None) is not None

    def is_registered(self, name: str) -> bool:
        return name in self._handlers

    def get_handler(self, name: str) -> Optional[BaseToolHandler]:
        return self._handlers.get(name)

    def get_registered_tools(self) -> List[str]:
        return sorted(self._handlers)

    def clear(self) -> None:
        self._handlers.clear()

    def suggest(self, name: str) -> List[str]:
        """Closest registered names, substring matches first."""
        lowered = name.lower()
        substring = [tool for tool in sorted(self._handlers) if lowered and (lowered in tool or tool in lowered)]
        close = difflib.get_close_matches(name, list(self._handlers), n=MAX_SUGGESTIONS, cutoff=0.5)
        suggestions: List[str] = []
        for tool in substring + close:
            if tool not in suggestions:
                suggestions.append(tool)
        return suggestions[:MAX_SUGGESTIONS]

    def unknown_tool_error(self, name: str) -> McpError:
        return McpError(
            METHOD_NOT_FOUND,
            f"Unknown tool: {name}",
            {
                "toolName": name,
                "suggestions": self.suggest(name),
                "availableTools": self.get_registered_tools(),
            },
        )

    async def execute(self, name: str, args: Dict[str, Any], context: RequestContext) -> Any:
        handler = self._handlers.get(name)
        if handler is None:
            raise self.unknown_tool_error(name)

        try:
            return await handler.handle(args, context)
        except McpError:
            raise
        except Exception as exc:
            logger.exception("Unexpected failure executing tool '%s'", name)
            raise McpError(
                INTERNAL_ERROR,
                f"Tool execution failed for '{name}'",
                {
                    "toolName": name,
                    "args": redact_sensitive(args),
                    "originalError": describe_exception(exc),
                },
            ) from exc

    def get_stats(self) -> Dict[str, Any]:
        by_category = Counter(handler.category for handler in self._handlers.values())
        return {
            "totalHandlers": len(self._handlers),
            "handlersByCategory": dict(sorted(by_category.items())),
            "registeredTools": self.get_registered_tools(),
        }


def create_tool_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register_batch(create_tool_handlers())
    return registry
