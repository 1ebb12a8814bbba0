# Lightweight names only; the dispatcher pulls in the provider and handler stack.
from assistants_gateway.mcp.context import RequestContext
from assistants_gateway.mcp.protocol import PROTOCOL_VERSION

__all__ = ["ProtocolDispatcher", "ToolRegistry", "RequestContext", "PROTOCOL_VERSION"]


def __getattr__(name):
    if name == "ProtocolDispatcher":
        from assistants_gateway.mcp.dispatcher import ProtocolDispatcher
        return ProtocolDispatcher
    if name == "ToolRegistry":
        from assistants_gateway.mcp.registry import ToolRegistry
        return ToolRegistry
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
