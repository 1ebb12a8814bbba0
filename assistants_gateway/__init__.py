"""
Assistants Gateway: MCP access to the OpenAI Assistants API and future providers
"""

from assistants_gateway.errors import (
    BackendAPIError,
    BackendConnectionError,
    GatewayError,
    LLMProviderError,
    McpError,
)
from assistants_gateway.version import __version__

__all__ = [
    "__version__",
    "GatewayError",
    "McpError",
    "LLMProviderError",
    "BackendAPIError",
    "BackendConnectionError",
]
