"""
Gateway MCP Protocol Constants
"""

from assistants_gateway.version import __version__

PROTOCOL_VERSION = "2024-11-05"
JSONRPC_VERSION = "2.0"

SERVER_NAME = "assistants-gateway"
SERVER_VERSION = __version__

METHOD_INITIALIZE = "initialize"
METHOD_TOOLS_LIST = "tools/list"
METHOD_TOOLS_CALL = "tools/call"
METHOD_RESOURCES_LIST = "resources/list"
METHOD_RESOURCES_READ = "resources/read"
METHOD_PROMPTS_LIST = "prompts/list"
METHOD_PROMPTS_GET = "prompts/get"
METHOD_COMPLETION_COMPLETE = "completion/complete"

SUPPORTED_METHODS = (
    METHOD_INITIALIZE,
    METHOD_TOOLS_LIST,
    METHOD_TOOLS_CALL,
    METHOD_RESOURCES_LIST,
    METHOD_RESOURCES_READ,
    METHOD_PROMPTS_LIST,
    METHOD_PROMPTS_GET,
    METHOD_COMPLETION_COMPLETE,
)

# Hard cap on completion/complete values per response
MAX_COMPLETION_VALUES = 100


def server_capabilities() -> dict:
    return {
        "tools": {"listChanged": False},
        "resources": {"subscribe": False, "listChanged": False},
        "prompts": {"listChanged": False},
        "completions": {},
    }


def server_info() -> dict:
    return {"name": SERVER_NAME, "version": SERVER_VERSION}
