"""
Gateway MCP Protocol Dispatcher
===============================
Routes one JSON-RPC request envelope to the code that serves its method and
returns the response envelope.

Pipeline:
  adapter.preprocess_request -> route by method -> adapter.postprocess_response

Any exception along the way is caught exactly once, normalized into an error
object and rendered by the adapter's ``format_error`` (or the default
envelope builder).  ``handle_request`` itself never raises.

``tools/call`` failure rule: problems found before a handler runs (bad
params, unknown provider, unknown tool) are JSON-RPC errors; anything raised
by the handler is reported in-band as ``result.isError``.
"""

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from assistants_gateway.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    McpError,
    RequestId,
    create_error_response,
    create_success_response,
    describe_exception,
    normalize_error,
)
from assistants_gateway.utils import truncate_tool_text

from . import completion, resources
from .context import RequestContext
from .definitions import build_tool_definitions
from .pagination import DEFAULT_LIMIT, MAX_LIMIT, get_pagination_summary, paginate_array
from .prompts import PromptRegistry
from .protocol import (
    METHOD_COMPLETION_COMPLETE,
    METHOD_INITIALIZE,
    METHOD_PROMPTS_GET,
    METHOD_PROMPTS_LIST,
    METHOD_RESOURCES_LIST,
    METHOD_RESOURCES_READ,
    METHOD_TOOLS_CALL,
    METHOD_TOOLS_LIST,
    PROTOCOL_VERSION,
    SUPPORTED_METHODS,
    server_capabilities,
    server_info,
)
from .registry import ToolRegistry, create_tool_registry

if TYPE_CHECKING:
    from assistants_gateway.providers.registry import ProviderRegistry
    from assistants_gateway.transports.base import TransportAdapter

logger = logging.getLogger("Gateway.mcp.dispatcher")

NOTIFICATION_PREFIX = "notifications/"


def is_notification(request: Any) -> bool:
    return isinstance(request, dict) and "id" not in request


def _params(request: Dict[str, Any]) -> Dict[str, Any]:
    params = request.get("params")
    if params is None:
        return {}
    if not isinstance(params, dict):
        raise McpError(INVALID_PARAMS, "params must be an object")
    return params


def _cursor(params: Dict[str, Any]) -> Optional[str]:
    cursor = params.get("cursor")
    if cursor is not None and not isinstance(cursor, str):
        raise McpError(INVALID_PARAMS, "Invalid pagination cursor", {"hint": "cursor must be a string"})
    return cursor or None


def _page_result(key: str, page: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {key: page["items"]}
    if page["nextCursor"]:
        result["nextCursor"] = page["nextCursor"]
    return result


class ProtocolDispatcher:
    def __init__(
        self,
        provider_registry: "ProviderRegistry",
        tool_registry: Optional[ToolRegistry] = None,
        adapter: Optional["TransportAdapter"] = None,
        *,
        prompt_registry: Optional[PromptRegistry] = None,
        debug: bool = False,
    ) -> None:
        self.provider_registry = provider_registry
        self.tool_registry = tool_registry or create_tool_registry()
        self.prompt_registry = prompt_registry or PromptRegistry()
        self.adapter = adapter
        self.debug = debug
        self.initialized = False
        self._tool_definitions: List[Dict[str, Any]] = build_tool_definitions()

    async def handle_request(self, request: Any, *, provider_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Serve one request envelope.

        ``provider_name`` is the provider selected by the transport (for
        example from the HTTP path); when absent the registry default is used.
        """
        request_id: RequestId = request.get("id") if isinstance(request, dict) else None
        try:
            preprocess = getattr(self.adapter, "preprocess_request", None)
            if preprocess is not None:
                request = preprocess(request)
            if not isinstance(request, dict):
                raise McpError(INVALID_REQUEST, "Request must be a JSON object")
            request_id = request.get("id")

            result = await self._route(request, provider_name)
            response = create_success_response(request_id, result)

            postprocess = getattr(self.adapter, "postprocess_response", None)
            if postprocess is not None:
                response = postprocess(response)
            return response
        except Exception as exc:
            if not isinstance(exc, McpError):
                logger.exception("Unhandled error serving request id=%s", request_id)
            return self._format_error(normalize_error(exc, request_id, debug=self.debug), request_id)

    def _format_error(self, error: McpError, request_id: RequestId) -> Dict[str, Any]:
        format_error = getattr(self.adapter, "format_error", None)
        if format_error is not None:
            try:
                return format_error(error, request_id)
            except Exception:
                logger.exception("Transport adapter failed to format error; using default envelope")
        return create_error_response(request_id, error.code, error.message, error.data)

    async def _route(self, request: Dict[str, Any], provider_name: Optional[str]) -> Any:
        method = request.get("method")
        if not isinstance(method, str) or not method:
            raise McpError(INVALID_REQUEST, "Request is missing a method")
        params = _params(request)

        if method == METHOD_INITIALIZE:
            return self._initialize(params)
        if method == METHOD_TOOLS_LIST:
            return self._list_tools(params)
        if method == METHOD_TOOLS_CALL:
            return await self._call_tool(params, request.get("id"), provider_name)
        if method == METHOD_RESOURCES_LIST:
            page = paginate_array(resources.list_resources(), _cursor(params), DEFAULT_LIMIT)
            return _page_result("resources", page)
        if method == METHOD_RESOURCES_READ:
            return resources.read_resource(params.get("uri"))
        if method == METHOD_PROMPTS_LIST:
            return self._guarded("list prompts", self._list_prompts, params)
        if method == METHOD_PROMPTS_GET:
            return self._guarded("get prompt", self._get_prompt, params)
        if method == METHOD_COMPLETION_COMPLETE:
            return self._guarded("complete argument", completion.complete, params)
        if method.startswith(NOTIFICATION_PREFIX):
            logger.debug("Notification received: %s", method)
            return {}
        raise McpError(
            METHOD_NOT_FOUND,
            f"Method not found: {method}",
            {"method": method, "supportedMethods": list(SUPPORTED_METHODS)},
        )

    # ------------------------------------------------------------------
    # Methods
    # ------------------------------------------------------------------

    def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        client = params.get("clientInfo") if isinstance(params.get("clientInfo"), dict) else {}
        if not self.initialized:
            logger.info(
                "Initialized for client %s %s (requested protocol %s)",
                client.get("name", "unknown"),
                client.get("version", ""),
                params.get("protocolVersion", "unspecified"),
            )
        self.initialized = True
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": server_capabilities(),
            "serverInfo": server_info(),
        }

    def _list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        page = paginate_array(self._tool_definitions, _cursor(params), MAX_LIMIT)
        logger.debug("tools/list: %s", get_pagination_summary(page))
        return _page_result("tools", page)

    async def _call_tool(
        self,
        params: Dict[str, Any],
        request_id: RequestId,
        provider_name: Optional[str],
    ) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name.strip():
            raise McpError(INVALID_PARAMS, "tools/call requires a non-empty string 'name'")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise McpError(INVALID_PARAMS, "tools/call 'arguments' must be an object", {"toolName": name})

        provider = self._resolve_provider(provider_name)
        if not self.tool_registry.is_registered(name):
            raise self.tool_registry.unknown_tool_error(name)

        context = RequestContext(provider=provider, tool_name=name, request_id=request_id)
        try:
            result = await self.tool_registry.execute(name, arguments, context)
        except Exception as exc:
            error = normalize_error(exc, request_id, debug=self.debug)
            return {"content": [{"type": "text", "text": f"Error: {error.message}"}], "isError": True}

        text = json.dumps(result, indent=2, default=str)
        return {"content": [{"type": "text", "text": truncate_tool_text(text, name)}]}

    def _resolve_provider(self, provider_name: Optional[str]):
        if provider_name:
            provider = self.provider_registry.get_provider(provider_name)
            if provider is None:
                raise McpError(
                    METHOD_NOT_FOUND,
                    f"Provider not found: {provider_name}",
                    {
                        "provider": provider_name,
                        "availableProviders": self.provider_registry.get_available_providers(),
                    },
                )
            return provider
        provider = self.provider_registry.select_provider()
        if provider is None:
            raise McpError(INTERNAL_ERROR, "No providers are available", {"availableProviders": []})
        return provider

    def _list_prompts(self, params: Dict[str, Any]) -> Dict[str, Any]:
        page = paginate_array(self.prompt_registry.list_prompts(), _cursor(params), DEFAULT_LIMIT)
        return _page_result("prompts", page)

    def _get_prompt(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self.prompt_registry.get_prompt(params.get("name"), params.get("arguments"))

    def _guarded(self, action: str, fn, params: Dict[str, Any]) -> Any:
        try:
            return fn(params)
        except McpError:
            raise
        except Exception as exc:
            logger.exception("Failed to %s", action)
            raise McpError(
                INTERNAL_ERROR, f"Failed to {action}", {"originalError": describe_exception(exc, debug=self.debug)}
            ) from exc
