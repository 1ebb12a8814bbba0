"""
HTTP transport
==============
FastAPI application serving the gateway at ``POST /mcp/{api_key}``.

Path forms:
  /mcp/{key}               default provider
  /mcp/{provider}/{key}    explicit provider; the segment is stripped before
                           the rest of the path is matched

Each request carries its own backend key, so a provider registry is built for
the lifetime of the request: a one-entry ``openai`` registry for single-key
configurations, otherwise every configured provider with the path key given
to the provider the request targets.

Status codes: 200 for any JSON-RPC envelope the dispatcher produced, 202 for
notifications, 400 for malformed paths, bodies or envelopes, 401 for keys that
are too short, 405 for methods other than POST and OPTIONS.
"""

import json
import logging
import re
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Tuple

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from assistants_gateway.config import GatewayConfig
from assistants_gateway.errors import (
    INVALID_REQUEST,
    LEGACY_UNAUTHORIZED,
    PARSE_ERROR,
    McpError,
    RequestId,
    create_enhanced_error,
)
from assistants_gateway.mcp.dispatcher import ProtocolDispatcher, is_notification
from assistants_gateway.mcp.prompts import PromptRegistry
from assistants_gateway.mcp.protocol import JSONRPC_VERSION
from assistants_gateway.mcp.registry import create_tool_registry
from assistants_gateway.providers.registry import build_request_registry
from assistants_gateway.version import __version__

from .base import TransportAdapter

logger = logging.getLogger("Gateway.transports.http")

MIN_API_KEY_LENGTH = 10
EXPECTED_PATH_FORMAT = "/mcp/{api-key} or /mcp/{provider}/{api-key}"

_PROVIDER_SEGMENT = re.compile(r"^[a-z0-9_-]+$")
_RESERVED_SEGMENTS = frozenset({"tools", "list", "call"})
_MCP_PATH = re.compile(r"^/mcp/([^/]+)$")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}


def parse_provider_from_path(path: str) -> Tuple[Optional[str], str]:
    """
    Split an optional provider segment out of ``path``.

    ``/mcp/openai/sk-abc`` -> ("openai", "/mcp/sk-abc"); paths without a
    provider segment come back unchanged with ``None``.
    """
    segments = [segment for segment in path.split("/") if segment]
    if len(segments) >= 3 and segments[0] == "mcp":
        candidate = segments[1]
        if _PROVIDER_SEGMENT.match(candidate) and candidate not in _RESERVED_SEGMENTS:
            rest = [segments[0]] + segments[2:]
            return candidate, "/" + "/".join(rest)
    return None, path


class HttpTransportAdapter(TransportAdapter):
    name = "http"


def _error_response(
    adapter: TransportAdapter,
    status_code: int,
    error: McpError,
    request_id: RequestId = None,
) -> JSONResponse:
    return JSONResponse(
        adapter.format_error(error, request_id),
        status_code=status_code,
        headers=CORS_HEADERS,
    )


def _valid_envelope(body: Any) -> bool:
    return (
        isinstance(body, dict)
        and body.get("jsonrpc") == JSONRPC_VERSION
        and isinstance(body.get("method"), str)
        and bool(body["method"])
    )


def create_app(config: Optional[GatewayConfig] = None, *, http_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    config = config or GatewayConfig.from_env()
    tool_registry = create_tool_registry()
    prompt_registry = PromptRegistry()
    adapter = HttpTransportAdapter()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_client = app.state.http_client is None
        if owns_client:
            app.state.http_client = httpx.AsyncClient()
        logger.info("Assistants gateway HTTP transport ready (%d tools)", len(tool_registry.get_registered_tools()))
        try:
            yield
        finally:
            if owns_client:
                await app.state.http_client.aclose()
                app.state.http_client = None

    app = FastAPI(
        title="Assistants Gateway",
        description="MCP gateway for the OpenAI Assistants API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.http_client = http_client
    app.state.config = config

    @app.api_route("/{full_path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"])
    async def mcp_endpoint(full_path: str, request: Request):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        if request.method != "POST":
            return PlainTextResponse("Method not allowed", status_code=405, headers=CORS_HEADERS)

        provider_name, logical_path = parse_provider_from_path(request.url.path)
        match = _MCP_PATH.match(logical_path)
        if match is None:
            return _error_response(
                adapter,
                400,
                McpError(
                    INVALID_REQUEST,
                    "Invalid URL format",
                    {"receivedPath": request.url.path, "expectedFormat": EXPECTED_PATH_FORMAT},
                ),
            )

        api_key = match.group(1)
        if len(api_key) < MIN_API_KEY_LENGTH:
            return _error_response(
                adapter,
                401,
                create_enhanced_error(
                    LEGACY_UNAUTHORIZED,
                    "Invalid API key",
                    {"keyLength": len(api_key), "minLength": MIN_API_KEY_LENGTH},
                ),
            )

        raw = await request.body()
        try:
            body = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            return _error_response(adapter, 400, McpError(PARSE_ERROR, "Parse error", {"hint": "Body must be valid JSON"}))

        if not _valid_envelope(body):
            request_id = body.get("id") if isinstance(body, dict) else None
            return _error_response(
                adapter,
                400,
                McpError(
                    INVALID_REQUEST,
                    "Invalid Request",
                    {"hint": "Expected a JSON-RPC 2.0 object with 'jsonrpc': '2.0' and a 'method'"},
                ),
                request_id,
            )

        registry = await build_request_registry(
            config,
            api_key,
            provider_name,
            http_client=request.app.state.http_client,
        )
        try:
            dispatcher = ProtocolDispatcher(
                registry,
                tool_registry,
                adapter,
                prompt_registry=prompt_registry,
                debug=config.debug,
            )
            response: Dict[str, Any] = await dispatcher.handle_request(body, provider_name=provider_name)
        finally:
            await registry.shutdown()

        if is_notification(body):
            return Response(status_code=202, headers=CORS_HEADERS)
        return JSONResponse(response, status_code=200, headers=CORS_HEADERS)

    return app
