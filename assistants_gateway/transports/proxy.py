"""
Proxy transport: forward request envelopes to a remote gateway over HTTP.

The envelope is POSTed verbatim and the remote JSON-RPC response is relayed
unchanged, whatever its HTTP status.  Only transport-level failures (network
errors, non-JSON replies) are turned into local errors.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import httpx

from assistants_gateway.errors import INTERNAL_ERROR, McpError, create_error_response

from .base import TransportAdapter

logger = logging.getLogger("Gateway.transports.proxy")


def _public_target(url: str) -> str:
    # The path carries the API key; only scheme and host are safe to surface.
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


class ProxyTransportAdapter(TransportAdapter):
    name = "proxy"

    def __init__(self, url: str, *, timeout: float = 30.0, http_client: Optional[httpx.AsyncClient] = None):
        if not url:
            raise ValueError("Proxy URL is required")
        self.url = url
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def handle_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        request_id = request.get("id") if isinstance(request, dict) else None
        try:
            response = await self._get_client().post(
                self.url,
                json=request,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self.timeout,
            )
            if not response.content:
                return {}
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Proxy request to %s failed: %s", _public_target(self.url), exc)
            return self.format_error(
                McpError(
                    INTERNAL_ERROR,
                    "Proxy request failed",
                    {"target": _public_target(self.url), "reason": type(exc).__name__},
                ),
                request_id,
            )
        if not isinstance(payload, dict):
            return create_error_response(
                request_id,
                INTERNAL_ERROR,
                "Proxy request failed",
                {"target": _public_target(self.url), "reason": "non-object response"},
            )
        return payload
