"""
Async HTTP client for the OpenAI Assistants v2 REST API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlparse

import httpx

from assistants_gateway.errors import BackendAPIError, BackendConnectionError

logger = logging.getLogger("Gateway.providers.openai_client")

DEFAULT_BASE_URL = "https://api.openai.com/v1"
ASSISTANTS_BETA_HEADER = "assistants=v2"


def _normalize_base_url(base_url: str) -> str:
    value = base_url.rstrip("/")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid OpenAI base URL: {base_url!r}")
    return value


def _segment(value: str) -> str:
    return quote(value, safe="")


def _list_query(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    for key in ("limit", "order", "after", "before", "run_id"):
        value = (params or {}).get(key)
        if value is not None:
            query[key] = value
    include = (params or {}).get("include")
    if include:
        query["include[]"] = list(include)
    return query


class OpenAIService:
    """
    Thin async wrapper over the Assistants endpoints.

    Usage:
        async with OpenAIService(api_key) as service:
            assistant = await service.get_assistant("asst_abc123")
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ValueError("OpenAI API key is required")
        self.base_url = _normalize_base_url(base_url)
        self.timeout = timeout
        self._api_key = api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "OpenAIService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "OpenAI-Beta": ASSISTANTS_BETA_HEADER,
        }

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method=method,
                url=self._url(path),
                json=json_body,
                params=params or None,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise BackendConnectionError(f"Failed to reach OpenAI API at {self.base_url}: {exc}") from exc

        payload: Any
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
        else:
            payload = {}

        if response.status_code >= 400:
            detail = f"HTTP {response.status_code} error"
            if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
                detail = payload["error"].get("message") or detail
            logger.debug("OpenAI %s %s failed with status %d", method, path, response.status_code)
            raise BackendAPIError(detail, status_code=response.status_code, path=path, payload=payload)
        return payload

    async def validate_api_key(self) -> bool:
        try:
            await self._request("GET", "/models")
            return True
        except (BackendAPIError, BackendConnectionError) as exc:
            logger.warning("OpenAI API key validation failed: %s", exc)
            return False

    # Assistants

    async def create_assistant(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/assistants", json_body=request)

    async def list_assistants(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self._request("GET", "/assistants", params=_list_query(params))

    async def get_assistant(self, assistant_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/assistants/{_segment(assistant_id)}")

    async def update_assistant(self, assistant_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/assistants/{_segment(assistant_id)}", json_body=updates)

    async def delete_assistant(self, assistant_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/assistants/{_segment(assistant_id)}")

    # Threads

    async def create_thread(self, request: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self._request("POST", "/threads", json_body=request or {})

    async def get_thread(self, thread_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/threads/{_segment(thread_id)}")

    async def update_thread(self, thread_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/threads/{_segment(thread_id)}", json_body=updates)

    async def delete_thread(self, thread_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/threads/{_segment(thread_id)}")

    # Messages

    def _messages_path(self, thread_id: str, message_id: Optional[str] = None) -> str:
        path = f"/threads/{_segment(thread_id)}/messages"
        return f"{path}/{_segment(message_id)}" if message_id else path

    async def create_message(self, thread_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", self._messages_path(thread_id), json_body=request)

    async def list_messages(self, thread_id: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self._request("GET", self._messages_path(thread_id), params=_list_query(params))

    async def get_message(self, thread_id: str, message_id: str) -> Dict[str, Any]:
        return await self._request("GET", self._messages_path(thread_id, message_id))

    async def update_message(self, thread_id: str, message_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", self._messages_path(thread_id, message_id), json_body=updates)

    async def delete_message(self, thread_id: str, message_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", self._messages_path(thread_id, message_id))

    # Runs

    def _runs_path(self, thread_id: str, run_id: Optional[str] = None) -> str:
        path = f"/threads/{_segment(thread_id)}/runs"
        return f"{path}/{_segment(run_id)}" if run_id else path

    async def create_run(self, thread_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", self._runs_path(thread_id), json_body=request)

    async def list_runs(self, thread_id: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self._request("GET", self._runs_path(thread_id), params=_list_query(params))

    async def get_run(self, thread_id: str, run_id: str) -> Dict[str, Any]:
        return await self._request("GET", self._runs_path(thread_id, run_id))

    async def update_run(self, thread_id: str, run_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", self._runs_path(thread_id, run_id), json_body=updates)

    async def cancel_run(self, thread_id: str, run_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"{self._runs_path(thread_id, run_id)}/cancel")

    async def submit_tool_outputs(self, thread_id: str, run_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST", f"{self._runs_path(thread_id, run_id)}/submit_tool_outputs", json_body=request
        )

    # Run steps

    async def list_run_steps(
        self, thread_id: str, run_id: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await self._request(
            "GET", f"{self._runs_path(thread_id, run_id)}/steps", params=_list_query(params)
        )

    async def get_run_step(
        self, thread_id: str, run_id: str, step_id: str, include: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        params = {"include[]": list(include)} if include else None
        return await self._request(
            "GET", f"{self._runs_path(thread_id, run_id)}/steps/{_segment(step_id)}", params=params
        )
