"""
OpenAI provider: the fully implemented backend, over ``OpenAIService``.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Dict, Optional

from assistants_gateway.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    BackendAPIError,
    BackendConnectionError,
    LLMProviderError,
    format_backend_error,
)
from assistants_gateway.mcp.validation import SUPPORTED_MODELS

from .base import LLMProvider, ProviderCapabilities, ProviderFactory, ProviderMetadata, ProviderName
from .openai_client import DEFAULT_BASE_URL, OpenAIService

logger = logging.getLogger("Gateway.providers.openai")

OPENAI_METADATA = ProviderMetadata(
    name=ProviderName.OPENAI.value,
    version="1.0.0",
    description="OpenAI Assistants API (v2)",
    capabilities=ProviderCapabilities(
        assistants=True,
        threads=True,
        messages=True,
        runs=True,
        run_steps=True,
        file_attachments=True,
        function_calling=True,
        code_interpreter=True,
        file_search=True,
        streaming=False,
        custom_models=False,
    ),
    supported_models=list(SUPPORTED_MODELS),
    max_context_length=128000,
    config_schema={
        "type": "object",
        "properties": {
            "api_key": {"type": "string", "description": "OpenAI API key"},
            "base_url": {"type": "string", "description": "API base URL", "default": DEFAULT_BASE_URL},
            "timeout": {"type": "number", "description": "Request timeout in seconds", "default": 30},
        },
        "required": ["api_key"],
    },
)


class OpenAIProvider(LLMProvider):
    metadata = OPENAI_METADATA

    def __init__(self) -> None:
        self._service: Optional[OpenAIService] = None

    @property
    def service(self) -> OpenAIService:
        if self._service is None:
            raise LLMProviderError(self.name, INTERNAL_ERROR, "Provider is not initialized")
        return self._service

    async def initialize(self, config: Dict[str, Any]) -> None:
        api_key = config.get("api_key")
        if not isinstance(api_key, str) or not api_key.strip():
            raise LLMProviderError(self.name, INVALID_PARAMS, "OpenAI API key is required")
        self._service = OpenAIService(
            api_key.strip(),
            base_url=config.get("base_url") or DEFAULT_BASE_URL,
            timeout=float(config.get("timeout") or 30.0),
            http_client=config.get("http_client"),
        )
        logger.info("OpenAI provider initialized (base_url=%s)", self._service.base_url)

    async def validate_connection(self) -> bool:
        if self._service is None:
            return False
        return await self._service.validate_api_key()

    async def close(self) -> None:
        if self._service is not None:
            await self._service.close()

    async def _call(self, operation: str, pending: Awaitable[Dict[str, Any]]) -> Dict[str, Any]:
        try:
            return await pending
        except BackendAPIError as exc:
            mapped = format_backend_error(exc.status_code or 500, exc.payload, context=operation)
            raise LLMProviderError(
                self.name,
                mapped.code,
                f"{operation} failed: {mapped.message}",
                original_error=exc,
                data=mapped.data,
            ) from exc
        except BackendConnectionError as exc:
            raise LLMProviderError(
                self.name,
                INTERNAL_ERROR,
                f"{operation} failed: {exc}",
                original_error=exc,
                data={"context": operation},
            ) from exc

    async def create_assistant(self, request):
        return await self._call("createAssistant", self.service.create_assistant(request))

    async def list_assistants(self, params):
        return await self._call("listAssistants", self.service.list_assistants(params))

    async def get_assistant(self, assistant_id):
        return await self._call("getAssistant", self.service.get_assistant(assistant_id))

    async def update_assistant(self, assistant_id, updates):
        return await self._call("updateAssistant", self.service.update_assistant(assistant_id, updates))

    async def delete_assistant(self, assistant_id):
        return await self._call("deleteAssistant", self.service.delete_assistant(assistant_id))

    async def create_thread(self, request):
        return await self._call("createThread", self.service.create_thread(request))

    async def get_thread(self, thread_id):
        return await self._call("getThread", self.service.get_thread(thread_id))

    async def update_thread(self, thread_id, updates):
        return await self._call("updateThread", self.service.update_thread(thread_id, updates))

    async def delete_thread(self, thread_id):
        return await self._call("deleteThread", self.service.delete_thread(thread_id))

    async def create_message(self, thread_id, request):
        return await self._call("createMessage", self.service.create_message(thread_id, request))

    async def list_messages(self, thread_id, params):
        return await self._call("listMessages", self.service.list_messages(thread_id, params))

    async def get_message(self, thread_id, message_id):
        return await self._call("getMessage", self.service.get_message(thread_id, message_id))

    async def update_message(self, thread_id, message_id, updates):
        return await self._call(
            "updateMessage", self.service.update_message(thread_id, message_id, updates)
        )

    async def delete_message(self, thread_id, message_id):
        return await self._call("deleteMessage", self.service.delete_message(thread_id, message_id))

    async def create_run(self, thread_id, request):
        return await self._call("createRun", self.service.create_run(thread_id, request))

    async def list_runs(self, thread_id, params):
        return await self._call("listRuns", self.service.list_runs(thread_id, params))

    async def get_run(self, thread_id, run_id):
        return await self._call("getRun", self.service.get_run(thread_id, run_id))

    async def update_run(self, thread_id, run_id, updates):
        return await self._call("updateRun", self.service.update_run(thread_id, run_id, updates))

    async def cancel_run(self, thread_id, run_id):
        return await self._call("cancelRun", self.service.cancel_run(thread_id, run_id))

    async def submit_tool_outputs(self, thread_id, run_id, request):
        return await self._call(
            "submitToolOutputs", self.service.submit_tool_outputs(thread_id, run_id, request)
        )

    async def list_run_steps(self, thread_id, run_id, params):
        return await self._call("listRunSteps", self.service.list_run_steps(thread_id, run_id, params))

    async def get_run_step(self, thread_id, run_id, step_id, params=None):
        include = (params or {}).get("include")
        return await self._call(
            "getRunStep", self.service.get_run_step(thread_id, run_id, step_id, include=include)
        )


class OpenAIProviderFactory(ProviderFactory):
    async def create(self, config: Dict[str, Any]) -> OpenAIProvider:
        provider = OpenAIProvider()
        await provider.initialize(config)
        return provider

    def get_metadata(self) -> ProviderMetadata:
        return OPENAI_METADATA

    def validate_config(self, config: Dict[str, Any]) -> bool:
        api_key = config.get("api_key")
        return isinstance(api_key, str) and bool(api_key.strip())
