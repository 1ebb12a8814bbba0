"""
Placeholder providers (Anthropic, Gemini).

They register cleanly so clients can discover them, declare no capabilities,
and fail every domain operation with a "not implemented" provider error.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from assistants_gateway.errors import METHOD_NOT_FOUND, LLMProviderError

from .base import LLMProvider, ProviderCapabilities, ProviderFactory, ProviderMetadata, ProviderName

logger = logging.getLogger("Gateway.providers.placeholders")


def _placeholder_metadata(name: ProviderName, description: str) -> ProviderMetadata:
    return ProviderMetadata(
        name=name.value,
        version="0.1.0",
        description=description,
        capabilities=ProviderCapabilities(),
        supported_models=[],
        config_schema={
            "type": "object",
            "properties": {"api_key": {"type": "string"}},
            "required": ["api_key"],
        },
    )


class PlaceholderProvider(LLMProvider):
    """Provider whose operations are all unimplemented."""

    def __init__(self) -> None:
        self.config: Dict[str, Any] = {}

    async def initialize(self, config: Dict[str, Any]) -> None:
        self.config = {k: v for k, v in config.items() if k != "http_client"}

    async def validate_connection(self) -> bool:
        return True

    def _not_implemented(self, operation: str) -> LLMProviderError:
        return LLMProviderError(
            self.name,
            METHOD_NOT_FOUND,
            f"{operation} is not implemented for this provider yet",
            data={"provider": self.name, "operation": operation, "status": "not_implemented"},
        )

    async def create_assistant(self, request):
        raise self._not_implemented("createAssistant")

    async def list_assistants(self, params):
        raise self._not_implemented("listAssistants")

    async def get_assistant(self, assistant_id):
        raise self._not_implemented("getAssistant")

    async def update_assistant(self, assistant_id, updates):
        raise self._not_implemented("updateAssistant")

    async def delete_assistant(self, assistant_id):
        raise self._not_implemented("deleteAssistant")

    async def create_thread(self, request):
        raise self._not_implemented("createThread")

    async def get_thread(self, thread_id):
        raise self._not_implemented("getThread")

    async def update_thread(self, thread_id, updates):
        raise self._not_implemented("updateThread")

    async def delete_thread(self, thread_id):
        raise self._not_implemented("deleteThread")

    async def create_message(self, thread_id, request):
        raise self._not_implemented("createMessage")

    async def list_messages(self, thread_id, params):
        raise self._not_implemented("listMessages")

    async def get_message(self, thread_id, message_id):
        raise self._not_implemented("getMessage")

    async def update_message(self, thread_id, message_id, updates):
        raise self._not_implemented("updateMessage")

    async def delete_message(self, thread_id, message_id):
        raise self._not_implemented("deleteMessage")

    async def create_run(self, thread_id, request):
        raise self._not_implemented("createRun")

    async def list_runs(self, thread_id, params):
        raise self._not_implemented("listRuns")

    async def get_run(self, thread_id, run_id):
        raise self._not_implemented("getRun")

    async def update_run(self, thread_id, run_id, updates):
        raise self._not_implemented("updateRun")

    async def cancel_run(self, thread_id, run_id):
        raise self._not_implemented("cancelRun")

    async def submit_tool_outputs(self, thread_id, run_id, request):
        raise self._not_implemented("submitToolOutputs")

    async def list_run_steps(self, thread_id, run_id, params):
        raise self._not_implemented("listRunSteps")

    async def get_run_step(self, thread_id, run_id, step_id, params=None):
        raise self._not_implemented("getRunStep")


class AnthropicProvider(PlaceholderProvider):
    metadata = _placeholder_metadata(ProviderName.ANTHROPIC, "Anthropic (not yet implemented)")


class GeminiProvider(PlaceholderProvider):
    metadata = _placeholder_metadata(ProviderName.GEMINI, "Google Gemini (not yet implemented)")


class _PlaceholderFactory(ProviderFactory):
    provider_cls: type = PlaceholderProvider

    async def create(self, config: Dict[str, Any]) -> PlaceholderProvider:
        provider = self.provider_cls()
        await provider.initialize(config)
        logger.info("Registered placeholder provider '%s'", provider.name)
        return provider

    def get_metadata(self) -> ProviderMetadata:
        return self.provider_cls.metadata

    def validate_config(self, config: Dict[str, Any]) -> bool:
        api_key = config.get("api_key")
        return isinstance(api_key, str) and bool(api_key.strip())


class AnthropicProviderFactory(_PlaceholderFactory):
    provider_cls = AnthropicProvider


class GeminiProviderFactory(_PlaceholderFactory):
    provider_cls = GeminiProvider
