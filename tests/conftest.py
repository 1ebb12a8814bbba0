"""Shared fixtures for gateway tests."""

from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from assistants_gateway.mcp.context import RequestContext
from assistants_gateway.providers.base import LLMProvider
from assistants_gateway.providers.registry import ProviderRegistry

PROVIDER_OPERATIONS = (
    "create_assistant", "list_assistants", "get_assistant", "update_assistant", "delete_assistant",
    "create_thread", "get_thread", "update_thread", "delete_thread",
    "create_message", "list_messages", "get_message", "update_message", "delete_message",
    "create_run", "list_runs", "get_run", "update_run", "cancel_run", "submit_tool_outputs",
    "list_run_steps", "get_run_step",
)

_GATEWAY_ENV = (
    "OPENAI_API_KEY", "OPENAI_BASE_URL", "ANTHROPIC_API_KEY", "GEMINI_API_KEY",
    "GATEWAY_PROVIDERS", "GATEWAY_DEFAULT_PROVIDER", "GATEWAY_PROXY_URL", "GATEWAY_DEBUG",
    "GATEWAY_VALIDATE_CONNECTIONS", "GATEWAY_HOST", "GATEWAY_PORT", "GATEWAY_REQUEST_TIMEOUT",
    "GATEWAY_STDIO_MAX_IN_FLIGHT", "GATEWAY_STDIO_LOG_FILE", "GATEWAY_LOG_LEVEL", "GATEWAY_CONFIG",
    "GATEWAY_TOOL_RESPONSE_MAX_CHARS",
)


@pytest.fixture(autouse=True)
def clean_gateway_env(monkeypatch):
    for key in _GATEWAY_ENV:
        monkeypatch.delenv(key, raising=False)


def make_provider():
    """Provider double whose operations echo which operation served them."""
    provider = MagicMock(spec=LLMProvider)
    for operation in PROVIDER_OPERATIONS:
        getattr(provider, operation).return_value = {"object": operation, "ok": True}
    provider.validate_connection.return_value = True
    return provider


@pytest.fixture
def provider():
    return make_provider()


@pytest.fixture
def context(provider):
    return RequestContext(provider=provider, tool_name="test-tool", request_id=1)


@pytest_asyncio.fixture
async def provider_registry(provider):
    registry = ProviderRegistry(factories={}, validate_connections=False)
    await registry.register_provider("openai", provider)
    return registry


@pytest.fixture
def provider_factory():
    return make_provider
