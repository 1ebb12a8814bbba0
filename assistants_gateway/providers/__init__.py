"""
Gateway provider package.

Exports:
  LLMProvider          — abstract provider contract
  ProviderFactory      — abstract factory contract
  ProviderRegistry     — name → provider resolution with a default
  OpenAIProvider       — full OpenAI Assistants v2 implementation
  AnthropicProvider    — placeholder (no capabilities)
  GeminiProvider       — placeholder (no capabilities)
  build_legacy_registry / build_request_registry / create_provider_registry
                       — registry builders
"""

from .base import (
    LLMProvider,
    ProviderCapabilities,
    ProviderFactory,
    ProviderMetadata,
    ProviderName,
)
from .openai import OpenAIProvider, OpenAIProviderFactory
from .openai_client import OpenAIService
from .placeholders import (
    AnthropicProvider,
    AnthropicProviderFactory,
    GeminiProvider,
    GeminiProviderFactory,
    PlaceholderProvider,
)
from .registry import (
    ProviderRegistry,
    build_legacy_registry,
    build_request_registry,
    create_provider_registry,
    default_factories,
)

__all__ = [
    "LLMProvider",
    "ProviderCapabilities",
    "ProviderFactory",
    "ProviderMetadata",
    "ProviderName",
    "OpenAIProvider",
    "OpenAIProviderFactory",
    "OpenAIService",
    "AnthropicProvider",
    "AnthropicProviderFactory",
    "GeminiProvider",
    "GeminiProviderFactory",
    "PlaceholderProvider",
    "ProviderRegistry",
    "build_legacy_registry",
    "build_request_registry",
    "create_provider_registry",
    "default_factories",
]
