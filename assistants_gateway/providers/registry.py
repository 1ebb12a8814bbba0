"""
Gateway Providers — Registry
============================
Resolves provider names to live provider instances and holds the default.

Lifecycle:
  1. factories are registered (openai / anthropic / gemini by default)
  2. ``initialize`` walks the enabled provider configs; each one is validated,
     created, connection-checked and only then registered
  3. the configured default is used if it registered, else the first provider

Legacy configurations that only carry a bare OpenAI API key are bridged by
``build_legacy_registry``, which produces an ordinary one-entry registry so
nothing downstream needs a special "no registry" mode.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from assistants_gateway.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    LEGACY_NOT_FOUND,
    GatewayError,
    LLMProviderError,
    McpError,
    create_enhanced_error,
)

from .base import LLMProvider, ProviderFactory, ProviderName
from .openai import OpenAIProviderFactory
from .placeholders import AnthropicProviderFactory, GeminiProviderFactory

if TYPE_CHECKING:
    from assistants_gateway.config import GatewayConfig

logger = logging.getLogger("Gateway.providers.registry")


def default_factories() -> Dict[str, ProviderFactory]:
    return {
        ProviderName.OPENAI.value: OpenAIProviderFactory(),
        ProviderName.ANTHROPIC.value: AnthropicProviderFactory(),
        ProviderName.GEMINI.value: GeminiProviderFactory(),
    }


class ProviderRegistry:
    """Named provider instances plus one designated default."""

    def __init__(
        self,
        factories: Optional[Mapping[str, ProviderFactory]] = None,
        *,
        validate_connections: bool = True,
    ) -> None:
        self._factories: Dict[str, ProviderFactory] = (
            dict(factories) if factories is not None else default_factories()
        )
        self._providers: Dict[str, LLMProvider] = {}
        self._default_name: Optional[str] = None
        self._initialized = False
        self.validate_connections = validate_connections

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def register_factory(self, name: str, factory: ProviderFactory) -> None:
        if name in self._factories:
            logger.warning("Replacing provider factory '%s'", name)
        self._factories[name] = factory

    def get_factory(self, name: str) -> Optional[ProviderFactory]:
        return self._factories.get(name)

    async def initialize(
        self,
        provider_configs: Mapping[str, Dict[str, Any]],
        default_provider: Optional[str] = None,
    ) -> None:
        """
        Create and register every configured provider.

        A provider that fails validation, creation or its connection check is
        logged and skipped; the remaining providers still register.
        """
        if self._initialized:
            raise McpError(INTERNAL_ERROR, "Provider registry is already initialized")

        for name, config in provider_configs.items():
            if config.get("enabled", True) is False:
                logger.info("Provider '%s' is disabled; skipping", name)
                continue
            try:
                await self.initialize_provider(name, config)
            except GatewayError as exc:
                logger.error("Failed to initialize provider '%s': %s", name, exc)

        if default_provider:
            if default_provider in self._providers:
                self._default_name = default_provider
            else:
                logger.warning(
                    "Configured default provider '%s' is unavailable; using '%s'",
                    default_provider,
                    self._default_name,
                )

        self._initialized = True
        logger.info(
            "Provider registry initialized (providers=%s, default=%s)",
            self.get_available_providers(),
            self._default_name,
        )

    async def initialize_provider(self, name: str, config: Dict[str, Any]) -> LLMProvider:
        factory = self._factories.get(name)
        if factory is None:
            raise create_enhanced_error(
                LEGACY_NOT_FOUND,
                f"Provider factory not found: {name}",
                {"provider": name, "availableFactories": sorted(self._factories)},
            )
        if not factory.validate_config(config):
            raise McpError(
                INVALID_PARAMS,
                f"Invalid configuration for provider '{name}'",
                {"provider": name, "configSchema": factory.get_metadata().config_schema},
            )
        provider = await factory.create(config)
        await self.register_provider(name, provider)
        return provider

    async def register_provider(
        self,
        name: str,
        provider: LLMProvider,
        *,
        validate: Optional[bool] = None,
    ) -> None:
        check = self.validate_connections if validate is None else validate
        if check and not await provider.validate_connection():
            await provider.close()
            raise LLMProviderError(
                name,
                INTERNAL_ERROR,
                "Connection validation failed; provider not registered",
                data={"provider": name},
            )
        if name in self._providers:
            logger.warning("Replacing registered provider '%s'", name)
        self._providers[name] = provider
        if self._default_name is None:
            self._default_name = name
        logger.info("Registered provider '%s'", name)

    def get_provider(self, name: str) -> Optional[LLMProvider]:
        return self._providers.get(name)

    def get_default_provider(self) -> Optional[LLMProvider]:
        if self._default_name is None:
            return None
        return self._providers.get(self._default_name)

    @property
    def default_provider_name(self) -> Optional[str]:
        return self._default_name

    def select_provider(self, name: Optional[str] = None) -> Optional[LLMProvider]:
        """Named provider if registered, else the default, else the first registered one."""
        if name and name in self._providers:
            return self._providers[name]
        default = self.get_default_provider()
        if default is not None:
            return default
        return next(iter(self._providers.values()), None)

    def set_default_provider(self, name: str) -> None:
        if name not in self._providers:
            raise create_enhanced_error(
                LEGACY_NOT_FOUND,
                f"Provider not found: {name}",
                {"provider": name, "availableProviders": self.get_available_providers()},
            )
        self._default_name = name

    def get_available_providers(self) -> List[str]:
        return list(self._providers)

    def get_provider_metadata(self) -> Dict[str, Dict[str, Any]]:
        return {name: provider.metadata.to_public() for name, provider in self._providers.items()}

    async def shutdown(self) -> None:
        for name, provider in list(self._providers.items()):
            try:
                await provider.close()
            except Exception:
                logger.exception("Error closing provider '%s'", name)
        self._providers.clear()
        self._default_name = None
        self._initialized = False


async def build_legacy_registry(
    api_key: str,
    *,
    base_url: Optional[str] = None,
    timeout: float = 30.0,
    http_client: Any = None,
) -> ProviderRegistry:
    """
    Bridge a bare OpenAI API key into a one-entry registry with ``openai`` as default.

    The backend client is constructed directly; no connection probe is made,
    matching how single-key deployments behaved before multi-provider support.
    """
    registry = ProviderRegistry(validate_connections=False)
    config: Dict[str, Any] = {"api_key": api_key, "timeout": timeout}
    if base_url:
        config["base_url"] = base_url
    if http_client is not None:
        config["http_client"] = http_client
    await registry.initialize({ProviderName.OPENAI.value: config}, ProviderName.OPENAI.value)
    return registry


async def create_provider_registry(config: "GatewayConfig", *, http_client: Any = None) -> ProviderRegistry:
    """Build the registry for a gateway configuration, bridging legacy single-key setups."""
    if config.is_legacy():
        logger.info("Legacy single-provider configuration detected; bridging to provider registry")
        return await build_legacy_registry(
            config.api_key or "",
            base_url=config.openai_base_url,
            timeout=config.request_timeout,
            http_client=http_client,
        )

    registry = ProviderRegistry(validate_connections=config.validate_connections)
    provider_configs = config.provider_configs()
    if http_client is not None:
        for provider_config in provider_configs.values():
            provider_config.setdefault("http_client", http_client)
    await registry.initialize(provider_configs, config.default_provider)
    return registry


async def build_request_registry(
    config: "GatewayConfig",
    api_key: str,
    provider_name: Optional[str] = None,
    *,
    http_client: Any = None,
) -> ProviderRegistry:
    """
    Registry for one HTTP request carrying its own backend key.

    Legacy configurations bridge the key into a one-entry ``openai`` registry.
    Otherwise every configured provider is created, and the key from the
    request replaces the configured key of the provider the request targets
    (the named provider, else the configured default, else the first enabled).
    """
    if config.is_legacy():
        return await build_legacy_registry(
            api_key,
            base_url=config.openai_base_url,
            timeout=config.request_timeout,
            http_client=http_client,
        )

    provider_configs = config.provider_configs()
    enabled = [name for name, provider_config in provider_configs.items() if provider_config.get("enabled", True)]
    if provider_name in provider_configs:
        target = provider_name
    elif config.default_provider in enabled:
        target = config.default_provider
    else:
        target = enabled[0] if enabled else None
    if target is not None:
        provider_configs[target]["api_key"] = api_key
    if http_client is not None:
        for provider_config in provider_configs.values():
            provider_config.setdefault("http_client", http_client)

    registry = ProviderRegistry(validate_connections=False)
    await registry.initialize(provider_configs, config.default_provider)
    return registry
