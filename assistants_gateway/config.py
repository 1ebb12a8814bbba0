"""
Gateway Configuration
---------------------
Loads gateway settings from environment variables or a YAML file.

Two shapes are supported:

  - legacy: a single ``OPENAI_API_KEY`` and no provider table.  The provider
    registry is built through the single-key bridge.
  - multi-provider: an explicit provider table (from YAML, ``GATEWAY_PROVIDERS``
    or the presence of ``ANTHROPIC_API_KEY`` / ``GEMINI_API_KEY``).
"""

import logging
import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

from assistants_gateway.providers.openai_client import DEFAULT_BASE_URL
from assistants_gateway.utils import env_flag, env_float, env_int

logger = logging.getLogger("Gateway.Config")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8787
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_STDIO_MAX_IN_FLIGHT = 8

_PROVIDER_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


class ProviderConfig(BaseModel):
    """Settings for one backend provider."""
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: Optional[float] = None
    enabled: bool = True


class ServerConfig(BaseModel):
    """HTTP server binding."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "info"


class StdioConfig(BaseModel):
    """Stdio transport settings."""
    max_in_flight: int = DEFAULT_STDIO_MAX_IN_FLIGHT
    log_file: Optional[str] = None


class GatewayConfig(BaseModel):
    """Root configuration for the gateway."""
    api_key: Optional[str] = None
    openai_base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)
    default_provider: Optional[str] = None
    validate_connections: bool = True
    proxy_url: Optional[str] = None
    debug: bool = False
    server: ServerConfig = Field(default_factory=ServerConfig)
    stdio: StdioConfig = Field(default_factory=StdioConfig)

    def is_legacy(self) -> bool:
        return not self.providers

    def provider_configs(self) -> Dict[str, Dict[str, Any]]:
        """Provider table as plain dicts, ready for ``ProviderRegistry.initialize``."""
        configs: Dict[str, Dict[str, Any]] = {}
        for name, provider in self.providers.items():
            config = provider.model_dump(exclude_none=True)
            config.setdefault("timeout", self.request_timeout)
            if name == "openai":
                config.setdefault("base_url", self.openai_base_url)
            configs[name] = config
        return configs

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """
        Load configuration from environment variables.

        - OPENAI_API_KEY / OPENAI_BASE_URL: OpenAI credentials and endpoint
        - ANTHROPIC_API_KEY / GEMINI_API_KEY: enable the placeholder providers
        - GATEWAY_PROVIDERS: comma-separated provider names to enable
        - GATEWAY_DEFAULT_PROVIDER: default provider name
        - GATEWAY_PROXY_URL: forward stdio traffic to a remote gateway
        - GATEWAY_DEBUG: include stack traces in error data
        - GATEWAY_VALIDATE_CONNECTIONS: check provider connectivity at startup
        - GATEWAY_HOST / GATEWAY_PORT: HTTP binding
        - GATEWAY_REQUEST_TIMEOUT: backend request timeout in seconds
        - GATEWAY_STDIO_MAX_IN_FLIGHT: concurrent stdio requests
        - GATEWAY_STDIO_LOG_FILE: log file for the stdio entrypoint
        """
        api_key = os.environ.get("OPENAI_API_KEY") or None
        requested = [
            part.strip().lower()
            for part in os.environ.get("GATEWAY_PROVIDERS", "").split(",")
            if part.strip()
        ]
        multi = bool(requested) or any(
            os.environ.get(_PROVIDER_KEY_ENV[name]) for name in ("anthropic", "gemini")
        )

        providers: Dict[str, ProviderConfig] = {}
        if multi:
            names = requested or [name for name, env in _PROVIDER_KEY_ENV.items() if os.environ.get(env)]
            for name in names:
                env_key = _PROVIDER_KEY_ENV.get(name)
                if env_key is None:
                    logger.warning("Unknown provider '%s' in GATEWAY_PROVIDERS; ignoring", name)
                    continue
                providers[name] = ProviderConfig(api_key=os.environ.get(env_key) or None)

        return cls(
            api_key=api_key,
            openai_base_url=os.environ.get("OPENAI_BASE_URL", DEFAULT_BASE_URL),
            request_timeout=env_float("GATEWAY_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            providers=providers,
            default_provider=os.environ.get("GATEWAY_DEFAULT_PROVIDER") or None,
            validate_connections=env_flag("GATEWAY_VALIDATE_CONNECTIONS", True),
            proxy_url=os.environ.get("GATEWAY_PROXY_URL") or None,
            debug=env_flag("GATEWAY_DEBUG", False),
            server=ServerConfig(
                host=os.environ.get("GATEWAY_HOST", DEFAULT_HOST),
                port=env_int("GATEWAY_PORT", DEFAULT_PORT, minimum=1),
                log_level=os.environ.get("GATEWAY_LOG_LEVEL", "info"),
            ),
            stdio=StdioConfig(
                max_in_flight=env_int("GATEWAY_STDIO_MAX_IN_FLIGHT", DEFAULT_STDIO_MAX_IN_FLIGHT, minimum=1),
                log_file=os.environ.get("GATEWAY_STDIO_LOG_FILE") or None,
            ),
        )

    @classmethod
    def from_yaml(cls, path: str) -> "GatewayConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Config file not found: %s - using environment", path)
            return cls.from_env()
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping at the top level")
        return cls(**data)

    def enabled_providers(self) -> List[str]:
        if self.is_legacy():
            return ["openai"]
        return [name for name, provider in self.providers.items() if provider.enabled]


def load_config() -> GatewayConfig:
    """YAML file named by ``GATEWAY_CONFIG`` if set, else the environment."""
    path = os.environ.get("GATEWAY_CONFIG")
    if path:
        logger.info("Loading configuration from %s", path)
        return GatewayConfig.from_yaml(path)
    return GatewayConfig.from_env()
