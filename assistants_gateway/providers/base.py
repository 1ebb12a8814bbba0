"""
Gateway Providers — Base Interface
==================================
Abstract contract every backend provider implements, plus the metadata and
factory types the provider registry works with.

A provider exposes:
  - async initialize(config)        → None  (raises on invalid/missing config)
  - async validate_connection()     → bool  (never raises)
  - one async method per domain operation (assistant/thread/message/run/run-step)

Operations accept and return plain dicts shaped like the OpenAI Assistants v2
wire objects.  A provider that cannot serve an operation must raise an
``LLMProviderError`` saying so rather than silently returning nothing; this
lets unfinished providers be registered for capability discovery without
being usable.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("Gateway.providers.base")


class ProviderName(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


class ProviderCapabilities(BaseModel):
    """Feature flags a provider declares.  Serialises with camelCase keys."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    assistants: bool = False
    threads: bool = False
    messages: bool = False
    runs: bool = False
    run_steps: bool = Field(default=False, alias="runSteps")
    file_attachments: bool = Field(default=False, alias="fileAttachments")
    function_calling: bool = Field(default=False, alias="functionCalling")
    code_interpreter: bool = Field(default=False, alias="codeInterpreter")
    file_search: bool = Field(default=False, alias="fileSearch")
    streaming: bool = False
    custom_models: bool = Field(default=False, alias="customModels")

    def supports(self, capability: str) -> bool:
        """Look up a capability by attribute name or camelCase alias."""
        for name, field in type(self).model_fields.items():
            if capability in (name, field.alias):
                return bool(getattr(self, name))
        return False


class ProviderMetadata(BaseModel):
    """Immutable description of a provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    version: str = "1.0.0"
    description: str = ""
    capabilities: ProviderCapabilities = Field(default_factory=ProviderCapabilities)
    supported_models: List[str] = Field(default_factory=list, alias="supportedModels")
    max_context_length: Optional[int] = Field(default=None, alias="maxContextLength")
    config_schema: Optional[Dict[str, Any]] = Field(default=None, alias="configSchema")

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class LLMProvider(ABC):
    """
    Abstract backend provider.

    Subclasses set ``metadata`` and implement every domain operation.  The
    registry only hands out providers whose ``validate_connection`` passed.
    """

    metadata: ProviderMetadata

    @property
    def name(self) -> str:
        return self.metadata.name

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @abstractmethod
    async def initialize(self, config: Dict[str, Any]) -> None:
        """Apply configuration.  Raises ``LLMProviderError`` when required keys are missing."""

    @abstractmethod
    async def validate_connection(self) -> bool:
        """Return True when the backend is reachable with the configured credentials."""

    async def close(self) -> None:
        """Release network resources.  Default is a no-op."""

    # ------------------------------------------------------------------
    # Assistants
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_assistant(self, request: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def list_assistants(self, params: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_assistant(self, assistant_id: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def update_assistant(self, assistant_id: str, updates: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def delete_assistant(self, assistant_id: str) -> Dict[str, Any]: ...

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_thread(self, request: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_thread(self, thread_id: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def update_thread(self, thread_id: str, updates: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def delete_thread(self, thread_id: str) -> Dict[str, Any]: ...

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_message(self, thread_id: str, request: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def list_messages(self, thread_id: str, params: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_message(self, thread_id: str, message_id: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def update_message(self, thread_id: str, message_id: str, updates: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def delete_message(self, thread_id: str, message_id: str) -> Dict[str, Any]: ...

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_run(self, thread_id: str, request: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def list_runs(self, thread_id: str, params: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_run(self, thread_id: str, run_id: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def update_run(self, thread_id: str, run_id: str, updates: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def cancel_run(self, thread_id: str, run_id: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def submit_tool_outputs(self, thread_id: str, run_id: str, request: Dict[str, Any]) -> Dict[str, Any]: ...

    # ------------------------------------------------------------------
    # Run steps
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_run_steps(self, thread_id: str, run_id: str, params: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_run_step(
        self, thread_id: str, run_id: str, step_id: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]: ...


class ProviderFactory(ABC):
    """Creates initialized providers of one kind from configuration."""

    @abstractmethod
    async def create(self, config: Dict[str, Any]) -> LLMProvider:
        """Build and initialize a provider.  Raises on invalid configuration."""

    @abstractmethod
    def get_metadata(self) -> ProviderMetadata:
        """Metadata for the provider kind, without creating an instance."""

    @abstractmethod
    def validate_config(self, config: Dict[str, Any]) -> bool:
        """Cheap structural check run before ``create``."""
