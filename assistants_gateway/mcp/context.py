from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from assistants_gateway.providers.base import LLMProvider


@dataclass(frozen=True)
class RequestContext:
    """Everything a tool handler may know about the call it is serving.

    Built fresh for each ``tools/call`` and handed to the handler as an
    argument; handlers keep no per-call state of their own.
    """

    provider: "LLMProvider"
    tool_name: str
    request_id: Optional[Union[str, int]] = None

    @property
    def provider_name(self) -> str:
        return self.provider.name
