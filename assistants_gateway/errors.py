"""
Gateway exceptions and JSON-RPC error envelopes.

Every failure that can reach a client is expressed as an ``McpError`` carrying
a code from the closed JSON-RPC namespace.  Legacy codes (unauthorized,
forbidden, not-found, rate-limited) are never put on the wire directly: they
are mapped onto a standard code and surfaced through ``data.originalCode``.
"""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from assistants_gateway.utils import redact_sensitive, redact_text

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Legacy codes, carried in data.originalCode
LEGACY_UNAUTHORIZED = -32001
LEGACY_FORBIDDEN = -32002
LEGACY_NOT_FOUND = -32003
LEGACY_RATE_LIMITED = -32004

# Standard codes the legacy kinds are emitted under
UNAUTHORIZED = INTERNAL_ERROR
FORBIDDEN = INTERNAL_ERROR
NOT_FOUND = INVALID_PARAMS
RATE_LIMITED = INVALID_PARAMS

_LEGACY_CODE_MAPPING: Dict[int, Dict[str, Any]] = {
    LEGACY_UNAUTHORIZED: {"standard_code": UNAUTHORIZED, "category": "authentication"},
    LEGACY_FORBIDDEN: {"standard_code": FORBIDDEN, "category": "authorization"},
    LEGACY_NOT_FOUND: {"standard_code": NOT_FOUND, "category": "resource"},
    LEGACY_RATE_LIMITED: {"standard_code": RATE_LIMITED, "category": "rate_limiting"},
}

RequestId = Union[str, int, None]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class GatewayError(RuntimeError):
    """Base class for gateway errors."""


class McpError(GatewayError):
    """An error with a JSON-RPC code, suitable for returning to a client."""

    def __init__(self, code: int, message: str, data: Optional[Any] = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code}, message={self.message!r})"


class LLMProviderError(McpError):
    """Raised by a provider; the message is prefixed with the provider name."""

    def __init__(
        self,
        provider: str,
        code: int,
        message: str,
        *,
        original_error: Optional[BaseException] = None,
        data: Optional[Any] = None,
    ) -> None:
        self.provider = provider
        self.original_error = original_error
        super().__init__(code, f"[{provider}] {message}", data)


class BackendConnectionError(GatewayError):
    """Raised when the backend API cannot be reached."""


class BackendAPIError(GatewayError):
    """Raised when the backend API returns an HTTP error."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: Optional[int] = None,
        path: Optional[str] = None,
        payload: Optional[Any] = None,
    ) -> None:
        self.status_code = status_code
        self.path = path
        self.payload = payload
        status_hint = f" (status={status_code})" if status_code is not None else ""
        path_hint = f" [{path}]" if path else ""
        super().__init__(f"{detail}{status_hint}{path_hint}")


def create_enhanced_error(legacy_code: int, message: str, data: Optional[Dict[str, Any]] = None) -> McpError:
    """Build an ``McpError`` for a legacy error kind under its mapped standard code."""
    mapping = _LEGACY_CODE_MAPPING.get(legacy_code)
    if mapping is None:
        return McpError(legacy_code, message, data)
    enhanced = {"originalCode": legacy_code, "category": mapping["category"]}
    if data:
        enhanced.update(data)
    return McpError(mapping["standard_code"], message, enhanced)


def create_error_response(
    request_id: RequestId,
    code: int,
    message: str,
    data: Optional[Any] = None,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": request_id, "error": error}


def create_success_response(request_id: RequestId, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _backend_error_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
    if isinstance(payload, str) and payload:
        return payload
    return fallback


def format_backend_error(status_code: int, payload: Any = None, context: Optional[str] = None) -> McpError:
    """Map a backend HTTP status onto the gateway error taxonomy."""
    extra: Dict[str, Any] = {"httpStatus": status_code, "backendError": redact_sensitive(payload)}
    if context:
        extra["context"] = context

    if status_code == 401:
        return create_enhanced_error(
            LEGACY_UNAUTHORIZED, "Authentication failed. Please check your API key.", extra
        )
    if status_code == 403:
        return create_enhanced_error(
            LEGACY_FORBIDDEN, "Access forbidden. Please check your permissions.", extra
        )
    if status_code == 404:
        return create_enhanced_error(
            LEGACY_NOT_FOUND, "Resource not found. Please check the ID and try again.", extra
        )
    if status_code == 429:
        extra["retryAfter"] = "60s"
        return create_enhanced_error(
            LEGACY_RATE_LIMITED, "Rate limit exceeded. Please wait and try again.", extra
        )
    message = _backend_error_message(payload, f"HTTP {status_code}: Request failed")
    return McpError(INTERNAL_ERROR, redact_text(message), extra)


def describe_exception(exc: BaseException, *, debug: bool = False) -> Dict[str, Any]:
    """Redacted, wire-safe summary of an exception.  Stack traces only in debug mode."""
    detail: Dict[str, Any] = {
        "name": type(exc).__name__,
        "message": redact_text(str(exc)),
    }
    if debug:
        detail["stack"] = redact_text(
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        )
    return detail


def normalize_error(exc: BaseException, request_id: RequestId = None, *, debug: bool = False) -> McpError:
    """Turn any exception into an ``McpError``; gateway errors pass through untouched."""
    if isinstance(exc, McpError):
        return exc
    return McpError(
        INTERNAL_ERROR,
        "Internal error",
        {
            "originalError": describe_exception(exc, debug=debug),
            "timestamp": utc_timestamp(),
            "requestId": request_id,
        },
    )
