"""
Gateway helpers shared across the dispatcher, handlers and transports.

Redaction runs before anything request-derived reaches a log line or an
error payload.  Two layers are applied:

  - key-based: mapping keys that look like credentials are replaced wholesale
  - pattern-based: secret-shaped substrings inside free text are masked
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, List, Optional, Tuple

logger = logging.getLogger("Gateway.utils")

REDACTED = "[REDACTED]"

# Lowercased substrings; any mapping key containing one of them is redacted.
SENSITIVE_KEY_FRAGMENTS = (
    "api_key",
    "apikey",
    "token",
    "password",
    "secret",
    "authorization",
    "credential",
)

_TEXT_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(p, re.IGNORECASE), label)
    for p, label in [
        (r"sk-[A-Za-z0-9\-_]{16,}", "[REDACTED_API_KEY]"),
        (r"bearer\s+[A-Za-z0-9\-_.~+/]+=*", "Bearer [REDACTED_TOKEN]"),
        (r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b", "[REDACTED_IP]"),
    ]
]

_MAX_REDACTION_DEPTH = 8


def env_flag(key: str, default: bool) -> bool:
    """Helper to parse boolean flags from environment variables."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


def env_int(key: str, default: int, *, minimum: Optional[int] = None) -> int:
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s value '%s'; expected integer. Using %d.", key, raw, default)
        return default
    if minimum is not None and value < minimum:
        logger.warning("%s=%d is below minimum %d. Using %d.", key, value, minimum, default)
        return default
    return value


def env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
        if value <= 0:
            raise ValueError
        return value
    except ValueError:
        logger.warning("Invalid %s value '%s'; expected positive float. Using %s.", key, raw, default)
        return default


def is_sensitive_key(key: Any) -> bool:
    if not isinstance(key, str):
        return False
    lowered = key.lower().replace("-", "_")
    return any(fragment in lowered for fragment in SENSITIVE_KEY_FRAGMENTS)


def redact_text(text: str) -> str:
    """Mask secret-shaped substrings in free text."""
    for pattern, label in _TEXT_PATTERNS:
        text = pattern.sub(label, text)
    return text


def redact_sensitive(value: Any, _depth: int = 0) -> Any:
    """
    Return a copy of ``value`` with credential-like fields replaced.

    Mappings and sequences are walked recursively; strings are passed through
    ``redact_text``.  The input is never mutated.
    """
    if _depth > _MAX_REDACTION_DEPTH:
        return "[max redaction depth reached]"
    if isinstance(value, dict):
        return {
            k: (REDACTED if is_sensitive_key(k) else redact_sensitive(v, _depth + 1))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_sensitive(item, _depth + 1) for item in value]
    if isinstance(value, str):
        return redact_text(value)
    return value


def truncate_tool_text(text: str, name: str, max_chars: Optional[int] = None) -> str:
    """Bound tool response text so one oversized backend payload cannot flood the transport."""
    if max_chars is None:
        max_chars = env_int("GATEWAY_TOOL_RESPONSE_MAX_CHARS", 262144, minimum=1024)
    if len(text) > max_chars:
        logger.info("Truncating response for tool '%s' (%d -> %d chars)", name, len(text), max_chars)
        suffix = "\n\n[Response truncated due to size limits]"
        cutoff = max(0, max_chars - len(suffix))
        return text[:cutoff] + suffix
    return text
