"""
Cursor pagination for list-style MCP responses.

Cursors are base64-encoded JSON objects ``{"index", "total", "timestamp"}``.
Callers must treat them as opaque; decoding rejects anything structurally
invalid, longer than ``MAX_CURSOR_LENGTH``, older than ``CURSOR_EXPIRY_MS`` or
dated further ahead than ``CURSOR_CLOCK_SKEW_MS`` with a generic InvalidParams
error.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from assistants_gateway.errors import INVALID_PARAMS, McpError

logger = logging.getLogger("Gateway.mcp.pagination")

DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 50
CURSOR_EXPIRY_MS = 60 * 60 * 1000
CURSOR_CLOCK_SKEW_MS = 60 * 1000
MAX_CURSOR_LENGTH = 512

_INVALID_CURSOR_MESSAGE = "Invalid pagination cursor"
_INVALID_CURSOR_HINT = "The cursor is invalid or expired. Restart pagination without a cursor."


def _now_ms() -> int:
    return int(time.time() * 1000)


def _invalid_cursor() -> McpError:
    return McpError(INVALID_PARAMS, _INVALID_CURSOR_MESSAGE, {"hint": _INVALID_CURSOR_HINT})


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def clamp_limit(limit: Any) -> int:
    """Clamp a requested page size into ``[MIN_LIMIT, MAX_LIMIT]``; non-integers get the default."""
    if limit is None:
        return DEFAULT_LIMIT
    if isinstance(limit, str) and limit.strip().lstrip("-").isdigit():
        limit = int(limit)
    if not _is_int(limit):
        return DEFAULT_LIMIT
    return max(MIN_LIMIT, min(MAX_LIMIT, limit))


def encode_cursor(index: int, total: int, timestamp: Optional[int] = None) -> str:
    payload = {
        "index": index,
        "total": total,
        "timestamp": _now_ms() if timestamp is None else timestamp,
    }
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_cursor(cursor: Any, *, now_ms: Optional[int] = None) -> Dict[str, int]:
    """
    Decode and validate a cursor token.

    Raises ``McpError(INVALID_PARAMS)`` for malformed, mistyped, negative or
    expired cursors.  The error never echoes the decoded structure.
    """
    if not isinstance(cursor, str) or not cursor.strip():
        raise _invalid_cursor()

    token = cursor.strip()
    if len(token) > MAX_CURSOR_LENGTH:
        logger.debug("Rejected oversized cursor (%d chars)", len(token))
        raise _invalid_cursor()
    padded = token + "=" * (-len(token) % 4)
    try:
        decoded = base64.b64decode(padded.encode("ascii"), validate=True).decode("utf-8")
        payload = json.loads(decoded)
    except (binascii.Error, UnicodeError, ValueError, RecursionError) as exc:
        logger.debug("Rejected undecodable cursor: %s", exc)
        raise _invalid_cursor() from exc

    if not isinstance(payload, dict):
        raise _invalid_cursor()

    index = payload.get("index")
    total = payload.get("total")
    timestamp = payload.get("timestamp")
    if not (_is_int(index) and _is_int(total) and _is_int(timestamp)):
        raise _invalid_cursor()
    if index < 0 or total < 0:
        raise _invalid_cursor()

    current = _now_ms() if now_ms is None else now_ms
    if current - timestamp > CURSOR_EXPIRY_MS:
        logger.debug("Rejected expired cursor (age=%dms)", current - timestamp)
        raise _invalid_cursor()
    if timestamp - current > CURSOR_CLOCK_SKEW_MS:
        logger.debug("Rejected cursor issued in the future (skew=%dms)", timestamp - current)
        raise _invalid_cursor()

    return {"index": index, "total": total, "timestamp": timestamp}


def create_first_page_cursor(total: int) -> str:
    return encode_cursor(0, total)


def paginate_array(
    items: Sequence[Any],
    cursor: Optional[str] = None,
    limit: Any = None,
) -> Dict[str, Any]:
    """
    Slice ``items`` into one page.

    Returns ``{"items", "nextCursor", "total", "hasMore"}``; ``nextCursor`` is
    ``None`` on the last page.
    """
    page_size = clamp_limit(limit)
    total = len(items)
    start = 0
    if cursor is not None:
        start = decode_cursor(cursor)["index"]

    if start >= total:
        return {"items": [], "nextCursor": None, "total": total, "hasMore": False}

    end = min(start + page_size, total)
    has_more = end < total
    return {
        "items": list(items[start:end]),
        "nextCursor": encode_cursor(end, total) if has_more else None,
        "total": total,
        "hasMore": has_more,
    }


def is_pagination_needed(total: int, limit: Any = None) -> bool:
    return total > clamp_limit(limit)


def create_pagination_metadata(page: Dict[str, Any], limit: Any = None) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {
        "total": page["total"],
        "limit": clamp_limit(limit),
        "hasMore": page["hasMore"],
        "returned": len(page["items"]),
    }
    if page.get("nextCursor"):
        metadata["nextCursor"] = page["nextCursor"]
    return metadata


def get_pagination_summary(page: Dict[str, Any]) -> str:
    returned: List[Any] = page["items"]
    if not returned:
        return f"No items (total {page['total']})"
    suffix = ", more available" if page["hasMore"] else ""
    return f"Returned {len(returned)} of {page['total']} items{suffix}"
