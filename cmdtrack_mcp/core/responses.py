"""Response formatting and size limits for MCP tool output."""

import json
from typing import Any

from ..constants import CHARACTER_LIMIT


def enforce_response_limit(response: str, limit: int = CHARACTER_LIMIT) -> str:
    """Truncate response if exceeds CHARACTER_LIMIT.

    Args:
        response: Response string to check
        limit: Character limit (default: 25,000 per constants.py)

    Returns:
        Response truncated if necessary with continuation marker
    """
    if len(response) <= limit:
        return response

    truncated = response[:limit - 100]
    truncated += f"\n\n[Response truncated - exceeded {limit:,} character limit]"
    truncated += "\n[Tip: Use filters to reduce output size]"

    return truncated


def safe_json_dumps(obj: Any, **kwargs) -> str:
    """Serialize object to JSON, returning a JSON error payload on failure."""
    try:
        return json.dumps(obj, **kwargs)
    except (TypeError, ValueError) as e:
        return json.dumps({
            "status": "error",
            "message": "JSON serialization error",
            "error": str(e),
            "type": type(e).__name__
        })


def limit_items(items: list[dict[str, Any]], limit: int = CHARACTER_LIMIT) -> tuple[list[dict[str, Any]], bool]:
    """Keep the leading items whose combined JSON size stays under the limit.

    Returns:
        Tuple of (kept items, whether anything was dropped)
    """
    kept = []
    total = 0
    for item in items:
        size = len(safe_json_dumps(item)) + 2
        if total + size > limit:
            return kept, True
        kept.append(item)
        total += size
    return kept, False
