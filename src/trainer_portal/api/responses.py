"""Success envelope shared by all JSON endpoints."""

from typing import Any, Dict, Optional


def success(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """``{"success": true, "message"?: ..., "data": ...}`` plus any extra top-level keys."""
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    body["data"] = data
    body.update(extra)
    return body
