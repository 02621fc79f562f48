from typing import Any, Optional


def envelope(message: str, data: Any = None, success: bool = True, meta: Optional[dict] = None, **extra) -> dict:
    """Shape the standard ``{success, message, data}`` response body."""
    body = {"success": success, "message": message, "data": data}
    if meta is not None:
        body["meta"] = meta
    body.update(extra)
    return body
