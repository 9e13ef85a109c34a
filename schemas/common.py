from typing import Any, Optional


def envelope(data: Any = None, message: Optional[str] = None) -> dict:
    """Success body shared by every endpoint: {success, message?, data?}."""
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def to_float(value) -> Optional[float]:
    """Numeric columns come back as Decimal; JSON clients expect numbers."""
    return float(value) if value is not None else None
