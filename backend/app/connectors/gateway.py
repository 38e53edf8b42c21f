"""
Shared result type for third-party gateway calls

Connectors never raise on HTTP or network failures. They log the error and
hand back a GatewayResponse with success=False so callers can decide which
status to answer with.
"""
from typing import Any, Optional

from pydantic import BaseModel


class GatewayResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    status: Optional[str] = None
    data: Any = None


def error_message(data: Any, fallback: str) -> str:
    """Pick a human readable message out of a gateway error body"""
    if isinstance(data, dict):
        return data.get("message") or data.get("error") or fallback
    return fallback
