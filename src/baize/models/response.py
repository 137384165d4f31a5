"""
Shared pieces of upstream response envelopes.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel


class APIError(BaseModel):
    """Error object embedded in an upstream reply or stream frame."""
    message: str = ""
    type: Optional[str] = None
    code: Optional[Union[int, str]] = None

    class Config:
        extra = "allow"


class StreamFrame(BaseModel):
    """
    Base for one decoded `data:` payload of a streaming reply.

    Subclasses describe a provider's frame shape and return the text
    fragments carried by the frame from `deltas()`.
    """
    error: Optional[APIError] = None

    class Config:
        extra = "ignore"

    def deltas(self) -> List[str]:
        return []


def error_message(error: Optional[Any]) -> str:
    """Human-readable text for an embedded error object."""
    if error is None:
        return ""
    message = getattr(error, "message", "") or ""
    return message or "upstream returned an error without a message"
