"""
Anthropic messages envelopes.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .request import Message
from .response import APIError, StreamFrame

DEFAULT_MAX_TOKENS = 1000


class AnthropicRequest(BaseModel):
    """Body of `POST {base}/v1/messages`."""
    model: str
    messages: List[Message]
    max_tokens: int = DEFAULT_MAX_TOKENS
    stream: bool = False

    def to_payload(self) -> Dict[str, Any]:
        data = {
            "model": self.model,
            "messages": [m.model_dump() for m in self.messages],
            "max_tokens": self.max_tokens,
        }
        if self.stream:
            data["stream"] = True
        return data


class ContentBlock(BaseModel):
    type: str = ""
    text: str = ""

    class Config:
        extra = "ignore"


class AnthropicResponse(BaseModel):
    """Non-streaming reply."""
    content: List[ContentBlock] = Field(default_factory=list)
    stop_reason: Optional[str] = None
    error: Optional[APIError] = None

    class Config:
        extra = "ignore"

    def text(self) -> str:
        return "".join(block.text for block in self.content if block.type == "text")


class StreamMessage(BaseModel):
    id: str = ""
    type: str = ""
    role: str = ""
    content: List[ContentBlock] = Field(default_factory=list)
    stop_reason: Optional[str] = None


class TextDelta(BaseModel):
    type: str = ""
    text: str = ""


class AnthropicStreamFrame(StreamFrame):
    """
    One `data:` payload of a messages stream.

    Only `content_block_delta` events carry text. Text comes from the event's
    message content blocks, or from a `text_delta` delta.
    """
    type: str = ""
    message: Optional[StreamMessage] = None
    delta: Optional[TextDelta] = None

    def deltas(self) -> List[str]:
        if self.type != "content_block_delta":
            return []
        fragments = []
        if self.message is not None:
            fragments.extend(
                block.text for block in self.message.content
                if block.type == "text" and block.text
            )
        if self.delta is not None and self.delta.type == "text_delta" and self.delta.text:
            fragments.append(self.delta.text)
        return fragments
