"""
OpenAI chat-completions envelopes.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .request import Message
from .response import APIError, StreamFrame


class OpenAIRequest(BaseModel):
    """Body of `POST {base}/chat/completions`."""
    model: str
    messages: List[Message]
    stream: bool = False

    def to_payload(self) -> Dict[str, Any]:
        data = {
            "model": self.model,
            "messages": [m.model_dump() for m in self.messages],
        }
        if self.stream:
            data["stream"] = True
        return data


class ResponseMessage(BaseModel):
    role: str = "assistant"
    content: Optional[str] = None


class Choice(BaseModel):
    index: int = 0
    message: ResponseMessage = Field(default_factory=ResponseMessage)
    finish_reason: Optional[str] = None


class OpenAIResponse(BaseModel):
    """Non-streaming reply."""
    choices: List[Choice] = Field(default_factory=list)
    error: Optional[APIError] = None

    class Config:
        extra = "ignore"

    def text(self) -> str:
        return self.choices[0].message.content or ""


class StreamDelta(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class StreamChoice(BaseModel):
    index: int = 0
    delta: StreamDelta = Field(default_factory=StreamDelta)
    finish_reason: Optional[str] = None


class OpenAIStreamFrame(StreamFrame):
    """One `data:` payload: `choices[0].delta.content`."""
    choices: List[StreamChoice] = Field(default_factory=list)

    def deltas(self) -> List[str]:
        if not self.choices:
            return []
        content = self.choices[0].delta.content
        return [content] if content else []
