"""
Internal chat request models.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

Role = Literal["user", "assistant", "system"]


class Message(BaseModel):
    """A single conversation turn."""
    role: Role
    content: str

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)


class ChatCall(BaseModel):
    """
    One chat invocation.

    Carries either a single user message or an ordered history, never both.
    Order of `messages` is chronological and is sent upstream unchanged.
    """
    model: str = Field(..., min_length=1)
    message: Optional[str] = None
    messages: Optional[List[Message]] = None
    stream: bool = False

    @model_validator(mode="after")
    def _check_input(self) -> "ChatCall":
        if self.messages is not None:
            if self.message is not None:
                raise ValueError("use either 'message' or 'messages', not both")
            if not self.messages:
                raise ValueError("'messages' must not be empty")
        elif not self.message:
            raise ValueError("a 'message' or non-empty 'messages' is required")
        return self

    @property
    def has_history(self) -> bool:
        return self.messages is not None

    def history(self) -> List[Message]:
        """Return the ordered message list for this call."""
        if self.messages is not None:
            return list(self.messages)
        return [Message.user(self.message)]
