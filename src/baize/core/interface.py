"""
Abstract provider interface definition.

Defines the contract that all provider adapters must implement.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from ..models.request import Message
from .errors import InvalidRequestError
from .stream import Sink


def normalize_messages(messages: Iterable[Any], provider: Optional[str] = None) -> List[Message]:
    """
    Validate a conversation history.

    Accepts Message instances or {"role", "content"} mappings and keeps
    their order.

    Raises:
        InvalidRequestError: If the history is empty or a role is unknown
    """
    try:
        history = [
            m if isinstance(m, Message) else Message.model_validate(m)
            for m in (messages or [])
        ]
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid message in history: {e}", provider) from e
    if not history:
        raise InvalidRequestError("Message history must not be empty", provider)
    return history


class AIProvider(ABC):
    """
    Abstract base class for upstream AI providers.

    Instances hold only immutable settings and a transport reference, so
    one instance may serve any number of concurrent calls. Every operation
    accepts an optional `timeout` (seconds) bounding the whole call.
    """

    @property
    @abstractmethod
    def platform_id(self) -> str:
        """
        Identifier of the platform this provider talks to.

        Returns:
            Platform id from the platforms file
        """
        pass

    @property
    @abstractmethod
    def provider_type(self) -> str:
        """
        Type of provider (e.g., "openai", "anthropic").

        Returns:
            Provider type identifier
        """
        pass

    @property
    @abstractmethod
    def base_url(self) -> str:
        pass

    @abstractmethod
    async def chat(self, model: str, message: str, *, timeout: Optional[float] = None) -> str:
        """
        Send a single user message and return the reply.

        Args:
            model: Model name
            message: User message text
            timeout: Deadline for the whole call in seconds

        Returns:
            Reply text
        """
        pass

    @abstractmethod
    async def chat_with_history(
        self,
        model: str,
        messages: List[Message],
        *,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Send an ordered conversation history and return the reply.

        Args:
            model: Model name
            messages: Non-empty chronological history
            timeout: Deadline for the whole call in seconds

        Returns:
            Reply text
        """
        pass

    @abstractmethod
    async def chat_stream(
        self,
        model: str,
        message: str,
        sink: Sink,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Send a single user message and stream the reply into a sink.

        Args:
            model: Model name
            message: User message text
            sink: Called once per text fragment, in wire order
            timeout: Deadline for the whole call in seconds
        """
        pass

    @abstractmethod
    async def chat_stream_with_history(
        self,
        model: str,
        messages: List[Message],
        sink: Sink,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Send an ordered history and stream the reply into a sink.

        Args:
            model: Model name
            messages: Non-empty chronological history
            sink: Called once per text fragment, in wire order
            timeout: Deadline for the whole call in seconds
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(platform={self.platform_id!r}, type={self.provider_type!r})"
