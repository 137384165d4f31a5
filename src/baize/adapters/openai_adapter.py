"""
OpenAI-compatible API adapter.

Talks to any backend exposing OpenAI's `/chat/completions` endpoint.
"""

from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..core.errors import DecodeError, EmptyResponseError, ProviderError, UpstreamProtocolError
from ..core.interface import AIProvider, normalize_messages
from ..core.options import ProviderOptions, provider_logger
from ..core.stream import Sink, decode_response
from ..core.transport import Transport, read_body, with_deadline
from ..models.openai import OpenAIRequest, OpenAIResponse, OpenAIStreamFrame
from ..models.platform import PlatformConfig
from ..models.request import Message
from ..models.response import error_message


class OpenAIProvider(AIProvider):
    """
    OpenAI-compatible provider.

    Authenticates with a bearer token and reads replies from
    `choices[0].message.content` (unary) or `choices[0].delta.content`
    (streaming).
    """

    CHAT_PATH = "/chat/completions"

    def __init__(
        self,
        platform: PlatformConfig,
        options: Optional[ProviderOptions] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize OpenAI-compatible provider.

        Args:
            platform: Platform record with base URL and API key
            options: Construction options
            client: HTTP client to use instead of the shared pool
        """
        if not platform.api_key:
            raise ProviderError("API key required", platform.id)

        options = options or ProviderOptions()
        self._platform_id = platform.id
        self._base_url = platform.base_url.rstrip("/")
        self._api_key = platform.api_key
        self._log = provider_logger(platform.id, options)
        self._transport = Transport(
            self._base_url,
            timeout=options.timeout,
            client=client,
            log=self._log,
            provider=platform.id,
        )

    @classmethod
    def create(cls, platform: PlatformConfig, options: ProviderOptions) -> "OpenAIProvider":
        return cls(platform, options)

    @property
    def platform_id(self) -> str:
        return self._platform_id

    @property
    def provider_type(self) -> str:
        return "openai"

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self):
        return {"Authorization": f"Bearer {self._api_key}"}

    async def chat(self, model: str, message: str, *, timeout: Optional[float] = None) -> str:
        return await self.chat_with_history(model, [Message.user(message)], timeout=timeout)

    async def chat_with_history(
        self,
        model: str,
        messages: List[Message],
        *,
        timeout: Optional[float] = None,
    ) -> str:
        request = OpenAIRequest(model=model, messages=normalize_messages(messages, self._platform_id))
        return await with_deadline(self._complete(request), timeout, self._platform_id)

    async def chat_stream(
        self,
        model: str,
        message: str,
        sink: Sink,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        await self.chat_stream_with_history(model, [Message.user(message)], sink, timeout=timeout)

    async def chat_stream_with_history(
        self,
        model: str,
        messages: List[Message],
        sink: Sink,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        request = OpenAIRequest(
            model=model,
            messages=normalize_messages(messages, self._platform_id),
            stream=True,
        )
        await with_deadline(self._stream(request, sink), timeout, self._platform_id)

    async def _complete(self, request: OpenAIRequest) -> str:
        async with self._transport.send("POST", self.CHAT_PATH, request, self._headers()) as response:
            raw = await read_body(response, self._platform_id)

        try:
            reply = OpenAIResponse.model_validate_json(raw)
        except ValidationError as e:
            self._log.error(f"Failed to parse response: {e}")
            raise DecodeError(f"Failed to parse response: {e}", self._platform_id) from e

        if reply.error is not None:
            message = f"API error: {error_message(reply.error)}"
            self._log.error(message)
            raise UpstreamProtocolError(message, self._platform_id)

        if not reply.choices:
            raise EmptyResponseError("No choices in response", self._platform_id)

        return reply.text()

    async def _stream(self, request: OpenAIRequest, sink: Sink) -> None:
        self._log.info("Starting stream")
        async with self._transport.send("POST", self.CHAT_PATH, request, self._headers()) as response:
            delivered = await decode_response(
                response, OpenAIStreamFrame, sink, self._platform_id, self._log
            )
        self._log.info(f"Stream finished: {delivered} chunks")
