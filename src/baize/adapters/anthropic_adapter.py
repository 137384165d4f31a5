"""
Anthropic messages API adapter.
"""

from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..core.errors import DecodeError, EmptyResponseError, ProviderError, UpstreamProtocolError
from ..core.interface import AIProvider, normalize_messages
from ..core.options import ProviderOptions, provider_logger
from ..core.stream import Sink, decode_response
from ..core.transport import Transport, read_body, with_deadline
from ..models.anthropic import AnthropicRequest, AnthropicResponse, AnthropicStreamFrame
from ..models.platform import PlatformConfig
from ..models.request import Message
from ..models.response import error_message


class AnthropicProvider(AIProvider):
    """
    Anthropic provider.

    Sends `x-api-key` and `anthropic-version` headers, caps replies at
    1000 tokens and joins all text content blocks of a reply.
    """

    MESSAGES_PATH = "/v1/messages"
    ANTHROPIC_VERSION = "2023-06-01"

    def __init__(
        self,
        platform: PlatformConfig,
        options: Optional[ProviderOptions] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Anthropic provider.

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
    def create(cls, platform: PlatformConfig, options: ProviderOptions) -> "AnthropicProvider":
        return cls(platform, options)

    @property
    def platform_id(self) -> str:
        return self._platform_id

    @property
    def provider_type(self) -> str:
        return "anthropic"

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self):
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self.ANTHROPIC_VERSION,
        }

    async def chat(self, model: str, message: str, *, timeout: Optional[float] = None) -> str:
        return await self.chat_with_history(model, [Message.user(message)], timeout=timeout)

    async def chat_with_history(
        self,
        model: str,
        messages: List[Message],
        *,
        timeout: Optional[float] = None,
    ) -> str:
        request = AnthropicRequest(model=model, messages=normalize_messages(messages, self._platform_id))
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
        request = AnthropicRequest(
            model=model,
            messages=normalize_messages(messages, self._platform_id),
            stream=True,
        )
        await with_deadline(self._stream(request, sink), timeout, self._platform_id)

    async def _complete(self, request: AnthropicRequest) -> str:
        async with self._transport.send("POST", self.MESSAGES_PATH, request, self._headers()) as response:
            raw = await read_body(response, self._platform_id)

        try:
            reply = AnthropicResponse.model_validate_json(raw)
        except ValidationError as e:
            self._log.error(f"Failed to parse response: {e}")
            raise DecodeError(f"Failed to parse response: {e}", self._platform_id) from e

        if reply.error is not None:
            message = f"API error: {error_message(reply.error)}"
            self._log.error(message)
            raise UpstreamProtocolError(message, self._platform_id)

        if not reply.content:
            raise EmptyResponseError("No content in response", self._platform_id)

        return reply.text()

    async def _stream(self, request: AnthropicRequest, sink: Sink) -> None:
        self._log.info("Starting stream")
        async with self._transport.send("POST", self.MESSAGES_PATH, request, self._headers()) as response:
            delivered = await decode_response(
                response, AnthropicStreamFrame, sink, self._platform_id, self._log
            )
        self._log.info(f"Stream finished: {delivered} chunks")
