"""
Server-sent event decoding for streaming replies.
"""

import inspect
import logging
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable, Optional, Type, Union

import httpx
from pydantic import ValidationError

from ..models.response import StreamFrame, error_message
from .errors import DecodeError, StreamReadError, UpstreamProtocolError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_LINE = "data: [DONE]"

Sink = Callable[[str], Union[None, Awaitable[None]]]


async def iter_lines(
    chunks: AsyncIterable[bytes],
    provider: Optional[str] = None,
) -> AsyncIterator[str]:
    """
    Split a byte stream into lines.

    A line ends at b"\\n"; one trailing b"\\r" is dropped. A final line
    without a terminator is yielded at end of stream if it is non-empty.

    Raises:
        StreamReadError: If reading the underlying stream fails
    """
    buffer = bytearray()
    try:
        async for chunk in chunks:
            buffer.extend(chunk)
            while True:
                end = buffer.find(b"\n")
                if end < 0:
                    break
                line = bytes(buffer[:end])
                del buffer[:end + 1]
                yield _decode_line(line)
    except httpx.RequestError as e:
        raise StreamReadError(f"Failed to read stream: {e!r}", provider) from e

    if buffer:
        yield _decode_line(bytes(buffer))


def _decode_line(line: bytes) -> str:
    if line.endswith(b"\r"):
        line = line[:-1]
    return line.decode("utf-8", errors="replace")


class SSEDecoder:
    """
    Single-pass decoder from SSE lines to text fragments.

    Line rules:
    - blank lines and lines starting with ":" are skipped
    - "data: [DONE]" ends the stream
    - "data: <json>" is parsed with the frame model; its deltas are emitted
    - any other line is skipped

    End of input without "[DONE]" also ends the stream successfully.
    """

    def __init__(
        self,
        lines: AsyncIterable[str],
        frame_model: Type[StreamFrame],
        provider: Optional[str] = None,
        log: Optional[logging.Logger] = None,
    ):
        self._lines = lines
        self._frame_model = frame_model
        self._provider = provider
        self._log = log or logger
        self._started = False

    def _parse(self, data: str) -> StreamFrame:
        try:
            return self._frame_model.model_validate_json(data)
        except ValidationError as e:
            self._log.error(f"Failed to parse stream frame: {e}")
            raise DecodeError(f"Failed to parse stream frame: {data[:200]}", self._provider) from e

    async def fragments(self) -> AsyncIterator[str]:
        """
        Yield text fragments in wire order.

        Raises:
            RuntimeError: If the decoder was already started
            DecodeError: On a malformed data frame
            UpstreamProtocolError: On a frame carrying an error object
            StreamReadError: If reading lines fails
        """
        if self._started:
            raise RuntimeError("SSEDecoder is single-pass and was already started")
        self._started = True

        async for line in self._lines:
            if not line or line.startswith(":"):
                continue
            if line == DONE_LINE:
                self._log.info("Received end of stream marker")
                return
            if not line.startswith(DATA_PREFIX):
                continue

            frame = self._parse(line[len(DATA_PREFIX):])
            if frame.error is not None:
                message = f"API error: {error_message(frame.error)}"
                self._log.error(message)
                raise UpstreamProtocolError(message, self._provider)

            for text in frame.deltas():
                self._log.debug(f"Stream chunk: {text!r}")
                yield text

        self._log.info("Stream closed without end marker")

    async def run(self, sink: Sink) -> int:
        """
        Feed every fragment to a sink.

        The sink may be a plain or async callable. If it raises, decoding
        stops and the exception propagates unchanged.

        Returns:
            Number of fragments delivered
        """
        delivered = 0
        fragments = self.fragments()
        try:
            async for fragment in fragments:
                result = sink(fragment)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
        finally:
            await fragments.aclose()
        return delivered


async def decode_response(
    response: httpx.Response,
    frame_model: Type[StreamFrame],
    sink: Sink,
    provider: Optional[str] = None,
    log: Optional[logging.Logger] = None,
) -> int:
    """Decode an open streaming response into a sink."""
    lines = iter_lines(response.aiter_bytes(), provider)
    decoder = SSEDecoder(lines, frame_model, provider=provider, log=log)
    return await decoder.run(sink)
