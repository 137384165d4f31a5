"""
Tests for line splitting and SSE decoding.
"""

from typing import AsyncIterator, Iterable, List

import httpx
import pytest

from baize.core.errors import DecodeError, SinkError, StreamReadError, UpstreamProtocolError
from baize.core.stream import SSEDecoder, iter_lines
from baize.models.anthropic import AnthropicStreamFrame
from baize.models.openai import OpenAIStreamFrame
from conftest import anthropic_delta, openai_delta, sse_body


async def chunks_of(parts: Iterable[bytes]) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


async def lines_of(text: str) -> AsyncIterator[str]:
    for line in text.split("\n"):
        yield line


async def collect(decoder: SSEDecoder) -> List[str]:
    received: List[str] = []
    await decoder.run(received.append)
    return received


class TestIterLines:
    """Test byte stream line splitting."""

    @pytest.mark.asyncio
    async def test_lines_split_across_chunks(self):
        parts = [b"data: a", b"bc\nda", b"ta: x\r\n", b"\n"]
        lines = [line async for line in iter_lines(chunks_of(parts))]
        assert lines == ["data: abc", "data: x", ""]

    @pytest.mark.asyncio
    async def test_final_line_without_newline(self):
        lines = [line async for line in iter_lines(chunks_of([b"one\ntwo"]))]
        assert lines == ["one", "two"]

    @pytest.mark.asyncio
    async def test_multibyte_character_split_between_chunks(self):
        encoded = "data: héllo\n".encode("utf-8")
        split = encoded.index(b"\xa9")
        parts = [encoded[:split], encoded[split:]]
        lines = [line async for line in iter_lines(chunks_of(parts))]
        assert lines == ["data: héllo"]

    @pytest.mark.asyncio
    async def test_read_failure(self):
        async def broken():
            yield b"data: a\n"
            raise httpx.ReadError("connection reset")

        received = []
        with pytest.raises(StreamReadError):
            async for line in iter_lines(broken(), "p1"):
                received.append(line)
        assert received == ["data: a"]


class TestSSEDecoder:
    """Test SSEDecoder."""

    @pytest.mark.asyncio
    async def test_fragments_in_order(self):
        body = sse_body(openai_delta("He"), openai_delta("llo")).decode()
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame)
        assert await collect(decoder) == ["He", "llo"]

    @pytest.mark.asyncio
    async def test_returns_delivered_count(self):
        body = sse_body(openai_delta("a"), openai_delta("b"), openai_delta("c")).decode()
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame)
        assert await decoder.run(lambda text: None) == 3

    @pytest.mark.asyncio
    async def test_comments_and_unknown_lines_skipped(self):
        body = "\n".join([
            ": keep-alive",
            "event: message",
            "id: 7",
            "",
            'data: {"choices":[{"delta":{"content":"ok"}}]}',
            "data: [DONE]",
        ])
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame)
        assert await collect(decoder) == ["ok"]

    @pytest.mark.asyncio
    async def test_frames_without_text_emit_nothing(self):
        body = sse_body(
            {"choices": [{"delta": {"role": "assistant"}}]},
            {"choices": []},
            openai_delta(""),
            openai_delta("x"),
        ).decode()
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame)
        assert await collect(decoder) == ["x"]

    @pytest.mark.asyncio
    async def test_end_of_input_without_done(self):
        body = sse_body(openai_delta("a"), done=False).decode()
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame)
        assert await collect(decoder) == ["a"]

    @pytest.mark.asyncio
    async def test_lines_after_done_are_ignored(self):
        body = sse_body(openai_delta("a")).decode() + "\n" + sse_body(openai_delta("b")).decode()
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame)
        assert await collect(decoder) == ["a"]

    @pytest.mark.asyncio
    async def test_malformed_frame(self):
        body = sse_body(openai_delta("a"), "not json").decode()
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame, provider="p1")
        received: List[str] = []
        with pytest.raises(DecodeError) as exc_info:
            await decoder.run(received.append)
        assert received == ["a"]
        assert exc_info.value.provider == "p1"

    @pytest.mark.asyncio
    async def test_error_frame(self):
        body = sse_body(openai_delta("a"), {"error": {"message": "overloaded"}}, openai_delta("b")).decode()
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame)
        received: List[str] = []
        with pytest.raises(UpstreamProtocolError, match="overloaded"):
            await decoder.run(received.append)
        assert received == ["a"]

    @pytest.mark.asyncio
    async def test_sink_error_stops_decoding(self):
        body = sse_body(openai_delta("a"), openai_delta("b"), openai_delta("c")).decode()
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame)
        received: List[str] = []

        def sink(text):
            received.append(text)
            if text == "b":
                raise SinkError("client went away")

        with pytest.raises(SinkError, match="client went away"):
            await decoder.run(sink)
        assert received == ["a", "b"]

    @pytest.mark.asyncio
    async def test_sink_exception_propagates_unchanged(self):
        body = sse_body(openai_delta("a")).decode()
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame)

        def sink(text):
            raise KeyError(text)

        with pytest.raises(KeyError):
            await decoder.run(sink)

    @pytest.mark.asyncio
    async def test_async_sink(self):
        body = sse_body(openai_delta("x"), openai_delta("y")).decode()
        decoder = SSEDecoder(lines_of(body), OpenAIStreamFrame)
        received: List[str] = []

        async def sink(text):
            received.append(text)

        assert await decoder.run(sink) == 2
        assert received == ["x", "y"]

    @pytest.mark.asyncio
    async def test_single_pass(self):
        decoder = SSEDecoder(lines_of(""), OpenAIStreamFrame)
        await collect(decoder)
        with pytest.raises(RuntimeError):
            await collect(decoder)

    @pytest.mark.asyncio
    async def test_anthropic_frames(self):
        body = sse_body(
            {"type": "message_start", "message": {"content": [{"type": "text", "text": "ignored"}]}},
            anthropic_delta("a"),
            {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "b"}},
            {"type": "message_stop"},
        ).decode()
        decoder = SSEDecoder(lines_of(body), AnthropicStreamFrame)
        assert await collect(decoder) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_decoding_from_bytes(self):
        body = sse_body(openai_delta("He"), openai_delta("llo"))
        parts = [body[i:i + 5] for i in range(0, len(body), 5)]
        decoder = SSEDecoder(iter_lines(chunks_of(parts)), OpenAIStreamFrame)
        assert await collect(decoder) == ["He", "llo"]
