"""
Shared fixtures for Baize tests.
"""

import json
from typing import Callable, List

import httpx
import pytest

from baize.models.platform import PlatformConfig

OPENAI_KEY = "sk-test-openai-0001"
ANTHROPIC_KEY = "sk-ant-test-0002"


@pytest.fixture
def openai_platform() -> PlatformConfig:
    return PlatformConfig(
        id="openai-test",
        name="OpenAI Test",
        type="openai",
        base_url="https://api.example.com/v1",
        api_key=OPENAI_KEY,
        models=("gpt-x",),
    )


@pytest.fixture
def anthropic_platform() -> PlatformConfig:
    return PlatformConfig(
        id="anthropic-test",
        name="Anthropic Test",
        type="anthropic",
        base_url="https://anthropic.example.com",
        api_key=ANTHROPIC_KEY,
        models=("claude-x",),
    )


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """Async client whose requests are answered by a handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def sse_body(*payloads, done: bool = True) -> bytes:
    """Encode payloads as `data:` lines, optionally ending with [DONE]."""
    lines: List[str] = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        lines.append(f"data: {data}")
        lines.append("")
    if done:
        lines.append("data: [DONE]")
        lines.append("")
    return "\n".join(lines).encode("utf-8")


def openai_delta(text: str) -> dict:
    return {"choices": [{"index": 0, "delta": {"content": text}}]}


def anthropic_delta(text: str) -> dict:
    return {
        "type": "content_block_delta",
        "message": {"content": [{"type": "text", "text": text}]},
    }


class Recorder:
    """Handler wrapper that remembers every request it answers."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self.respond = respond
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last.content)
