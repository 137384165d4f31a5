"""
Baize Gateway

A provider abstraction layer for chat completions:
- One contract over OpenAI-compatible and Anthropic backends
- Pooled HTTP transport with credential-masked logging
- Server-sent event decoding into text fragments
- Registry selecting a provider by platform type
"""

from .core.interface import AIProvider
from .core.registry import ProviderRegistry
from .core.options import ProviderOptions, ProviderOptionsBuilder
from .core.stream import SSEDecoder
from .core.transport import Transport
from .models.platform import PlatformConfig
from .models.request import ChatCall, Message
from .adapters import AnthropicProvider, OpenAIProvider

__all__ = [
    "AIProvider",
    "ProviderRegistry",
    "ProviderOptions",
    "ProviderOptionsBuilder",
    "SSEDecoder",
    "Transport",
    "PlatformConfig",
    "ChatCall",
    "Message",
    "AnthropicProvider",
    "OpenAIProvider",
]

__version__ = "1.0.0"
