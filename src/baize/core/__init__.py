"""
Core provider abstraction components.
"""

from .interface import AIProvider, normalize_messages
from .registry import ProviderFactory, ProviderRegistry
from .options import ProviderOptions, ProviderOptionsBuilder
from .stream import SSEDecoder, Sink, iter_lines
from .transport import Transport, close_shared_client, get_shared_client
from .errors import (
    ProviderError,
    UnsupportedPlatformType,
    InvalidRequestError,
    SerializationError,
    TransportError,
    StreamReadError,
    UpstreamStatusError,
    UpstreamProtocolError,
    EmptyResponseError,
    DecodeError,
    SinkError,
)

__all__ = [
    "AIProvider",
    "normalize_messages",
    "ProviderFactory",
    "ProviderRegistry",
    "ProviderOptions",
    "ProviderOptionsBuilder",
    "SSEDecoder",
    "Sink",
    "iter_lines",
    "Transport",
    "close_shared_client",
    "get_shared_client",
    "ProviderError",
    "UnsupportedPlatformType",
    "InvalidRequestError",
    "SerializationError",
    "TransportError",
    "StreamReadError",
    "UpstreamStatusError",
    "UpstreamProtocolError",
    "EmptyResponseError",
    "DecodeError",
    "SinkError",
]
