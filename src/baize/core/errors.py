"""
Provider layer error types.
"""

from typing import Optional


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, provider: Optional[str] = None):
        self.message = message
        self.provider = provider
        super().__init__(message)


class UnsupportedPlatformType(ProviderError):
    """Raised when no factory is registered for a platform type."""

    def __init__(self, platform_type: str):
        super().__init__(f"Unsupported platform type: {platform_type}")
        self.platform_type = platform_type


class InvalidRequestError(ProviderError):
    """Raised when a chat call cannot be built from the caller's input."""
    pass


class SerializationError(ProviderError):
    """Raised when a request envelope cannot be serialized."""
    pass


class TransportError(ProviderError):
    """Raised on network failures, timeouts and expired deadlines."""
    pass


class StreamReadError(TransportError):
    """Raised when reading an open stream fails."""
    pass


class UpstreamStatusError(ProviderError):
    """Raised when the upstream answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str = "", provider: Optional[str] = None):
        super().__init__(f"HTTP request failed: {status_code}, body: {body}", provider)
        self.status_code = status_code
        self.body = body


class UpstreamProtocolError(ProviderError):
    """Raised when a well-formed reply carries an upstream error object."""
    pass


class EmptyResponseError(ProviderError):
    """Raised when a reply has no choices or content blocks."""
    pass


class DecodeError(ProviderError):
    """Raised when a reply body or stream frame is not valid JSON."""
    pass


class SinkError(ProviderError):
    """
    Raised by a fragment sink to abort a stream.

    Sinks may raise any exception; it reaches the caller unchanged.
    """
    pass
