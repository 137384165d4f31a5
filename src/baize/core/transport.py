"""
Outbound HTTP transport shared by all providers.

One pooled httpx.AsyncClient serves every provider in the process. Each
Transport binds a base URL and an optional timeout override to it.
"""

import asyncio
import json
import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Dict, Mapping, Optional, TypeVar

import httpx

from .errors import SerializationError, TransportError, UpstreamStatusError
from .options import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

T = TypeVar("T")

POOL_LIMITS = httpx.Limits(
    max_connections=100,
    max_keepalive_connections=10,
    keepalive_expiry=90.0,
)

SENSITIVE_HEADERS = frozenset({"authorization", "x-api-key"})
MASK = "***"

_shared_client: Optional[httpx.AsyncClient] = None
_shared_lock = threading.Lock()


def get_shared_client() -> httpx.AsyncClient:
    """Get the process-wide pooled client, creating it on first use."""
    global _shared_client
    with _shared_lock:
        if _shared_client is None or _shared_client.is_closed:
            _shared_client = httpx.AsyncClient(
                limits=POOL_LIMITS,
                timeout=DEFAULT_TIMEOUT,
            )
        return _shared_client


async def close_shared_client() -> None:
    """Close the pooled client. A later call to get_shared_client() opens a new one."""
    global _shared_client
    with _shared_lock:
        client, _shared_client = _shared_client, None
    if client is not None:
        await client.aclose()


def mask_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Copy headers with credential values replaced by a placeholder."""
    return {
        key: (MASK if key.lower() in SENSITIVE_HEADERS else value)
        for key, value in headers.items()
    }


class _InnerTimeout(Exception):
    """Carries a TimeoutError raised by the call itself past wait_for."""

    def __init__(self, error: BaseException):
        super().__init__(error)
        self.error = error


async def _shield_timeouts(call: Awaitable[T]) -> T:
    try:
        return await call
    except asyncio.TimeoutError as e:
        raise _InnerTimeout(e) from e


async def with_deadline(
    call: Awaitable[T],
    timeout: Optional[float],
    provider: Optional[str] = None,
) -> T:
    """
    Await a provider call under an optional deadline.

    A TimeoutError raised by the call itself (for example from a sink)
    propagates unchanged; only expiry of this deadline becomes a
    TransportError.

    Args:
        call: The awaitable to run
        timeout: Seconds for the whole call, or None for no deadline
        provider: Platform id used in error messages

    Returns:
        The call's result

    Raises:
        TransportError: If the deadline expires first
    """
    if timeout is None:
        return await call
    try:
        return await asyncio.wait_for(_shield_timeouts(call), timeout)
    except _InnerTimeout as e:
        raise e.error
    except asyncio.TimeoutError as e:
        raise TransportError(f"Deadline of {timeout}s exceeded", provider) from e


class Transport:
    """
    Request/response helper over the pooled client.

    Serializes the body, injects headers, sends the request and checks
    the status code. The response is handed out still open so streaming
    callers can read it incrementally.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        log: Optional[logging.Logger] = None,
        provider: Optional[str] = None,
    ):
        """
        Initialize the transport.

        Args:
            base_url: Upstream base URL; request paths are appended to it
            timeout: Per-request timeout overriding the client default
            client: Client to use instead of the shared pool
            log: Logger for request/response lines
            provider: Platform id used in error messages
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._log = log or logger
        self._provider = provider

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client if self._client is not None else get_shared_client()

    def _serialize(self, body: Any) -> bytes:
        try:
            payload = body.to_payload() if hasattr(body, "to_payload") else body
            return json.dumps(payload, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            self._log.error(f"Failed to serialize request body: {e}")
            raise SerializationError(f"Failed to serialize request body: {e}", self._provider) from e

    @asynccontextmanager
    async def send(
        self,
        method: str,
        path: str,
        body: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> AsyncIterator[httpx.Response]:
        """
        Send a request and yield the open response.

        Args:
            method: HTTP method
            path: Path appended to the base URL
            body: JSON-serializable payload, or an envelope with to_payload()
            headers: Extra request headers

        Yields:
            Response with a 2xx status; closed when the context exits

        Raises:
            SerializationError: If the body cannot be serialized
            TransportError: On network failure or timeout
            UpstreamStatusError: On a status outside [200, 300)
        """
        content = self._serialize(body)
        request_headers = {"Content-Type": "application/json"}
        request_headers.update(headers or {})
        url = f"{self.base_url}{path}"

        request = self.client.build_request(
            method,
            url,
            content=content,
            headers=request_headers,
            timeout=self.timeout if self.timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )

        self._log.info(f"Sending HTTP request: {method} {url}")
        self._log.debug(f"Request headers: {mask_headers(request_headers)}")

        try:
            response = await self.client.send(request, stream=True)
        except httpx.RequestError as e:
            self._log.error(f"HTTP request failed: {e!r}")
            raise TransportError(f"Failed to send request: {e!r}", self._provider) from e

        try:
            self._log.info(f"Received HTTP response: {response.status_code}")
            if not response.is_success:
                try:
                    await response.aread()
                except httpx.RequestError as e:
                    raise TransportError(
                        f"Failed to read error body for status {response.status_code}: {e!r}",
                        self._provider,
                    ) from e
                error = UpstreamStatusError(response.status_code, response.text, self._provider)
                self._log.error(error.message)
                raise error
            yield response
        finally:
            await response.aclose()


async def read_body(response: httpx.Response, provider: Optional[str] = None) -> bytes:
    """
    Read an open response body completely.

    Raises:
        TransportError: If reading fails
    """
    try:
        return await response.aread()
    except httpx.RequestError as e:
        raise TransportError(f"Failed to read response body: {e!r}", provider) from e
