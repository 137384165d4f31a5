"""
Helpers used by the HTTP handlers to drive a provider.
"""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar, Union

from ..core.errors import ProviderError, TransportError, UpstreamStatusError
from ..core.interface import AIProvider
from ..core.stream import Sink
from ..models.request import ChatCall

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def dispatch(
    provider: AIProvider,
    call: ChatCall,
    timeout: Optional[float] = None,
) -> str:
    """Run a unary call with whichever operation matches its input."""
    if call.has_history:
        return await provider.chat_with_history(call.model, call.history(), timeout=timeout)
    return await provider.chat(call.model, call.message, timeout=timeout)


async def dispatch_stream(
    provider: AIProvider,
    call: ChatCall,
    sink: Sink,
    timeout: Optional[float] = None,
) -> None:
    """Run a streaming call with whichever operation matches its input."""
    if call.has_history:
        await provider.chat_stream_with_history(call.model, call.history(), sink, timeout=timeout)
    else:
        await provider.chat_stream(call.model, call.message, sink, timeout=timeout)


def is_retryable(error: Exception) -> bool:
    """Network failures and upstream 5xx replies are worth another attempt."""
    if isinstance(error, UpstreamStatusError):
        return error.status_code >= 500
    return isinstance(error, TransportError)


async def call_with_retries(
    operation: Callable[[], Awaitable[T]],
    max_retries: int,
    backoff: float = 0.5,
    max_backoff: float = 4.0,
) -> T:
    """
    Re-invoke a whole provider operation on retryable failures.

    Args:
        operation: Zero-argument callable starting a fresh attempt
        max_retries: Additional attempts after the first
        backoff: Delay before the first retry, doubled on each retry

    Returns:
        Result of the first successful attempt
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except ProviderError as e:
            if attempt >= max_retries or not is_retryable(e):
                raise
            delay = min(max_backoff, backoff * (2 ** attempt))
            attempt += 1
            logger.warning(f"Provider call failed ({e.message}); retry {attempt}/{max_retries} in {delay:.1f}s")
            await asyncio.sleep(delay)


_DONE = object()


class FragmentStream:
    """
    Bridge from a provider's sink callback to an async iterator.

    The provider call runs in its own task and pushes fragments into a
    bounded queue; iteration yields them in order. `first()` waits for the
    first item so errors raised before any output can still be reported
    as a normal HTTP error.
    """

    def __init__(
        self,
        provider: AIProvider,
        call: ChatCall,
        timeout: Optional[float] = None,
        max_pending: int = 32,
    ):
        self._provider = provider
        self._call = call
        self._timeout = timeout
        self._queue: "asyncio.Queue[Union[str, BaseException, object]]" = asyncio.Queue(max_pending)
        self._task: Optional[asyncio.Task] = None
        self._pending = None

    async def _produce(self) -> None:
        try:
            await dispatch_stream(self._provider, self._call, self._queue.put, self._timeout)
        except Exception as e:
            await self._queue.put(e)
        else:
            await self._queue.put(_DONE)

    async def first(self) -> None:
        """
        Start the call and wait for its first item.

        Raises:
            Exception: Whatever the call raised before producing output
        """
        self._task = asyncio.create_task(self._produce())
        item = await self._queue.get()
        if isinstance(item, BaseException):
            await self.aclose()
            raise item
        self._pending = item

    async def __aiter__(self) -> AsyncIterator[Union[str, Exception]]:
        """Yield fragments; a trailing exception is yielded, not raised."""
        try:
            item = self._pending
            while item is not _DONE:
                if isinstance(item, BaseException):
                    logger.error(f"Stream failed after output started: {item}")
                    yield item
                    return
                yield item
                item = await self._queue.get()
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
