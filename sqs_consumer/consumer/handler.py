"""
Message handler contract.

A handler receives one message and signals success by returning normally; raising any
exception marks the message as failed and leaves it on the queue for redelivery.
Handlers are invoked concurrently and must be idempotent: duplicate delivery is normal.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from concurrent.futures import Executor
from typing import Any

from sqs_consumer.exceptions import HandlerTimeoutError
from sqs_consumer.types import Message

# Type alias for message handler functions
Handler = Callable[[Message], Awaitable[Any] | Any]


def is_async_handler(handler: Handler) -> bool:
    """Check whether calling the handler returns a coroutine."""
    if inspect.iscoroutinefunction(handler):
        return True
    call = getattr(handler, "__call__", None)
    return inspect.iscoroutinefunction(call)


async def _within_deadline(awaitable: Awaitable[Any], timeout: float | None) -> Any:
    if timeout is None:
        return await awaitable
    try:
        async with asyncio.timeout(timeout) as deadline:
            return await awaitable
    except TimeoutError:
        # A TimeoutError raised by the handler itself is an ordinary failure
        if deadline.expired():
            raise HandlerTimeoutError(f"Handler exceeded its {timeout}s deadline") from None
        raise


async def call_handler(
    handler: Handler,
    message: Message,
    *,
    timeout: float | None = None,
    executor: Executor | None = None,
) -> Any:
    """
    Invoke a handler for one message.

    Coroutine functions run on the event loop. Plain callables run on ``executor``
    (the loop's default executor if None) so blocking handlers execute in parallel
    without stalling the loop; an awaitable they return is awaited.

    The deadline starts once the handler is running: time spent waiting for a free
    executor thread does not count against it.

    Args:
        handler: The message handler.
        message: The message to handle.
        timeout: Deadline in seconds. None disables it.
        executor: Executor for plain callables.

    Returns:
        Whatever the handler returned.

    Raises:
        HandlerTimeoutError: If the deadline expired.
        Exception: Whatever the handler raised.
    """
    if is_async_handler(handler):
        return await _within_deadline(handler(message), timeout)

    loop = asyncio.get_running_loop()
    started = asyncio.Event()

    def run() -> Any:
        loop.call_soon_threadsafe(started.set)
        return handler(message)

    future = loop.run_in_executor(executor, run)

    async def finish() -> Any:
        result = await future
        if inspect.isawaitable(result):
            result = await result
        return result

    await started.wait()
    return await _within_deadline(finish(), timeout)
