"""
Bounded channel between the receivers and the distributor.
"""

import asyncio
from collections.abc import AsyncIterator

from sqs_consumer.exceptions import ChannelClosedError
from sqs_consumer.types import Batch

# Marks the end of the stream; enqueued once by close()
_END_OF_STREAM = object()


class BatchChannel:
    """
    Bounded FIFO of batches with an explicit end-of-stream.

    ``publish`` blocks while the channel is full; this is what stops receivers from
    running ahead of processing. Iterating the channel yields batches until it has been
    closed and drained.
    """

    def __init__(self, maxsize: int = 1):
        if maxsize < 1:
            raise ValueError("Channel size must be at least 1")
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        """Number of items currently buffered, including the end-of-stream marker."""
        return self._queue.qsize()

    def full(self) -> bool:
        return self._queue.full()

    async def publish(self, batch: Batch) -> None:
        """
        Put a batch on the channel, waiting for room if it is full.

        Raises:
            ChannelClosedError: If the channel has been closed.
        """
        if self._closed:
            raise ChannelClosedError("Cannot publish to a closed channel")
        await self._queue.put(batch)

    async def close(self) -> None:
        """
        Close the channel. Batches already published are still delivered.

        Raises:
            ChannelClosedError: If the channel is already closed.
        """
        if self._closed:
            raise ChannelClosedError("Channel is already closed")
        self._closed = True
        await self._queue.put(_END_OF_STREAM)

    async def __aiter__(self) -> AsyncIterator[Batch]:
        while True:
            item = await self._queue.get()
            if item is _END_OF_STREAM:
                return
            yield item  # type: ignore[misc]
