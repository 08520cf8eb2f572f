"""
Distributor: turns every batch on the channel into a processing task.
"""

import asyncio
import logging

from sqs_consumer.consumer.channel import BatchChannel
from sqs_consumer.consumer.processor import Processor
from sqs_consumer.observability.metrics import MetricsCollector, get_metrics
from sqs_consumer.types import Batch, BatchOutcome

logger = logging.getLogger(__name__)


class Distributor:
    """
    Reads batches until the channel is closed and starts one Processor task per batch.

    With ``max_in_flight`` set, the distributor stops reading from the channel while that
    many batches are being processed; the channel then fills up and receivers block.
    After the channel is closed, every dispatched batch is awaited before ``run`` returns.
    """

    def __init__(
        self,
        channel: BatchChannel,
        processor: Processor,
        queue_url: str,
        max_in_flight: int = 0,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the distributor.

        Args:
            channel: Channel to read batches from.
            processor: Processor each batch is handed to.
            queue_url: Queue URL, used as metrics label.
            max_in_flight: Maximum number of concurrently processed batches. 0 = unbounded.
            metrics: Metrics collector. Defaults to the process-wide one.
        """
        self._channel = channel
        self._processor = processor
        self._queue_url = queue_url
        self._semaphore = asyncio.Semaphore(max_in_flight) if max_in_flight > 0 else None
        self._metrics = metrics or get_metrics()
        self._tasks: set[asyncio.Task[BatchOutcome]] = set()
        self._dispatched = 0

    @property
    def in_flight(self) -> int:
        """Number of batches currently being processed."""
        return len(self._tasks)

    @property
    def dispatched(self) -> int:
        """Total number of batches handed to the processor."""
        return self._dispatched

    async def run(self) -> None:
        """Dispatch batches until the channel is closed, then wait for in-flight batches."""
        async for batch in self._channel:
            if self._semaphore is not None:
                await self._semaphore.acquire()
            task = asyncio.create_task(self._process(batch))
            self._tasks.add(task)
            task.add_done_callback(self._on_done)
            self._dispatched += 1

        if self._tasks:
            logger.info(f"Waiting for {self.in_flight} batches to complete")
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

        logger.info("Distributor stopped", extra={"batches": self.dispatched})

    async def _process(self, batch: Batch) -> BatchOutcome:
        self._metrics.batch_started(self._queue_url)
        try:
            return await self._processor.process_batch(batch)
        finally:
            self._metrics.batch_finished(self._queue_url)
            if self._semaphore is not None:
                self._semaphore.release()

    def _on_done(self, task: asyncio.Task[BatchOutcome]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled error while processing batch", exc_info=exc)
