"""
Consumer: wires receivers, distributor and processor into one pipeline.

    QueueBackend -> Receiver x N -> BatchChannel -> Distributor -> Processor -> QueueBackend
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from sqs_consumer.backend.base import QueueBackend
from sqs_consumer.consumer.channel import BatchChannel
from sqs_consumer.consumer.distributor import Distributor
from sqs_consumer.consumer.handler import Handler, is_async_handler
from sqs_consumer.consumer.processor import Processor
from sqs_consumer.consumer.receiver import PollPacer, Receiver
from sqs_consumer.consumer.shutdown import ShutdownCoordinator
from sqs_consumer.exceptions import ConsumerError
from sqs_consumer.observability.metrics import MetricsCollector, get_metrics
from sqs_consumer.types import ConsumerConfig

logger = logging.getLogger(__name__)


class Consumer:
    """
    Concurrent queue consumer.

    Features:
    - N parallel receivers polling the same queue
    - One processing task per received batch, optionally bounded
    - Concurrent handler calls within a batch, optional per-message deadline;
      plain-function handlers run on a thread pool owned by the consumer
    - Only successfully handled messages are deleted, in one batched call
    - Graceful shutdown: receivers stop, the channel is closed once, in-flight
      batches run to completion

    ``start`` blocks until the pipeline has shut down and drained. Run it inside
    ``asyncio.create_task`` to consume in the background.
    """

    def __init__(
        self,
        backend: QueueBackend,
        handler: Handler,
        config: ConsumerConfig,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the consumer.

        Args:
            backend: Queue backend to receive from and delete through.
            handler: Called once per message; a coroutine function or a plain function.
            config: Consumer configuration.
            metrics: Metrics collector. Defaults to the process-wide one.
        """
        self._backend = backend
        self._handler = handler
        self._config = config
        self._metrics = metrics or get_metrics()
        self._pacer = PollPacer(config.poll_delay_ms)
        self._shutdown = ShutdownCoordinator()
        self._started = False
        self._running = False

    @property
    def config(self) -> ConsumerConfig:
        return self._config

    @property
    def queue_url(self) -> str:
        return self._config.queue_url

    @property
    def running(self) -> bool:
        return self._running

    @property
    def poll_delay_ms(self) -> int:
        """Current delay between two polls of a receiver."""
        return self._pacer.delay_ms

    def set_poll_delay(self, milliseconds: int) -> None:
        """
        Change the delay between polls for all receivers, without restarting.

        Raises:
            ValueError: If the delay is negative.
        """
        self._pacer.delay_ms = milliseconds
        logger.info("Poll delay changed", extra={"poll_delay_ms": milliseconds})

    def stop(self) -> None:
        """Signal the pipeline to shut down. Idempotent."""
        self._shutdown.trigger()

    async def start(self, stop_event: asyncio.Event | None = None) -> None:
        """
        Run the pipeline until shutdown is signalled and all work has drained.

        Args:
            stop_event: Optional cancellation token. Setting it has the same effect as
                calling ``stop``; the caller decides what sets it (signal, timer, ...).

        Raises:
            ConsumerError: If the consumer has already been started.
        """
        if self._started:
            raise ConsumerError("Consumer has already been started")
        self._started = True
        self._running = True

        relay: asyncio.Task | None = None
        if stop_event is not None:
            relay = asyncio.create_task(self._relay_stop(stop_event))

        executor: ThreadPoolExecutor | None = None
        if not is_async_handler(self._handler):
            executor = ThreadPoolExecutor(
                max_workers=self._config.handler_pool_size,
                thread_name_prefix="sqs-handler",
            )

        channel = BatchChannel(self._config.channel_size)
        processor = Processor(
            self._backend,
            self.queue_url,
            self._handler,
            handler_timeout=self._config.handler_deadline,
            metrics=self._metrics,
            executor=executor,
        )
        distributor = Distributor(
            channel,
            processor,
            self.queue_url,
            max_in_flight=self._config.max_in_flight_batches,
            metrics=self._metrics,
        )

        logger.info(
            "Starting to consume",
            extra={
                "queue_url": self.queue_url,
                "receivers": self._config.receivers,
                "max_number_of_messages": self._config.max_number_of_messages,
                "max_in_flight_batches": self._config.max_in_flight_batches,
            },
        )

        receivers = [
            asyncio.create_task(
                Receiver(
                    self._backend,
                    self._config,
                    channel,
                    self._shutdown,
                    self._pacer,
                    metrics=self._metrics,
                    name=f"receiver-{i}",
                ).run(),
                name=f"receiver-{i}",
            )
            for i in range(self._config.receivers)
        ]
        closer = asyncio.create_task(
            self._shutdown.close_after(channel, receivers), name="channel-closer"
        )

        try:
            await distributor.run()
            await closer
        finally:
            for task in (*receivers, closer):
                if not task.done():
                    task.cancel()
            if relay is not None:
                relay.cancel()
            if executor is not None:
                # Threads of timed-out handlers may still be running; do not block the loop
                executor.shutdown(wait=False, cancel_futures=True)
            self._running = False

        logger.info(
            "Consumer stopped",
            extra={"queue_url": self.queue_url, "batches": distributor.dispatched},
        )

    async def _relay_stop(self, stop_event: asyncio.Event) -> None:
        await stop_event.wait()
        self.stop()
