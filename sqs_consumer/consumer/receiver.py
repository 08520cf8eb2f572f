"""
Receiver: long-lived poll loop feeding the batch channel.
"""

import logging

from sqs_consumer.backend.base import QueueBackend
from sqs_consumer.constants import (
    MESSAGE_ATTRIBUTE_NAMES,
    MESSAGE_SYSTEM_ATTRIBUTE_NAMES,
    SPAN_RECEIVE_BATCH,
)
from sqs_consumer.consumer.channel import BatchChannel
from sqs_consumer.consumer.shutdown import ShutdownCoordinator
from sqs_consumer.exceptions import ReceiveError
from sqs_consumer.observability.metrics import MetricsCollector, get_metrics
from sqs_consumer.observability.tracing import get_tracer, set_span_attributes
from sqs_consumer.types import Batch, ConsumerConfig

logger = logging.getLogger(__name__)


class PollPacer:
    """
    Delay applied between two polls of the same receiver.

    One pacer is shared by all receivers of a consumer, so changing the delay takes
    effect for every receiver on its next iteration.
    """

    def __init__(self, delay_ms: int = 0):
        self._delay_ms = 0
        self.delay_ms = delay_ms

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @delay_ms.setter
    def delay_ms(self, value: int) -> None:
        if value < 0:
            raise ValueError("Poll delay must be non-negative")
        self._delay_ms = int(value)

    @property
    def delay_seconds(self) -> float:
        return self._delay_ms / 1000


class Receiver:
    """
    Polls the queue and publishes non-empty batches onto the channel.

    Loop:
    1. Stop if shutdown has been signalled
    2. Receive up to ``max_number_of_messages`` messages
    3. On error: log, wait the fixed error delay, retry
    4. Publish a non-empty batch (blocks while the channel is full)
    5. Wait the pacing delay, also after an empty receive
    """

    def __init__(
        self,
        backend: QueueBackend,
        config: ConsumerConfig,
        channel: BatchChannel,
        shutdown: ShutdownCoordinator,
        pacer: PollPacer,
        metrics: MetricsCollector | None = None,
        name: str = "receiver-0",
    ):
        self._backend = backend
        self._config = config
        self._channel = channel
        self._shutdown = shutdown
        self._pacer = pacer
        self._metrics = metrics or get_metrics()
        self.name = name

    async def run(self) -> None:
        """Poll until shutdown is signalled."""
        queue_url = self._config.queue_url
        logger.info("Receiver started", extra={"receiver": self.name, "queue_url": queue_url})

        while not self._shutdown.is_set:
            try:
                batch = await self._receive()
            except ReceiveError as e:
                self._metrics.record_receive_error(queue_url)
                logger.warning(
                    "Could not read from queue",
                    extra={"receiver": self.name, "error": str(e), "code": e.code},
                )
                await self._shutdown.sleep(self._config.receive_error_delay_seconds)
                continue
            except Exception as e:
                self._metrics.record_receive_error(queue_url)
                logger.exception(
                    f"Unexpected error while reading from queue: {e}",
                    extra={"receiver": self.name},
                )
                await self._shutdown.sleep(self._config.receive_error_delay_seconds)
                continue

            if batch:
                await self._channel.publish(batch)

            await self._shutdown.sleep(self._pacer.delay_seconds)

        logger.info("Shutting down message receiver", extra={"receiver": self.name})

    async def _receive(self) -> Batch:
        queue_url = self._config.queue_url
        with get_tracer().start_as_current_span(SPAN_RECEIVE_BATCH) as span:
            batch = await self._backend.receive(
                queue_url,
                max_messages=self._config.max_number_of_messages,
                visibility_timeout=self._config.visibility_timeout,
                message_attribute_names=MESSAGE_ATTRIBUTE_NAMES,
                system_attribute_names=MESSAGE_SYSTEM_ATTRIBUTE_NAMES,
                wait_time_seconds=self._config.wait_time_seconds,
            )
            set_span_attributes(span, queue_url=queue_url, batch_size=len(batch))

        self._metrics.record_receive(queue_url, len(batch))
        if batch:
            logger.debug(
                f"Received {len(batch)} messages",
                extra={"receiver": self.name, "batch_size": len(batch)},
            )
        return batch
