"""
Processor: runs the handler over one batch and deletes what succeeded.
"""

import asyncio
import logging
import time
from concurrent.futures import Executor
from uuid import uuid4

from sqs_consumer.backend.base import QueueBackend
from sqs_consumer.constants import (
    SPAN_DELETE_BATCH,
    SPAN_HANDLE_MESSAGE,
    SPAN_PROCESS_BATCH,
    HandlerStatus,
)
from sqs_consumer.consumer.handler import Handler, call_handler
from sqs_consumer.exceptions import BackendError, HandlerTimeoutError
from sqs_consumer.observability.metrics import MetricsCollector, get_metrics
from sqs_consumer.observability.tracing import get_tracer, set_span_attributes
from sqs_consumer.types import Batch, BatchOutcome, DeleteEntry, Message

logger = logging.getLogger(__name__)


class Processor:
    """
    Processes one batch at a time per call; calls for different batches run concurrently.

    For every message the handler is invoked concurrently. A message whose handler
    raised (or exceeded the deadline) is left on the queue and becomes visible again
    once its lease expires. The receipt handles of all other messages are deleted with
    a single batched call. Delete failures are logged and not retried.
    """

    def __init__(
        self,
        backend: QueueBackend,
        queue_url: str,
        handler: Handler,
        handler_timeout: float | None = None,
        metrics: MetricsCollector | None = None,
        executor: Executor | None = None,
    ):
        """
        Initialize the processor.

        Args:
            backend: Queue backend used for the batched delete.
            queue_url: URL of the queue the batches came from.
            handler: Invoked once per message; a coroutine function or a plain function.
            handler_timeout: Per-message deadline in seconds. None disables it.
            metrics: Metrics collector. Defaults to the process-wide one.
            executor: Executor plain-function handlers run on. Defaults to the loop's.
        """
        self._backend = backend
        self._queue_url = queue_url
        self._handler = handler
        self._handler_timeout = handler_timeout or None
        self._metrics = metrics or get_metrics()
        self._executor = executor

    async def process_batch(self, batch: Batch) -> BatchOutcome:
        """
        Handle every message in the batch and delete the successful ones.

        Args:
            batch: Messages returned by one receive call.

        Returns:
            BatchOutcome with handler and delete counts.
        """
        outcome = BatchOutcome(batch_size=len(batch))

        with get_tracer().start_as_current_span(SPAN_PROCESS_BATCH) as span:
            set_span_attributes(span, queue_url=self._queue_url, batch_size=len(batch))

            results = await asyncio.gather(*(self._handle(message) for message in batch))

            entries = [
                DeleteEntry(id=str(uuid4()), receipt_handle=message.receipt_handle)
                for message, succeeded in zip(batch, results)
                if succeeded
            ]
            outcome.succeeded = len(entries)
            outcome.failed = len(batch) - len(entries)

            if entries:
                await self._delete(entries, outcome)

            set_span_attributes(
                span,
                succeeded=outcome.succeeded,
                failed=outcome.failed,
                deleted=outcome.deleted,
            )

        return outcome

    async def _handle(self, message: Message) -> bool:
        """Invoke the handler for one message. Returns True on success."""
        status = HandlerStatus.SUCCEEDED
        start_time = time.perf_counter()

        with get_tracer().start_as_current_span(SPAN_HANDLE_MESSAGE) as span:
            set_span_attributes(
                span,
                message_id=message.message_id,
                receive_count=message.receive_count,
            )
            try:
                await call_handler(
                    self._handler,
                    message,
                    timeout=self._handler_timeout,
                    executor=self._executor,
                )
            except HandlerTimeoutError:
                status = HandlerStatus.TIMEOUT
                logger.warning(
                    "Handler timed out",
                    extra={
                        "message_id": message.message_id,
                        "timeout_seconds": self._handler_timeout,
                    },
                )
            except Exception as e:
                status = HandlerStatus.FAILED
                span.record_exception(e)
                logger.exception(
                    f"Error while handling message: {e}",
                    extra={
                        "message_id": message.message_id,
                        "receive_count": message.receive_count,
                    },
                )
            set_span_attributes(span, status=status.value)

        self._metrics.record_message_handled(
            self._queue_url,
            status,
            time.perf_counter() - start_time,
        )
        return status is HandlerStatus.SUCCEEDED

    async def _delete(self, entries: list[DeleteEntry], outcome: BatchOutcome) -> None:
        with get_tracer().start_as_current_span(SPAN_DELETE_BATCH) as span:
            set_span_attributes(span, queue_url=self._queue_url, entries=len(entries))
            try:
                result = await self._backend.delete_batch(self._queue_url, entries)
            except BackendError as e:
                outcome.delete_failed = len(entries)
                self._metrics.record_deleted(self._queue_url, 0, len(entries))
                logger.error(
                    "Failed while trying to delete messages",
                    extra={"entries": len(entries), "error": str(e), "code": e.code},
                )
                return

        for failure in result.failed:
            logger.warning(
                "Message was not deleted",
                extra={
                    "entry_id": failure.id,
                    "code": failure.code,
                    "error": failure.message,
                    "sender_fault": failure.sender_fault,
                },
            )

        outcome.deleted = len(result.successful)
        outcome.delete_failed = len(result.failed)
        self._metrics.record_deleted(self._queue_url, outcome.deleted, outcome.delete_failed)
