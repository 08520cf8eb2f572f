"""
In-memory queue backend.

Implements the visibility-lease semantics of SQS inside the process: a receive hides
each returned message for the visibility timeout and hands out a fresh receipt handle;
only the receipt handle of the latest delivery can delete the message. Once the lease
expires without a delete the message becomes receivable again; its old handle keeps
working until the message is received again.

Useful for local runs (``BACKEND=memory``) and tests. Not shared between processes.
"""
from __future__ import annotations

import asyncio
import threading
import time
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqs_consumer.constants import (
    MESSAGE_ATTRIBUTE_NAMES,
    MESSAGE_SYSTEM_ATTRIBUTE_NAMES,
    RECEIPT_HANDLE_INVALID,
    SYSTEM_ATTRIBUTE_FIRST_RECEIVE_TIMESTAMP,
    SYSTEM_ATTRIBUTE_RECEIVE_COUNT,
    SYSTEM_ATTRIBUTE_SENT_TIMESTAMP,
)
from sqs_consumer.exceptions import DeleteError, ReceiveError
from sqs_consumer.types import DeleteEntry, DeleteFailure, DeleteResult, Message

QUEUE_URL_PREFIX = "memory://queue/"

# Interval at which a long poll re-checks for visible messages
_LONG_POLL_INTERVAL_SECONDS = 0.05


def _now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class _StoredMessage:
    message_id: str
    body: str
    message_attributes: dict[str, dict[str, Any]]
    sent_at_millis: int
    visible_at: float
    receive_count: int = 0
    first_received_at_millis: int | None = None
    receipt_handle: str | None = None

    def deliver(self, now: float, visibility_timeout: int) -> str:
        self.receive_count += 1
        if self.first_received_at_millis is None:
            self.first_received_at_millis = _now_millis()
        self.receipt_handle = uuid.uuid4().hex
        self.visible_at = now + visibility_timeout
        return self.receipt_handle

    def to_message(
        self,
        receipt_handle: str,
        system_attribute_names: Sequence[str],
        include_message_attributes: bool,
    ) -> Message:
        available = {
            SYSTEM_ATTRIBUTE_SENT_TIMESTAMP: str(self.sent_at_millis),
            SYSTEM_ATTRIBUTE_FIRST_RECEIVE_TIMESTAMP: str(self.first_received_at_millis),
            SYSTEM_ATTRIBUTE_RECEIVE_COUNT: str(self.receive_count),
        }
        if "All" in system_attribute_names:
            attributes = available
        else:
            attributes = {k: v for k, v in available.items() if k in system_attribute_names}
        return Message(
            message_id=self.message_id,
            receipt_handle=receipt_handle,
            body=self.body,
            attributes=attributes,
            message_attributes=dict(self.message_attributes) if include_message_attributes else {},
        )


@dataclass
class _Queue:
    messages: dict[str, _StoredMessage] = field(default_factory=dict)


class InMemoryBackend:
    """QueueBackend implementation that keeps queues in process memory."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the backend.

        Args:
            clock: Monotonic clock in seconds used for visibility leases.
        """
        self._clock = clock
        self._queues: dict[str, _Queue] = {}
        # send() may be called from handler threads
        self._lock = threading.Lock()

    def create_queue(self, name: str) -> str:
        """Create a queue if it does not exist and return its URL."""
        url = name if name.startswith(QUEUE_URL_PREFIX) else f"{QUEUE_URL_PREFIX}{name}"
        with self._lock:
            self._queues.setdefault(url, _Queue())
        return url

    def _get_queue(self, queue_url: str) -> _Queue | None:
        return self._queues.get(queue_url)

    def send(
        self,
        queue_url: str,
        body: str,
        message_attributes: Mapping[str, Mapping[str, Any]] | None = None,
        delay_seconds: float = 0,
    ) -> str:
        """
        Put a message on the queue.

        Returns:
            The new message id.

        Raises:
            KeyError: If the queue does not exist.
        """
        message_id = str(uuid.uuid4())
        with self._lock:
            queue = self._get_queue(queue_url)
            if queue is None:
                raise KeyError(f"Queue does not exist: {queue_url}")
            queue.messages[message_id] = _StoredMessage(
                message_id=message_id,
                body=body,
                message_attributes={k: dict(v) for k, v in (message_attributes or {}).items()},
                sent_at_millis=_now_millis(),
                visible_at=self._clock() + delay_seconds,
            )
        return message_id

    def approximate_number_of_messages(self, queue_url: str) -> int:
        """Number of messages currently visible."""
        now = self._clock()
        with self._lock:
            queue = self._queues[queue_url]
            return sum(1 for m in queue.messages.values() if m.visible_at <= now)

    def approximate_number_of_messages_not_visible(self, queue_url: str) -> int:
        """Number of messages currently leased to a consumer."""
        now = self._clock()
        with self._lock:
            queue = self._queues[queue_url]
            return sum(1 for m in queue.messages.values() if m.visible_at > now)

    def total_messages(self, queue_url: str) -> int:
        """Number of messages not yet deleted, visible or not."""
        with self._lock:
            return len(self._queues[queue_url].messages)

    def _receive_now(
        self,
        queue_url: str,
        max_messages: int,
        visibility_timeout: int,
        message_attribute_names: Sequence[str],
        system_attribute_names: Sequence[str],
    ) -> list[Message]:
        now = self._clock()
        with self._lock:
            queue = self._get_queue(queue_url)
            if queue is None:
                raise ReceiveError(
                    f"Queue does not exist: {queue_url}",
                    code="AWS.SimpleQueueService.NonExistentQueue",
                )
            batch: list[Message] = []
            for stored in queue.messages.values():
                if len(batch) >= max_messages:
                    break
                if stored.visible_at > now:
                    continue
                receipt_handle = stored.deliver(now, visibility_timeout)
                batch.append(
                    stored.to_message(
                        receipt_handle,
                        system_attribute_names,
                        bool(message_attribute_names),
                    )
                )
            return batch

    async def receive(
        self,
        queue_url: str,
        *,
        max_messages: int,
        visibility_timeout: int,
        message_attribute_names: Sequence[str] = MESSAGE_ATTRIBUTE_NAMES,
        system_attribute_names: Sequence[str] = MESSAGE_SYSTEM_ATTRIBUTE_NAMES,
        wait_time_seconds: int = 0,
    ) -> list[Message]:
        deadline = self._clock() + wait_time_seconds
        while True:
            batch = self._receive_now(
                queue_url,
                max_messages,
                visibility_timeout,
                message_attribute_names,
                system_attribute_names,
            )
            remaining = deadline - self._clock()
            if batch or remaining <= 0:
                return batch
            await asyncio.sleep(min(_LONG_POLL_INTERVAL_SECONDS, remaining))

    async def delete_batch(
        self,
        queue_url: str,
        entries: Sequence[DeleteEntry],
    ) -> DeleteResult:
        if not entries:
            raise DeleteError("Delete batch must contain at least one entry", code="EmptyBatchRequest")
        if len({entry.id for entry in entries}) != len(entries):
            raise DeleteError("Delete batch entry ids must be distinct", code="BatchEntryIdsNotDistinct")

        result = DeleteResult()
        with self._lock:
            queue = self._get_queue(queue_url)
            if queue is None:
                raise DeleteError(
                    f"Queue does not exist: {queue_url}",
                    code="AWS.SimpleQueueService.NonExistentQueue",
                )
            by_handle = {
                stored.receipt_handle: stored.message_id
                for stored in queue.messages.values()
                if stored.receipt_handle is not None
            }
            for entry in entries:
                message_id = by_handle.pop(entry.receipt_handle, None)
                if message_id is None:
                    result.failed.append(
                        DeleteFailure(
                            id=entry.id,
                            code=RECEIPT_HANDLE_INVALID,
                            message="The receipt handle is not valid for a current delivery",
                            sender_fault=True,
                        )
                    )
                    continue
                del queue.messages[message_id]
                result.successful.append(entry.id)
        return result
