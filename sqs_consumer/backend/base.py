"""Port: queue backend the consumer pipeline receives from and deletes through."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from sqs_consumer.constants import MESSAGE_ATTRIBUTE_NAMES, MESSAGE_SYSTEM_ATTRIBUTE_NAMES
from sqs_consumer.types import DeleteEntry, DeleteResult, Message


@runtime_checkable
class QueueBackend(Protocol):
    """
    Receive and batched-delete capability of a managed queue.

    Implementations must be safe to share between concurrent callers.
    """

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
        """
        Receive up to ``max_messages`` messages, leasing each for ``visibility_timeout`` seconds.

        An empty list means no message was available; it is not an error.
        Raises ReceiveError when the call fails.
        """
        ...

    async def delete_batch(
        self,
        queue_url: str,
        entries: Sequence[DeleteEntry],
    ) -> DeleteResult:
        """
        Delete the deliveries identified by the entries' receipt handles.

        Individual entries may fail; those are reported in the result. A backend that
        splits the entries over several requests reports a failed request as failed
        entries, keeping the outcome of the others. Raises DeleteError when the call is
        rejected as a whole.
        """
        ...
