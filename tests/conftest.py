"""
Pytest configuration and shared fixtures.
"""

import asyncio
from collections import deque
from collections.abc import Callable, Sequence
from typing import Any
from uuid import uuid4

import pytest
from prometheus_client import CollectorRegistry

from sqs_consumer.backend.memory import InMemoryBackend
from sqs_consumer.consumer.channel import BatchChannel
from sqs_consumer.consumer.shutdown import ShutdownCoordinator
from sqs_consumer.constants import MESSAGE_ATTRIBUTE_NAMES, MESSAGE_SYSTEM_ATTRIBUTE_NAMES
from sqs_consumer.observability.metrics import MetricsCollector
from sqs_consumer.types import ConsumerConfig, DeleteEntry, DeleteResult, Message

TEST_QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/test-queue"


class FakeBackend:
    """
    Scripted QueueBackend.

    Receive calls pop results from ``receive_results`` (a list of messages, or an
    exception to raise); once exhausted they return ``default_batch``. Delete calls are
    recorded and succeed unless ``delete_error`` is set.
    """

    def __init__(self) -> None:
        self.receive_results: deque[Any] = deque()
        self.default_batch: Callable[[], list[Message]] | None = None
        self.receive_calls = 0
        self.receive_kwargs: list[dict[str, Any]] = []
        self.delete_calls: list[list[DeleteEntry]] = []
        self.delete_error: Exception | None = None
        self.delete_result: Callable[[Sequence[DeleteEntry]], DeleteResult] | None = None
        self.stop_event: asyncio.Event | None = None
        self.receive_calls_after_stop = 0

    @property
    def deleted_handles(self) -> list[str]:
        return [entry.receipt_handle for call in self.delete_calls for entry in call]

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
        if self.stop_event is not None and self.stop_event.is_set():
            self.receive_calls_after_stop += 1
        self.receive_calls += 1
        self.receive_kwargs.append(
            {
                "queue_url": queue_url,
                "max_messages": max_messages,
                "visibility_timeout": visibility_timeout,
                "message_attribute_names": list(message_attribute_names),
                "system_attribute_names": list(system_attribute_names),
                "wait_time_seconds": wait_time_seconds,
            }
        )
        await asyncio.sleep(0)

        if self.receive_results:
            result = self.receive_results.popleft()
            if isinstance(result, Exception):
                raise result
            return list(result)
        if self.default_batch is not None:
            return self.default_batch()
        return []

    async def delete_batch(
        self,
        queue_url: str,
        entries: Sequence[DeleteEntry],
    ) -> DeleteResult:
        self.delete_calls.append(list(entries))
        await asyncio.sleep(0)
        if self.delete_error is not None:
            raise self.delete_error
        if self.delete_result is not None:
            return self.delete_result(entries)
        return DeleteResult(successful=[entry.id for entry in entries])


def build_message(index: int = 0, body: str | None = None) -> Message:
    """Create a test message with a unique receipt handle."""
    return Message(
        message_id=f"msg-{index}",
        receipt_handle=f"handle-{index}-{uuid4().hex[:8]}",
        body=body if body is not None else f"body-{index}",
        attributes={"ApproximateReceiveCount": "1", "SentTimestamp": "1700000000000"},
    )


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` until it is true, failing the test after ``timeout`` seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("Condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector with an isolated registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def memory_backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def make_message() -> Callable[..., Message]:
    return build_message


@pytest.fixture
def make_batch() -> Callable[[int], list[Message]]:
    """Factory for batches of distinct messages."""
    counter = iter(range(1_000_000))

    def factory(size: int) -> list[Message]:
        return [build_message(next(counter)) for _ in range(size)]

    return factory


@pytest.fixture
def consumer_config() -> ConsumerConfig:
    """Consumer configuration with short delays for tests."""
    return ConsumerConfig(
        queue_url=TEST_QUEUE_URL,
        max_number_of_messages=10,
        visibility_timeout=30,
        receivers=1,
        poll_delay_ms=1,
        receive_error_delay_seconds=0.01,
    )


@pytest.fixture
def channel() -> BatchChannel:
    return BatchChannel(maxsize=1)


@pytest.fixture
def shutdown() -> ShutdownCoordinator:
    return ShutdownCoordinator()


@pytest.fixture
def eventually() -> Callable[..., Any]:
    """Expose ``wait_until`` to tests."""
    return wait_until
