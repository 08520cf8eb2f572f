"""
Unit tests for the SQS backend, using botocore's Stubber.
"""

import boto3
import pytest
from botocore.stub import Stubber

from sqs_consumer.backend import factory
from sqs_consumer.backend.factory import create_backend
from sqs_consumer.backend.memory import InMemoryBackend
from sqs_consumer.backend.sqs import SqsBackend, create_sqs_client, parse_delete_response
from sqs_consumer.config import Settings
from sqs_consumer.constants import MESSAGE_ATTRIBUTE_NAMES, MESSAGE_SYSTEM_ATTRIBUTE_NAMES
from sqs_consumer.exceptions import ConfigurationError, ReceiveError
from sqs_consumer.types import DeleteEntry

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/orders"


@pytest.fixture
def sqs_client():
    return boto3.client(
        "sqs",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(sqs_client):
    with Stubber(sqs_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def backend(sqs_client) -> SqsBackend:
    return SqsBackend(sqs_client)


def receive_params(**overrides) -> dict:
    params = {
        "QueueUrl": QUEUE_URL,
        "MaxNumberOfMessages": 10,
        "VisibilityTimeout": 30,
        "MessageAttributeNames": list(MESSAGE_ATTRIBUTE_NAMES),
        "MessageSystemAttributeNames": list(MESSAGE_SYSTEM_ATTRIBUTE_NAMES),
        "WaitTimeSeconds": 0,
    }
    params.update(overrides)
    return params


def entries(count: int) -> list[DeleteEntry]:
    return [DeleteEntry(id=f"id-{i}", receipt_handle=f"rh-{i}") for i in range(count)]


class TestReceive:
    """Tests for SqsBackend.receive."""

    @pytest.mark.asyncio
    async def test_receive_parses_messages(self, backend, stubber):
        """Test that a ReceiveMessage response becomes Message objects."""
        stubber.add_response(
            "receive_message",
            {
                "Messages": [
                    {
                        "MessageId": "m-1",
                        "ReceiptHandle": "rh-1",
                        "Body": "hello",
                        "Attributes": {"ApproximateReceiveCount": "2"},
                        "MessageAttributes": {
                            "type": {"StringValue": "order", "DataType": "String"}
                        },
                    }
                ]
            },
            receive_params(),
        )

        batch = await backend.receive(QUEUE_URL, max_messages=10, visibility_timeout=30)

        assert len(batch) == 1
        assert batch[0].receipt_handle == "rh-1"
        assert batch[0].receive_count == 2
        assert batch[0].get_attribute("type") == "order"

    @pytest.mark.asyncio
    async def test_receive_empty(self, backend, stubber):
        """Test that a response without messages is an empty batch."""
        stubber.add_response("receive_message", {}, receive_params(WaitTimeSeconds=5))

        batch = await backend.receive(
            QUEUE_URL, max_messages=10, visibility_timeout=30, wait_time_seconds=5
        )

        assert batch == []

    @pytest.mark.asyncio
    async def test_receive_client_error(self, backend, stubber):
        """Test that service errors surface as ReceiveError with the error code."""
        stubber.add_client_error(
            "receive_message",
            service_error_code="AWS.SimpleQueueService.NonExistentQueue",
            http_status_code=400,
        )

        with pytest.raises(ReceiveError) as exc_info:
            await backend.receive(QUEUE_URL, max_messages=10, visibility_timeout=30)

        assert exc_info.value.code == "AWS.SimpleQueueService.NonExistentQueue"


class TestDeleteBatch:
    """Tests for SqsBackend.delete_batch."""

    @pytest.mark.asyncio
    async def test_delete_single_call(self, backend, stubber):
        """Test that up to ten entries go out in one request."""
        batch = entries(3)
        stubber.add_response(
            "delete_message_batch",
            {"Successful": [{"Id": e.id} for e in batch], "Failed": []},
            {
                "QueueUrl": QUEUE_URL,
                "Entries": [{"Id": e.id, "ReceiptHandle": e.receipt_handle} for e in batch],
            },
        )

        result = await backend.delete_batch(QUEUE_URL, batch)

        assert result.successful == ["id-0", "id-1", "id-2"]
        assert result.failed == []

    @pytest.mark.asyncio
    async def test_delete_chunks_by_service_limit(self, backend, stubber):
        """Test that more than ten entries are split across requests."""
        batch = entries(12)
        for chunk in (batch[:10], batch[10:]):
            stubber.add_response(
                "delete_message_batch",
                {"Successful": [{"Id": e.id} for e in chunk], "Failed": []},
                {
                    "QueueUrl": QUEUE_URL,
                    "Entries": [{"Id": e.id, "ReceiptHandle": e.receipt_handle} for e in chunk],
                },
            )

        result = await backend.delete_batch(QUEUE_URL, batch)

        assert len(result.successful) == 12

    @pytest.mark.asyncio
    async def test_delete_partial_failure(self, backend, stubber):
        """Test that per-entry failures are reported, not raised."""
        batch = entries(2)
        stubber.add_response(
            "delete_message_batch",
            {
                "Successful": [{"Id": "id-0"}],
                "Failed": [
                    {
                        "Id": "id-1",
                        "SenderFault": True,
                        "Code": "ReceiptHandleIsInvalid",
                        "Message": "The input receipt handle is invalid.",
                    }
                ],
            },
        )

        result = await backend.delete_batch(QUEUE_URL, batch)

        assert result.successful == ["id-0"]
        assert result.failed[0].id == "id-1"
        assert result.failed[0].code == "ReceiptHandleIsInvalid"
        assert result.failed[0].sender_fault is True

    @pytest.mark.asyncio
    async def test_delete_client_error(self, backend, stubber):
        """Test that a rejected request reports every entry as failed."""
        stubber.add_client_error(
            "delete_message_batch", service_error_code="ServiceUnavailable", http_status_code=503
        )

        result = await backend.delete_batch(QUEUE_URL, entries(2))

        assert result.successful == []
        assert [failure.id for failure in result.failed] == ["id-0", "id-1"]
        assert all(failure.code == "ServiceUnavailable" for failure in result.failed)

    @pytest.mark.asyncio
    async def test_delete_later_chunk_error_keeps_earlier_results(self, backend, stubber):
        """Test that a failed second request does not discard the first one's deletes."""
        batch = entries(12)
        stubber.add_response(
            "delete_message_batch",
            {"Successful": [{"Id": e.id} for e in batch[:10]], "Failed": []},
        )
        stubber.add_client_error(
            "delete_message_batch", service_error_code="ServiceUnavailable", http_status_code=503
        )

        result = await backend.delete_batch(QUEUE_URL, batch)

        assert result.successful == [e.id for e in batch[:10]]
        assert [failure.id for failure in result.failed] == ["id-10", "id-11"]
        assert result.failed[0].code == "ServiceUnavailable"
        assert result.failed[0].sender_fault is False

    def test_parse_delete_response_defaults(self):
        """Test parsing a response with missing optional fields."""
        result = parse_delete_response({"Failed": [{"Id": "x"}]})

        assert result.successful == []
        assert result.failed[0].code == ""
        assert result.failed[0].sender_fault is False


class TestQueueResolution:
    """Tests for queue lookup and verification."""

    def test_resolve_queue_url(self, backend, stubber):
        """Test resolving a queue URL by name."""
        stubber.add_response("get_queue_url", {"QueueUrl": QUEUE_URL}, {"QueueName": "orders"})

        assert backend.resolve_queue_url("orders") == QUEUE_URL

    def test_resolve_missing_queue(self, backend, stubber):
        """Test that an unknown queue name is a configuration error."""
        stubber.add_client_error(
            "get_queue_url", service_error_code="AWS.SimpleQueueService.NonExistentQueue"
        )

        with pytest.raises(ConfigurationError):
            backend.resolve_queue_url("missing")

    def test_verify_queue(self, backend, stubber):
        """Test that a reachable queue passes verification."""
        stubber.add_response(
            "get_queue_attributes",
            {"Attributes": {"QueueArn": "arn:aws:sqs:us-east-1:123456789012:orders"}},
            {"QueueUrl": QUEUE_URL, "AttributeNames": ["QueueArn"]},
        )

        backend.verify_queue(QUEUE_URL)

    def test_verify_queue_access_denied(self, backend, stubber):
        """Test that an unreachable queue is a configuration error."""
        stubber.add_client_error("get_queue_attributes", service_error_code="AccessDenied")

        with pytest.raises(ConfigurationError):
            backend.verify_queue(QUEUE_URL)


class TestClientFactory:
    """Tests for create_sqs_client."""

    def test_read_timeout_outlasts_long_poll(self):
        """Test that the read timeout is raised above the long-poll wait."""
        settings = Settings(
            _env_file=None,
            aws_region="us-east-1",
            aws_read_timeout_seconds=10,
            wait_time_seconds=20,
        )

        client = create_sqs_client(settings)

        assert client.meta.config.read_timeout == 25
        assert client.meta.region_name == "us-east-1"


class TestCreateBackend:
    """Tests for the backend factory."""

    def test_requires_queue(self):
        """Test that a queue URL or name is required."""
        with pytest.raises(ConfigurationError):
            create_backend(Settings(_env_file=None, backend="memory"))

    def test_memory_backend(self):
        """Test building the in-memory backend."""
        binding = create_backend(Settings(_env_file=None, backend="memory", queue_name="orders"))

        assert isinstance(binding.backend, InMemoryBackend)
        assert binding.queue_url == "memory://queue/orders"
        assert binding.backend.total_messages(binding.queue_url) == 0

    def test_sqs_backend_by_name(self, monkeypatch, backend, stubber):
        """Test resolving and verifying an SQS queue by name."""
        monkeypatch.setattr(factory.SqsBackend, "from_settings", classmethod(lambda cls, s: backend))
        stubber.add_response("get_queue_url", {"QueueUrl": QUEUE_URL}, {"QueueName": "orders"})
        stubber.add_response("get_queue_attributes", {"Attributes": {}})

        binding = create_backend(Settings(_env_file=None, backend="sqs", queue_name="orders"))

        assert binding.backend is backend
        assert binding.queue_url == QUEUE_URL

    def test_sqs_backend_unreachable(self, monkeypatch, backend, stubber):
        """Test that startup fails when the queue cannot be reached."""
        monkeypatch.setattr(factory.SqsBackend, "from_settings", classmethod(lambda cls, s: backend))
        stubber.add_client_error(
            "get_queue_attributes", service_error_code="AWS.SimpleQueueService.NonExistentQueue"
        )

        with pytest.raises(ConfigurationError):
            create_backend(Settings(_env_file=None, backend="sqs", queue_url=QUEUE_URL))
