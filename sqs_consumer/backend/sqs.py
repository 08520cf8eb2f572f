"""
Amazon SQS backend.

Wraps a boto3 SQS client. boto3 is blocking, so every call runs on a worker thread via
``asyncio.to_thread``; the client itself is thread-safe and shared by all callers.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Sequence
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from sqs_consumer.config import Settings
from sqs_consumer.constants import (
    MESSAGE_ATTRIBUTE_NAMES,
    MESSAGE_SYSTEM_ATTRIBUTE_NAMES,
    SQS_MAX_BATCH_SIZE,
)
from sqs_consumer.exceptions import ConfigurationError, ReceiveError
from sqs_consumer.types import DeleteEntry, DeleteFailure, DeleteResult, Message

logger = logging.getLogger(__name__)


def _error_code(exc: Exception) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return type(exc).__name__


def _chunks(entries: Sequence[DeleteEntry], size: int) -> Iterator[Sequence[DeleteEntry]]:
    for start in range(0, len(entries), size):
        yield entries[start:start + size]


def parse_delete_response(response: dict[str, Any]) -> DeleteResult:
    """Map a DeleteMessageBatch response onto a DeleteResult."""
    return DeleteResult(
        successful=[entry["Id"] for entry in response.get("Successful", [])],
        failed=[
            DeleteFailure(
                id=entry["Id"],
                code=entry.get("Code", ""),
                message=entry.get("Message", ""),
                sender_fault=entry.get("SenderFault", False),
            )
            for entry in response.get("Failed", [])
        ],
    )


def create_sqs_client(settings: Settings) -> Any:
    """
    Build a boto3 SQS client from settings.

    Raises:
        ConfigurationError: If the client cannot be created (e.g. no region configured).
    """
    # The read timeout must outlast a long poll
    read_timeout = max(settings.aws_read_timeout_seconds, settings.wait_time_seconds + 5)
    try:
        return boto3.client(
            "sqs",
            region_name=settings.aws_region,
            endpoint_url=settings.aws_endpoint_url,
            config=Config(
                connect_timeout=settings.aws_connect_timeout_seconds,
                read_timeout=read_timeout,
                retries={"max_attempts": settings.aws_max_attempts, "mode": "standard"},
            ),
        )
    except BotoCoreError as e:
        raise ConfigurationError(f"Unable to create SQS client: {e}") from e


class SqsBackend:
    """QueueBackend implementation for Amazon SQS."""

    def __init__(self, client: Any):
        """
        Initialize the backend.

        Args:
            client: A boto3 SQS client.
        """
        self._client = client

    @property
    def client(self) -> Any:
        return self._client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqsBackend":
        """Create a backend with a client built from settings."""
        return cls(create_sqs_client(settings))

    def resolve_queue_url(self, queue_name: str) -> str:
        """
        Look up the URL of a queue by name.

        Raises:
            ConfigurationError: If the queue cannot be resolved.
        """
        try:
            return self._client.get_queue_url(QueueName=queue_name)["QueueUrl"]
        except (BotoCoreError, ClientError) as e:
            raise ConfigurationError(f"Unable to resolve queue {queue_name!r}: {e}") from e

    def verify_queue(self, queue_url: str) -> None:
        """
        Check that the queue exists and is reachable with the configured credentials.

        Raises:
            ConfigurationError: If the queue cannot be reached.
        """
        try:
            self._client.get_queue_attributes(QueueUrl=queue_url, AttributeNames=["QueueArn"])
        except (BotoCoreError, ClientError) as e:
            raise ConfigurationError(f"Unable to reach queue {queue_url}: {e}") from e

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
        params: dict[str, Any] = {
            "QueueUrl": queue_url,
            "MaxNumberOfMessages": max_messages,
            "VisibilityTimeout": visibility_timeout,
            "MessageAttributeNames": list(message_attribute_names),
            "MessageSystemAttributeNames": list(system_attribute_names),
            "WaitTimeSeconds": wait_time_seconds,
        }
        try:
            response = await asyncio.to_thread(self._client.receive_message, **params)
        except (BotoCoreError, ClientError) as e:
            raise ReceiveError(f"ReceiveMessage failed: {e}", code=_error_code(e)) from e

        return [Message.from_sqs(raw) for raw in response.get("Messages", [])]

    async def delete_batch(
        self,
        queue_url: str,
        entries: Sequence[DeleteEntry],
    ) -> DeleteResult:
        result = DeleteResult()
        for chunk in _chunks(entries, SQS_MAX_BATCH_SIZE):
            try:
                response = await asyncio.to_thread(
                    self._client.delete_message_batch,
                    QueueUrl=queue_url,
                    Entries=[
                        {"Id": entry.id, "ReceiptHandle": entry.receipt_handle}
                        for entry in chunk
                    ],
                )
            except (BotoCoreError, ClientError) as e:
                # Keep the outcome of earlier chunks; this chunk failed as a whole
                code = _error_code(e) or ""
                logger.warning(
                    "DeleteMessageBatch request failed",
                    extra={"entries": len(chunk), "code": code, "error": str(e)},
                )
                result.failed.extend(
                    DeleteFailure(id=entry.id, code=code, message=str(e)) for entry in chunk
                )
                continue
            result.merge(parse_delete_response(response))
        return result
