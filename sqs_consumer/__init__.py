"""
SQS Batch Consumer

A concurrent consumer for Amazon SQS: batched receiving, per-message handler fan-out,
and selective batched acknowledgment with at-least-once delivery semantics.
"""

__version__ = "1.0.0"

from sqs_consumer.consumer import Consumer  # noqa: E402
from sqs_consumer.exceptions import (  # noqa: E402
    BackendError,
    ChannelClosedError,
    ConfigurationError,
    ConsumerError,
    DeleteError,
    ReceiveError,
)
from sqs_consumer.types import ConsumerConfig, Message  # noqa: E402

__all__ = [
    "Consumer",
    "ConsumerConfig",
    "Message",
    "ConsumerError",
    "ConfigurationError",
    "BackendError",
    "ReceiveError",
    "DeleteError",
    "ChannelClosedError",
]
