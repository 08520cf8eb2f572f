"""
Type definitions for the consumer.
Contains input/output type definitions shared by the pipeline stages and backends.
"""

from sqs_consumer.types.consumer import BatchOutcome, ConsumerConfig
from sqs_consumer.types.message import (
    Batch,
    DeleteEntry,
    DeleteFailure,
    DeleteResult,
    Message,
)

__all__ = [
    # Message types
    "Message",
    "Batch",
    "DeleteEntry",
    "DeleteFailure",
    "DeleteResult",
    # Consumer types
    "ConsumerConfig",
    "BatchOutcome",
]
