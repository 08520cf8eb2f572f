"""
Queue backends.
Contains the backend port and its SQS and in-memory implementations.
"""

from sqs_consumer.backend.base import QueueBackend
from sqs_consumer.backend.factory import BackendBinding, create_backend
from sqs_consumer.backend.memory import InMemoryBackend
from sqs_consumer.backend.sqs import SqsBackend, create_sqs_client

__all__ = [
    "QueueBackend",
    "BackendBinding",
    "create_backend",
    "InMemoryBackend",
    "SqsBackend",
    "create_sqs_client",
]
