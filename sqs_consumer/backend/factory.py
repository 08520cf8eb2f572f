"""Factory: build the configured queue backend and resolve the queue it consumes."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqs_consumer.backend.base import QueueBackend
from sqs_consumer.backend.memory import InMemoryBackend
from sqs_consumer.backend.sqs import SqsBackend
from sqs_consumer.config import Settings
from sqs_consumer.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackendBinding:
    """A backend together with the URL of the queue to consume."""

    backend: QueueBackend
    queue_url: str


def create_backend(settings: Settings) -> BackendBinding:
    """
    Build the queue backend selected by ``settings.backend``.

    For SQS the queue is resolved (by name when no URL is configured) and checked for
    reachability, so a bad configuration fails here, before the pipeline starts.

    Raises:
        ConfigurationError: If the backend cannot be built or the queue cannot be reached.
    """
    if not settings.queue_url and not settings.queue_name:
        raise ConfigurationError("Either QUEUE_URL or QUEUE_NAME must be set")

    if settings.backend == "memory":
        backend = InMemoryBackend()
        queue_url = backend.create_queue(settings.queue_url or settings.queue_name)
        logger.info("Using in-memory queue backend", extra={"queue_url": queue_url})
        return BackendBinding(backend=backend, queue_url=queue_url)

    if settings.backend == "sqs":
        sqs = SqsBackend.from_settings(settings)
        queue_url = settings.queue_url or sqs.resolve_queue_url(settings.queue_name)
        sqs.verify_queue(queue_url)
        logger.info("Using SQS queue backend", extra={"queue_url": queue_url})
        return BackendBinding(backend=sqs, queue_url=queue_url)

    raise ConfigurationError(f"Unknown backend: {settings.backend}")
