"""
Consumer-related type definitions for internal use.
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from sqs_consumer.config import Settings
from sqs_consumer.constants import (
    DEFAULT_CHANNEL_SIZE,
    DEFAULT_MAX_NUMBER_OF_MESSAGES,
    DEFAULT_RECEIVE_ERROR_DELAY_SECONDS,
    DEFAULT_VISIBILITY_TIMEOUT_SECONDS,
    SQS_MAX_BATCH_SIZE,
    SQS_MAX_VISIBILITY_TIMEOUT_SECONDS,
    SQS_MAX_WAIT_TIME_SECONDS,
)


class ConsumerConfig(BaseModel):
    """
    Configuration for one consumer run.

    Immutable for the lifetime of the run. The poll delay given here is only
    the initial value; it can be changed later through Consumer.set_poll_delay.
    """

    model_config = ConfigDict(frozen=True)

    queue_url: str = Field(..., min_length=1)
    max_number_of_messages: int = Field(
        DEFAULT_MAX_NUMBER_OF_MESSAGES, ge=1, le=SQS_MAX_BATCH_SIZE
    )
    visibility_timeout: int = Field(
        DEFAULT_VISIBILITY_TIMEOUT_SECONDS, ge=0, le=SQS_MAX_VISIBILITY_TIMEOUT_SECONDS
    )
    receivers: int = Field(1, ge=1)
    poll_delay_ms: int = Field(0, ge=0)
    receive_error_delay_seconds: float = Field(DEFAULT_RECEIVE_ERROR_DELAY_SECONDS, ge=0)
    wait_time_seconds: int = Field(0, ge=0, le=SQS_MAX_WAIT_TIME_SECONDS)
    max_in_flight_batches: int = Field(0, ge=0)  # 0 = unbounded
    handler_timeout_seconds: float | None = Field(None, ge=0)  # None or 0 = no deadline
    channel_size: int = Field(DEFAULT_CHANNEL_SIZE, ge=1)
    handler_threads: int = Field(0, ge=0)  # 0 = sized from batch size and in-flight bound

    @classmethod
    def from_settings(cls, settings: Settings, queue_url: str | None = None) -> "ConsumerConfig":
        """Build a consumer configuration from application settings."""
        return cls(
            queue_url=queue_url or settings.queue_url,
            max_number_of_messages=settings.max_number_of_messages,
            visibility_timeout=settings.visibility_timeout,
            receivers=settings.receivers,
            poll_delay_ms=settings.poll_delay_ms,
            receive_error_delay_seconds=settings.receive_error_delay_seconds,
            wait_time_seconds=settings.wait_time_seconds,
            max_in_flight_batches=settings.max_in_flight_batches,
            handler_timeout_seconds=settings.handler_timeout_seconds,
            channel_size=settings.channel_size,
            handler_threads=settings.handler_threads,
        )

    @property
    def handler_deadline(self) -> float | None:
        """Handler deadline in seconds, or None when handlers run unbounded."""
        return self.handler_timeout_seconds or None

    @property
    def handler_pool_size(self) -> int:
        """Threads for plain-function handlers: enough for every message of every in-flight batch."""
        if self.handler_threads:
            return self.handler_threads
        return self.max_number_of_messages * max(1, self.max_in_flight_batches)


@dataclass
class BatchOutcome:
    """
    Result of processing one batch.
    Used for observability and reporting.
    """

    batch_size: int
    succeeded: int = 0
    failed: int = 0
    deleted: int = 0
    delete_failed: int = 0

    @property
    def accounted(self) -> int:
        """Messages either handled successfully or left for redelivery."""
        return self.succeeded + self.failed
