"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqs_consumer.constants import (
    DEFAULT_CHANNEL_SIZE,
    DEFAULT_MAX_NUMBER_OF_MESSAGES,
    DEFAULT_RECEIVE_ERROR_DELAY_SECONDS,
    DEFAULT_VISIBILITY_TIMEOUT_SECONDS,
    SQS_MAX_BATCH_SIZE,
    SQS_MAX_VISIBILITY_TIMEOUT_SECONDS,
    SQS_MAX_WAIT_TIME_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Queue
    queue_url: str = ""
    queue_name: str = ""
    backend: Literal["sqs", "memory"] = "sqs"

    # AWS
    aws_region: str | None = None
    aws_endpoint_url: str | None = None
    aws_connect_timeout_seconds: float = 5.0
    aws_read_timeout_seconds: float = 30.0
    aws_max_attempts: int = 3

    # Consumer Configuration
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
    max_in_flight_batches: int = Field(0, ge=0)
    handler_timeout_seconds: float | None = Field(None, ge=0)
    channel_size: int = Field(DEFAULT_CHANNEL_SIZE, ge=1)
    handler_threads: int = Field(0, ge=0)

    # Handler: registered name or "module:attribute"
    handler: str = "log"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"  # json or console
    metrics_enabled: bool = True
    prometheus_port: int = 9090
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "sqs-consumer"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
