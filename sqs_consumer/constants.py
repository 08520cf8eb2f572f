"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class HandlerStatus(StrEnum):
    """Outcome of a single handler invocation."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMEOUT = "timeout"


class ReceiveResult(StrEnum):
    """Outcome of a single receive call."""

    MESSAGES = "messages"
    EMPTY = "empty"
    ERROR = "error"


# SQS service limits
SQS_MAX_BATCH_SIZE = 10
SQS_MAX_VISIBILITY_TIMEOUT_SECONDS = 43_200  # 12h
SQS_MAX_WAIT_TIME_SECONDS = 20

# Default values
DEFAULT_MAX_NUMBER_OF_MESSAGES = SQS_MAX_BATCH_SIZE
DEFAULT_VISIBILITY_TIMEOUT_SECONDS = 30
DEFAULT_RECEIVE_ERROR_DELAY_SECONDS = 5.0
DEFAULT_CHANNEL_SIZE = 1

# Attribute selectors requested on every receive
MESSAGE_ATTRIBUTE_NAMES: tuple[str, ...] = ("All",)
SYSTEM_ATTRIBUTE_SENT_TIMESTAMP = "SentTimestamp"
SYSTEM_ATTRIBUTE_FIRST_RECEIVE_TIMESTAMP = "ApproximateFirstReceiveTimestamp"
SYSTEM_ATTRIBUTE_RECEIVE_COUNT = "ApproximateReceiveCount"
MESSAGE_SYSTEM_ATTRIBUTE_NAMES: tuple[str, ...] = (
    SYSTEM_ATTRIBUTE_FIRST_RECEIVE_TIMESTAMP,
    SYSTEM_ATTRIBUTE_SENT_TIMESTAMP,
    SYSTEM_ATTRIBUTE_RECEIVE_COUNT,
)

# Error code reported for stale or unknown receipt handles
RECEIPT_HANDLE_INVALID = "ReceiptHandleIsInvalid"

# Metrics names
METRIC_RECEIVE_CALLS = "sqs_receive_calls_total"
METRIC_MESSAGES_RECEIVED = "sqs_messages_received_total"
METRIC_RECEIVE_ERRORS = "sqs_receive_errors_total"
METRIC_MESSAGES_HANDLED = "sqs_messages_handled_total"
METRIC_HANDLER_DURATION = "sqs_handler_duration_seconds"
METRIC_MESSAGES_DELETED = "sqs_messages_deleted_total"
METRIC_DELETE_FAILURES = "sqs_delete_failures_total"
METRIC_BATCHES_IN_FLIGHT = "sqs_batches_in_flight"

# Trace span names
SPAN_RECEIVE_BATCH = "receive_batch"
SPAN_PROCESS_BATCH = "process_batch"
SPAN_HANDLE_MESSAGE = "handle_message"
SPAN_DELETE_BATCH = "delete_batch"
