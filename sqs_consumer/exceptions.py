"""
Exception hierarchy for the consumer.
"""


class ConsumerError(Exception):
    """Base class for all consumer errors."""


class ConfigurationError(ConsumerError):
    """Raised when a backend client or configuration cannot be built."""


class BackendError(ConsumerError):
    """Raised by a queue backend when a call to the queue service fails."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class ReceiveError(BackendError):
    """A receive call failed. Always treated as transient."""


class DeleteError(BackendError):
    """A batched delete call failed as a whole."""


class ChannelClosedError(ConsumerError):
    """Raised when publishing to, or closing, an already closed channel."""


class HandlerTimeoutError(ConsumerError):
    """A message handler did not finish within its deadline."""
