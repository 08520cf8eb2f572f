"""
Message-related type definitions.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqs_consumer.constants import (
    SYSTEM_ATTRIBUTE_FIRST_RECEIVE_TIMESTAMP,
    SYSTEM_ATTRIBUTE_RECEIVE_COUNT,
    SYSTEM_ATTRIBUTE_SENT_TIMESTAMP,
)


def _epoch_millis_to_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Message:
    """
    A single delivery of a queue message.

    The receipt handle identifies this delivery, not the message: a redelivery
    of the same message carries a new receipt handle.
    """

    message_id: str
    receipt_handle: str
    body: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    message_attributes: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    md5_of_body: str | None = None

    @classmethod
    def from_sqs(cls, raw: Mapping[str, Any]) -> "Message":
        """Build a message from one entry of a ReceiveMessage response."""
        return cls(
            message_id=raw["MessageId"],
            receipt_handle=raw["ReceiptHandle"],
            body=raw.get("Body", ""),
            attributes=dict(raw.get("Attributes", {})),
            message_attributes=dict(raw.get("MessageAttributes", {})),
            md5_of_body=raw.get("MD5OfBody"),
        )

    @property
    def sent_timestamp(self) -> datetime | None:
        """Time the message was sent to the queue."""
        return _epoch_millis_to_datetime(self.attributes.get(SYSTEM_ATTRIBUTE_SENT_TIMESTAMP))

    @property
    def first_receive_timestamp(self) -> datetime | None:
        """Time the message was first received from the queue."""
        return _epoch_millis_to_datetime(
            self.attributes.get(SYSTEM_ATTRIBUTE_FIRST_RECEIVE_TIMESTAMP)
        )

    @property
    def receive_count(self) -> int:
        """Number of times this message has been delivered, including this one."""
        try:
            return int(self.attributes.get(SYSTEM_ATTRIBUTE_RECEIVE_COUNT, 1))
        except (TypeError, ValueError):
            return 1

    def get_attribute(self, name: str) -> str | None:
        """Return the string value of a user message attribute, if present."""
        value = self.message_attributes.get(name)
        if value is None:
            return None
        return value.get("StringValue")


# A batch is the ordered list of messages returned by one receive call.
Batch = list[Message]


@dataclass(frozen=True)
class DeleteEntry:
    """One entry of a batched delete request."""

    id: str
    receipt_handle: str


@dataclass(frozen=True)
class DeleteFailure:
    """A delete entry the backend refused."""

    id: str
    code: str
    message: str = ""
    sender_fault: bool = False


@dataclass
class DeleteResult:
    """Per-entry result of a batched delete call."""

    successful: list[str] = field(default_factory=list)
    failed: list[DeleteFailure] = field(default_factory=list)

    def merge(self, other: "DeleteResult") -> None:
        """Fold another result into this one."""
        self.successful.extend(other.successful)
        self.failed.extend(other.failed)
