"""
Consumer pipeline.
Contains the receiver, distributor and processor stages and the Consumer that wires them.
"""

from sqs_consumer.consumer.channel import BatchChannel
from sqs_consumer.consumer.distributor import Distributor
from sqs_consumer.consumer.handler import Handler, call_handler, is_async_handler
from sqs_consumer.consumer.pipeline import Consumer
from sqs_consumer.consumer.processor import Processor
from sqs_consumer.consumer.receiver import PollPacer, Receiver
from sqs_consumer.consumer.shutdown import ShutdownCoordinator

__all__ = [
    "Consumer",
    "Receiver",
    "PollPacer",
    "Distributor",
    "Processor",
    "BatchChannel",
    "ShutdownCoordinator",
    "Handler",
    "call_handler",
    "is_async_handler",
]
