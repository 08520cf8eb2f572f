"""
Consumer process entry point.

Builds the queue backend and handler from settings, installs the termination signal
handlers and runs the consumer until it has shut down.
"""

import asyncio
import logging
import signal

from sqs_consumer.backend import create_backend
from sqs_consumer.config import Settings, get_settings
from sqs_consumer.consumer import Consumer
from sqs_consumer.observability.logging import bind_context, setup_logging
from sqs_consumer.observability.metrics import setup_metrics
from sqs_consumer.observability.tracing import setup_tracing
from sqs_consumer.types import ConsumerConfig
from sqs_consumer.worker.handlers import load_handler

logger = logging.getLogger(__name__)


def build_consumer(settings: Settings) -> Consumer:
    """
    Build a consumer from settings.

    Raises:
        ConfigurationError: If the backend or the handler cannot be built.
    """
    binding = create_backend(settings)
    handler = load_handler(settings.handler)
    config = ConsumerConfig.from_settings(settings, queue_url=binding.queue_url)
    return Consumer(binding.backend, handler, config)


def install_signal_handlers(stop_event: asyncio.Event) -> None:
    """Set ``stop_event`` on SIGTERM/SIGINT."""
    loop = asyncio.get_running_loop()

    def request_shutdown(sig: signal.Signals) -> None:
        if not stop_event.is_set():
            logger.info("Shutdown signal received", extra={"signal": sig.name})
            stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, request_shutdown, sig)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(stop_event.set))


async def run_async(settings: Settings | None = None) -> None:
    """Run the consumer asynchronously."""
    settings = settings or get_settings()

    setup_logging(settings)
    if settings.metrics_enabled:
        setup_metrics(port=settings.prometheus_port)
    if settings.otel_enabled:
        setup_tracing(settings)

    consumer = build_consumer(settings)
    bind_context(queue_url=consumer.queue_url)

    stop_event = asyncio.Event()
    install_signal_handlers(stop_event)

    await consumer.start(stop_event)


def run() -> None:
    """Run the consumer."""
    asyncio.run(run_async())


if __name__ == "__main__":
    run()
