"""
Shutdown coordination for the consumer pipeline.
"""

import asyncio
import logging
from collections.abc import Sequence

from sqs_consumer.consumer.channel import BatchChannel

logger = logging.getLogger(__name__)


class ShutdownCoordinator:
    """
    Owns the shutdown signal and the teardown of the batch channel.

    Every receiver observes the same single-fire signal. Receivers never close the
    channel themselves; the coordinator closes it exactly once, after joining all
    receiver tasks.
    """

    def __init__(self, event: asyncio.Event | None = None):
        """
        Initialize the coordinator.

        Args:
            event: Shutdown event. A new one is created if not provided.
        """
        self._event = event or asyncio.Event()

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    def trigger(self) -> None:
        """Fire the shutdown signal. Idempotent."""
        if not self._event.is_set():
            logger.info("Shutdown requested")
            self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """
        Sleep for up to ``seconds``, waking early on shutdown.

        Returns:
            True if shutdown has been signalled.
        """
        if seconds <= 0:
            await asyncio.sleep(0)
            return self._event.is_set()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def close_after(self, channel: BatchChannel, receivers: Sequence[asyncio.Task]) -> None:
        """
        Wait for every receiver task to finish, then close the channel.

        Args:
            channel: The channel the receivers publish to.
            receivers: The receiver tasks publishing to the channel.
        """
        results = await asyncio.gather(*receivers, return_exceptions=True)
        for task, result in zip(receivers, results):
            if isinstance(result, Exception):
                logger.error(
                    "Receiver exited with an error",
                    exc_info=result,
                    extra={"receiver": task.get_name()},
                )

        await channel.close()
        logger.info("All receivers stopped, batch channel closed", extra={"receivers": len(receivers)})
