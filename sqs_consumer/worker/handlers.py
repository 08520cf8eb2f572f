"""
Message handler registry and built-in handlers.

Message handlers must be idempotent - a message may be delivered more than once,
e.g. when a handler fails, its lease expires, or a delete call is lost.
"""

import importlib
import logging
from collections.abc import Callable

from sqs_consumer.consumer.handler import Handler
from sqs_consumer.exceptions import ConfigurationError
from sqs_consumer.types import Message

logger = logging.getLogger(__name__)

# Handler registry
_handlers: dict[str, Handler] = {}


class HandlerFailure(Exception):
    """Raised by the built-in ``fail`` handler."""


def register_handler(name: str) -> Callable[[Handler], Handler]:
    """
    Decorator to register a message handler under a name.

    Args:
        name: The name used to select the handler (``HANDLER`` setting).

    Returns:
        Decorator function.

    Example:
        @register_handler("orders")
        async def handle_order(message: Message) -> None:
            ...
    """
    def decorator(handler: Handler) -> Handler:
        _handlers[name] = handler
        logger.debug(f"Registered message handler: {name}")
        return handler
    return decorator


def get_handler(name: str) -> Handler | None:
    """
    Get a registered handler by name.

    Args:
        name: The handler name.

    Returns:
        The handler function or None if not found.
    """
    return _handlers.get(name)


def list_handlers() -> list[str]:
    """List all registered handler names."""
    return list(_handlers.keys())


def load_handler(ref: str) -> Handler:
    """
    Resolve a handler reference.

    Args:
        ref: A registered handler name, or an import path of the form
            ``package.module:attribute``.

    Returns:
        The handler callable.

    Raises:
        ConfigurationError: If the reference cannot be resolved to a callable.
    """
    handler = get_handler(ref)
    if handler is not None:
        return handler

    module_name, sep, attribute = ref.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigurationError(
            f"Unknown handler {ref!r}; expected one of {list_handlers()} or 'module:attribute'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import handler module {module_name!r}: {e}") from e

    handler = module
    for part in attribute.split("."):
        try:
            handler = getattr(handler, part)
        except AttributeError as e:
            raise ConfigurationError(f"Handler {ref!r} not found") from e

    if not callable(handler):
        raise ConfigurationError(f"Handler {ref!r} is not callable")
    return handler


# ============================================================================
# Built-in message handlers
# ============================================================================


@register_handler("log")
async def handle_log(message: Message) -> None:
    """Log the message and succeed. Useful to drain a queue or smoke-test a deployment."""
    logger.info(
        "Message received",
        extra={
            "message_id": message.message_id,
            "receive_count": message.receive_count,
            "sent_timestamp": message.sent_timestamp.isoformat() if message.sent_timestamp else None,
            "body_size": len(message.body),
        },
    )


@register_handler("fail")
async def handle_fail(message: Message) -> None:
    """Always fail, leaving every message on the queue for redelivery."""
    raise HandlerFailure(
        f"Intentional failure for message {message.message_id} "
        f"(delivery {message.receive_count})"
    )
