"""
OpenTelemetry tracing setup.

Tracing is opt-in: until ``setup_tracing`` runs, ``get_tracer`` hands out a tracer from
the global (no-op) provider so pipeline spans cost nothing.
"""

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

from sqs_consumer import __version__
from sqs_consumer.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: Tracer | None = None


def setup_tracing(
    settings: Settings | None = None,
    enable_console_export: bool = False,
) -> Tracer:
    """
    Set up OpenTelemetry tracing with an OTLP exporter.

    Args:
        settings: Settings to read the exporter endpoint and service name from.
        enable_console_export: If True, also export spans to console.

    Returns:
        Tracer: The tracer instance.
    """
    global _tracer

    settings = settings or get_settings()

    # Create resource with service info
    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": __version__,
        }
    )
    # Create tracer provider
    provider = TracerProvider(resource=resource)

    # Add OTLP exporter
    try:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    except Exception as e:
        logger.warning("OTLP exporter unavailable, spans will not be exported", extra={"error": str(e)})

    # Optionally add console exporter for debugging
    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    # Set the global tracer provider
    trace.set_tracer_provider(provider)

    # Get tracer
    _tracer = trace.get_tracer(settings.otel_service_name)
    return _tracer


def get_tracer() -> Tracer:
    """
    Get the tracer instance.

    Returns:
        Tracer: The configured tracer, or one from the global provider if tracing
        has not been set up.
    """
    if _tracer is None:
        return trace.get_tracer(__name__)
    return _tracer


def set_span_attributes(span: Any, **attributes: Any) -> None:
    """Set the non-None attributes on a span."""
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(key, value if isinstance(value, (int, float, bool)) else str(value))
