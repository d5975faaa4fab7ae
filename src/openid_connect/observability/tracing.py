"""OpenTelemetry distributed tracing configuration.

This module provides:
- Trace context propagation
- FastAPI instrumentation
- Redis instrumentation
- OTLP exporter configuration
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from fastapi import FastAPI

    from openid_connect.core.config import Settings

logger = get_logger(__name__)


def setup_tracing(app: FastAPI, settings: Settings) -> None:
    """Configure OpenTelemetry tracing.

    Args:
        app: The FastAPI application instance.
        settings: Application settings.
    """
    if not settings.observability.tracing.enabled:
        logger.info("Tracing disabled")
        return

    logger.info("Setting up OpenTelemetry tracing")

    resource = Resource.create(
        {
            "service.name": settings.app.name.lower().replace(" ", "-"),
            "service.version": settings.app.version,
            "deployment.environment": settings.APP_ENV,
        }
    )

    provider = TracerProvider(resource=resource)

    if settings.observability.tracing.otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.observability.tracing.otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info(
            "OTLP trace exporter configured",
            endpoint=settings.observability.tracing.otlp_endpoint,
        )
    elif settings.is_development:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        logger.info("Console trace exporter configured (development mode)")

    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, excluded_urls="health,ready,metrics")
    logger.debug("FastAPI instrumented for tracing")

    RedisInstrumentor().instrument()
    logger.debug("Redis instrumented for tracing")

    logger.info("OpenTelemetry tracing configured")


def shutdown_tracing() -> None:
    """Shutdown tracing and flush pending spans."""
    provider = trace.get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.shutdown()
        logger.info("Tracing shutdown complete")


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer instance for manual span creation."""
    return trace.get_tracer(name)


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span, if it is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


__all__ = [
    "add_span_attributes",
    "get_tracer",
    "setup_tracing",
    "shutdown_tracing",
]
