"""Observability components: logging, metrics, and tracing."""

from openid_connect.observability.logging import (
    bind_context,
    clear_context,
    get_context,
    get_logger,
    logger,
    setup_logging,
    unbind_context,
)
from openid_connect.observability.metrics import record_login, setup_metrics
from openid_connect.observability.tracing import (
    add_span_attributes,
    get_tracer,
    setup_tracing,
    shutdown_tracing,
)


__all__ = [
    "add_span_attributes",
    "bind_context",
    "clear_context",
    "get_context",
    "get_logger",
    "get_tracer",
    "logger",
    "record_login",
    "setup_logging",
    "setup_metrics",
    "setup_tracing",
    "shutdown_tracing",
    "unbind_context",
]
