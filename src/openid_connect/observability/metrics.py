"""Prometheus metrics instrumentation.

This module provides:
- FastAPI automatic request metrics
- Login outcome counter
- Metrics endpoint configuration
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator, metrics

from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from fastapi import FastAPI

    from openid_connect.core.config import Settings

logger = get_logger(__name__)

METRIC_NAMESPACE = "openid_connect"

LOGIN_OUTCOMES = Counter(
    "oidc_login",
    "Login attempts by provider and outcome",
    ["provider", "outcome"],
)


def record_login(provider: str, outcome: str) -> None:
    """Count one login event.

    Args:
        provider: Configured provider id, or ``unknown``.
        outcome: ``started``, ``success`` or the error code of the failure.
    """
    LOGIN_OUTCOMES.labels(provider=provider, outcome=outcome).inc()


def setup_metrics(app: FastAPI, settings: Settings) -> Instrumentator:
    """Configure Prometheus metrics instrumentation.

    Args:
        app: The FastAPI application instance.
        settings: Application settings.

    Returns:
        Configured Instrumentator instance.
    """
    if not settings.observability.metrics.enabled:
        logger.info("Metrics collection disabled")
        return Instrumentator()

    logger.info("Setting up Prometheus metrics")

    prefix = settings.api.v1_prefix

    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=[
            f"{prefix}/health",
            f"{prefix}/ready",
            f"{prefix}/metrics",
        ],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    )

    instrumentator.add(
        metrics.default(
            metric_namespace=METRIC_NAMESPACE,
            metric_subsystem="http",
            should_only_respect_2xx_for_highr=False,
        )
    )

    instrumentator.instrument(app)

    metrics_endpoint = f"{prefix}/metrics"
    instrumentator.expose(
        app,
        endpoint=metrics_endpoint,
        include_in_schema=True,
        tags=["Monitoring"],
    )

    logger.info("Prometheus metrics configured", endpoint=metrics_endpoint)

    return instrumentator


__all__ = ["LOGIN_OUTCOMES", "record_login", "setup_metrics"]
