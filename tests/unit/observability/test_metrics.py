"""Unit tests for Prometheus metrics."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from openid_connect.core.config import Settings
from openid_connect.observability.metrics import record_login, setup_metrics


pytestmark = pytest.mark.unit


def _login_count(provider: str, outcome: str) -> float:
    value = REGISTRY.get_sample_value(
        "oidc_login_total", {"provider": provider, "outcome": outcome}
    )
    return value or 0.0


class TestRecordLogin:
    """Tests for the login outcome counter."""

    def test_increments_counter(self):
        before = _login_count("metrics-test", "success")

        record_login("metrics-test", "success")
        record_login("metrics-test", "success")

        assert _login_count("metrics-test", "success") == before + 2

    def test_outcomes_are_separate(self):
        before = _login_count("metrics-test", "invalid_state")

        record_login("metrics-test", "provider_denied")

        assert _login_count("metrics-test", "invalid_state") == before


class TestSetupMetrics:
    """Tests for setup_metrics."""

    def test_disabled_adds_no_route(self, test_settings: Settings):
        app = FastAPI()

        setup_metrics(app, test_settings)

        assert "/api/v1/openid-connect/metrics" not in {route.path for route in app.routes}

    def test_enabled_exposes_endpoint(self):
        settings = Settings(observability={"metrics": {"enabled": True}})
        app = FastAPI()

        setup_metrics(app, settings)
        response = TestClient(app).get("/api/v1/openid-connect/metrics")

        assert response.status_code == 200
        assert "oidc_login_total" in response.text
