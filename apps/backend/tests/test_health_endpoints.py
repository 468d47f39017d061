"""
Tests for health check and metrics endpoints.

Verifies:
- /health returns 200 with correct status and version fields
- /health/ready reports registered sources and returns 503 with none
- /metrics exposes Prometheus text
"""

import re
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from aggregation.adapters import MockSourceAdapter, PrintablesAdapter
from aggregation.repository import AggregationRepository
from aggregation.service import AggregationService
from main import app


client = TestClient(app)


def _service(*adapters):
    return AggregationService(AggregationRepository(list(adapters)))


def test_health_returns_200():
    """Basic health check should always return 200."""
    response = client.get("/health")
    assert response.status_code == 200


def test_health_response_body():
    """Health check should return status and version fields."""
    response = client.get("/health")
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert isinstance(data["version"], str)


def test_health_content_type():
    """/health should return JSON."""
    response = client.get("/health")
    assert "application/json" in response.headers["content-type"]


@pytest.mark.parametrize(
    "adapters,status_code,status",
    [
        ((PrintablesAdapter(),), 200, "ready"),
        ((MockSourceAdapter(),), 200, "degraded"),
        ((), 503, "unhealthy"),
    ],
)
def test_readiness(adapters, status_code, status):
    with patch("main.get_aggregation_service", return_value=_service(*adapters)):
        response = client.get("/health/ready")

    assert response.status_code == status_code
    data = response.json()
    assert data["status"] == status
    assert "timestamp" in data
    assert data["checks"]["sources"]["details"]["count"] == len(adapters)


def test_metrics_endpoint_exposes_prometheus_text():
    client.get("/health")
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]
    assert "http_requests_total" in response.text


def test_unhandled_error_returns_safe_500():
    class BrokenService:
        repository = None

        async def search(self, request):
            raise RuntimeError("secret internals")

    safe_client = TestClient(app, raise_server_exceptions=False)
    with patch("routes.models.get_aggregation_service", return_value=BrokenService()):
        response = safe_client.get("/api/models/search", params={"q": "benchy"})

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Internal server error"
    assert re.fullmatch(r"ERR-\d{14}-\d+", data["error_id"])
    assert "secret internals" not in response.text
