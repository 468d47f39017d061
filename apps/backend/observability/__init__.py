"""
Observability infrastructure for the Model Aggregator backend.

Provides:
- Structured logging with correlation IDs
- Sentry error tracking
- Prometheus metrics
"""

from .logging import get_logger, correlation_id_context, get_correlation_id
from .metrics import (
    metrics_registry,
    http_requests_total,
    http_request_duration_seconds,
    http_requests_in_progress,
    source_adapter_duration_seconds,
    source_adapter_errors_total,
    aggregation_requests_total,
)

__all__ = [
    "get_logger",
    "correlation_id_context",
    "get_correlation_id",
    "metrics_registry",
    "http_requests_total",
    "http_request_duration_seconds",
    "http_requests_in_progress",
    "source_adapter_duration_seconds",
    "source_adapter_errors_total",
    "aggregation_requests_total",
]
