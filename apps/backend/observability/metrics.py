"""
Prometheus metrics collection for the Model Aggregator backend.

Provides RED metrics (Rate, Errors, Duration) for HTTP and for each source adapter.
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    REGISTRY,
)

# Use the default registry
metrics_registry = REGISTRY

# HTTP Metrics (RED - Rate, Errors, Duration)
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=metrics_registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=metrics_registry,
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
    registry=metrics_registry,
)

# Source Adapter Metrics
source_adapter_duration_seconds = Histogram(
    "source_adapter_duration_seconds",
    "Source adapter call duration in seconds",
    ["source", "operation"],  # operation: search, trending
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
    registry=metrics_registry,
)

source_adapter_errors_total = Counter(
    "source_adapter_errors_total",
    "Total source adapter failures",
    ["source", "error_type"],
    registry=metrics_registry,
)

source_results_count = Histogram(
    "source_results_count",
    "Number of listings returned by one source adapter call",
    ["source"],
    buckets=[0, 1, 5, 10, 20, 50, 100],
    registry=metrics_registry,
)

# Aggregation Metrics
aggregation_requests_total = Counter(
    "aggregation_requests_total",
    "Total aggregation requests",
    ["mode"],  # search, trending
    registry=metrics_registry,
)

aggregation_sources_failed = Histogram(
    "aggregation_sources_failed",
    "Number of sources that failed within one aggregation request",
    ["mode"],
    buckets=[0, 1, 2, 3, 5, 10],
    registry=metrics_registry,
)

detail_lookups_total = Counter(
    "detail_lookups_total",
    "Total detail lookups by outcome",
    ["source", "outcome"],  # found, not_found, unknown_source
    registry=metrics_registry,
)
