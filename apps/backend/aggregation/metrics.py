"""Aggregation observability: one structured log event per fan-out.

Tracked per request:
- which sources were called and how each finished (ok / error / timeout)
- listing counts before and after filtering, and the summed upstream total
- end-to-end latency
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from aggregation.models import SourceStatusSnapshot
from observability.metrics import aggregation_requests_total, aggregation_sources_failed

logger = logging.getLogger("aggregation.metrics")


@dataclass
class SourceMetrics:
    """Outcome of one adapter call."""
    source: str
    status: str  # ok, error, timeout
    result_count: int
    latency_ms: float
    error_message: Optional[str] = None


@dataclass
class AggregationMetrics:
    """Figures for a single aggregation request."""
    mode: str = "search"
    query: str = ""
    sort_by: Optional[str] = None
    page: int = 1
    page_size: int = 0
    total_count: int = 0
    merged_results: int = 0
    filtered_results: int = 0
    returned_results: int = 0
    sources_called: int = 0
    sources_succeeded: int = 0
    sources_failed: int = 0
    total_latency_ms: float = 0.0
    source_metrics: List[SourceMetrics] = field(default_factory=list)

    def success_rate(self) -> float:
        if self.sources_called == 0:
            return 0.0
        return self.sources_succeeded / self.sources_called

    def record_source(self, snapshot: SourceStatusSnapshot) -> None:
        self.source_metrics.append(
            SourceMetrics(
                source=snapshot.source,
                status=snapshot.status,
                result_count=snapshot.result_count,
                latency_ms=float(snapshot.latency_ms or 0),
                error_message=snapshot.message,
            )
        )
        self.sources_called += 1
        if snapshot.status == "ok":
            self.sources_succeeded += 1
        else:
            self.sources_failed += 1

    def record_results(self, merged: int, filtered: int, returned: int, total_count: int) -> None:
        self.merged_results = merged
        self.filtered_results = filtered
        self.returned_results = returned
        self.total_count = total_count


class AggregationMetricsCollector:
    """Collector for aggregation request metrics.

    Each ``track`` call owns its own AggregationMetrics, so one collector can
    be shared by concurrent requests.
    """

    @contextmanager
    def track(
        self,
        mode: str,
        query: str = "",
        sort_by: Optional[str] = None,
        page: int = 1,
        page_size: int = 0,
    ) -> Iterator[AggregationMetrics]:
        metrics = AggregationMetrics(
            mode=mode, query=query, sort_by=sort_by, page=page, page_size=page_size
        )
        started = time.time()
        aggregation_requests_total.labels(mode=mode).inc()
        try:
            yield metrics
        finally:
            metrics.total_latency_ms = (time.time() - started) * 1000
            aggregation_sources_failed.labels(mode=mode).observe(metrics.sources_failed)
            self._log_metrics(metrics)

    def _log_metrics(self, m: AggregationMetrics) -> None:
        source_summary = [
            {
                "source": sm.source,
                "status": sm.status,
                "results": sm.result_count,
                "latency_ms": round(sm.latency_ms, 1),
            }
            for sm in m.source_metrics
        ]

        log_data = {
            "event": "aggregation_complete",
            "mode": m.mode,
            "query_length": len(m.query),
            "sort_by": m.sort_by,
            "page": m.page,
            "page_size": m.page_size,
            "results": {
                "merged": m.merged_results,
                "after_filter": m.filtered_results,
                "returned": m.returned_results,
                "total_count": m.total_count,
            },
            "sources": {
                "called": m.sources_called,
                "succeeded": m.sources_succeeded,
                "failed": m.sources_failed,
                "success_rate": round(m.success_rate(), 2),
                "details": source_summary,
            },
            "latency_ms": round(m.total_latency_ms, 1),
        }

        if m.sources_called > 0 and m.sources_failed == m.sources_called:
            logger.error("Aggregation finished - all sources failed", extra=log_data)
        elif m.sources_failed > 0:
            logger.warning("Aggregation finished with source failures", extra=log_data)
        elif m.returned_results == 0:
            logger.warning("Aggregation finished but no results", extra=log_data)
        else:
            logger.info("Aggregation finished successfully", extra=log_data)


_metrics_collector = AggregationMetricsCollector()


def get_metrics_collector() -> AggregationMetricsCollector:
    return _metrics_collector


def log_fan_out_start(mode: str, query: str, sources: List[str], per_source: int) -> None:
    logger.info(
        "Aggregation started",
        extra={
            "event": "aggregation_start",
            "mode": mode,
            "query_length": len(query),
            "sources_requested": sources,
            "per_source_page_size": per_source,
        },
    )


def log_source_result(snapshot: SourceStatusSnapshot) -> None:
    logger.info(
        f"Source {snapshot.source} completed",
        extra={
            "event": "source_complete",
            "source": snapshot.source,
            "status": snapshot.status,
            "result_count": snapshot.result_count,
            "latency_ms": snapshot.latency_ms,
        },
    )
