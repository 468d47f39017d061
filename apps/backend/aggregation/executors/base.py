"""Adapter executors with status instrumentation."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Tuple, TYPE_CHECKING

from aggregation.models import SourceBatch, SourceStatusSnapshot
from observability.metrics import (
    source_adapter_duration_seconds,
    source_adapter_errors_total,
    source_results_count,
)
from utils.security import redact_secrets_from_text

if TYPE_CHECKING:
    from aggregation.adapters.base import SourceAdapter

logger = logging.getLogger(__name__)


async def run_adapter_with_status(
    adapter: "SourceAdapter",
    call: Callable[["SourceAdapter"], Awaitable[SourceBatch]],
    *,
    timeout_seconds: float = 10.0,
    operation: str = "search",
) -> Tuple[SourceBatch, SourceStatusSnapshot]:
    """Run one adapter call and never raise for upstream failures.

    Failures and timeouts become an empty batch for the adapter's source. Task
    cancellation is not a failure and propagates to the caller.
    """
    source = adapter.source_name
    started = time.monotonic()
    try:
        batch = await asyncio.wait_for(call(adapter), timeout=timeout_seconds)
        if batch is None:
            batch = SourceBatch.empty(source)
        elapsed = time.monotonic() - started
        source_adapter_duration_seconds.labels(source=source, operation=operation).observe(elapsed)
        source_results_count.labels(source=source).observe(len(batch.items))
        status = SourceStatusSnapshot(
            source=source,
            status="ok",
            result_count=len(batch.items),
            latency_ms=int(elapsed * 1000),
        )
        return batch, status
    except asyncio.TimeoutError:
        elapsed = time.monotonic() - started
        source_adapter_errors_total.labels(source=source, error_type="timeout").inc()
        logger.warning(
            f"[{source}] {operation} timed out after {timeout_seconds}s",
            extra={"source": source, "operation": operation, "timeout_seconds": timeout_seconds},
        )
        status = SourceStatusSnapshot(
            source=source,
            status="timeout",
            result_count=0,
            latency_ms=int(elapsed * 1000),
            message=f"{operation.capitalize()} timed out",
        )
        return SourceBatch.empty(source), status
    except Exception as e:
        elapsed = time.monotonic() - started
        error_msg = redact_secrets_from_text(str(e))
        source_adapter_errors_total.labels(source=source, error_type=type(e).__name__).inc()
        logger.error(
            f"[{source}] {operation} error: {type(e).__name__}: {error_msg}",
            extra={"source": source, "operation": operation, "error_type": type(e).__name__},
        )
        status = SourceStatusSnapshot(
            source=source,
            status="error",
            result_count=0,
            latency_ms=int(elapsed * 1000),
            message=f"{operation.capitalize()} failed: {error_msg[:100]}",
        )
        return SourceBatch.empty(source), status
