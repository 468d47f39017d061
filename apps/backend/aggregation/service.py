"""Aggregation service: fan out, merge and paginate.

Flow per request:
1. Empty query falls back to trending.
2. AggregationRepository fans out to the selected sources concurrently.
3. merge_batches filters, ranks and truncates to one page.
4. One structured metrics event is logged per request.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from aggregation.merger import merge_batches
from aggregation.metrics import get_metrics_collector
from aggregation.models import AggregationRequest, AggregationResponse, Listing
from aggregation.repository import AggregationRepository
from exceptions import ListingNotFoundError, UnknownSourceError
from observability.metrics import detail_lookups_total

logger = logging.getLogger(__name__)


def request_deadline_seconds() -> Optional[float]:
    raw = os.getenv("AGGREGATOR_REQUEST_DEADLINE_SECONDS")
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid AGGREGATOR_REQUEST_DEADLINE_SECONDS={raw!r}")
        return None
    return value if value > 0 else None


class AggregationService:
    def __init__(self, repository: AggregationRepository):
        self.repository = repository
        self.metrics = get_metrics_collector()

    async def search(self, request: AggregationRequest) -> AggregationResponse:
        if request.is_trending:
            return await self.trending(request)

        with self.metrics.track(
            "search",
            query=request.query,
            sort_by=request.sort_by,
            page=request.page,
            page_size=request.page_size,
        ) as m:
            batches, statuses = await self.repository.fan_out_search(
                request.query,
                page=request.page,
                page_size=request.page_size,
                sort_by=request.sort_by,
                sources=request.sources,
                deadline_seconds=request_deadline_seconds(),
            )
            return self._merge(batches, statuses, request, m)

    async def trending(self, request: AggregationRequest) -> AggregationResponse:
        with self.metrics.track(
            "trending",
            sort_by=request.sort_by,
            page=request.page,
            page_size=request.page_size,
        ) as m:
            batches, statuses = await self.repository.fan_out_trending(
                page=request.page,
                page_size=request.page_size,
                sources=request.sources,
                deadline_seconds=request_deadline_seconds(),
            )
            return self._merge(batches, statuses, request, m)

    def _merge(self, batches, statuses, request: AggregationRequest, m) -> AggregationResponse:
        for status in statuses:
            m.record_source(status)
        outcome = merge_batches(batches, request)
        m.record_results(
            merged=outcome.merged_count,
            filtered=outcome.filtered_count,
            returned=len(outcome.response.results),
            total_count=outcome.response.total_count,
        )
        return outcome.response

    async def get_details(self, source: str, external_id: str) -> Listing:
        try:
            listing = await self.repository.get_details(source, external_id)
        except UnknownSourceError:
            detail_lookups_total.labels(source="unknown", outcome="unknown_source").inc()
            raise

        adapter = self.repository.find_adapter(source)
        label = adapter.source_name if adapter else source
        if listing is None:
            detail_lookups_total.labels(source=label, outcome="not_found").inc()
            raise ListingNotFoundError(source, external_id)

        detail_lookups_total.labels(source=label, outcome="found").inc()
        return listing
