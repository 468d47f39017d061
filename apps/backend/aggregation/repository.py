"""Registered source adapters and the concurrent fan-out over them."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Dict, List, Optional, Sequence, Tuple

from aggregation.adapters import build_default_adapters
from aggregation.adapters.base import SourceAdapter
from aggregation.constants import DEFAULT_SOURCE_TIMEOUT_SECONDS, MIN_TRENDING_BATCH
from aggregation.executors import run_adapter_with_status
from aggregation.metrics import log_fan_out_start, log_source_result
from aggregation.models import Listing, SourceBatch, SourceStatusSnapshot
from exceptions import UnknownSourceError
from utils.security import redact_secrets_from_text

logger = logging.getLogger(__name__)

FanOutResult = Tuple[List[SourceBatch], List[SourceStatusSnapshot]]


def source_timeout_seconds() -> float:
    try:
        return float(os.getenv("AGGREGATOR_SOURCE_TIMEOUT_SECONDS", str(DEFAULT_SOURCE_TIMEOUT_SECONDS)))
    except (TypeError, ValueError):
        return DEFAULT_SOURCE_TIMEOUT_SECONDS


def trending_batch_size(page_size: int, source_count: int) -> int:
    """Even share of the page per source, floored at MIN_TRENDING_BATCH."""
    if source_count <= 0:
        return page_size
    return max(MIN_TRENDING_BATCH, page_size // source_count)


class AggregationRepository:
    def __init__(self, adapters: Optional[Sequence[SourceAdapter]] = None):
        # Registration order is the merge order
        self.adapters: Dict[str, SourceAdapter] = {}
        for adapter in build_default_adapters() if adapters is None else adapters:
            self.register(adapter)

    def register(self, adapter: SourceAdapter) -> None:
        key = adapter.source_name.lower()
        if key in self.adapters:
            logger.warning(f"[AggregationRepository] Replacing adapter for source {adapter.source_name}")
        self.adapters[key] = adapter

    def source_names(self) -> List[str]:
        return [adapter.source_name for adapter in self.adapters.values()]

    def find_adapter(self, source: str) -> Optional[SourceAdapter]:
        return self.adapters.get((source or "").strip().lower())

    def select_adapters(self, sources: Optional[Sequence[str]] = None) -> List[SourceAdapter]:
        """Adapters named in ``sources`` (case-insensitive), or all of them when no list is given."""
        if not sources:
            return list(self.adapters.values())
        allow = {str(s).strip().lower() for s in sources if str(s).strip()}
        selected = [adapter for key, adapter in self.adapters.items() if key in allow]
        logger.debug(
            "[AggregationRepository] Source filter applied",
            extra={"requested": sorted(allow), "selected": [a.source_name for a in selected]},
        )
        return selected

    async def _fan_out(
        self,
        adapters: List[SourceAdapter],
        call,
        operation: str,
        deadline_seconds: Optional[float] = None,
    ) -> FanOutResult:
        timeout = source_timeout_seconds()
        if deadline_seconds is not None:
            # Every call starts together, so the request deadline caps each source timeout
            timeout = min(timeout, deadline_seconds)
        tasks = [
            run_adapter_with_status(adapter, call, timeout_seconds=timeout, operation=operation)
            for adapter in adapters
        ]
        # gather keeps registration order regardless of completion order
        outcomes = await asyncio.gather(*tasks)

        batches: List[SourceBatch] = []
        statuses: List[SourceStatusSnapshot] = []
        for batch, status in outcomes:
            log_source_result(status)
            batches.append(batch)
            statuses.append(status)
        return batches, statuses

    async def fan_out_search(
        self,
        query: str,
        page: int,
        page_size: int,
        sort_by: Optional[str] = None,
        sources: Optional[Sequence[str]] = None,
        deadline_seconds: Optional[float] = None,
    ) -> FanOutResult:
        """Ask every selected source for a full page, not an even share."""
        adapters = self.select_adapters(sources)
        log_fan_out_start("search", query, [a.source_name for a in adapters], page_size)

        async def call(adapter: SourceAdapter) -> SourceBatch:
            return await adapter.search(query, page=page, page_size=page_size, sort_by=sort_by)

        return await self._fan_out(adapters, call, "search", deadline_seconds)

    async def fan_out_trending(
        self,
        page: int,
        page_size: int,
        sources: Optional[Sequence[str]] = None,
        deadline_seconds: Optional[float] = None,
    ) -> FanOutResult:
        adapters = self.select_adapters(sources)
        per_source = trending_batch_size(page_size, len(adapters))
        log_fan_out_start("trending", "", [a.source_name for a in adapters], per_source)

        async def call(adapter: SourceAdapter) -> SourceBatch:
            return await adapter.get_trending(page=page, page_size=per_source)

        return await self._fan_out(adapters, call, "trending", deadline_seconds)

    async def get_details(self, source: str, external_id: str) -> Optional[Listing]:
        """Look up one listing. Unknown sources raise; adapter failures read as not found."""
        adapter = self.find_adapter(source)
        if adapter is None:
            logger.warning(f"[AggregationRepository] Requested details for unknown source: {source}")
            raise UnknownSourceError(source)

        try:
            return await asyncio.wait_for(
                adapter.get_details(external_id), timeout=source_timeout_seconds()
            )
        except asyncio.TimeoutError:
            logger.warning(f"[{adapter.source_name}] Details timed out for {external_id}")
            return None
        except Exception as e:
            logger.error(
                f"[{adapter.source_name}] Details failed for {external_id}: "
                f"{type(e).__name__}: {redact_secrets_from_text(str(e))}"
            )
            return None
