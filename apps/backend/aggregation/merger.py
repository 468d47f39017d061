"""Merge per-source batches into one ranked, filtered page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from aggregation.filters import apply_filters
from aggregation.models import AggregationRequest, AggregationResponse, Listing, SourceBatch
from aggregation.pagination import compute_total_pages, take_page
from aggregation.ranking import rank_listings


@dataclass
class MergeOutcome:
    response: AggregationResponse
    merged_count: int
    filtered_count: int


def concatenate(batches: Sequence[SourceBatch]) -> List[Listing]:
    merged: List[Listing] = []
    for batch in batches:
        merged.extend(batch.items)
    return merged


def merge_batches(batches: Sequence[SourceBatch], request: AggregationRequest) -> MergeOutcome:
    """Concatenate, filter, rank and paginate.

    ``total_count`` is the sum of upstream-reported totals for every batch,
    including sources that failed (they report zero). Filters narrow only the
    returned page, never the reported total.
    """
    merged = concatenate(batches)
    filtered = apply_filters(
        merged,
        free_only=request.free_only,
        min_price=request.min_price,
        max_price=request.max_price,
    )
    ranked = rank_listings(filtered, request.sort_by)

    total_count = sum(batch.total_count for batch in batches)
    response = AggregationResponse(
        results=take_page(ranked, request.page_size),
        total_count=total_count,
        page=request.page,
        page_size=request.page_size,
        total_pages=compute_total_pages(total_count, request.page_size),
    )
    return MergeOutcome(response=response, merged_count=len(merged), filtered_count=len(filtered))
