"""Tests for the fan-out orchestrator, merger and detail lookup."""
import asyncio
from datetime import datetime, timezone
from typing import List, Optional

import pytest

from aggregation.adapters.base import SourceAdapter
from aggregation.merger import merge_batches
from aggregation.models import AggregationRequest, Listing, SourceBatch
from aggregation.repository import AggregationRepository, trending_batch_size
from aggregation.service import AggregationService
from exceptions import ListingNotFoundError, UnknownSourceError


class RecordingAdapter(SourceAdapter):
    """Fake source that records calls and serves fixed listings."""

    def __init__(
        self,
        name: str,
        listings: Optional[List[Listing]] = None,
        total: int = 0,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.source_name = name
        self.listings = listings or []
        self.total = total
        self.error = error
        self.delay = delay
        self.calls = []

    async def _serve(self, kind, page, page_size):
        self.calls.append((kind, page, page_size))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return SourceBatch(source=self.source_name, total_count=self.total, items=self.listings[:page_size])

    async def search(self, query, page=1, page_size=20, sort_by=None):
        return await self._serve("search", page, page_size)

    async def get_trending(self, page=1, page_size=20):
        return await self._serve("trending", page, page_size)

    async def get_details(self, external_id):
        self.calls.append(("details", external_id, None))
        if self.error:
            raise self.error
        for listing in self.listings:
            if listing.external_id == external_id:
                return listing
        return None


def listings_for(source: str, count: int, **kwargs) -> List[Listing]:
    return [
        Listing(source=source, external_id=f"{source.lower()}{i}", title=f"{source} {i}", **kwargs)
        for i in range(1, count + 1)
    ]


class TestFanOut:
    @pytest.mark.asyncio
    async def test_source_filter_skips_unselected_adapters(self):
        a = RecordingAdapter("A", listings_for("A", 2), total=10)
        b = RecordingAdapter("B", listings_for("B", 2), total=20)
        c = RecordingAdapter("C", listings_for("C", 2), total=30)
        service = AggregationService(AggregationRepository([a, b, c]))

        response = await service.search(AggregationRequest(query="benchy", sources="A,C"))

        assert b.calls == []
        assert len(a.calls) == 1 and len(c.calls) == 1
        assert response.total_count == 40
        assert {l.source for l in response.results} == {"A", "C"}

    @pytest.mark.asyncio
    async def test_source_filter_is_case_insensitive(self):
        a = RecordingAdapter("Printables", listings_for("Printables", 1), total=1)
        repo = AggregationRepository([a])

        assert repo.select_adapters(["printables"]) == [a]
        assert repo.select_adapters(["Etsy"]) == []

    @pytest.mark.asyncio
    async def test_unknown_source_filter_selects_nothing(self):
        a = RecordingAdapter("A", listings_for("A", 2), total=10)
        service = AggregationService(AggregationRepository([a]))

        response = await service.search(AggregationRequest(query="benchy", sources="Etsy"))

        assert a.calls == []
        assert response.results == []
        assert response.total_count == 0
        assert response.total_pages == 1

    @pytest.mark.asyncio
    async def test_each_source_gets_the_full_page(self):
        a = RecordingAdapter("A", total=0)
        b = RecordingAdapter("B", total=0)
        service = AggregationService(AggregationRepository([a, b]))

        await service.search(AggregationRequest(query="vase", page=3, page_size=10))

        assert a.calls == [("search", 3, 10)]
        assert b.calls == [("search", 3, 10)]

    @pytest.mark.asyncio
    async def test_all_sources_failing_yields_empty_page(self):
        adapters = [
            RecordingAdapter("A", error=RuntimeError("down")),
            RecordingAdapter("B", error=ValueError("bad json")),
        ]
        service = AggregationService(AggregationRepository(adapters))

        response = await service.search(AggregationRequest(query="benchy"))

        assert response.total_count == 0
        assert response.results == []
        assert response.total_pages == 1

    @pytest.mark.asyncio
    async def test_failed_source_contributes_nothing(self):
        good = RecordingAdapter("Good", listings_for("Good", 3), total=3)
        bad = RecordingAdapter("Bad", listings_for("Bad", 3), total=500, error=RuntimeError("boom"))
        service = AggregationService(AggregationRepository([good, bad]))

        response = await service.search(AggregationRequest(query="benchy"))

        assert response.total_count == 3
        assert [l.source for l in response.results] == ["Good"] * 3

    @pytest.mark.asyncio
    async def test_slow_source_times_out_without_failing_request(self, monkeypatch):
        monkeypatch.setenv("AGGREGATOR_SOURCE_TIMEOUT_SECONDS", "0.05")
        fast = RecordingAdapter("Fast", listings_for("Fast", 2), total=2)
        slow = RecordingAdapter("Slow", listings_for("Slow", 2), total=2, delay=1.0)
        service = AggregationService(AggregationRepository([fast, slow]))

        response = await service.search(AggregationRequest(query="benchy"))

        assert [l.source for l in response.results] == ["Fast", "Fast"]
        assert response.total_count == 2

    @pytest.mark.asyncio
    async def test_results_never_exceed_page_size(self):
        adapters = [RecordingAdapter(name, listings_for(name, 10), total=100) for name in ("A", "B", "C")]
        service = AggregationService(AggregationRepository(adapters))

        response = await service.search(AggregationRequest(query="benchy", page_size=10))

        assert len(response.results) == 10
        assert response.total_count == 300
        assert response.total_pages == 30
        # Interleaved by default
        assert [l.source for l in response.results[:3]] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_empty_query_falls_back_to_trending(self):
        a = RecordingAdapter("A", listings_for("A", 2), total=2)
        service = AggregationService(AggregationRepository([a]))

        await service.search(AggregationRequest(query="   "))

        assert a.calls[0][0] == "trending"


class TestTrending:
    @pytest.mark.parametrize(
        "page_size,sources,expected",
        [(24, 5, 8), (24, 2, 12), (100, 4, 25), (10, 3, 8), (24, 0, 24)],
    )
    def test_trending_batch_size(self, page_size, sources, expected):
        assert trending_batch_size(page_size, sources) == expected

    @pytest.mark.asyncio
    async def test_trending_splits_page_across_sources(self):
        adapters = [RecordingAdapter(name, total=0) for name in ("A", "B")]
        service = AggregationService(AggregationRepository(adapters))

        await service.trending(AggregationRequest(page=2, page_size=24))

        assert adapters[0].calls == [("trending", 2, 12)]
        assert adapters[1].calls == [("trending", 2, 12)]


class TestMerge:
    def test_total_is_sum_of_source_totals(self):
        batches = [
            SourceBatch(source="A", total_count=7, items=listings_for("A", 2)),
            SourceBatch(source="B", total_count=5, items=listings_for("B", 1)),
        ]

        outcome = merge_batches(batches, AggregationRequest(query="x", page_size=2))

        assert outcome.response.total_count == 12
        assert outcome.response.total_pages == 6
        assert outcome.merged_count == 3
        assert [l.external_id for l in outcome.response.results] == ["a1", "b1"]

    def test_filters_do_not_change_total(self):
        paid = [Listing(source="A", external_id="p", price=5, is_free=False)]
        batches = [SourceBatch(source="A", total_count=50, items=paid)]

        outcome = merge_batches(batches, AggregationRequest(query="x", free_only=True))

        assert outcome.response.results == []
        assert outcome.response.total_count == 50
        assert outcome.filtered_count == 0

    def test_sorted_merge(self):
        batches = [
            SourceBatch(source="A", total_count=1, items=[
                Listing(source="A", external_id="old", created_at_source=datetime(2020, 1, 1, tzinfo=timezone.utc)),
            ]),
            SourceBatch(source="B", total_count=1, items=[
                Listing(source="B", external_id="new", created_at_source=datetime(2024, 1, 1, tzinfo=timezone.utc)),
            ]),
        ]

        outcome = merge_batches(batches, AggregationRequest(query="x", sort_by="newest"))

        assert [l.external_id for l in outcome.response.results] == ["new", "old"]

    def test_page_is_echoed(self):
        outcome = merge_batches([], AggregationRequest(query="x", page=4, page_size=12))
        assert outcome.response.page == 4
        assert outcome.response.page_size == 12
        assert outcome.response.total_pages == 1


class TestDetails:
    @pytest.mark.asyncio
    async def test_unknown_source_invokes_no_adapter(self):
        a = RecordingAdapter("A", listings_for("A", 1))
        service = AggregationService(AggregationRepository([a]))

        with pytest.raises(UnknownSourceError) as exc_info:
            await service.get_details("Etsy", "a1")

        assert a.calls == []
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Unknown source: Etsy"

    @pytest.mark.asyncio
    async def test_found(self):
        a = RecordingAdapter("Printables", listings_for("Printables", 2))
        service = AggregationService(AggregationRepository([a]))

        listing = await service.get_details("printables", "printables2")

        assert listing.external_id == "printables2"
        assert a.calls == [("details", "printables2", None)]

    @pytest.mark.asyncio
    async def test_miss_is_not_found(self):
        a = RecordingAdapter("A", listings_for("A", 1))
        service = AggregationService(AggregationRepository([a]))

        with pytest.raises(ListingNotFoundError) as exc_info:
            await service.get_details("A", "missing")

        assert exc_info.value.message == "Model missing not found on A"

    @pytest.mark.asyncio
    async def test_adapter_failure_is_not_found(self):
        a = RecordingAdapter("A", listings_for("A", 1), error=RuntimeError("upstream 500"))
        service = AggregationService(AggregationRepository([a]))

        with pytest.raises(ListingNotFoundError):
            await service.get_details("A", "a1")


class TestDeadline:
    @pytest.mark.asyncio
    async def test_request_deadline_keeps_answered_sources(self, monkeypatch):
        monkeypatch.setenv("AGGREGATOR_REQUEST_DEADLINE_SECONDS", "0.2")
        monkeypatch.setenv("AGGREGATOR_SOURCE_TIMEOUT_SECONDS", "10")
        fast = RecordingAdapter("Fast", listings_for("Fast", 3), total=3)
        slow = RecordingAdapter("Slow", listings_for("Slow", 5), total=5, delay=5.0)
        service = AggregationService(AggregationRepository([fast, slow]))

        response = await asyncio.wait_for(service.search(AggregationRequest(query="benchy")), timeout=2.0)

        assert [l.external_id for l in response.results] == ["fast1", "fast2", "fast3"]
        assert response.total_count == 3
        assert response.total_pages == 1

    @pytest.mark.asyncio
    async def test_request_deadline_caps_source_timeout(self, monkeypatch):
        monkeypatch.setenv("AGGREGATOR_SOURCE_TIMEOUT_SECONDS", "10")
        slow = RecordingAdapter("Slow", listings_for("Slow", 1), total=1, delay=5.0)
        repository = AggregationRepository([slow])

        batches, statuses = await repository.fan_out_trending(page=1, page_size=8, deadline_seconds=0.05)

        assert batches[0].items == []
        assert batches[0].total_count == 0
        assert statuses[0].status == "timeout"

    @pytest.mark.asyncio
    async def test_invalid_deadline_is_ignored(self, monkeypatch):
        monkeypatch.setenv("AGGREGATOR_REQUEST_DEADLINE_SECONDS", "soon")
        a = RecordingAdapter("A", listings_for("A", 1), total=1)
        service = AggregationService(AggregationRepository([a]))

        response = await service.search(AggregationRequest(query="benchy"))

        assert response.total_count == 1
