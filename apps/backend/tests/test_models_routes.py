"""
HTTP tests for the model search endpoints.

Verifies:
- camelCase response bodies and query parameters
- page / pageSize clamping
- 404s for unknown sources and missing models
- /filters, /random-term and the short route aliases
"""
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from aggregation.adapters import MockSourceAdapter
from aggregation.adapters.base import SourceAdapter
from aggregation.models import SourceBatch
from aggregation.repository import AggregationRepository
from aggregation.service import AggregationService
from main import app

client = TestClient(app)


class FailingAdapter(SourceAdapter):
    source_name = "Broken"

    async def search(self, query, page=1, page_size=20, sort_by=None):
        raise RuntimeError("upstream down")

    async def get_trending(self, page=1, page_size=20):
        raise RuntimeError("upstream down")

    async def get_details(self, external_id):
        raise RuntimeError("upstream down")


class RecordingMock(MockSourceAdapter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []

    async def search(self, query, page=1, page_size=20, sort_by=None):
        self.calls.append(("search", query, page, page_size, sort_by))
        return await super().search(query, page, page_size, sort_by)

    async def get_trending(self, page=1, page_size=20):
        self.calls.append(("trending", "", page, page_size, None))
        return await super().get_trending(page, page_size)


@pytest.fixture
def sources():
    return [RecordingMock("Alpha", total=30), RecordingMock("Beta", total=20)]


@pytest.fixture
def service(sources):
    svc = AggregationService(AggregationRepository(sources))
    with patch("routes.models.get_aggregation_service", return_value=svc):
        yield svc


class TestSearchEndpoint:
    def test_search_returns_camel_case_page(self, service):
        response = client.get("/api/models/search", params={"q": "benchy", "pageSize": 4})

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"results", "totalCount", "page", "pageSize", "totalPages"}
        assert data["totalCount"] == 50
        assert data["pageSize"] == 4
        assert data["totalPages"] == 13
        assert len(data["results"]) == 4
        assert [r["source"] for r in data["results"]] == ["Alpha", "Beta", "Alpha", "Beta"]
        first = data["results"][0]
        assert "externalId" in first
        assert "thumbnailUrl" in first
        assert "isFree" in first

    def test_page_size_and_page_are_clamped(self, service, sources):
        response = client.get("/api/models/search", params={"q": "benchy", "page": 0, "pageSize": 500})

        data = response.json()
        assert data["page"] == 1
        assert data["pageSize"] == 100
        assert sources[0].calls[0] == ("search", "benchy", 1, 100, "relevance")

    def test_page_size_floor(self, service):
        data = client.get("/api/models/search", params={"q": "benchy", "pageSize": 0}).json()
        assert data["pageSize"] == 1
        assert len(data["results"]) == 1

    def test_sources_filter(self, service, sources):
        response = client.get("/api/models/search", params={"q": "benchy", "sources": "beta,,"})

        assert response.status_code == 200
        assert sources[0].calls == []
        assert {r["source"] for r in response.json()["results"]} == {"Beta"}

    def test_empty_query_returns_trending(self, service, sources):
        response = client.get("/api/models/search")

        assert response.status_code == 200
        assert sources[0].calls[0][0] == "trending"

    def test_sort_and_filters_are_applied(self, service):
        response = client.get(
            "/api/models/search",
            params={"q": "vase", "sortBy": "price_desc", "maxPrice": 10},
        )

        prices = [r["price"] for r in response.json()["results"]]
        assert prices == sorted(prices, reverse=True)
        assert all(price <= 10 for price in prices)

    def test_free_only(self, service):
        response = client.get("/api/models/search", params={"q": "vase", "freeOnly": "true"})
        assert all(r["isFree"] for r in response.json()["results"])

    def test_all_sources_failing_is_still_200(self):
        svc = AggregationService(AggregationRepository([FailingAdapter()]))
        with patch("routes.models.get_aggregation_service", return_value=svc):
            response = client.get("/api/models/search", params={"q": "benchy"})

        assert response.status_code == 200
        assert response.json() == {
            "results": [],
            "totalCount": 0,
            "page": 1,
            "pageSize": 24,
            "totalPages": 1,
        }

    def test_short_alias(self, service):
        response = client.get("/search", params={"q": "benchy", "pageSize": 2})
        assert response.status_code == 200
        assert len(response.json()["results"]) == 2


class TestTrendingEndpoint:
    def test_trending_splits_page(self, service, sources):
        response = client.get("/api/models/trending", params={"pageSize": 24})

        assert response.status_code == 200
        assert sources[0].calls == [("trending", "", 1, 12, None)]
        assert response.json()["totalCount"] == 50

    def test_trending_alias(self, service):
        assert client.get("/trending").status_code == 200


class TestDetailsEndpoint:
    def test_details_found(self, service, sources):
        batch_item = client.get("/api/models/search", params={"q": "benchy"}).json()["results"][0]

        response = client.get(f"/api/models/{batch_item['source']}/{batch_item['externalId']}")

        assert response.status_code == 200
        assert response.json()["externalId"] == batch_item["externalId"]
        assert response.json()["title"] == batch_item["title"]

    def test_details_alias_and_case_insensitive_source(self, service):
        response = client.get("/details/alpha/benchy-1")
        assert response.status_code == 200
        assert response.json()["source"] == "Alpha"

    def test_unknown_source_is_404(self, service):
        response = client.get("/api/models/Etsy/123")

        assert response.status_code == 404
        assert response.json()["message"] == "Unknown source: Etsy"

    def test_missing_model_is_404(self, service):
        response = client.get("/api/models/Alpha/nothing-here")

        assert response.status_code == 404
        assert response.json()["message"] == "Model nothing-here not found on Alpha"

    def test_adapter_failure_is_404(self):
        svc = AggregationService(AggregationRepository([FailingAdapter()]))
        with patch("routes.models.get_aggregation_service", return_value=svc):
            response = client.get("/api/models/Broken/1")

        assert response.status_code == 404


class TestSupportingEndpoints:
    def test_filters(self, service):
        data = client.get("/api/models/filters").json()

        assert data["sources"] == ["Alpha", "Beta"]
        assert {"value": "relevance", "label": "Relevance"} in data["sortOptions"]
        assert [o["value"] for o in data["sortOptions"]] == [
            "relevance", "newest", "popular", "likes", "price_asc", "price_desc",
        ]

    def test_random_term(self):
        with patch("routes.models.get_random_term", return_value="octopus planter"):
            response = client.get("/api/models/random-term")

        assert response.status_code == 200
        assert response.json() == {"term": "octopus planter"}

    def test_request_id_header(self, service):
        response = client.get("/api/models/filters", headers={"X-Request-ID": "req-test"})
        assert response.headers["X-Request-ID"] == "req-test"


def test_inverted_price_bounds_return_empty_page(service):
    response = client.get("/api/models/search", params={"q": "vase", "minPrice": 20, "maxPrice": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["results"] == []
    assert data["totalCount"] == 50
