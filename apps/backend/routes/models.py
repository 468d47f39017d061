"""
Model search endpoints - public, read-only, no persistence.

  GET /api/models/search      fan out a query to every selected source
  GET /api/models/trending    popular models for the landing page
  GET /api/models/filters     registered sources and sort options
  GET /api/models/random-term a random search suggestion
  GET /api/models/{source}/{id}  one listing from one source

The same search, trending and detail handlers are also mounted at /search,
/trending and /details/{source}/{id}.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import unquote

from fastapi import APIRouter, Query

from aggregation.constants import DEFAULT_PAGE_SIZE, RELEVANCE, SORT_OPTIONS
from aggregation.models import AggregationRequest, AggregationResponse, Listing
from aggregation.random_terms import get_random_term
from aggregation.repository import AggregationRepository
from aggregation.service import AggregationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/models", tags=["models"])
alias_router = APIRouter(tags=["models"])

# ---------------------------------------------------------------------------
# Lazy aggregation service
# ---------------------------------------------------------------------------
_aggregation_service: Optional[AggregationService] = None


def get_aggregation_service() -> AggregationService:
    global _aggregation_service
    if _aggregation_service is None:
        _aggregation_service = AggregationService(AggregationRepository())
    return _aggregation_service


# ---------------------------------------------------------------------------
# Search & trending
# ---------------------------------------------------------------------------
@router.get("/search", response_model=AggregationResponse)
async def search_models(
    q: Optional[str] = None,
    page: int = 1,
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
    sort_by: Optional[str] = Query(RELEVANCE, alias="sortBy"),
    sources: Optional[str] = None,
    free_only: Optional[bool] = Query(None, alias="freeOnly"),
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
):
    """Search every selected source at once. An empty ``q`` returns trending models."""
    request = AggregationRequest(
        query=q,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sources=sources,
        free_only=free_only,
        min_price=min_price,
        max_price=max_price,
    )
    logger.info(
        f"[Models] search q={request.query!r} page={request.page} "
        f"page_size={request.page_size} sort={request.sort_by}"
    )
    return await get_aggregation_service().search(request)


@router.get("/trending", response_model=AggregationResponse)
async def trending_models(
    page: int = 1,
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
    sources: Optional[str] = None,
):
    request = AggregationRequest(page=page, page_size=page_size, sources=sources)
    return await get_aggregation_service().trending(request)


# ---------------------------------------------------------------------------
# Supporting lookups
# ---------------------------------------------------------------------------
@router.get("/filters")
async def filter_options() -> Dict[str, Any]:
    return {
        "sources": get_aggregation_service().repository.source_names(),
        "sortOptions": SORT_OPTIONS,
    }


@router.get("/random-term")
async def random_term() -> Dict[str, str]:
    return {"term": get_random_term()}


# Declared last so the fixed paths above win
@router.get("/{source}/{external_id:path}", response_model=Listing)
async def model_details(source: str, external_id: str):
    """Full details for one model. Unknown sources and misses are 404s."""
    # Clients sometimes double-encode slugs
    return await get_aggregation_service().get_details(source, unquote(external_id))


alias_router.add_api_route("/search", search_models, methods=["GET"], response_model=AggregationResponse)
alias_router.add_api_route("/trending", trending_models, methods=["GET"], response_model=AggregationResponse)
alias_router.add_api_route(
    "/details/{source}/{external_id:path}", model_details, methods=["GET"], response_model=Listing
)
