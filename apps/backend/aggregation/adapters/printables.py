"""Printables GraphQL adapter (no credentials)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from aggregation.adapters.base import (
    SourceAdapter,
    as_float,
    as_int,
    as_str,
    graphql_data,
    nested,
    offset_for,
    parse_timestamp,
)
from aggregation.constants import LIKES, NEWEST, POPULAR, PRICE_ASC, PRICE_DESC
from aggregation.models import Listing, SourceBatch

logger = logging.getLogger(__name__)

GRAPHQL_ENDPOINT = "https://api.printables.com/graphql/"
MEDIA_BASE_URL = "https://media.printables.com/"
SITE_BASE_URL = "https://www.printables.com/model/"

_ORDERING = {
    NEWEST: "NEWEST",
    LIKES: "MOST_LIKED",
    POPULAR: "MOST_DOWNLOADED",
    PRICE_ASC: "PRICE_LOW_TO_HIGH",
    PRICE_DESC: "PRICE_HIGH_TO_LOW",
}

PRINT_FIELDS = """
    id name slug likesCount downloadCount makesCount displayCount
    price premium datePublished
    image { filePath }
    user { publicUsername }
    category { name }
    license { name }
    tags { name }
"""

SEARCH_QUERY = """query SearchPrints($q: String!, $limit: Int!, $offset: Int!) {
    searchPrints2(query: $q, limit: $limit, offset: $offset%(ordering)s) {
        totalCount
        items { %(fields)s }
    }
}"""

TRENDING_QUERY = """query TrendingPrints($limit: Int!, $offset: Int!) {
    prints(limit: $limit, offset: $offset, ordering: "-likes_count_7_days") { %(fields)s }
}"""

DETAIL_QUERY = """query PrintDetail($id: ID!) {
    print(id: $id) {
        id name slug description summary
        likesCount downloadCount makesCount displayCount
        price premium datePublished firstPublish
        image { filePath }
        images { filePath }
        user { publicUsername }
        category { name }
        license { name }
        tags { name }
    }
}"""

# Used when the trending query is rejected upstream
FALLBACK_TRENDING_TERM = "print"


class PrintablesAdapter(SourceAdapter):
    source_name = "Printables"

    def __init__(self, endpoint: str = GRAPHQL_ENDPOINT):
        self.endpoint = endpoint

    async def _post(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            resp = await client.post(self.endpoint, json={"query": query, "variables": variables})
            resp.raise_for_status()
            return resp.json()

    async def search(
        self, query: str, page: int = 1, page_size: int = 20, sort_by: Optional[str] = None
    ) -> SourceBatch:
        ordering = _ORDERING.get(sort_by or "")
        gql = SEARCH_QUERY % {
            "ordering": f", ordering: {ordering}" if ordering else "",
            "fields": PRINT_FIELDS,
        }
        payload = await self._post(
            gql, {"q": query, "limit": page_size, "offset": offset_for(page, page_size)}
        )
        block = graphql_data(payload, "searchPrints2", self.source_name)

        items = [self._to_listing(item) for item in block.get("items") or [] if isinstance(item, dict)]
        total = as_int(block.get("totalCount"))
        logger.info(f"[Printables] Found {len(items)} results (total: {total})")
        return SourceBatch(source=self.source_name, total_count=total, items=items)

    async def get_trending(self, page: int = 1, page_size: int = 20) -> SourceBatch:
        try:
            payload = await self._post(
                TRENDING_QUERY % {"fields": PRINT_FIELDS},
                {"limit": page_size, "offset": offset_for(page, page_size)},
            )
            prints = graphql_data(payload, "prints", self.source_name)
        except Exception as e:
            logger.warning(f"[Printables] Trending query failed ({type(e).__name__}), falling back to search")
            return await self.search(FALLBACK_TRENDING_TERM, page, page_size, LIKES)

        items = [self._to_listing(item) for item in prints or [] if isinstance(item, dict)]
        return SourceBatch(source=self.source_name, total_count=len(items), items=items)

    async def get_details(self, external_id: str) -> Optional[Listing]:
        payload = await self._post(DETAIL_QUERY, {"id": external_id})
        if payload.get("errors"):
            logger.error(f"[Printables] Detail errors for {external_id}: {str(payload['errors'])[:200]}")
            return None
        item = nested(payload, "data", "print")
        if not isinstance(item, dict):
            return None

        listing = self._to_listing(item)
        updates: Dict[str, Any] = {}
        description = item.get("description")
        if isinstance(description, str):
            updates["description"] = description
            updates["description_html"] = description
        elif isinstance(item.get("summary"), str):
            updates["description"] = item["summary"]

        images = [
            MEDIA_BASE_URL + image["filePath"]
            for image in item.get("images") or []
            if isinstance(image, dict) and isinstance(image.get("filePath"), str)
        ]
        if images:
            updates["image_urls"] = images
            if not listing.thumbnail_url:
                updates["thumbnail_url"] = images[0]
        return listing.enriched(**updates)

    def _to_listing(self, item: Dict[str, Any]) -> Listing:
        print_id = as_str(item.get("id"), "0")
        slug = as_str(item.get("slug"))
        file_path = nested(item, "image", "filePath")
        thumb = MEDIA_BASE_URL + file_path if isinstance(file_path, str) else ""
        creator = as_str(nested(item, "user", "publicUsername")) or "Unknown"
        price = as_float(item.get("price"))
        premium = bool(item.get("premium"))

        tags: List[str] = [
            tag["name"] for tag in item.get("tags") or []
            if isinstance(tag, dict) and isinstance(tag.get("name"), str)
        ]

        return Listing(
            source=self.source_name,
            external_id=print_id,
            title=as_str(item.get("name")) or "Untitled",
            source_url=f"{SITE_BASE_URL}{print_id}-{slug}" if slug else f"{SITE_BASE_URL}{print_id}",
            thumbnail_url=thumb,
            image_urls=[thumb] if thumb else [],
            creator_name=creator,
            creator_profile_url=f"https://www.printables.com/@{creator}",
            price=max(0.0, price),
            currency="USD",
            is_free=price == 0 and not premium,
            is_subscription_gated=premium,
            like_count=as_int(item.get("likesCount")),
            view_count=as_int(item.get("displayCount")),
            make_count=as_int(item.get("makesCount")),
            file_count=as_int(item.get("downloadCount")),
            tags=tags,
            category=as_str(nested(item, "category", "name")) or None,
            license=as_str(nested(item, "license", "name")) or None,
            created_at_source=parse_timestamp(item.get("datePublished")),
        )
