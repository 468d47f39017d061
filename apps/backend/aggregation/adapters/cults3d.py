"""Cults3D GraphQL adapter (basic auth) with an HTML fallback for details."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

import httpx
from bs4 import BeautifulSoup

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

BASE_URL = "https://cults3d.com/"

_SORTS = {
    NEWEST: ("BY_PUBLICATION", "DESC"),
    LIKES: ("BY_LIKES", "DESC"),
    POPULAR: ("BY_DOWNLOADS", "DESC"),
    PRICE_ASC: ("BY_PRICE", "ASC"),
    PRICE_DESC: ("BY_PRICE", "DESC"),
}

CREATION_FIELDS = """
    id slug name description
    price(currency: EUR) { value }
    creator { nick shortUrl }
    illustrationImageUrl(version: DEFAULT)
    publishedAt downloadsCount likesCount
"""

SEARCH_QUERY = """query Search($q: String!, $limit: Int!, $offset: Int!) {
    creationsSearchBatch(query: $q, limit: $limit, offset: $offset%(sort)s) {
        total
        results { %(fields)s }
    }
}"""

DETAIL_QUERY = """query GetCreation($slug: String!) {
    creation(slug: $slug) { %(fields)s }
}"""

_DESCRIPTION_HEADER = re.compile(r"## 3D model description\n(.*?)\n\n##", re.S)
_FREE_LABELS = {"free", "gratuit"}


def model_page_url(slug: str) -> str:
    # "various" is a catch-all category; the site redirects to the real one
    return f"{BASE_URL}en/3d-model/various/{slug}"


def _json_ld(soup: BeautifulSoup) -> Dict[str, Any]:
    for script in soup.find_all("script", type="application/ld+json"):
        if not script.string:
            continue
        try:
            data = json.loads(script.string)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return {}


def scrape_listing(slug: str, page: str) -> Listing:
    """Build a listing from a Cults3D model page: JSON-LD first, then markup."""
    soup = BeautifulSoup(page, "html.parser")
    fields: Dict[str, Any] = {
        "source": Cults3DAdapter.source_name,
        "external_id": slug,
        "source_url": model_page_url(slug),
        "currency": "EUR",
        "is_free": False,
    }

    data = _json_ld(soup)
    if data.get("name"):
        fields["title"] = as_str(data["name"])
    if data.get("description"):
        fields["description"] = as_str(data["description"])
    image = data.get("image")
    if isinstance(image, list) and image:
        fields["thumbnail_url"] = as_str(image[0])
    elif isinstance(image, str):
        fields["thumbnail_url"] = image

    if not fields.get("title"):
        heading = soup.find("h1")
        fields["title"] = heading.get_text(strip=True) if heading else slug

    if not fields.get("description"):
        header = _DESCRIPTION_HEADER.search(soup.get_text("\n"))
        box = soup.select_one('[class*="read-more-text"]')
        if header:
            fields["description"] = header.group(1).strip()
        elif box:
            fields["description_html"] = box.decode_contents().strip()
            fields["description"] = box.get_text(" ", strip=True)

    if not fields.get("thumbnail_url"):
        og_image = soup.select_one('meta[property="og:image"]')
        if og_image and og_image.get("content"):
            fields["thumbnail_url"] = og_image["content"]
    if fields.get("thumbnail_url"):
        fields["image_urls"] = [fields["thumbnail_url"]]

    price_free = soup.select_one('[data-price="0"]') is not None
    # Free labels count only inside the price block
    label_free = any(
        tag.get_text(strip=True).lower() in _FREE_LABELS
        for block in soup.select('[data-price], [class*="price"]')
        for tag in [block, *block.find_all(True)]
    )
    if price_free or label_free:
        fields["is_free"] = True
        fields["price"] = 0.0

    creator = soup.select_one("a.t-secondary")
    handle = creator.get_text(strip=True) if creator else ""
    if handle.startswith("@"):
        fields["creator_name"] = handle[1:]
        fields["creator_profile_url"] = f"{BASE_URL}en/users/{handle[1:]}"

    return Listing(**fields)


class Cults3DAdapter(SourceAdapter):
    source_name = "Cults3D"

    def __init__(self, username: str, api_key: str, base_url: str = BASE_URL):
        # Usernames are often configured with the public "@" handle prefix
        self.username = username[1:] if username.startswith("@") else username
        self.api_key = api_key
        self.base_url = base_url

    def _api(self) -> httpx.AsyncClient:
        return self._client(base_url=self.base_url, auth=(self.username, self.api_key))

    async def _post(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        async with self._api() as client:
            resp = await client.post("graphql", json={"query": query, "variables": variables})
            resp.raise_for_status()
            return resp.json()

    async def _batch(self, query: str, page: int, page_size: int, sort_by: Optional[str]) -> SourceBatch:
        sort = _SORTS.get(sort_by or "")
        gql = SEARCH_QUERY % {
            "sort": f", sort: {sort[0]}, direction: {sort[1]}" if sort else "",
            "fields": CREATION_FIELDS,
        }
        payload = await self._post(
            gql, {"q": query, "limit": page_size, "offset": offset_for(page, page_size)}
        )
        block = graphql_data(payload, "creationsSearchBatch", self.source_name)
        items = [self._to_listing(item) for item in block.get("results") or [] if isinstance(item, dict)]
        return SourceBatch(source=self.source_name, total_count=as_int(block.get("total")), items=items)

    async def search(
        self, query: str, page: int = 1, page_size: int = 20, sort_by: Optional[str] = None
    ) -> SourceBatch:
        batch = await self._batch(query, page, page_size, sort_by)
        logger.info(f"[Cults3D] Found {len(batch.items)} results (total: {batch.total_count})")
        return batch

    async def get_trending(self, page: int = 1, page_size: int = 20) -> SourceBatch:
        # An empty query returns the site's default (featured) ordering
        return await self._batch("", page, page_size, None)

    async def get_details(self, external_id: str) -> Optional[Listing]:
        listing: Optional[Listing] = None
        try:
            payload = await self._post(DETAIL_QUERY % {"fields": CREATION_FIELDS}, {"slug": external_id})
            creation = nested(payload, "data", "creation")
            if isinstance(creation, dict):
                listing = self._to_listing(creation)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[Cults3D] GraphQL details failed for {external_id}: {type(e).__name__}")

        if listing is not None and listing.description.strip():
            return listing

        scraped = await self._scrape(external_id)
        if scraped is None:
            return listing
        if listing is None:
            return scraped

        updates: Dict[str, Any] = {}
        if scraped.description.strip():
            updates["description"] = scraped.description
            updates["description_html"] = scraped.description_html
        if len(scraped.image_urls) > len(listing.image_urls):
            updates["image_urls"] = scraped.image_urls
            updates["thumbnail_url"] = scraped.thumbnail_url
        if listing.creator_name == "Unknown" and scraped.creator_name != "Unknown":
            updates["creator_name"] = scraped.creator_name
            updates["creator_profile_url"] = scraped.creator_profile_url
        return listing.enriched(**updates)

    async def _scrape(self, slug: str) -> Optional[Listing]:
        try:
            async with self._client(follow_redirects=True) as client:
                resp = await client.get(model_page_url(slug))
        except httpx.HTTPError as e:
            logger.warning(f"[Cults3D] Scrape failed for {slug}: {type(e).__name__}")
            return None
        if resp.status_code != 200:
            return None
        return scrape_listing(slug, resp.text)

    def _to_listing(self, item: Dict[str, Any]) -> Listing:
        item_id = as_str(item.get("id"), "0")
        slug = as_str(item.get("slug")) or item_id
        external_id = slug if slug and slug != "0" else item_id
        price = as_float(nested(item, "price", "value"))
        thumb = as_str(item.get("illustrationImageUrl"))
        description = as_str(item.get("description"))

        return Listing(
            source=self.source_name,
            external_id=external_id,
            title=as_str(item.get("name")) or "Untitled",
            description=description,
            description_html=description or None,
            source_url=model_page_url(slug) if slug else BASE_URL,
            thumbnail_url=thumb,
            image_urls=[thumb],
            creator_name=as_str(nested(item, "creator", "nick")) or "Unknown",
            creator_profile_url=as_str(nested(item, "creator", "shortUrl")),
            price=max(0.0, price),
            currency="EUR",
            is_free=price == 0,
            like_count=as_int(item.get("likesCount")),
            created_at_source=parse_timestamp(item.get("publishedAt")),
        )
