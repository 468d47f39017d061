"""MyMiniFactory REST adapter (API key in the query string)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from aggregation.adapters.base import SourceAdapter, as_float, as_int, as_str, parse_timestamp
from aggregation.constants import LIKES, NEWEST, POPULAR
from aggregation.models import Listing, SourceBatch

logger = logging.getLogger(__name__)

BASE_URL = "https://www.myminifactory.com/api/v2/"

_SORTS = {NEWEST: "date", POPULAR: "popularity", LIKES: "popularity"}


def _url_of(element: Any, prop: str) -> Optional[str]:
    """Read ``prop`` as a plain string or as an object carrying a ``url``."""
    if not isinstance(element, dict):
        return None
    value = element.get(prop)
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("url"), str):
        return value["url"]
    return None


def upscale_thumbnail(url: str) -> str:
    for small in ("/w:200/h:200/", "/w:400/h:400/"):
        if small in url:
            return url.replace(small, "/w:600/h:600/")
    return url


def object_id_from_url(url: str, fallback: str) -> str:
    """Search hits carry an id that is not the object id; the object id ends the URL slug."""
    tail = url.rsplit("-", 1)[-1] if url else ""
    return tail if tail.isdigit() else fallback


class MyMiniFactoryAdapter(SourceAdapter):
    source_name = "MyMiniFactory"

    def __init__(self, api_key: str, base_url: str = BASE_URL):
        self.api_key = api_key
        self.base_url = base_url

    def _api(self) -> httpx.AsyncClient:
        return self._client(base_url=self.base_url)

    async def _search(self, params: Dict[str, Any]) -> Dict[str, Any]:
        async with self._api() as client:
            resp = await client.get("search", params={**params, "key": self.api_key})
            resp.raise_for_status()
            return resp.json()

    async def search(
        self, query: str, page: int = 1, page_size: int = 20, sort_by: Optional[str] = None
    ) -> SourceBatch:
        params: Dict[str, Any] = {"q": query, "page": page, "per_page": page_size}
        sort = _SORTS.get(sort_by or "")
        if sort:
            params["sort"] = sort
        data = await self._search(params)

        raw_items = data.get("items") if isinstance(data, dict) else None
        items = [self._to_listing(item) for item in raw_items or [] if isinstance(item, dict)]
        total = as_int(data.get("total_count"), as_int(data.get("Count")))
        logger.info(f"[MyMiniFactory] Found {len(items)} results (total: {total})")
        return SourceBatch(source=self.source_name, total_count=total, items=items)

    async def get_trending(self, page: int = 1, page_size: int = 20) -> SourceBatch:
        # The objects endpoint reports zero likes; an empty popularity search does not
        data = await self._search({"q": "", "page": page, "per_page": page_size, "sort": "popularity"})

        if isinstance(data, list):
            raw_items: List[Any] = data
        else:
            raw_items = data.get("items") or []
        items = [self._to_listing(item) for item in raw_items if isinstance(item, dict)]

        total = len(items)
        if isinstance(data, dict):
            total = as_int(data.get("total_count"), as_int(data.get("total"), len(items)))
        return SourceBatch(source=self.source_name, total_count=total, items=items)

    async def get_details(self, external_id: str) -> Optional[Listing]:
        async with self._api() as client:
            resp = await client.get(f"objects/{quote(external_id, safe='')}", params={"key": self.api_key})
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        root = resp.json()
        if not isinstance(root, dict):
            return None

        listing = self._to_listing(root)
        updates: Dict[str, Any] = {
            "view_count": as_int(root.get("views")),
            "description_html": as_str(root.get("description_html")) or listing.description,
        }
        images = [
            url
            for url in (
                _url_of(img, "standard") or _url_of(img, "large") or _url_of(img, "url")
                for img in root.get("images") or []
            )
            if url
        ]
        if images:
            updates["image_urls"] = images
        return listing.enriched(**updates)

    def _to_listing(self, item: Dict[str, Any]) -> Listing:
        url = _url_of(item, "url") or ""
        object_id = object_id_from_url(url, as_str(item.get("id"), "0"))

        thumb = ""
        images = item.get("images")
        if isinstance(images, list) and images:
            first = images[0]
            thumb = _url_of(first, "standard") or _url_of(first, "large") or _url_of(first, "url") or ""
        if not thumb:
            thumb = _url_of(item, "thumbnail") or ""
        thumb = upscale_thumbnail(thumb)
        designer = item.get("designer") if isinstance(item.get("designer"), dict) else {}
        if not thumb:
            thumb = _url_of(designer, "avatar_url") or ""

        raw_price = item.get("price")
        price = as_float(raw_price.get("value")) if isinstance(raw_price, dict) else as_float(raw_price)

        return Listing(
            source=self.source_name,
            external_id=object_id,
            title=_url_of(item, "name") or "Untitled",
            description=_url_of(item, "description") or "",
            source_url=url,
            thumbnail_url=thumb,
            image_urls=[thumb],
            creator_name=_url_of(designer, "username") or "Unknown",
            creator_profile_url=_url_of(designer, "profile_url") or "",
            price=max(0.0, price),
            is_free=price == 0,
            like_count=as_int(item.get("likes")),
            created_at_source=parse_timestamp(item.get("published_at")),
            tags=[tag for tag in item.get("tags") or [] if isinstance(tag, str)],
        )
