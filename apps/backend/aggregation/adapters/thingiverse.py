"""Thingiverse REST adapter (bearer token)."""

from __future__ import annotations

import logging
import posixpath
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from aggregation.adapters.base import SourceAdapter, as_int, as_str, nested, parse_timestamp
from aggregation.constants import LIKES, NEWEST, POPULAR
from aggregation.models import Listing, SourceBatch

logger = logging.getLogger(__name__)

# Upstream has no total for the featured feed
FEATURED_TOTAL = 10000

_SORTS = {NEWEST: "newest", POPULAR: "popular", LIKES: "popular"}


def upgrade_thumbnail(url: str) -> str:
    """Swap Thingiverse's small thumbnail variants for the large display rendition."""
    if not url:
        return url
    ext = posixpath.splitext(url)[1]
    for size in ("_thumb_medium", "_thumb_small", "_thumb_tiny"):
        url = _replace_ci(url, f"{size}{ext}", f"_display_large{ext}")
    for prefix in ("medium_thumb_", "small_thumb_", "tiny_thumb_"):
        url = _replace_ci(url, prefix, "card_preview_")
    return url


def _replace_ci(text: str, old: str, new: str) -> str:
    lowered = text.lower()
    needle = old.lower()
    start = lowered.find(needle)
    while start != -1:
        text = text[:start] + new + text[start + len(old):]
        lowered = text.lower()
        start = lowered.find(needle, start + len(new))
    return text


class ThingiverseAdapter(SourceAdapter):
    source_name = "Thingiverse"

    def __init__(self, token: str, base_url: str = "https://api.thingiverse.com/"):
        self.token = token
        self.base_url = base_url

    def _api(self) -> httpx.AsyncClient:
        return self._client(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.token}"},
        )

    async def search(
        self, query: str, page: int = 1, page_size: int = 20, sort_by: Optional[str] = None
    ) -> SourceBatch:
        params = {
            "types": "things",
            "page": page,
            "per_page": page_size,
            "sort": _SORTS.get(sort_by or "", "relevant"),
        }
        async with self._api() as client:
            resp = await client.get(f"search/{quote(query, safe='')}", params=params)
            resp.raise_for_status()
            data = resp.json()

        # Hits arrive either bare or wrapped in {"hits": [...], "total": N}
        if isinstance(data, list):
            hits, total = data, len(data)
        else:
            hits = data.get("hits") or []
            total = as_int(data.get("total"), len(hits))

        items = [self._to_listing(thing) for thing in hits if isinstance(thing, dict)]
        logger.info(f"[Thingiverse] Found {len(items)} results (total: {total})")
        return SourceBatch(source=self.source_name, total_count=total, items=items)

    async def get_trending(self, page: int = 1, page_size: int = 20) -> SourceBatch:
        async with self._api() as client:
            resp = await client.get("featured", params={"page": page, "per_page": page_size})
            resp.raise_for_status()
            data = resp.json()

        if not isinstance(data, list):
            return SourceBatch.empty(self.source_name)
        items = [self._to_listing(thing) for thing in data if isinstance(thing, dict)]
        return SourceBatch(source=self.source_name, total_count=FEATURED_TOTAL, items=items)

    async def get_details(self, external_id: str) -> Optional[Listing]:
        async with self._api() as client:
            resp = await client.get(f"things/{quote(external_id, safe='')}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        thing = resp.json()
        if not isinstance(thing, dict):
            return None

        listing = self._to_listing(thing)
        return listing.enriched(
            description_html=as_str(thing.get("description_html")) or as_str(thing.get("description")),
            view_count=as_int(thing.get("view_count")),
            make_count=as_int(thing.get("make_count")),
            file_count=as_int(thing.get("file_count")),
        )

    def _to_listing(self, thing: Dict[str, Any]) -> Listing:
        thing_id = as_str(thing.get("id"), "0")
        thumb = upgrade_thumbnail(as_str(thing.get("preview_image")) or as_str(thing.get("thumbnail")))
        likes = thing.get("like_count")
        if likes is None:
            likes = thing.get("collect_count")

        tags: List[str] = []
        for tag in thing.get("tags") or []:
            if isinstance(tag, dict) and tag.get("name"):
                tags.append(as_str(tag["name"]))

        return Listing(
            source=self.source_name,
            external_id=thing_id,
            title=as_str(thing.get("name")) or "Untitled",
            description=as_str(thing.get("description")),
            thumbnail_url=thumb,
            image_urls=[thumb],
            source_url=as_str(thing.get("public_url")) or f"https://www.thingiverse.com/thing:{thing_id}",
            creator_name=as_str(nested(thing, "creator", "name")) or "Unknown",
            creator_profile_url=as_str(nested(thing, "creator", "public_url")),
            price=0.0,
            is_free=thing.get("is_free") is not False,
            like_count=as_int(likes),
            created_at_source=parse_timestamp(thing.get("created_at")),
            tags=tags,
        )
