"""MakerWorld adapter over the site's Next.js ``_next/data`` JSON routes.

The JSON routes are keyed by a deployment build id scraped from the homepage.
The id is cached process-wide for an hour behind an asyncio.Lock and dropped
whenever a data route returns 404 (a new deployment invalidates it).
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from aggregation.adapters.base import SourceAdapter, as_int, as_str, offset_for, parse_timestamp
from aggregation.models import Listing, SourceBatch
from exceptions import SourceAdapterError

logger = logging.getLogger(__name__)

BASE_URL = "https://makerworld.com"
SITE_BASE_URL = "https://makerworld.com/en/models/"
BUILD_ID_TTL_SECONDS = 3600.0

_BUILD_ID = re.compile(r'"buildId"\s*:\s*"([^"]+)"')

# Cloudflare rejects non-browser user agents
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,application/json,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class BuildIdCache:
    """Process-wide, lock-guarded cache of the current Next.js build id."""

    def __init__(self, ttl_seconds: float = BUILD_ID_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._build_id: Optional[str] = None
        self._fetched_at: float = 0.0
        self._lock = asyncio.Lock()

    def _fresh(self) -> Optional[str]:
        if self._build_id and time.monotonic() - self._fetched_at < self.ttl_seconds:
            return self._build_id
        return None

    async def get(self, fetch) -> str:
        cached = self._fresh()
        if cached:
            return cached
        async with self._lock:
            cached = self._fresh()
            if cached:
                return cached
            build_id = await fetch()
            self._build_id = build_id
            self._fetched_at = time.monotonic()
            logger.info(f"[MakerWorld] Fetched buildId = {build_id}")
            return build_id

    def invalidate(self) -> None:
        self._build_id = None


_build_id_cache = BuildIdCache()


class MakerWorldAdapter(SourceAdapter):
    source_name = "MakerWorld"
    timeout_seconds = 20.0

    def __init__(self, base_url: str = BASE_URL, cache: Optional[BuildIdCache] = None):
        self.base_url = base_url.rstrip("/")
        self.cache = cache or _build_id_cache

    def _browser(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout_seconds, headers=BROWSER_HEADERS, follow_redirects=True
        )

    async def _fetch_build_id(self) -> str:
        async with self._browser() as client:
            resp = await client.get(f"{self.base_url}/en")
            resp.raise_for_status()
            page = resp.text
        match = _BUILD_ID.search(page)
        if not match:
            raise SourceAdapterError("Could not extract buildId from homepage", source=self.source_name)
        return match.group(1)

    async def _data(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """GET a ``_next/data`` route and return its ``pageProps``; 404 and 403 read as no data."""
        build_id = await self.cache.get(self._fetch_build_id)
        url = f"{self.base_url}/_next/data/{build_id}{path}.json"
        async with self._browser() as client:
            resp = await client.get(url, params=params)

        if resp.status_code == 404:
            logger.warning(f"[MakerWorld] 404 for {path}, dropping cached buildId")
            self.cache.invalidate()
            return None
        if resp.status_code == 403:
            logger.warning(f"[MakerWorld] 403 (Cloudflare) for {path}")
            return None
        resp.raise_for_status()

        data = resp.json()
        props = data.get("pageProps") if isinstance(data, dict) else None
        return props if isinstance(props, dict) else None

    def _batch(self, props: Optional[Dict[str, Any]]) -> SourceBatch:
        if not props:
            return SourceBatch.empty(self.source_name)
        items = [self._to_listing(d) for d in props.get("designs") or [] if isinstance(d, dict)]
        return SourceBatch(source=self.source_name, total_count=as_int(props.get("total")), items=items)

    async def search(
        self, query: str, page: int = 1, page_size: int = 20, sort_by: Optional[str] = None
    ) -> SourceBatch:
        props = await self._data(
            "/en/search/models", {"keyword": query, "offset": offset_for(page, page_size)}
        )
        batch = self._batch(props)
        logger.info(f"[MakerWorld] Found {len(batch.items)} results (total: {batch.total_count})")
        return batch

    async def get_trending(self, page: int = 1, page_size: int = 20) -> SourceBatch:
        # No keyword returns the popular feed
        return self._batch(await self._data("/en/search/models", {"offset": offset_for(page, page_size)}))

    async def get_details(self, external_id: str) -> Optional[Listing]:
        # Ids come as "40146" or "40146-benchy"; the bare form redirects to the slugged one
        props = await self._data(f"/en/models/{quote(external_id, safe='-')}")
        if props and isinstance(props.get("__N_REDIRECT"), str) and props["__N_REDIRECT"]:
            props = await self._data(props["__N_REDIRECT"])
        if not props or not isinstance(props.get("design"), dict):
            return None

        design = props["design"]
        listing = self._to_listing(design)
        updates: Dict[str, Any] = {}
        if isinstance(design.get("description"), str):
            updates["description"] = design["description"]
            updates["description_html"] = design["description"]

        extension = design.get("designExtension")
        pictures = extension.get("design_pictures") if isinstance(extension, dict) else None
        images = [
            pic["url"] for pic in pictures or []
            if isinstance(pic, dict) and isinstance(pic.get("url"), str) and pic["url"]
        ]
        if images:
            updates["image_urls"] = images
            updates["thumbnail_url"] = images[0]
        return listing.enriched(**updates)

    def _to_listing(self, item: Dict[str, Any]) -> Listing:
        design_id = as_str(item.get("id"), "0")
        slug = as_str(item.get("slug"))
        cover = as_str(item.get("cover"))
        creator = item.get("designCreator") if isinstance(item.get("designCreator"), dict) else {}
        handle = as_str(creator.get("handle"))

        return Listing(
            source=self.source_name,
            external_id=f"{design_id}-{slug}" if slug else design_id,
            title=as_str(item.get("title")) or "Untitled",
            source_url=f"{SITE_BASE_URL}{design_id}-{slug}" if slug else f"{SITE_BASE_URL}{design_id}",
            thumbnail_url=cover,
            image_urls=[cover] if cover else [],
            creator_name=as_str(creator.get("name")) or "Unknown",
            creator_profile_url=f"https://makerworld.com/en/@{handle}" if handle else "",
            # Every MakerWorld model is free to download
            price=0.0,
            currency="USD",
            is_free=True,
            like_count=as_int(item.get("likeCount")),
            view_count=as_int(item.get("printCount")),
            make_count=as_int(item.get("downloadCount")),
            tags=[tag for tag in item.get("tags") or [] if isinstance(tag, str)],
            license=as_str(item.get("license")) or None,
            created_at_source=parse_timestamp(item.get("createTime")),
        )
