"""Deterministic offline source used when no live catalog is configured."""

from __future__ import annotations

import hashlib
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from aggregation.adapters.base import SourceAdapter
from aggregation.models import Listing, SourceBatch

MOCK_TOTAL = 60
TRENDING_SLUG = "trending"
_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)
_CREATORS = ["printmaster", "layerlines", "filamentfox", "benchybuilder", "nozzlenerd", "supportless"]
_STYLES = ["Low-Poly", "Parametric", "Articulated", "Print-in-Place", "Minimalist", "Modular"]


def _seed(text: str) -> int:
    return int(hashlib.md5(text.encode()).hexdigest()[:8], 16)


def _slug(query: str) -> str:
    return "-".join(query.lower().split())


class MockSourceAdapter(SourceAdapter):
    """Mock catalog for testing - returns sample listings derived from the query."""

    def __init__(self, source_name: str = "MockSource", total: int = MOCK_TOTAL):
        self.source_name = source_name
        self.total = total

    def _listing(self, query: str, index: int) -> Listing:
        query = " ".join(query.lower().split())
        rng = random.Random(_seed(f"{self.source_name}:{query}:{index}"))
        subject = query.title() if query else "Trending Model"
        price = 0.0 if rng.random() < 0.6 else round(rng.uniform(1, 25), 2)
        external_id = f"{_slug(query) or TRENDING_SLUG}-{index + 1}"
        return Listing(
            source=self.source_name,
            external_id=external_id,
            title=f"{rng.choice(_STYLES)} {subject} #{index + 1}",
            description=f"Sample {subject.lower()} model for offline development.",
            tags=[word.lower() for word in subject.split()][:3],
            thumbnail_url=f"https://picsum.photos/seed/{external_id}/600/600",
            image_urls=[f"https://picsum.photos/seed/{external_id}/600/600"],
            creator_name=rng.choice(_CREATORS),
            source_url=f"https://example.com/{self.source_name.lower()}/{external_id}",
            price=price,
            is_free=price == 0,
            like_count=rng.randint(0, 5000),
            view_count=rng.randint(100, 50000),
            make_count=rng.randint(0, 500),
            created_at_source=_EPOCH + timedelta(days=rng.randint(0, 600)),
        )

    def _page(self, query: str, page: int, page_size: int) -> List[Listing]:
        start = (max(1, page) - 1) * page_size
        stop = min(self.total, start + page_size)
        return [self._listing(query, i) for i in range(start, stop)]

    async def search(
        self, query: str, page: int = 1, page_size: int = 20, sort_by: Optional[str] = None
    ) -> SourceBatch:
        return SourceBatch(source=self.source_name, total_count=self.total, items=self._page(query, page, page_size))

    async def get_trending(self, page: int = 1, page_size: int = 20) -> SourceBatch:
        return SourceBatch(source=self.source_name, total_count=self.total, items=self._page("", page, page_size))

    async def get_details(self, external_id: str) -> Optional[Listing]:
        slug, _, number = external_id.rpartition("-")
        if not slug or not number.isdigit():
            return None
        index = int(number) - 1
        if not 0 <= index < self.total:
            return None
        query = "" if slug == TRENDING_SLUG else slug.replace("-", " ")
        return self._listing(query, index)
