"""Typed models for the multi-source model aggregation pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from aggregation.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

SourceStatus = Literal["ok", "error", "timeout"]


class Listing(BaseModel):
    """One normalized 3D-model record from a single source."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    source: str
    external_id: str
    title: str = "Untitled"
    description: str = ""
    description_html: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    thumbnail_url: str = ""
    image_urls: List[str] = Field(default_factory=list)
    creator_name: str = "Unknown"
    creator_profile_url: str = ""
    source_url: str = ""
    price: float = Field(0.0, ge=0)
    currency: str = "USD"
    is_free: bool = True
    is_subscription_gated: bool = False
    like_count: int = 0
    view_count: int = 0
    make_count: int = 0
    file_count: int = 0
    license: Optional[str] = None
    category: Optional[str] = None
    created_at_source: Optional[datetime] = None

    @field_validator("created_at_source", mode="after")
    @classmethod
    def _ensure_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("tags", "image_urls", mode="before")
    @classmethod
    def _drop_empty(cls, value: Optional[Sequence[Any]]) -> List[str]:
        if value is None:
            return []
        return [str(item) for item in value if item]

    def enriched(self, **updates: Any) -> "Listing":
        """Return a copy with detail-only fields filled in; the original is untouched."""
        data = self.model_dump()
        data.update({key: value for key, value in updates.items() if value is not None})
        return Listing(**data)


class SourceBatch(BaseModel):
    """Results of one adapter call: a slice of items plus the upstream-reported total."""

    source: str
    total_count: int = Field(0, ge=0)
    items: List[Listing] = Field(default_factory=list)

    @classmethod
    def empty(cls, source: str) -> "SourceBatch":
        return cls(source=source, total_count=0, items=[])


class SourceStatusSnapshot(BaseModel):
    source: str
    status: SourceStatus
    result_count: int = 0
    latency_ms: Optional[int] = None
    message: Optional[str] = None


class AggregationRequest(BaseModel):
    """A search or trending request after HTTP parameters have been parsed."""

    query: str = ""
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: Optional[str] = "relevance"
    sources: Optional[List[str]] = None
    free_only: Optional[bool] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    @property
    def is_trending(self) -> bool:
        return not self.query

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, value: Optional[str]) -> str:
        return (value or "").strip()

    @field_validator("page", mode="before")
    @classmethod
    def _clamp_page(cls, value: Optional[int]) -> int:
        if value is None:
            return 1
        return max(1, int(value))

    @field_validator("page_size", mode="before")
    @classmethod
    def _clamp_page_size(cls, value: Optional[int]) -> int:
        if value is None:
            return DEFAULT_PAGE_SIZE
        return min(MAX_PAGE_SIZE, max(1, int(value)))

    @field_validator("sources", mode="before")
    @classmethod
    def _split_sources(cls, value: Sequence[str] | str | None) -> Optional[List[str]]:
        if value is None:
            return None
        if isinstance(value, str):
            candidates = value.split(",")
        else:
            candidates = [str(item) for item in value]
        cleaned = [item.strip() for item in candidates if item and item.strip()]
        return cleaned or None


class AggregationResponse(BaseModel):
    """One page of merged listings plus union-level paging figures."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    results: List[Listing] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total_pages: int = 1
