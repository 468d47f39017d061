"""Source adapter contract and shared payload helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from aggregation.constants import USER_AGENT
from aggregation.models import Listing, SourceBatch
from exceptions import SourceAdapterError


class SourceAdapter(ABC):
    """One upstream catalog. Implementations raise on transport or payload errors."""

    source_name: str = ""
    timeout_seconds: float = 15.0

    @abstractmethod
    async def search(
        self, query: str, page: int = 1, page_size: int = 20, sort_by: Optional[str] = None
    ) -> SourceBatch:
        pass

    @abstractmethod
    async def get_trending(self, page: int = 1, page_size: int = 20) -> SourceBatch:
        pass

    @abstractmethod
    async def get_details(self, external_id: str) -> Optional[Listing]:
        pass

    def _client(self, **kwargs: Any) -> httpx.AsyncClient:
        headers = {"User-Agent": USER_AGENT}
        headers.update(kwargs.pop("headers", {}) or {})
        return httpx.AsyncClient(timeout=self.timeout_seconds, headers=headers, **kwargs)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} source={self.source_name!r}>"


def offset_for(page: int, page_size: int) -> int:
    return (max(1, page) - 1) * page_size


def as_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def as_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def as_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return default
    return str(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 strings (with or without a trailing Z); anything else yields None."""
    if not isinstance(value, str) or not value:
        return None
    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(cleaned)
    except ValueError:
        return None


def nested(data: Any, *keys: str) -> Any:
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def graphql_data(payload: Dict[str, Any], field: str, source: str) -> Any:
    """Unwrap ``data.<field>`` from a GraphQL response, raising on reported errors."""
    if not isinstance(payload, dict):
        raise SourceAdapterError("Non-object GraphQL payload", source=source)
    if payload.get("errors"):
        raise SourceAdapterError(f"GraphQL errors: {str(payload['errors'])[:200]}", source=source)
    block = nested(payload, "data", field)
    if block is None:
        raise SourceAdapterError(f"Response has no '{field}' block", source=source)
    return block
