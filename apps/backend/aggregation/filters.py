"""Listing filters applied to the merged candidate list before ranking.

Free-only and the price bounds are independent AND filters: a request with
``free_only=True`` and ``min_price=2`` keeps nothing priced below 2, free
items included.
"""

import logging
from typing import Iterable, List, Optional

from aggregation.models import Listing

logger = logging.getLogger(__name__)


def should_include_listing(
    listing: Listing,
    free_only: Optional[bool] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> bool:
    """Single source of truth for listing filtering.

    Rules, applied in order:
    - free_only: keep only listings flagged free
    - min_price: keep price >= min_price
    - max_price: keep price <= max_price
    Absent filters are no-ops.
    """
    if free_only and not listing.is_free:
        return False
    if min_price is not None and listing.price < min_price:
        return False
    if max_price is not None and listing.price > max_price:
        return False
    return True


def apply_filters(
    listings: Iterable[Listing],
    free_only: Optional[bool] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> List[Listing]:
    candidates = list(listings)
    if not free_only and min_price is None and max_price is None:
        return candidates

    kept = [
        listing
        for listing in candidates
        if should_include_listing(listing, free_only=free_only, min_price=min_price, max_price=max_price)
    ]
    dropped = len(candidates) - len(kept)
    if dropped:
        logger.debug(
            f"[FILTER] Dropped {dropped} of {len(candidates)} listings",
            extra={"free_only": free_only, "min_price": min_price, "max_price": max_price},
        )
    return kept
