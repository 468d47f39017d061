"""Ranking policies for merged listings."""

from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional, Sequence

from aggregation.constants import LIKES, NEWEST, PRICE_ASC, PRICE_DESC, RELEVANCE
from aggregation.models import Listing

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def interleave_by_source(listings: Sequence[Listing]) -> List[Listing]:
    """Round-robin listings across sources.

    Sources are visited in the order they are first encountered; each sweep
    takes the next listing from every source that still has one. Per-source
    order is preserved. A=[a1, a2, a3], B=[b1], C=[c1, c2] yields
    a1, b1, c1, a2, c2, a3.
    """
    queues: Dict[str, Deque[Listing]] = {}
    for listing in listings:
        queues.setdefault(listing.source, deque()).append(listing)

    ordered: List[Listing] = []
    while queues:
        for source in list(queues):
            queue = queues[source]
            ordered.append(queue.popleft())
            if not queue:
                del queues[source]
    return ordered


def rank_listings(listings: Sequence[Listing], sort_by: Optional[str]) -> List[Listing]:
    """Order listings by sort key.

    Empty or ``relevance`` interleaves by source. Known keys sort stably.
    Any other key (e.g. ``popular``, which only steers upstream ordering)
    leaves the concatenated order untouched.
    """
    key = (sort_by or "").strip().lower()

    if not key or key == RELEVANCE:
        return interleave_by_source(listings)
    if key == NEWEST:
        return sorted(listings, key=lambda l: l.created_at_source or _OLDEST, reverse=True)
    if key == LIKES:
        return sorted(listings, key=lambda l: l.like_count, reverse=True)
    if key == PRICE_ASC:
        return sorted(listings, key=lambda l: l.price)
    if key == PRICE_DESC:
        return sorted(listings, key=lambda l: l.price, reverse=True)
    return list(listings)
