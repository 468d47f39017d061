"""Page arithmetic over summed upstream totals."""

import math
from typing import List, Sequence, TypeVar

T = TypeVar("T")


def compute_total_pages(total_count: int, page_size: int) -> int:
    """ceil(total / page_size), never less than one page."""
    if total_count <= 0 or page_size <= 0:
        return 1
    return max(1, math.ceil(total_count / page_size))


def take_page(items: Sequence[T], page_size: int) -> List[T]:
    """First ``page_size`` items; the rest are discarded rather than kept for later pages."""
    return list(items[: max(0, page_size)])
