"""Multi-source 3D model aggregation: fan-out, merge, rank and paginate."""

from .models import (
    AggregationRequest,
    AggregationResponse,
    Listing,
    SourceBatch,
    SourceStatusSnapshot,
)
from .repository import AggregationRepository
from .service import AggregationService

__all__ = [
    "AggregationRequest",
    "AggregationResponse",
    "AggregationRepository",
    "AggregationService",
    "Listing",
    "SourceBatch",
    "SourceStatusSnapshot",
]
