"""Shared constants for the aggregation module."""

DEFAULT_PAGE_SIZE = 24
MAX_PAGE_SIZE = 100

# Per-source floor for trending requests so small source counts still fill a page
MIN_TRENDING_BATCH = 8

DEFAULT_SOURCE_TIMEOUT_SECONDS = 10.0

RELEVANCE = "relevance"
NEWEST = "newest"
POPULAR = "popular"
LIKES = "likes"
PRICE_ASC = "price_asc"
PRICE_DESC = "price_desc"

SORT_OPTIONS = [
    {"value": RELEVANCE, "label": "Relevance"},
    {"value": NEWEST, "label": "Newest"},
    {"value": POPULAR, "label": "Most Downloaded"},
    {"value": LIKES, "label": "Most Liked"},
    {"value": PRICE_ASC, "label": "Price: Low to High"},
    {"value": PRICE_DESC, "label": "Price: High to Low"},
]

USER_AGENT = "3DSearchAggregator/1.0"
