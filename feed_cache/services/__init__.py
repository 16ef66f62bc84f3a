"""Services for feed_cache."""

from .feed_parser import parse_feed
from .keyword_filter import apply_keyword_filters, includes_keywords

__all__ = [
    "parse_feed",
    "apply_keyword_filters",
    "includes_keywords",
]
