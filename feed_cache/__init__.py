"""feed_cache - local feed cache and read-status store for a feed reader."""

from feed_cache.errors import (
    FeedCacheError,
    FetchError,
    IndexOutOfRangeError,
    MalformedDataError,
    OfflineError,
)
from feed_cache.models.schemas import Article, CacheEntry, sort_articles
from feed_cache.storage.downloads import DownloadStore
from feed_cache.storage.feed_cache import FeedCache
from feed_cache.storage.read_status import ReadStatusSet

__all__ = [
    "Article",
    "CacheEntry",
    "DownloadStore",
    "FeedCache",
    "FeedCacheError",
    "FetchError",
    "IndexOutOfRangeError",
    "MalformedDataError",
    "OfflineError",
    "ReadStatusSet",
    "sort_articles",
]
