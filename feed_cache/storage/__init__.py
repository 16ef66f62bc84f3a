"""Storage layer for feed_cache."""

from .downloads import DownloadStore
from .feed_cache import FeedCache
from .read_status import ReadStatusSet, hash_article
from .session import CacheSession, close_session, create_session, get_session

__all__ = [
    "DownloadStore",
    "FeedCache",
    "ReadStatusSet",
    "hash_article",
    "CacheSession",
    "close_session",
    "create_session",
    "get_session",
]
