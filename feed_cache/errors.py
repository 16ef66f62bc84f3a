"""Exceptions raised by feed_cache.

Every error is returned to the immediate caller; nothing in this package
retries on its own.
"""

from typing import Optional


class FeedCacheError(Exception):
    """Base class for all feed_cache errors."""


class FetchError(FeedCacheError):
    """The feed could not be retrieved or parsed."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {message}")


class OfflineError(FeedCacheError):
    """A network fetch was required while offline mode is enabled."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Offline mode is enabled, cannot fetch {url}")


class IndexOutOfRangeError(FeedCacheError, IndexError):
    """An invalid position was given to a download-list operation."""

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(f"Index {index} out of range for list of length {length}")


class MalformedDataError(FeedCacheError, ValueError):
    """A persisted file exists but cannot be decoded."""
