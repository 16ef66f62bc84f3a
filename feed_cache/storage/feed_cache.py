"""Feed cache for feed_cache.

This module keeps the articles of each feed URL for a limited time so the
rest of the application does not hit the network on every view. It also owns
the list of downloaded (saved) articles and persists both to one JSON file.
Default location: ~/.cache/feed_cache/cache.json (or FEED_CACHE_DIR env var)

The cache is meant to be driven by a single owner. Callers that refresh
several feeds concurrently must serialize access to the whole cache.
"""

import copy
import dataclasses
import functools
import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from feed_cache.config import DEFAULT_CACHE_SIZE, DEFAULT_CACHE_TTL_HOURS, CacheConfig
from feed_cache.errors import IndexOutOfRangeError, MalformedDataError, OfflineError
from feed_cache.models.schemas import Article, CacheEntry, sort_articles
from feed_cache.services.feed_parser import parse_feed
from feed_cache.services.keyword_filter import apply_keyword_filters
from feed_cache.storage.downloads import DownloadStore
from feed_cache.storage.persistence import read_optional, write_private_file

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[List[Article]]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FeedCache:
    """Per-URL article cache with expiry and a bounded number of entries.

    When a new URL has to be inserted into a full cache, the entry that
    expires first is evicted. Refreshing a URL that is already cached never
    evicts anything.
    """

    def __init__(
        self,
        path: Path,
        capacity: int = DEFAULT_CACHE_SIZE,
        ttl: timedelta = timedelta(hours=DEFAULT_CACHE_TTL_HOURS),
        offline_mode: bool = False,
        fetcher: Optional[Fetcher] = None,
        clock: Optional[Clock] = None,
    ):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")

        self.path = Path(path)
        self.capacity = capacity
        self.ttl = ttl
        self.offline_mode = offline_mode
        self.entries: Dict[str, CacheEntry] = {}
        self.downloaded = DownloadStore()
        self._fetcher = fetcher or parse_feed
        self._clock = clock or utc_now

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        fetcher: Optional[Fetcher] = None,
        clock: Optional[Clock] = None,
    ) -> "FeedCache":
        """Create a cache from a CacheConfig."""
        if fetcher is None:
            fetcher = functools.partial(
                parse_feed,
                timeout=config.fetch_timeout,
                user_agent=config.user_agent,
            )
        return cls(
            path=config.cache_path,
            capacity=config.cache_size,
            ttl=config.cache_ttl,
            offline_mode=config.offline_mode,
            fetcher=fetcher,
            clock=clock,
        )

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, url: str) -> bool:
        return url in self.entries

    async def get_articles(
        self,
        url: str,
        force_refresh: bool = False,
        whitelist: Optional[Sequence[str]] = None,
        blacklist: Optional[Sequence[str]] = None,
    ) -> List[Article]:
        """Get the articles of a feed, using the cache when possible.

        Args:
            url: Feed URL (the cache key)
            force_refresh: Fetch even if a fresh entry exists
            whitelist: Only cache articles mentioning one of these keywords
            blacklist: Do not cache articles mentioning any of these keywords

        Returns:
            The feed's articles in feed order

        Raises:
            OfflineError: A fetch is needed but offline mode is enabled
            FetchError: The fetcher failed; the existing entry is kept
            ValueError: Both a whitelist and a blacklist were given
        """
        if whitelist and blacklist:
            raise ValueError("A feed cannot have both a whitelist and a blacklist")

        entry = self.entries.get(url)
        if entry is not None and not force_refresh and not entry.is_expired(self._clock()):
            logger.debug(f"Cache hit for {url}")
            return copy.deepcopy(entry.articles)

        if self.offline_mode:
            logger.info(f"Offline mode, not fetching {url}")
            raise OfflineError(url)

        logger.info(f"Cache miss for {url} (forced: {force_refresh})")
        fetched = await self._fetcher(url)

        articles = [
            dataclasses.replace(a, feed_url=url)
            for a in apply_keyword_filters(list(fetched), whitelist, blacklist)
        ]
        self._install(url, copy.deepcopy(articles))
        return articles

    async def get_articles_bulk(
        self, urls: Iterable[str], force_refresh: bool = False
    ) -> List[Article]:
        """Get the articles of several feeds as one timeline.

        A feed that fails contributes nothing; the others are still returned.

        Args:
            urls: Feed URLs to aggregate
            force_refresh: Passed through to get_articles for every feed

        Returns:
            The union of all successfully retrieved articles, newest first
        """
        result: List[Article] = []

        for url in urls:
            try:
                result.extend(await self.get_articles(url, force_refresh))
            except Exception as e:
                logger.warning(f"Skipping {url} in bulk fetch: {e}")

        return sort_articles(result)

    async def add_to_downloaded(self, url: str, index: int) -> Article:
        """Copy the article at ``index`` of a feed into the downloaded list.

        Raises:
            IndexOutOfRangeError: If index is not a position in the feed
            OfflineError, FetchError: If the feed has to be fetched and cannot be
        """
        articles = await self.get_articles(url)
        if index < 0 or index >= len(articles):
            raise IndexOutOfRangeError(index, len(articles))

        article = copy.deepcopy(articles[index])
        self.downloaded.append(article)
        logger.info(f"Downloaded '{article.title}' from {url}")
        return article

    def remove_from_downloaded(self, index: int) -> Article:
        """Remove an article from the downloaded list by its stored position."""
        return self.downloaded.remove(index)

    def get_downloaded(self) -> List[Article]:
        """Return the downloaded articles newest first."""
        return self.downloaded.sorted()

    def purge_expired(self) -> int:
        """Drop every entry that has already expired.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [url for url, entry in self.entries.items() if entry.is_expired(now)]
        for url in expired:
            del self.entries[url]
        return len(expired)

    def load(self) -> None:
        """Load entries and downloads from disk.

        A missing file leaves the cache empty. Expired entries are dropped.

        Raises:
            MalformedDataError: If the file exists but cannot be decoded
        """
        logger.info(f"Loading cache from {self.path}")
        data = read_optional(self.path)
        if data is None:
            logger.info("No cache file yet, starting empty")
            return

        try:
            document = json.loads(data)
            entries = {
                str(url): CacheEntry.from_dict(raw)
                for url, raw in (document.get("content") or {}).items()
            }
            downloaded = [Article.from_dict(a) for a in document.get("downloaded") or []]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise MalformedDataError(f"Invalid cache file {self.path}: {e}") from e

        self.entries = entries
        self.downloaded = DownloadStore(downloaded)
        purged = self.purge_expired()
        self._evict_until(self.capacity)

        logger.info(
            f"Loaded {len(self.entries)} cache entries ({purged} expired) "
            f"and {len(self.downloaded)} downloaded articles"
        )

    def save(self) -> None:
        """Write entries and downloads to disk, leaving out expired entries."""
        self.purge_expired()
        document = {
            "content": {url: entry.to_dict() for url, entry in self.entries.items()},
            "downloaded": [a.to_dict() for a in self.downloaded],
        }
        write_private_file(self.path, json.dumps(document).encode("utf-8"))
        logger.info(f"Saved {len(self.entries)} cache entries to {self.path}")

    def _install(self, url: str, articles: List[Article]) -> None:
        if url not in self.entries:
            self._evict_until(self.capacity - 1)
        self.entries[url] = CacheEntry(expire=self._clock() + self.ttl, articles=articles)

    def _evict_until(self, limit: int) -> None:
        # O(n) scan per eviction, fine for capacities around a hundred
        while len(self.entries) > limit:
            oldest = min(self.entries, key=lambda u: self.entries[u].expire)
            logger.info(f"Evicting {oldest} (expires {self.entries[oldest].expire.isoformat()})")
            del self.entries[oldest]
