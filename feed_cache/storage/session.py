"""Process-wide cache session.

The session owns the feed cache and the read-status set for the lifetime of
the application: both are loaded once at startup and saved once at shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from feed_cache.config import CacheConfig, get_config
from feed_cache.errors import MalformedDataError
from feed_cache.storage.feed_cache import FeedCache
from feed_cache.storage.read_status import ReadStatusSet

logger = logging.getLogger(__name__)


@dataclass
class CacheSession:
    """The stores shared by all tools."""

    cache: FeedCache
    read_status: ReadStatusSet

    def save(self) -> None:
        self.cache.save()
        self.read_status.save()


def create_session(config: CacheConfig) -> CacheSession:
    """Create a session and load both stores from disk.

    A file that cannot be read or decoded is logged and the corresponding
    store starts empty. With ``config.reset_cache`` nothing is loaded, so the
    next save overwrites both files.
    """
    session = CacheSession(
        cache=FeedCache.from_config(config),
        read_status=ReadStatusSet(config.read_status_path),
    )

    if config.reset_cache:
        logger.info("Resetting the cache and the read status")
        return session

    try:
        session.cache.load()
    except (MalformedDataError, OSError) as e:
        logger.error(f"Failed to load the cache, starting with an empty one: {e}")

    try:
        session.read_status.load()
    except (MalformedDataError, OSError) as e:
        logger.error(f"Failed to load the read status, starting with an empty one: {e}")

    return session


# Singleton session
_session: Optional[CacheSession] = None


def get_session() -> CacheSession:
    """Get or create the singleton session.

    Returns:
        Active cache session
    """
    global _session

    if _session is None:
        _session = create_session(get_config())

    return _session


def close_session() -> None:
    """Save and drop the session."""
    global _session

    if _session is not None:
        try:
            _session.save()
        finally:
            _session = None
