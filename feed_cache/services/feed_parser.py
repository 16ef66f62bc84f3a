"""Feed parser service.

This module fetches RSS/Atom feeds and turns their entries into articles.
It is the default fetcher used by the feed cache.
"""

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional

import feedparser
import httpx

from feed_cache.config import DEFAULT_FETCH_TIMEOUT, USER_AGENT
from feed_cache.errors import FetchError
from feed_cache.models.schemas import Article

logger = logging.getLogger(__name__)


async def parse_feed(
    feed_url: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    user_agent: str = USER_AGENT,
) -> List[Article]:
    """Fetch an RSS/Atom feed and extract its articles.

    Args:
        feed_url: URL of the feed to fetch
        timeout: Request timeout in seconds
        user_agent: User-Agent header sent with the request

    Returns:
        List of Article objects in feed order

    Raises:
        FetchError: On network errors, non-2xx responses or unparseable bodies
    """
    logger.info(f"Fetching feed: {feed_url}")

    async with httpx.AsyncClient(
        follow_redirects=True,
        timeout=timeout,
        headers={"User-Agent": user_agent},
    ) as client:
        try:
            response = await client.get(feed_url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Feed returned HTTP {e.response.status_code}: {feed_url}")
            raise FetchError(
                feed_url,
                f"HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch feed: {e}")
            raise FetchError(feed_url, str(e) or type(e).__name__) from e

    feed = feedparser.parse(response.text)

    if feed.bozo and not feed.entries:
        logger.warning(f"Feed parsing error: {feed.bozo_exception}")
        raise FetchError(feed_url, f"invalid feed: {feed.bozo_exception}")

    articles = [_entry_to_article(entry) for entry in feed.entries]

    logger.info(f"Parsed {len(articles)} articles from feed")
    return articles


def _entry_to_article(entry: dict) -> Article:
    """Convert a feedparser entry into an Article."""
    links = [ln.get("href", "") for ln in entry.get("links", []) if ln.get("href")]
    link = entry.get("link", "").strip() or (links[0] if links else "")

    content = ""
    if entry.get("content"):
        content = entry["content"][0].get("value", "")

    authors = [a.get("name", "") for a in entry.get("authors", []) if a.get("name")]
    if not authors and entry.get("author"):
        authors = [entry["author"]]

    return Article(
        title=entry.get("title", "").strip(),
        link=link,
        links=links,
        description=entry.get("summary", "") or entry.get("description", ""),
        content=content,
        published=entry.get("published", ""),
        published_parsed=_parse_date(entry, ("published", "created")),
        updated=entry.get("updated", ""),
        updated_parsed=_parse_date(entry, ("updated",)),
        authors=authors,
        guid=entry.get("id", ""),
        categories=[t.get("term", "") for t in entry.get("tags", []) if t.get("term")],
    )


def _parse_date(entry: dict, fields=("published", "updated", "created")) -> Optional[datetime]:
    """Parse a date from a feed entry.

    Args:
        entry: Feed entry dict
        fields: Date fields to try in order

    Returns:
        Timezone-aware datetime if parsed successfully, None otherwise
    """
    for name in fields:
        # feedparser normalizes to a UTC time struct
        parsed = entry.get(f"{name}_parsed")
        if parsed:
            try:
                return datetime(*parsed[:6], tzinfo=timezone.utc)
            except (ValueError, TypeError):
                pass

        date_str = entry.get(name, "")
        if not date_str:
            continue

        # Try RFC 2822 format (common in RSS)
        try:
            return _as_utc(parsedate_to_datetime(date_str))
        except (ValueError, TypeError):
            pass

        # Try ISO format
        try:
            return _as_utc(datetime.fromisoformat(date_str.replace("Z", "+00:00")))
        except (ValueError, AttributeError):
            pass

    return None


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
