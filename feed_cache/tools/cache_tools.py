"""Feed cache MCP tools.

This module provides MCP tools for reading cached feeds, keeping a list of
downloaded articles and tracking read status.

NOTE: Never use Optional parameters in MCP tools - they break MCP clients.
Use empty string "" for optional strings and 0 for optional integers.
"""

import logging
from typing import Any, Dict, List

from mcp.server.fastmcp import Context

from feed_cache.errors import FetchError, IndexOutOfRangeError, OfflineError
from feed_cache.models.schemas import Article
from feed_cache.storage import session as cache_session
from feed_cache.storage.read_status import ReadStatusSet

logger = logging.getLogger(__name__)


def _split_keywords(value: str) -> List[str]:
    return [k.strip() for k in value.split(",") if k.strip()]


def _article_to_dict(article: Article, read_status: ReadStatusSet) -> Dict[str, Any]:
    return {
        "title": article.title,
        "link": article.link,
        "feed_url": article.feed_url,
        "description": article.description,
        "authors": article.authors,
        "published": article.published_parsed.isoformat() if article.published_parsed else None,
        "is_read": read_status.is_read(article.feed_url, article.title),
    }


def _error(e: Exception) -> Dict[str, Any]:
    if isinstance(e, OfflineError):
        error_type = "offline"
    elif isinstance(e, FetchError):
        error_type = "fetch_failed"
    elif isinstance(e, IndexOutOfRangeError):
        error_type = "index_out_of_range"
    else:
        error_type = "invalid_argument"
    return {"success": False, "error": str(e), "error_type": error_type}


async def get_articles(
    url: str,
    force_refresh: bool = False,
    whitelist: str = "",
    blacklist: str = "",
    ctx: Context = None,
) -> Dict[str, Any]:
    """Get the articles of one feed, served from the local cache when fresh.

    Args:
        url: Feed URL
        force_refresh: Fetch from the network even if the cache is fresh
        whitelist: Comma-separated keywords; keep only articles mentioning one (empty string for none)
        blacklist: Comma-separated keywords; drop articles mentioning any (empty string for none)
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - count: number of articles
        - articles: list of article objects with title, link, dates, is_read
        - error / error_type: if success is False ("offline" or "fetch_failed")
    """
    logger.info(f"get_articles called: url={url}, force_refresh={force_refresh}")
    session = cache_session.get_session()

    try:
        articles = await session.cache.get_articles(
            url,
            force_refresh,
            whitelist=_split_keywords(whitelist),
            blacklist=_split_keywords(blacklist),
        )
    except (FetchError, OfflineError, ValueError) as e:
        return _error(e)

    return {
        "success": True,
        "count": len(articles),
        "articles": [_article_to_dict(a, session.read_status) for a in articles],
    }


async def get_all_articles(
    urls: List[str],
    force_refresh: bool = False,
    ctx: Context = None,
) -> Dict[str, Any]:
    """Get one timeline (newest first) from several feeds.

    Feeds that cannot be fetched are skipped, the others are still returned.

    Args:
        urls: Feed URLs to aggregate
        force_refresh: Fetch every feed from the network even if the cache is fresh
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - count: number of articles
        - articles: list of article objects
    """
    logger.info(f"get_all_articles called for {len(urls)} feeds, force_refresh={force_refresh}")
    session = cache_session.get_session()

    articles = await session.cache.get_articles_bulk(urls, force_refresh)

    return {
        "success": True,
        "count": len(articles),
        "articles": [_article_to_dict(a, session.read_status) for a in articles],
    }


async def download_article(url: str, index: int, ctx: Context = None) -> Dict[str, Any]:
    """Save an article of a feed into the downloaded list.

    Args:
        url: Feed URL
        index: Position of the article in the feed (from get_articles)
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - article: the saved article
        - error / error_type: if success is False
    """
    logger.info(f"download_article called: url={url}, index={index}")
    session = cache_session.get_session()

    try:
        article = await session.cache.add_to_downloaded(url, index)
    except (FetchError, OfflineError, IndexOutOfRangeError) as e:
        return _error(e)

    return {
        "success": True,
        "article": _article_to_dict(article, session.read_status),
    }


async def remove_downloaded(index: int, ctx: Context = None) -> Dict[str, Any]:
    """Remove an article from the downloaded list.

    Args:
        index: The article's "index" value from list_downloaded
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - message: confirmation string if successful
        - error / error_type: if the index is invalid
    """
    logger.info(f"remove_downloaded called: index={index}")
    session = cache_session.get_session()

    try:
        article = session.cache.remove_from_downloaded(index)
    except IndexOutOfRangeError as e:
        return _error(e)

    return {
        "success": True,
        "message": f"Removed '{article.title}' from downloaded articles",
    }


async def list_downloaded(ctx: Context = None) -> Dict[str, Any]:
    """List downloaded articles, newest first.

    Args:
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - count: number of downloaded articles
        - articles: article objects, each with the "index" remove_downloaded expects
    """
    logger.info("list_downloaded called")
    session = cache_session.get_session()

    articles = []
    for position, article in session.cache.downloaded.sorted_with_positions():
        item = _article_to_dict(article, session.read_status)
        item["index"] = position
        articles.append(item)

    return {
        "success": True,
        "count": len(articles),
        "articles": articles,
    }


async def mark_read(url: str, title: str, ctx: Context = None) -> Dict[str, Any]:
    """Mark an article as read.

    Args:
        url: Feed URL the article belongs to
        title: Article title
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with success and the new is_read value
    """
    logger.info(f"mark_read called: url={url}, title={title}")
    read_status = cache_session.get_session().read_status

    read_status.mark_as_read(url, title)

    return {"success": True, "is_read": read_status.is_read(url, title)}


async def mark_unread(url: str, title: str, ctx: Context = None) -> Dict[str, Any]:
    """Mark an article as unread.

    Args:
        url: Feed URL the article belongs to
        title: Article title
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with success and the new is_read value
    """
    logger.info(f"mark_unread called: url={url}, title={title}")
    read_status = cache_session.get_session().read_status

    read_status.mark_as_unread(url, title)

    return {"success": True, "is_read": read_status.is_read(url, title)}


async def set_offline_mode(enabled: bool, ctx: Context = None) -> Dict[str, Any]:
    """Turn offline mode on or off.

    While offline, only fresh cached feeds are served and nothing is fetched.

    Args:
        enabled: True to go offline, False to allow fetching again
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with success and the current offline_mode value
    """
    logger.info(f"set_offline_mode called: enabled={enabled}")
    cache = cache_session.get_session().cache

    cache.offline_mode = enabled

    return {"success": True, "offline_mode": cache.offline_mode}


# List of cache tools for registration
cache_tools = [
    get_articles,
    get_all_articles,
    download_article,
    remove_downloaded,
    list_downloaded,
    mark_read,
    mark_unread,
    set_offline_mode,
]
