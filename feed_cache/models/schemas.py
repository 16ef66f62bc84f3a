"""Data models for feed_cache.

This module defines the article record and the cache entry wrapping a
feed's articles.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional


def _to_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass
class Article:
    """Represents an article from a feed."""

    title: str
    link: str = ""
    links: List[str] = field(default_factory=list)
    description: str = ""
    content: str = ""
    published: str = ""
    published_parsed: Optional[datetime] = None
    updated: str = ""
    updated_parsed: Optional[datetime] = None
    authors: List[str] = field(default_factory=list)
    guid: str = ""
    categories: List[str] = field(default_factory=list)
    feed_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "links": list(self.links),
            "description": self.description,
            "content": self.content,
            "published": self.published,
            "published_parsed": _to_iso(self.published_parsed),
            "updated": self.updated,
            "updated_parsed": _to_iso(self.updated_parsed),
            "authors": list(self.authors),
            "guid": self.guid,
            "categories": list(self.categories),
            "feed_url": self.feed_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        return cls(
            title=data.get("title") or "",
            link=data.get("link") or "",
            links=list(data.get("links") or []),
            description=data.get("description") or "",
            content=data.get("content") or "",
            published=data.get("published") or "",
            published_parsed=_from_iso(data.get("published_parsed")),
            updated=data.get("updated") or "",
            updated_parsed=_from_iso(data.get("updated_parsed")),
            authors=list(data.get("authors") or []),
            guid=data.get("guid") or "",
            categories=list(data.get("categories") or []),
            feed_url=data.get("feed_url") or "",
        )


@dataclass
class CacheEntry:
    """The articles of one feed and the moment they go stale."""

    expire: datetime
    articles: List[Article]

    def is_expired(self, now: datetime) -> bool:
        return self.expire <= now

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expire": self.expire.isoformat(),
            "articles": [a.to_dict() for a in self.articles],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        expire = _from_iso(data["expire"])
        if expire is None:
            raise ValueError("cache entry has no expiry")
        return cls(
            expire=expire,
            articles=[Article.from_dict(a) for a in data.get("articles") or []],
        )


def article_sort_key(article: Article):
    # Dated articles first (newest on top), then undated ones by title.
    if article.published_parsed is None:
        return (1, 0.0, article.title.lower())
    return (0, -article.published_parsed.timestamp(), article.title.lower())


def sort_articles(articles: Iterable[Article]) -> List[Article]:
    """Return the articles newest first.

    Articles without a parsed publication date go last, ordered by title.
    The sort is stable, so full ties keep their input order.
    """
    return sorted(articles, key=article_sort_key)
