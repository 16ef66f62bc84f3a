"""Keyword whitelist/blacklist filtering for feed articles."""

from typing import List, Optional, Sequence

from feed_cache.models.schemas import Article


def includes_keywords(article: Article, keywords: Sequence[str]) -> bool:
    """Check whether the title, description or content mentions any keyword."""
    haystacks = (
        article.title.lower(),
        article.description.lower(),
        article.content.lower(),
    )
    for keyword in keywords:
        needle = keyword.lower()
        if any(needle in text for text in haystacks):
            return True
    return False


def apply_keyword_filters(
    articles: List[Article],
    whitelist: Optional[Sequence[str]] = None,
    blacklist: Optional[Sequence[str]] = None,
) -> List[Article]:
    """Filter articles by keywords.

    Args:
        articles: Articles to filter
        whitelist: Keep only articles mentioning one of these keywords
        blacklist: Drop articles mentioning any of these keywords

    Returns:
        The remaining articles, order preserved

    Raises:
        ValueError: If both a whitelist and a blacklist are given
    """
    if whitelist and blacklist:
        raise ValueError("A feed cannot have both a whitelist and a blacklist")

    if blacklist:
        return [a for a in articles if not includes_keywords(a, blacklist)]

    if whitelist:
        return [a for a in articles if includes_keywords(a, whitelist)]

    return list(articles)
