"""User-curated list of articles saved out of the feed cache."""

from typing import Iterable, Iterator, List, Optional, Tuple

from feed_cache.errors import IndexOutOfRangeError
from feed_cache.models.schemas import Article, article_sort_key, sort_articles


class DownloadStore:
    """Ordered list of saved articles.

    Only appending and removing by position are allowed, so positions are
    always ``0..len-1``.
    """

    def __init__(self, articles: Optional[Iterable[Article]] = None):
        self._articles: List[Article] = list(articles or [])

    def __len__(self) -> int:
        return len(self._articles)

    def __iter__(self) -> Iterator[Article]:
        return iter(self._articles)

    def append(self, article: Article) -> None:
        self._articles.append(article)

    def remove(self, index: int) -> Article:
        """Remove and return the article at ``index`` (insertion order).

        Raises:
            IndexOutOfRangeError: If index is not a valid position
        """
        if index < 0 or index >= len(self._articles):
            raise IndexOutOfRangeError(index, len(self._articles))
        return self._articles.pop(index)

    def sorted(self) -> List[Article]:
        """Return the saved articles newest first."""
        return sort_articles(self._articles)

    def sorted_with_positions(self) -> List[Tuple[int, Article]]:
        """Return (position, article) pairs in display order.

        The position is the one ``remove`` expects, which differs from the
        display order once the list is sorted.
        """
        return sorted(enumerate(self._articles), key=lambda pair: article_sort_key(pair[1]))
