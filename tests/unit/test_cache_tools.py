"""Unit tests for the MCP cache tools and the session lifecycle."""

import dataclasses
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from feed_cache.config import CacheConfig
from feed_cache.errors import FetchError
from feed_cache.models.schemas import Article, CacheEntry
from feed_cache.storage import session as cache_session
from feed_cache.storage.feed_cache import FeedCache
from feed_cache.storage.read_status import ReadStatusSet
from feed_cache.storage.session import CacheSession, create_session
from feed_cache.tools.cache_tools import (
    cache_tools,
    download_article,
    get_all_articles,
    get_articles,
    list_downloaded,
    mark_read,
    mark_unread,
    remove_downloaded,
    set_offline_mode,
)


# Mark all tests as async
pytestmark = pytest.mark.anyio


async def fake_fetch(url):
    if "broken" in url:
        raise FetchError(url, "HTTP 503", status_code=503)
    return [
        Article(
            title="Older",
            link=f"{url}/older",
            published_parsed=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ),
        Article(
            title="Newer",
            link=f"{url}/newer",
            published_parsed=datetime(2024, 1, 2, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def session(tmp_path):
    """Create a session backed by a temp directory and patch it in."""
    fetcher = AsyncMock(side_effect=fake_fetch)
    session = CacheSession(
        cache=FeedCache(tmp_path / "cache.json", fetcher=fetcher),
        read_status=ReadStatusSet(tmp_path / "read_status"),
    )

    with patch("feed_cache.storage.session.get_session", return_value=session):
        yield session


class TestGetArticles:
    """Tests for the article listing tools."""

    async def test_get_articles(self, session):
        result = await get_articles("https://a.example/feed")

        assert result["success"] is True
        assert result["count"] == 2
        assert result["articles"][0]["title"] == "Older"
        assert result["articles"][0]["feed_url"] == "https://a.example/feed"
        assert result["articles"][0]["is_read"] is False
        assert result["articles"][1]["published"] == "2024-01-02T00:00:00+00:00"

    async def test_get_articles_reports_read_status(self, session):
        session.read_status.mark_as_read("https://a.example/feed", "Newer")

        result = await get_articles("https://a.example/feed")

        read = {a["title"]: a["is_read"] for a in result["articles"]}
        assert read == {"Older": False, "Newer": True}

    async def test_get_articles_keyword_filter(self, session):
        result = await get_articles("https://a.example/feed", blacklist="older, other")

        assert [a["title"] for a in result["articles"]] == ["Newer"]

    async def test_get_articles_fetch_failed(self, session):
        result = await get_articles("https://broken.example/feed")

        assert result["success"] is False
        assert result["error_type"] == "fetch_failed"
        assert "HTTP 503" in result["error"]

    async def test_get_articles_offline(self, session):
        await set_offline_mode(True)

        result = await get_articles("https://a.example/feed")

        assert result["success"] is False
        assert result["error_type"] == "offline"

    async def test_get_articles_both_filters(self, session):
        result = await get_articles("https://a.example/feed", whitelist="a", blacklist="b")

        assert result["success"] is False
        assert result["error_type"] == "invalid_argument"

    async def test_get_all_articles_skips_failures(self, session):
        result = await get_all_articles([
            "https://a.example/feed",
            "https://broken.example/feed",
            "https://b.example/feed",
        ])

        assert result["success"] is True
        assert result["count"] == 4
        assert [a["title"] for a in result["articles"]][:2] == ["Newer", "Newer"]
        assert {a["feed_url"] for a in result["articles"]} == {
            "https://a.example/feed",
            "https://b.example/feed",
        }

    async def test_get_all_articles_force_refresh(self, session):
        await get_all_articles(["https://a.example/feed"])
        await get_all_articles(["https://a.example/feed"])
        assert session.cache._fetcher.await_count == 1

        result = await get_all_articles(["https://a.example/feed"], force_refresh=True)

        assert result["count"] == 2
        assert session.cache._fetcher.await_count == 2


class TestDownloadTools:
    """Tests for the downloaded articles tools."""

    async def test_download_and_list(self, session):
        await download_article("https://a.example/feed", 0)
        result = await download_article("https://a.example/feed", 1)

        assert result["success"] is True
        assert result["article"]["title"] == "Newer"

        listing = await list_downloaded()
        assert listing["count"] == 2
        assert [(a["title"], a["index"]) for a in listing["articles"]] == [
            ("Newer", 1),
            ("Older", 0),
        ]

    async def test_download_out_of_range(self, session):
        result = await download_article("https://a.example/feed", 5)

        assert result["success"] is False
        assert result["error_type"] == "index_out_of_range"

    async def test_remove_downloaded_uses_stored_position(self, session):
        await download_article("https://a.example/feed", 0)
        await download_article("https://a.example/feed", 1)

        result = await remove_downloaded(1)

        assert result["success"] is True
        assert "Newer" in result["message"]
        listing = await list_downloaded()
        assert [a["title"] for a in listing["articles"]] == ["Older"]

    async def test_remove_downloaded_invalid(self, session):
        result = await remove_downloaded(0)

        assert result["success"] is False
        assert result["error_type"] == "index_out_of_range"


class TestReadStatusTools:
    """Tests for mark_read / mark_unread."""

    async def test_mark_read_then_unread(self, session):
        result = await mark_read("https://a.example/feed", "Older")
        assert result == {"success": True, "is_read": True}

        result = await mark_unread("https://a.example/feed", "Older")
        assert result == {"success": True, "is_read": False}


class TestOfflineTool:
    """Tests for set_offline_mode."""

    async def test_toggle(self, session):
        assert (await set_offline_mode(True))["offline_mode"] is True
        assert session.cache.offline_mode is True

        assert (await set_offline_mode(False))["offline_mode"] is False
        assert session.cache.offline_mode is False


class TestSession:
    """Tests for the session lifecycle."""

    def test_tool_registration_list(self):
        names = [tool.__name__ for tool in cache_tools]

        assert names == [
            "get_articles",
            "get_all_articles",
            "download_article",
            "remove_downloaded",
            "list_downloaded",
            "mark_read",
            "mark_unread",
            "set_offline_mode",
        ]

    def test_create_session_tolerates_corrupt_files(self, tmp_path):
        (tmp_path / "cache.json").write_text("{broken")
        (tmp_path / "read_status").write_bytes(b"\x01\x02\x03")

        session = create_session(CacheConfig(cache_dir=tmp_path))

        assert len(session.cache) == 0
        assert len(session.read_status) == 0

    def test_create_session_tolerates_unreadable_files(self, tmp_path):
        (tmp_path / "cache.json").mkdir()
        (tmp_path / "read_status").mkdir()

        session = create_session(CacheConfig(cache_dir=tmp_path))

        assert len(session.cache) == 0
        assert len(session.read_status) == 0

    def test_create_session_with_reset_ignores_files(self, tmp_path):
        config = CacheConfig(cache_dir=tmp_path)
        saved = create_session(config)
        saved.cache.entries["https://a.example/feed"] = CacheEntry(
            expire=datetime(2999, 1, 1, tzinfo=timezone.utc),
            articles=[Article(title="Kept")],
        )
        saved.read_status.mark_as_read("u", "t")
        saved.save()

        session = create_session(dataclasses.replace(config, reset_cache=True))

        assert len(session.cache) == 0
        assert len(session.read_status) == 0
        assert "https://a.example/feed" in create_session(config).cache

    def test_close_session_saves_both_stores(self, tmp_path):
        config = CacheConfig(cache_dir=tmp_path)

        with patch("feed_cache.storage.session.get_config", return_value=config):
            session = cache_session.get_session()
            assert cache_session.get_session() is session

            session.read_status.mark_as_read("u", "t")
            cache_session.close_session()

        assert (tmp_path / "cache.json").exists()
        assert (tmp_path / "read_status").stat().st_size == 4
        assert cache_session._session is None

        reloaded = create_session(config)
        assert reloaded.read_status.is_read("u", "t")
