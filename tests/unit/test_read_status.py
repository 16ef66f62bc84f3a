"""Unit tests for the read-status set and its binary file format."""

import os
import stat
import struct
import pytest

import mmh3

from feed_cache.errors import MalformedDataError
from feed_cache.storage.read_status import (
    ReadStatusSet,
    hash_article,
    marshal,
    unmarshal,
)


@pytest.fixture
def read_status(tmp_path):
    return ReadStatusSet(tmp_path / "read_status")


class TestHashing:
    """Tests for the (url, title) hash."""

    def test_hash_is_murmur3_of_concatenation(self):
        expected = mmh3.hash(b"https://a.example/feedHello", 0, signed=False)
        assert hash_article("https://a.example/feed", "Hello") == expected

    def test_hash_is_unsigned_32_bit(self):
        for title in ("a", "b", "c", "ünïcödé"):
            assert 0 <= hash_article("https://a.example/feed", title) < 2 ** 32

    def test_hash_is_deterministic(self):
        assert hash_article("u", "t") == hash_article("u", "t")

    def test_concatenation_aliases(self):
        # Known imprecision: no separator between the two fields
        assert hash_article("ab", "c") == hash_article("a", "bc")

    def test_lone_surrogate_hashes(self, read_status):
        title = "broken \ud800 title"

        assert hash_article("https://a.example/feed", title) == hash_article(
            "https://a.example/feed", title
        )

        read_status.mark_as_read("https://a.example/feed", title)
        assert read_status.is_read("https://a.example/feed", title)


class TestMarkRead:
    """Tests for marking articles read and unread."""

    def test_mark_as_read(self, read_status):
        read_status.mark_as_read("https://a.example/feed", "Post")

        assert read_status.is_read("https://a.example/feed", "Post")
        assert not read_status.is_read("https://a.example/feed", "Other")
        assert not read_status.is_read("https://b.example/feed", "Post")

    def test_mark_as_unread(self, read_status):
        read_status.mark_as_read("https://a.example/feed", "Post")
        read_status.mark_as_unread("https://a.example/feed", "Post")

        assert not read_status.is_read("https://a.example/feed", "Post")

    def test_marking_is_idempotent(self, read_status):
        read_status.mark_as_read("u", "t")
        read_status.mark_as_read("u", "t")
        assert len(read_status) == 1

        read_status.mark_as_unread("u", "t")
        read_status.mark_as_unread("u", "t")
        assert len(read_status) == 0


class TestBinaryFormat:
    """Tests for the flat little-endian encoding."""

    def test_marshal_layout(self):
        data = marshal({1, 0x01020304})

        assert data == struct.pack("<I", 1) + bytes([0x04, 0x03, 0x02, 0x01])

    def test_marshal_empty(self):
        assert marshal(set()) == b""
        assert unmarshal(b"") == set()

    def test_unmarshal(self):
        assert unmarshal(bytes([1, 0, 0, 0, 0xFF, 0xFF, 0xFF, 0xFF])) == {1, 0xFFFFFFFF}

    @pytest.mark.parametrize("length", [1, 2, 3, 5, 6, 7])
    def test_unmarshal_rejects_partial_values(self, length):
        with pytest.raises(MalformedDataError):
            unmarshal(b"\x00" * length)


class TestPersistence:
    """Tests for loading and saving the read-status file."""

    def test_round_trip(self, tmp_path, read_status):
        for i in range(50):
            read_status.mark_as_read("https://a.example/feed", f"Post {i}")
        read_status.save()

        loaded = ReadStatusSet(tmp_path / "read_status")
        loaded.load()

        assert loaded == read_status
        assert loaded.is_read("https://a.example/feed", "Post 42")
        assert (tmp_path / "read_status").stat().st_size == 50 * 4

    def test_load_missing_file_is_empty(self, read_status):
        read_status.load()

        assert len(read_status) == 0

    def test_load_six_byte_file_fails(self, tmp_path, read_status):
        (tmp_path / "read_status").write_bytes(b"\x00" * 6)

        with pytest.raises(MalformedDataError):
            read_status.load()

    def test_failed_load_keeps_current_set(self, tmp_path, read_status):
        read_status.mark_as_read("u", "t")
        (tmp_path / "read_status").write_bytes(b"\x00" * 3)

        with pytest.raises(MalformedDataError):
            read_status.load()

        assert read_status.is_read("u", "t")

    def test_save_uses_owner_only_permissions(self, tmp_path, read_status):
        read_status.mark_as_read("u", "t")
        read_status.save()

        mode = stat.S_IMODE(os.stat(tmp_path / "read_status").st_mode)
        assert mode == 0o600

    def test_save_creates_parent_directory(self, tmp_path):
        read_status = ReadStatusSet(tmp_path / "missing" / "read_status")

        read_status.save()

        assert (tmp_path / "missing" / "read_status").read_bytes() == b""
