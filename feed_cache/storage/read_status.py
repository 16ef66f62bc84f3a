"""Read status tracking for feed_cache.

The set stores a 32-bit MurmurHash3 of each (feed URL, title) pair instead of
the pair itself. On disk it is a flat run of 4-byte little-endian hashes with
no header.
Default location: ~/.cache/feed_cache/read_status (or FEED_CACHE_DIR env var)

The hash input is the URL bytes immediately followed by the title bytes, so
("ab", "c") and ("a", "bc") share a hash. Read status is only shown to the
user, so such aliasing is accepted, and keeping the encoding unchanged keeps
existing files valid.
"""

import logging
import struct
from pathlib import Path
from typing import Iterable, Optional, Set

import mmh3

from feed_cache.errors import MalformedDataError
from feed_cache.storage.persistence import read_optional, write_private_file

logger = logging.getLogger(__name__)

HASH_FORMAT = "<I"
HASH_SIZE = struct.calcsize(HASH_FORMAT)


def hash_article(url: str, title: str) -> int:
    """Hash a (feed URL, article title) pair to an unsigned 32-bit int.

    Lone surrogates (from undecodable input) are encoded as-is so every str
    hashes.
    """
    data = url.encode("utf-8", "surrogatepass") + title.encode("utf-8", "surrogatepass")
    return mmh3.hash(data, 0, signed=False)


def marshal(hashes: Iterable[int]) -> bytes:
    """Encode hashes as consecutive little-endian uint32 values."""
    return b"".join(struct.pack(HASH_FORMAT, h) for h in sorted(hashes))


def unmarshal(data: bytes) -> Set[int]:
    """Decode the output of marshal.

    Raises:
        MalformedDataError: If the length is not a multiple of 4
    """
    if len(data) % HASH_SIZE != 0:
        raise MalformedDataError(
            f"Read status data has {len(data)} bytes, expected a multiple of {HASH_SIZE}"
        )
    return {value for (value,) in struct.iter_unpack(HASH_FORMAT, data)}


class ReadStatusSet:
    """Set of articles the user has already read."""

    def __init__(self, path: Path, hashes: Optional[Iterable[int]] = None):
        self.path = Path(path)
        self._hashes: Set[int] = set(hashes or ())

    def __len__(self) -> int:
        return len(self._hashes)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ReadStatusSet):
            return NotImplemented
        return self._hashes == other._hashes

    def mark_as_read(self, url: str, title: str) -> None:
        self._hashes.add(hash_article(url, title))

    def mark_as_unread(self, url: str, title: str) -> None:
        self._hashes.discard(hash_article(url, title))

    def is_read(self, url: str, title: str) -> bool:
        return hash_article(url, title) in self._hashes

    def to_bytes(self) -> bytes:
        return marshal(self._hashes)

    def load(self) -> None:
        """Load the set from disk, keeping it empty if there is no file.

        Raises:
            MalformedDataError: If the file length is not a multiple of 4
        """
        logger.info(f"Loading read status from {self.path}")
        data = read_optional(self.path)
        if data is None:
            return

        self._hashes = unmarshal(data)
        logger.info(f"Loaded {len(self._hashes)} read articles")

    def save(self) -> None:
        data = self.to_bytes()
        write_private_file(self.path, data)
        logger.info(f"Saved read status ({len(data)} bytes) to {self.path}")
