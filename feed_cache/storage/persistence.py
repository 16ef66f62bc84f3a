"""File helpers shared by the cache and read-status stores.

Both stores are written with owner-only permissions. The parent directory is
only created when the first write attempt fails.
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

FILE_MODE = 0o600
DIR_MODE = 0o755


def read_optional(path: Path) -> Optional[bytes]:
    """Read a file, returning None when it does not exist yet."""
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        return None


def _write(path: Path, data: bytes) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    # The open() mode only applies when the file is created
    os.chmod(path, FILE_MODE)


def write_private_file(path: Path, data: bytes) -> None:
    """Write data to path with mode 0600, creating the parent directory on demand.

    Args:
        path: Destination file
        data: Bytes to write

    Raises:
        OSError: If the second attempt fails as well
    """
    path = Path(path)
    try:
        _write(path, data)
    except OSError as e:
        logger.debug(f"First write to {path} failed ({e}), creating {path.parent}")
        path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        _write(path, data)

    logger.debug(f"Wrote {len(data)} bytes to {path}")
