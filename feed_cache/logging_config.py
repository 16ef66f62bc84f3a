"""Logging setup for feed_cache.

Logs go to stderr so the STDIO transport of the MCP server keeps stdout for
protocol messages.
"""

import logging
import sys
from typing import Optional

from feed_cache.config import CacheConfig, get_config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger("feed_cache")


def setup_logging(config: Optional[CacheConfig] = None) -> logging.Logger:
    """Configure the package logger.

    Args:
        config: Optional configuration (defaults to the process-wide one)

    Returns:
        The configured ``feed_cache`` logger
    """
    if config is None:
        config = get_config()

    level = getattr(logging, config.log_level.upper(), logging.INFO)
    logger.setLevel(level)

    if not any(getattr(h, "_feed_cache", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._feed_cache = True
        logger.addHandler(handler)

    logger.propagate = False
    return logger
