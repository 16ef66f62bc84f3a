"""Configuration for feed_cache.

Values come from environment variables and can be overridden by the command
line flags of the server.
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional

DEFAULT_CACHE_SIZE = 100
DEFAULT_CACHE_TTL_HOURS = 24.0
DEFAULT_FETCH_TIMEOUT = 30.0
USER_AGENT = "FeedCache/1.0 (RSS Feed Reader)"


def default_cache_dir() -> Path:
    """Get the cache directory, respecting FEED_CACHE_DIR and XDG_CACHE_HOME."""
    env_path = os.environ.get("FEED_CACHE_DIR")
    if env_path:
        return Path(env_path).expanduser()

    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache).expanduser() / "feed_cache"

    return Path.home() / ".cache" / "feed_cache"


@dataclass
class CacheConfig:
    """Settings consumed by the cache, the fetcher and the server."""

    name: str = "feed_cache"
    cache_dir: Path = field(default_factory=default_cache_dir)
    cache_size: int = DEFAULT_CACHE_SIZE
    cache_ttl_hours: float = DEFAULT_CACHE_TTL_HOURS
    offline_mode: bool = False
    reset_cache: bool = False
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    user_agent: str = USER_AGENT
    log_level: str = "INFO"

    def __post_init__(self):
        if self.cache_size < 1:
            raise ValueError(f"cache_size must be at least 1, got {self.cache_size}")
        if self.cache_ttl_hours <= 0:
            raise ValueError(f"cache_ttl_hours must be positive, got {self.cache_ttl_hours}")

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(hours=self.cache_ttl_hours)

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / "cache.json"

    @property
    def read_status_path(self) -> Path:
        return self.cache_dir / "read_status"


def _env_number(name: str, default, cast):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def load_config() -> CacheConfig:
    """Build a configuration from the FEED_CACHE_* environment variables."""
    return CacheConfig(
        cache_dir=default_cache_dir(),
        cache_size=_env_number("FEED_CACHE_SIZE", DEFAULT_CACHE_SIZE, int),
        cache_ttl_hours=_env_number("FEED_CACHE_TTL_HOURS", DEFAULT_CACHE_TTL_HOURS, float),
        offline_mode=_env_bool("FEED_CACHE_OFFLINE", False),
        reset_cache=_env_bool("FEED_CACHE_RESET", False),
        fetch_timeout=_env_number("FEED_CACHE_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT, float),
        log_level=os.environ.get("FEED_CACHE_LOG_LEVEL", "INFO").upper(),
    )


_config: Optional[CacheConfig] = None


def get_config() -> CacheConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _config

    if _config is None:
        _config = load_config()

    return _config


def set_config(config: CacheConfig) -> None:
    """Replace the process-wide configuration (used by the CLI overrides)."""
    global _config
    _config = config
