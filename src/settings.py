"""
Runtime settings loaded from config/settings.yaml
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import yaml

DEFAULT_CONFIG_PATH = "config/settings.yaml"

DEFAULT_URL_PATTERNS = {
    "default": "https://www.hsb.se/nyheter",
    "region": "https://www.hsb.se/{region}/om-hsb/nyheter",
    "brf": "http://www.hsb.se/{region}/brf/{brf}/nyheter",
}


@dataclass
class Settings:
    refresh_window_seconds: float = 60
    timezone: str | None = "Europe/Stockholm"
    url_patterns: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_URL_PATTERNS))
    flush_interval_seconds: float = 60
    cache_directory: str | None = None
    user_agent: str = "Mozilla"
    fetch_timeout: float = 30
    pool_size: int = 4
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def refresh_window(self) -> timedelta:
        return timedelta(seconds=self.refresh_window_seconds)

    @property
    def tz(self) -> tzinfo | None:
        """Configured timezone, None for the system local timezone"""
        return ZoneInfo(self.timezone) if self.timezone else None

    @classmethod
    def from_dict(cls, config: dict[str, Any] | None) -> "Settings":
        config = config or {}
        feed = config.get("feed") or {}
        cache = config.get("cache") or {}
        fetch = config.get("fetch") or {}
        server = config.get("server") or {}

        settings = cls()
        settings.refresh_window_seconds = feed.get(
            "refresh_window_seconds", settings.refresh_window_seconds
        )
        settings.timezone = feed.get("timezone", settings.timezone)
        settings.url_patterns.update(feed.get("url_patterns") or {})
        settings.flush_interval_seconds = cache.get(
            "flush_interval_seconds", settings.flush_interval_seconds
        )
        settings.cache_directory = cache.get("directory", settings.cache_directory)
        settings.user_agent = fetch.get("user_agent", settings.user_agent)
        settings.fetch_timeout = fetch.get("timeout", settings.fetch_timeout)
        settings.pool_size = fetch.get("pool_size", settings.pool_size)
        settings.host = server.get("host", settings.host)
        settings.port = server.get("port", settings.port)

        # Environment overrides
        env_cache_dir = os.environ.get("HSB_NEWS_CACHE_DIR")
        if env_cache_dir:
            settings.cache_directory = env_cache_dir

        return settings


def load_settings(config_path: str | Path = DEFAULT_CONFIG_PATH) -> Settings:
    """Load settings from YAML; a missing file gives the defaults."""
    path = Path(config_path)
    if not path.exists():
        return Settings.from_dict(None)
    with open(path, encoding="utf-8") as f:
        return Settings.from_dict(yaml.safe_load(f))
