"""
Configuration validation for HSB News RSS.

Validates config/settings.yaml on startup with clear, actionable error messages.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

URL_PATTERN_FIELDS = {
    "default": (),
    "region": ("region",),
    "brf": ("region", "brf"),
}


@dataclass
class ValidationError:
    """Represents a single validation error."""

    path: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"settings.yaml:{self.path} {self.message}, got {type(self.value).__name__}: {self.value!r}"
        return f"settings.yaml:{self.path} {self.message}"


@dataclass
class ValidationResult:
    """Result of configuration validation."""

    errors: list[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, path: str, message: str, value: Any = None) -> None:
        self.errors.append(ValidationError(path, message, value))

    def __str__(self) -> str:
        if self.is_valid:
            return "Configuration is valid"
        lines = ["Configuration validation failed:"]
        for error in self.errors:
            lines.append(f"  - {error}")
        return "\n".join(lines)


class ConfigValidator:
    """Validates the settings.yaml configuration file."""

    def __init__(self, config_path: str = "config/settings.yaml"):
        self.config_path = Path(config_path)
        self.result = ValidationResult()

    def validate(self) -> ValidationResult:
        """
        Validate the configuration file.

        Returns:
            ValidationResult with any errors found.
        """
        self.result = ValidationResult()

        if not self.config_path.exists():
            self.result.add_error("", f"Configuration file not found: {self.config_path}")
            return self.result

        try:
            with open(self.config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.result.add_error("", f"Invalid YAML syntax: {e}")
            return self.result

        # An empty file means all defaults
        if config is None:
            return self.result

        if not isinstance(config, dict):
            self.result.add_error("", "must be a mapping", config)
            return self.result

        self.validate_dict(config)
        return self.result

    def validate_dict(self, config: dict) -> ValidationResult:
        """Validate an already loaded configuration mapping."""
        self._validate_feed(config)
        self._validate_cache(config)
        self._validate_fetch(config)
        self._validate_server(config)
        return self.result

    def _section(self, config: dict, name: str) -> dict | None:
        section = config.get(name)
        if section is None:
            return None
        if not isinstance(section, dict):
            self.result.add_error(name, "must be a mapping", section)
            return None
        return section

    def _check_positive_number(self, section: dict, path: str, key: str) -> None:
        value = section.get(key)
        if value is None:
            return
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            self.result.add_error(f"{path}.{key}", "must be a number", value)
        elif value <= 0:
            self.result.add_error(f"{path}.{key}", "must be > 0", value)

    def _validate_feed(self, config: dict) -> None:
        """Validate the feed section."""
        feed = self._section(config, "feed")
        if feed is None:
            return

        self._check_positive_number(feed, "feed", "refresh_window_seconds")

        timezone = feed.get("timezone")
        if timezone is not None:
            if not isinstance(timezone, str):
                self.result.add_error("feed.timezone", "must be a string", timezone)
            else:
                try:
                    ZoneInfo(timezone)
                except (ZoneInfoNotFoundError, ValueError):
                    self.result.add_error("feed.timezone", "must be a known IANA timezone", timezone)

        url_patterns = feed.get("url_patterns")
        if url_patterns is None:
            return
        if not isinstance(url_patterns, dict):
            self.result.add_error("feed.url_patterns", "must be a mapping", url_patterns)
            return

        for name, pattern in url_patterns.items():
            path = f"feed.url_patterns.{name}"
            if name not in URL_PATTERN_FIELDS:
                self.result.add_error(
                    path, f"is not a known pattern (expected one of {', '.join(URL_PATTERN_FIELDS)})"
                )
                continue
            if not isinstance(pattern, str):
                self.result.add_error(path, "must be a string", pattern)
                continue

            placeholders = {f: "x" for f in URL_PATTERN_FIELDS[name]}
            try:
                url = pattern.format(**placeholders)
            except (KeyError, IndexError, ValueError):
                allowed = ", ".join(URL_PATTERN_FIELDS[name]) or "none"
                self.result.add_error(path, f"uses unknown placeholders (allowed: {allowed})", pattern)
                continue
            if not self._is_valid_url(url):
                self.result.add_error(path, "must be a valid URL", pattern)

    def _validate_cache(self, config: dict) -> None:
        """Validate the cache section."""
        cache = self._section(config, "cache")
        if cache is None:
            return

        self._check_positive_number(cache, "cache", "flush_interval_seconds")

        directory = cache.get("directory")
        if directory is not None and not isinstance(directory, str):
            self.result.add_error("cache.directory", "must be a string", directory)

    def _validate_fetch(self, config: dict) -> None:
        """Validate the fetch section."""
        fetch = self._section(config, "fetch")
        if fetch is None:
            return

        self._check_positive_number(fetch, "fetch", "timeout")

        user_agent = fetch.get("user_agent")
        if user_agent is not None:
            if not isinstance(user_agent, str):
                self.result.add_error("fetch.user_agent", "must be a string", user_agent)
            elif not user_agent.strip():
                self.result.add_error("fetch.user_agent", "must not be empty")

        pool_size = fetch.get("pool_size")
        if pool_size is not None:
            if isinstance(pool_size, bool) or not isinstance(pool_size, int):
                self.result.add_error("fetch.pool_size", "must be an integer", pool_size)
            elif pool_size < 1:
                self.result.add_error("fetch.pool_size", "must be >= 1", pool_size)

    def _validate_server(self, config: dict) -> None:
        """Validate the server section."""
        server = self._section(config, "server")
        if server is None:
            return

        host = server.get("host")
        if host is not None and not isinstance(host, str):
            self.result.add_error("server.host", "must be a string", host)

        port = server.get("port")
        if port is not None:
            if isinstance(port, bool) or not isinstance(port, int):
                self.result.add_error("server.port", "must be an integer", port)
            elif not 1 <= port <= 65535:
                self.result.add_error("server.port", "must be between 1 and 65535", port)

    def _is_valid_url(self, url: str) -> bool:
        """Check if a string is a valid HTTP(S) URL."""
        try:
            result = urlparse(url)
            return result.scheme in ("http", "https") and bool(result.netloc)
        except ValueError:
            return False


def validate_config(config_path: str = "config/settings.yaml") -> ValidationResult:
    """
    Convenience function to validate a configuration file.

    Args:
        config_path: Path to the settings.yaml file.

    Returns:
        ValidationResult with any errors found.
    """
    validator = ConfigValidator(config_path)
    return validator.validate()

