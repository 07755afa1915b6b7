"""
Durable storage of the feed cache as a versioned JSON document
"""

import json
import os
import tempfile
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from exceptions import PersistenceError
from logging_config import get_logger
from models import CACHE_SCHEMA_VERSION, CacheFile
from news_feed import CacheEntry

CACHE_FILE_NAME = "hsb_news_feeds.json"

logger = get_logger(__name__)


class CacheStore:
    """
    Reads and writes the key -> CacheEntry map.

    The file carries a ``schema_version``; anything that is not valid JSON,
    has another version, or does not match the schema is reported as a
    PersistenceError so the caller can discard it.
    """

    def __init__(self, directory: str | Path | None = None, file_name: str = CACHE_FILE_NAME):
        self.directory = Path(directory) if directory else Path(tempfile.gettempdir())
        self.path = self.directory / file_name

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> dict[str, CacheEntry]:
        """
        Load all entries from disk.

        Returns:
            The stored entries, empty if no file exists

        Raises:
            PersistenceError: If the file is unreadable, corrupt or of another schema version
        """
        if not self.exists():
            return {}

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError, RecursionError) as e:
            raise PersistenceError(f"Cannot read cache file {self.path}: {e}") from e

        version = raw.get("schema_version") if isinstance(raw, dict) else None
        if version != CACHE_SCHEMA_VERSION:
            raise PersistenceError(
                f"Unsupported cache schema version {version!r} in {self.path} "
                f"(expected {CACHE_SCHEMA_VERSION})"
            )

        try:
            cache_file = CacheFile.model_validate(raw)
        except ValidationError as e:
            raise PersistenceError(f"Invalid cache file {self.path}: {e}") from e

        return cache_file.to_entries()

    def save(self, entries: dict[str, CacheEntry], saved_at: datetime) -> None:
        """
        Write all entries, replacing the file atomically.

        Raises:
            PersistenceError: If the file cannot be written (the cause is chained)
        """
        payload = CacheFile.from_entries(entries, saved_at).model_dump_json(indent=2)

        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(f"Cannot write cache file {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug("Wrote cache file", extra={"cache_file": str(self.path), "entries": len(entries)})

    def discard(self) -> None:
        """Remove the cache file, ignoring a file that is already gone."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(
                "Failed to remove cache file", extra={"cache_file": str(self.path), "error": str(e)}
            )
