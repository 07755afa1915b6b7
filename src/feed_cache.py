"""
Time-bounded, disk-durable cache of feed snapshots keyed by request key
"""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from cache_store import CacheStore
from exceptions import PersistenceError
from logging_config import get_logger
from models import CacheStats
from news_feed import CacheEntry, FeedSnapshot

DEFAULT_REFRESH_WINDOW = timedelta(seconds=60)
DEFAULT_FLUSH_INTERVAL = 60.0

# (key, previous snapshot, now) -> new snapshot
Refresher = Callable[[str, FeedSnapshot | None, datetime], FeedSnapshot]

logger = get_logger(__name__)


class FeedCache:
    """
    Key -> snapshot store with a refresh window and durable persistence.

    The entry map and the dirty flag are guarded by one lock that is only
    held for single lookups and stores, never while a page is fetched.
    Two requests for the same stale key may therefore both run a refresh.
    """

    def __init__(
        self,
        refresher: Refresher,
        store: CacheStore,
        refresh_window: timedelta = DEFAULT_REFRESH_WINDOW,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL,
        clock: Callable[[], datetime] | None = None,
    ):
        self.refresher = refresher
        self.store = store
        self.refresh_window = refresh_window
        self.flush_interval = flush_interval
        self._clock = clock or (lambda: datetime.now().astimezone())

        self._entries: dict[str, CacheEntry] = {}
        self._dirty = False
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()

        self._hits = 0
        self._refreshes = 0
        self._flushes = 0
        self._flush_failures = 0

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def dirty(self) -> bool:
        with self._lock:
            return self._dirty

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def entries(self) -> list[CacheEntry]:
        with self._lock:
            return sorted(self._entries.values(), key=lambda entry: entry.key)

    def is_fresh(self, entry: CacheEntry, now: datetime) -> bool:
        return now < entry.last_refreshed_at + self.refresh_window

    def refresh_if_stale(self, key: str, now: datetime | None = None) -> FeedSnapshot:
        """
        Return the snapshot for a key, refreshing it when outside the refresh window.

        Args:
            key: Normalized request key
            now: Evaluation instant (defaults to the cache clock)

        Returns:
            The cached snapshot if still fresh, otherwise a newly built one

        Raises:
            FetchError: If the refresh fails; the existing entry is left as is
        """
        if now is None:
            now = self._clock()

        entry = self.get(key)
        if entry is not None and self.is_fresh(entry, now):
            with self._lock:
                self._hits += 1
            logger.debug(
                "Using cached feed",
                extra={"key": key, "refreshed_at": entry.last_refreshed_at.isoformat()},
            )
            return entry.snapshot

        previous = entry.snapshot if entry is not None else None
        snapshot = self.refresher(key, previous, now)

        with self._lock:
            replaced = self._entries.get(key)
            self._entries[key] = CacheEntry(key=key, snapshot=snapshot, last_refreshed_at=now)
            changed = replaced is None or replaced.snapshot != snapshot
            if changed:
                self._dirty = True
            self._refreshes += 1

        logger.info(
            "Cached feed",
            extra={"key": key, "items": len(snapshot.items), "changed": changed},
        )
        return snapshot

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> int:
        """
        Load persisted entries, replacing the in-memory map.

        An unreadable file is deleted and the cache starts empty.

        Returns:
            Number of entries loaded
        """
        try:
            entries = self.store.load()
        except PersistenceError as e:
            logger.warning(
                "Failed to load cached feeds, starting empty",
                extra={"cache_file": str(self.store.path), "error": str(e)},
            )
            self.store.discard()
            entries = {}
        else:
            if entries:
                logger.info(
                    "Loaded cached feeds",
                    extra={"cache_file": str(self.store.path), "entries": len(entries)},
                )
            else:
                logger.info("No cached feeds found", extra={"cache_file": str(self.store.path)})

        with self._lock:
            self._entries = entries
            self._dirty = False
        return len(entries)

    def flush(self, final: bool = False) -> bool:
        """
        Write the cache to disk if it changed since the last write.

        A failed write keeps the cache dirty so the next flush retries it.

        Args:
            final: Raise instead of logging when the write is denied for lack
                of permission (no later flush will retry it)

        Returns:
            True if a file was written

        Raises:
            PersistenceError: Only when ``final`` is set and permission was denied
        """
        with self._flush_lock:
            with self._lock:
                if not self._dirty:
                    return False
                entries = dict(self._entries)
                self._dirty = False

            try:
                self.store.save(entries, self._clock())
            except PersistenceError as e:
                with self._lock:
                    self._dirty = True
                    self._flush_failures += 1
                logger.error(
                    "Failed to save cached feeds",
                    extra={"cache_file": str(self.store.path), "error": str(e), "final": final},
                )
                if final and isinstance(e.__cause__, PermissionError):
                    raise
                return False

            with self._lock:
                self._flushes += 1

        logger.info(
            "Saved cached feeds",
            extra={"cache_file": str(self.store.path), "entries": len(entries)},
        )
        return True

    def _run_flusher(self):
        while not self._stop_event.wait(self.flush_interval):
            try:
                self.flush()
            except Exception:
                logger.exception("Unexpected error while saving cached feeds")

    def start(self):
        """Start the background flush thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_flusher, name="feed-cache-flusher", daemon=True
        )
        self._thread.start()
        logger.info("Feed cache flusher started", extra={"interval_seconds": self.flush_interval})

    def stop(self):
        """
        Stop the flush thread and write any pending changes.

        Raises:
            PersistenceError: If the final write is denied for lack of permission
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=max(self.flush_interval, 5.0))
            self._thread = None
        self.flush(final=True)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                entries=len(self._entries),
                dirty=self._dirty,
                hits=self._hits,
                refreshes=self._refreshes,
                flushes=self._flushes,
                flush_failures=self._flush_failures,
            )
