"""
Feed service: ties fetching, extraction, stabilization and caching together
and turns request paths into RSS responses
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import quote_plus

from assembler import RSS_CONTENT_TYPE, FeedAssembler
from cache_store import CacheStore
from exceptions import FetchError, InvalidRequestKey
from extractor import ItemExtractor
from feed_cache import FeedCache
from fetcher import PageFetcher
from logging_config import get_logger
from news_feed import FeedSnapshot
from settings import DEFAULT_URL_PATTERNS, Settings
from stabilizer import DateStabilizer

TEXT_CONTENT_TYPE = "text/plain; charset=UTF-8"

logger = get_logger(__name__)


@dataclass(frozen=True)
class FeedResponse:
    status: int
    body: bytes
    content_type: str
    outcome: str = "ok"


def parse_request_key(path: str | None) -> str:
    """
    Normalize a request path into a cache key.

    No segment gives the default feed "", one segment a region feed
    "region", two segments a cooperative feed "region/brf".

    Raises:
        InvalidRequestKey: For any other number of segments
    """
    segments = [segment for segment in (path or "").strip("/").split("/") if segment]
    if len(segments) > 2:
        raise InvalidRequestKey(path or "")
    return "/".join(segments)


def build_source_url(key: str, url_patterns: dict[str, str] | None = None) -> str:
    """Map a cache key to the URL of the news page it mirrors."""
    patterns = {**DEFAULT_URL_PATTERNS, **(url_patterns or {})}
    segments = key.split("/") if key else []

    if not segments:
        return patterns["default"]
    if len(segments) == 1:
        return patterns["region"].format(region=quote_plus(segments[0]))
    if len(segments) == 2:
        return patterns["brf"].format(
            region=quote_plus(segments[0]), brf=quote_plus(segments[1])
        )
    raise InvalidRequestKey(key)


class FeedService:
    """Serves RSS documents for request paths from a refreshed, cached feed."""

    def __init__(
        self,
        fetcher: PageFetcher,
        store: CacheStore,
        settings: Settings | None = None,
        extractor: ItemExtractor | None = None,
        assembler: FeedAssembler | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings = settings or Settings()
        self.fetcher = fetcher
        self.extractor = extractor or ItemExtractor()
        self.assembler = assembler or FeedAssembler()

        tz = self.settings.tz
        self.clock = clock or (lambda: datetime.now(tz) if tz else datetime.now().astimezone())
        self.stabilizer = DateStabilizer(tz or self.clock().tzinfo)

        self.cache = FeedCache(
            refresher=self.refresh,
            store=store,
            refresh_window=self.settings.refresh_window,
            flush_interval=self.settings.flush_interval_seconds,
            clock=self.clock,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "FeedService":
        fetcher = PageFetcher(
            user_agent=settings.user_agent,
            timeout=settings.fetch_timeout,
            pool_size=settings.pool_size,
        )
        return cls(fetcher=fetcher, store=CacheStore(settings.cache_directory), settings=settings)

    def source_url(self, key: str) -> str:
        return build_source_url(key, self.settings.url_patterns)

    def refresh(self, key: str, previous: FeedSnapshot | None, now: datetime) -> FeedSnapshot:
        """Fetch, extract and stabilize the feed for a key."""
        url = self.source_url(key)
        document = self.fetcher.fetch(url)
        page = self.extractor.extract(document, url)
        snapshot = self.stabilizer.build_snapshot(page, url, previous, now)

        logger.info(
            "Refreshed feed",
            extra={"key": key, "url": url, "items": len(snapshot.items), "had_previous": previous is not None},
        )
        return snapshot

    def get_feed(self, path: str | None) -> FeedSnapshot:
        """
        Return the current snapshot for a request path.

        Raises:
            InvalidRequestKey: If the path does not name a feed
            FetchError: If a needed refresh fails
        """
        return self.cache.refresh_if_stale(parse_request_key(path))

    def handle_feed_request(self, path: str | None) -> FeedResponse:
        """Answer a feed request with an RSS document or an error status."""
        try:
            key = parse_request_key(path)
        except InvalidRequestKey:
            logger.warning("Invalid request path", extra={"path": path})
            return FeedResponse(404, b"Not found", TEXT_CONTENT_TYPE, outcome="not_found")

        try:
            snapshot = self.cache.refresh_if_stale(key)
        except FetchError as e:
            logger.error(
                "Failed to load news feed",
                extra={"key": key, "url": e.url, "status_code": e.status_code, "error": e.message},
            )
            return FeedResponse(
                e.status_code, b"Error loading news", TEXT_CONTENT_TYPE, outcome="fetch_error"
            )
        except Exception as e:
            logger.exception(
                "Unexpected error building news feed",
                extra={"key": key, "error_type": type(e).__name__, "error": str(e)},
            )
            return FeedResponse(500, b"Error loading news", TEXT_CONTENT_TYPE, outcome="error")

        return FeedResponse(200, self.assembler.render(snapshot, self.clock()), RSS_CONTENT_TYPE)

    def start(self):
        """Load the durable cache and start periodic persistence."""
        self.cache.load()
        self.cache.start()

    def shutdown(self):
        """Stop persistence with a final flush and release HTTP sessions."""
        try:
            self.cache.stop()
        finally:
            self.fetcher.close()
