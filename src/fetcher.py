"""
Page fetcher: downloads a news listing page and parses it into a tree
"""

import queue
from collections.abc import Iterator
from contextlib import contextmanager

import requests
from bs4 import BeautifulSoup
from requests.exceptions import HTTPError, RequestException, Timeout

from exceptions import FetchError
from logging_config import get_logger

# Default timeout for HTTP requests (seconds)
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_USER_AGENT = "Mozilla"
DEFAULT_POOL_SIZE = 4

logger = get_logger(__name__)


class SessionPool:
    """
    Bounded pool of requests sessions.

    Sessions are created lazily and handed out with ``acquire()``, which
    always returns the session to the pool (or closes it when the pool is
    full) once the block exits.
    """

    def __init__(self, user_agent: str, size: int = DEFAULT_POOL_SIZE):
        self.user_agent = user_agent
        self.size = size
        self._idle: queue.LifoQueue[requests.Session] = queue.LifoQueue(maxsize=size)

    def _new_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "User-Agent": self.user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "sv-SE,sv;q=0.9,en;q=0.5",
            }
        )
        return session

    @contextmanager
    def acquire(self) -> Iterator[requests.Session]:
        try:
            session = self._idle.get_nowait()
        except queue.Empty:
            session = self._new_session()

        try:
            yield session
        finally:
            try:
                self._idle.put_nowait(session)
            except queue.Full:
                session.close()

    def close(self):
        """Close every idle session."""
        while True:
            try:
                self._idle.get_nowait().close()
            except queue.Empty:
                break


class PageFetcher:
    """Fetches HTML pages with a fixed client identity and a bounded wait."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        pool_size: int = DEFAULT_POOL_SIZE,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self.pool = SessionPool(user_agent, size=pool_size)

    def fetch(self, url: str) -> BeautifulSoup:
        """
        Fetch a page and return its parsed document tree.

        Args:
            url: Absolute URL of the page

        Returns:
            The parsed HTML document

        Raises:
            FetchError: On timeout, transport failure or non-success status
        """
        logger.debug("Fetching page", extra={"url": url, "timeout": self.timeout})

        with self.pool.acquire() as session:
            try:
                response = session.get(url, timeout=self.timeout)
                response.raise_for_status()
            except Timeout as e:
                logger.warning("Request timed out", extra={"url": url, "timeout": self.timeout})
                raise FetchError(504, f"Timed out after {self.timeout}s", url) from e
            except HTTPError as e:
                status_code = e.response.status_code if e.response is not None else 500
                logger.warning("HTTP error", extra={"url": url, "status_code": status_code})
                raise FetchError(status_code, f"HTTP error {status_code}", url) from e
            except RequestException as e:
                logger.warning("Request failed", extra={"url": url, "error": str(e)})
                raise FetchError(500, f"Request failed: {e}", url) from e

        logger.debug(
            "Page fetched",
            extra={
                "url": url,
                "status_code": response.status_code,
                "content_length": len(response.content),
            },
        )
        return BeautifulSoup(response.content, "html.parser")

    def close(self):
        self.pool.close()
