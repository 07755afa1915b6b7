"""
Error types raised by the feed pipeline
"""


class HsbNewsError(Exception):
    """Base class for all errors raised by this project."""


class FetchError(HsbNewsError):
    """Raised when a news page cannot be fetched.

    Carries the status code that should be propagated to the caller: the
    remote status for HTTP errors, 504 for timeouts, 500 for other
    transport failures.
    """

    def __init__(self, status_code: int, message: str, url: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.url = url

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} ({self.status_code}, {self.url})"
        return f"{self.message} ({self.status_code})"


class PersistenceError(HsbNewsError):
    """Raised when the durable feed cache cannot be read or written."""


class InvalidRequestKey(HsbNewsError):
    """Raised when a request path does not map to a feed."""

    def __init__(self, path: str):
        super().__init__(f"Invalid feed path: {path!r}")
        self.path = path
