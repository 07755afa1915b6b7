"""
Feed data model: news items, feed snapshots and cache entries
"""

from dataclasses import dataclass, field
from datetime import datetime

GUID_DATE_FORMAT = "%Y%m%d%H%M%S"


@dataclass(frozen=True)
class RawItem:
    """One listing entry as found on the page, before date handling."""

    title: str | None
    link: str | None
    date_text: str | None
    description: str | None


@dataclass(frozen=True)
class ExtractedPage:
    title: str
    items: tuple[RawItem, ...] = ()


@dataclass(frozen=True)
class NewsItem:
    """
    A single news entry.

    Equality only considers title, link and description: the publish date
    is the field being stabilized between refreshes.
    """

    title: str | None
    link: str | None
    publish_date: datetime | None = field(default=None, compare=False)
    description: str | None = None

    @property
    def guid(self) -> str | None:
        return make_guid(self.link, self.publish_date)

    def __repr__(self):
        return f"NewsItem({self.title!r}, {self.link!r}, {self.publish_date})"


def make_guid(link: str | None, publish_date: datetime | None) -> str | None:
    """Build the item guid from its link and publish date."""
    if link is None:
        return None
    if publish_date is None:
        return link
    return f"{link}#{publish_date.strftime(GUID_DATE_FORMAT)}"


@dataclass(frozen=True)
class FeedSnapshot:
    """One fetched and stabilized state of an entity's feed."""

    source_url: str
    title: str
    description: str = ""
    items: tuple[NewsItem, ...] = ()
    last_build_date: datetime | None = field(default=None, compare=False)

    def find_item(self, link: str) -> NewsItem | None:
        """Return the first item with the given link, if any."""
        for item in self.items:
            if item.link == link:
                return item
        return None


@dataclass(frozen=True)
class CacheEntry:
    key: str
    snapshot: FeedSnapshot
    last_refreshed_at: datetime
