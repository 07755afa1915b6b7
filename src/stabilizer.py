"""
Date parsing and timestamp stabilization for extracted news items.

The listing only shows a calendar day per item. Without care every refresh
would stamp today's items with a new time of day, so readers would see them
as newly published each minute. Items dated today therefore keep the
timestamp they got the first time they were seen, as long as their content
is unchanged.
"""

import re
from collections.abc import Iterable
from datetime import datetime, tzinfo

from logging_config import get_logger
from news_feed import ExtractedPage, FeedSnapshot, NewsItem, RawItem

logger = get_logger(__name__)

SWEDISH_MONTHS = {
    "januari": 1,
    "februari": 2,
    "mars": 3,
    "april": 4,
    "maj": 5,
    "juni": 6,
    "juli": 7,
    "augusti": 8,
    "september": 9,
    "oktober": 10,
    "november": 11,
    "december": 12,
}

# "dd MMMM yyyy", e.g. "7 oktober 2026"
DATE_PATTERN = re.compile(r"^\s*(\d{1,2})\s+([^\W\d_]+)\s+(\d{4})\s*$")


def parse_swedish_date(text: str | None, tz: tzinfo) -> datetime | None:
    """
    Parse a Swedish "day month-name year" date.

    Args:
        text: Raw date text from the page
        tz: Timezone the page's calendar days refer to

    Returns:
        Midnight of that day in ``tz``, or None when the text is missing or
        not a valid date
    """
    if not text:
        return None

    match = DATE_PATTERN.match(text)
    month = SWEDISH_MONTHS.get(match.group(2).lower()) if match else None
    if match is None or month is None:
        logger.debug("Could not parse date", extra={"date_text": text})
        return None

    try:
        return datetime(int(match.group(3)), month, int(match.group(1)), tzinfo=tz)
    except ValueError:
        logger.debug("Could not parse date", extra={"date_text": text})
        return None


def last_build_date(items: Iterable[NewsItem]) -> datetime | None:
    """Latest publish date among the items, or None if none is dated."""
    dates = [item.publish_date for item in items if item.publish_date is not None]
    return max(dates) if dates else None


class DateStabilizer:
    """Turns raw items into dated news items, reconciled with the previous snapshot."""

    def __init__(self, tz: tzinfo):
        self.tz = tz

    def stabilize_item(
        self, raw: RawItem, previous: FeedSnapshot | None, now: datetime
    ) -> NewsItem:
        date = parse_swedish_date(raw.date_text, self.tz)
        item = NewsItem(
            title=raw.title, link=raw.link, publish_date=date, description=raw.description
        )

        if date is None or date.date() != now.astimezone(self.tz).date():
            return item

        prev_item = None
        if previous is not None and item.link is not None:
            prev_item = previous.find_item(item.link)

        if prev_item is None or prev_item != item:
            return NewsItem(item.title, item.link, now, item.description)
        if prev_item.publish_date is not None:
            return NewsItem(item.title, item.link, prev_item.publish_date, item.description)
        return item

    def stabilize(
        self,
        raw_items: Iterable[RawItem],
        previous: FeedSnapshot | None,
        now: datetime,
    ) -> list[NewsItem]:
        """
        Date every raw item, freezing the timestamps of unchanged items seen today.

        Args:
            raw_items: Extracted items in page order
            previous: Snapshot from the last refresh, if any
            now: Current instant (timezone-aware)

        Returns:
            News items in the same order
        """
        return [self.stabilize_item(raw, previous, now) for raw in raw_items]

    def build_snapshot(
        self,
        page: ExtractedPage,
        page_url: str,
        previous: FeedSnapshot | None,
        now: datetime,
    ) -> FeedSnapshot:
        items = self.stabilize(page.items, previous, now)
        return FeedSnapshot(
            source_url=page_url,
            title=page.title,
            description="",
            items=tuple(items),
            last_build_date=last_build_date(items),
        )
