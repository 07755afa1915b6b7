"""
Renders feed snapshots as RSS 2.0 documents
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timedelta
from html.entities import codepoint2name

from news_feed import FeedSnapshot, NewsItem

RSS_CONTENT_TYPE = "application/rss+xml; charset=UTF-8"

LANGUAGE = "sv"
COPYRIGHT_HOLDER = "HSB"
TTL_MINUTES = "60"
IMAGE = {
    "title": "HSB",
    "url": "http://www.hsb.se/globalassets/centralt-innehall/media/logo/hsblogo.png",
    "width": "181",
    "height": "132",
}

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def escape_html4(text: str) -> str:
    """Replace every character that has an HTML 4 named entity with that entity."""
    return "".join(
        f"&{codepoint2name[ord(ch)]};" if ord(ch) in codepoint2name else ch for ch in text
    )


def format_rss_date(value: datetime) -> str:
    """
    Format a timestamp as ``Mon, 19 Oct 2026 14:05:00 +02:00``.

    Names are always English; a zero offset is written as ``Z``.
    """
    offset = value.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        zone = "Z"
    else:
        sign = "+" if offset > timedelta(0) else "-"
        minutes = abs(int(offset.total_seconds())) // 60
        zone = f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"

    return (
        f"{DAY_NAMES[value.weekday()]}, {value.day:02d} {MONTH_NAMES[value.month - 1]} "
        f"{value.year} {value:%H:%M:%S} {zone}"
    )


def add_text_element(parent: ET.Element, tag: str, text: str | None) -> ET.Element | None:
    """Append ``<tag>text</tag>``; nothing is added when text is None."""
    if text is None:
        return None
    child = ET.SubElement(parent, tag)
    child.text = text
    return child


class FeedAssembler:
    """Builds the RSS element tree for a snapshot."""

    def build_item(self, channel: ET.Element, item: NewsItem) -> ET.Element:
        element = ET.SubElement(channel, "item")
        add_text_element(element, "title", item.title)
        add_text_element(element, "link", item.link)
        add_text_element(
            element,
            "description",
            escape_html4(item.description) if item.description is not None else None,
        )
        add_text_element(element, "guid", item.guid)
        if item.publish_date is not None:
            add_text_element(element, "pubDate", format_rss_date(item.publish_date))
        return element

    def build_document(self, snapshot: FeedSnapshot, now: datetime | None = None) -> ET.Element:
        """
        Build the ``rss`` root element for a snapshot.

        Args:
            snapshot: Feed to render
            now: Used for the copyright year (defaults to the current time)
        """
        now = now or datetime.now()

        rss = ET.Element("rss", {"version": "2.0"})
        channel = ET.SubElement(rss, "channel")

        add_text_element(channel, "title", snapshot.title)
        add_text_element(channel, "link", snapshot.source_url)
        add_text_element(channel, "description", snapshot.description)
        add_text_element(channel, "language", LANGUAGE)
        add_text_element(channel, "copyright", f"Copyright {now.year}, {COPYRIGHT_HOLDER}")

        image = ET.SubElement(channel, "image")
        add_text_element(image, "title", IMAGE["title"])
        add_text_element(image, "link", snapshot.source_url)
        add_text_element(image, "url", IMAGE["url"])
        add_text_element(image, "width", IMAGE["width"])
        add_text_element(image, "height", IMAGE["height"])

        if snapshot.last_build_date is not None:
            add_text_element(channel, "lastBuildDate", format_rss_date(snapshot.last_build_date))
        add_text_element(channel, "ttl", TTL_MINUTES)

        for item in snapshot.items:
            self.build_item(channel, item)

        return rss

    def render(self, snapshot: FeedSnapshot, now: datetime | None = None) -> bytes:
        """Serialize a snapshot to a UTF-8 RSS document."""
        return ET.tostring(
            self.build_document(snapshot, now), encoding="UTF-8", xml_declaration=True
        )
