"""
Item extractor for HSB news listing pages
"""

from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from logging_config import get_logger
from news_feed import ExtractedPage, RawItem

logger = get_logger(__name__)

# Page structure of the news listing
SELECTORS = {
    "title": "div.brf-header-bottom-text > span",
    "title_fallback": "div.regionname",
    "items": "ul.itemlist > li.item",
    "link": "a.linkclickarea",
    "information": "div.iteminformation",
    "item_title": "h3",
    "item_date": "div.itemdate",
    "item_description": "div.itemdescription",
}


def normalize_text(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return " ".join(text.split())


def _select_text(root: Tag, selector: str) -> str:
    return normalize_text(" ".join(el.get_text(" ") for el in root.select(selector)))


def _first_text(element: Tag | None, selector: str) -> str | None:
    if element is None:
        return None
    child = element.select_one(selector)
    if child is None:
        return None
    return normalize_text(child.get_text(" "))


class ItemExtractor:
    """Extracts the page title and listing entries from a fetched page."""

    def __init__(self, selectors: dict[str, str] | None = None):
        self.selectors = {**SELECTORS, **(selectors or {})}

    def extract_title(self, document: BeautifulSoup) -> str:
        title = _select_text(document, self.selectors["title"])
        if not title:
            title = _select_text(document, self.selectors["title_fallback"])
        return title

    def extract_item(self, element: Tag, page_url: str) -> RawItem:
        """
        Extract one listing entry.

        Missing sub-elements give None for the affected field only.
        """
        anchor = element.select_one(self.selectors["link"])
        information = anchor.select_one(self.selectors["information"]) if anchor else None

        link = None
        href = anchor.get("href") if anchor is not None else None
        if isinstance(href, str) and href.strip():
            link = urljoin(page_url, href.strip())

        return RawItem(
            title=_first_text(information, self.selectors["item_title"]),
            link=link,
            date_text=_first_text(information, self.selectors["item_date"]),
            description=_first_text(information, self.selectors["item_description"]),
        )

    def extract(self, document: BeautifulSoup, page_url: str) -> ExtractedPage:
        """
        Extract the listing of a news page.

        Args:
            document: Parsed page
            page_url: URL the page was fetched from, used to resolve relative links

        Returns:
            ExtractedPage with the page title and items in page order
        """
        items = [
            self.extract_item(element, page_url)
            for element in document.select(self.selectors["items"])
        ]
        page = ExtractedPage(title=self.extract_title(document), items=tuple(items))

        logger.debug(
            "Extracted news items",
            extra={"url": page_url, "title": page.title, "items": len(page.items)},
        )
        return page
