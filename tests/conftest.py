"""
Shared pytest fixtures for hsb-news-rss tests.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest
from bs4 import BeautifulSoup

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

STOCKHOLM = ZoneInfo("Europe/Stockholm")
NOW = datetime(2026, 10, 19, 14, 30, 0, tzinfo=STOCKHOLM)

SWEDISH_MONTH_NAMES = [
    "januari", "februari", "mars", "april", "maj", "juni",
    "juli", "augusti", "september", "oktober", "november", "december",
]


def swedish_date(value: datetime) -> str:
    """Format a date the way the news pages show it, e.g. '19 oktober 2026'."""
    return f"{value.day} {SWEDISH_MONTH_NAMES[value.month - 1]} {value.year}"


def build_page(items, title="Brf Hägern", region_name="HSB Norr") -> str:
    """
    Build a news listing page.

    Args:
        items: (href, title, date_text, description) tuples; None leaves the
            element out
    """
    rows = []
    for href, item_title, date_text, description in items:
        info = []
        if item_title is not None:
            info.append(f"<h3>{item_title}</h3>")
        if date_text is not None:
            info.append(f'<div class="itemdate">{date_text}</div>')
        if description is not None:
            info.append(f'<div class="itemdescription">{description}</div>')
        href_attr = f' href="{href}"' if href is not None else ""
        rows.append(
            f'<li class="item"><a class="linkclickarea"{href_attr}>'
            f'<div class="iteminformation">{"".join(info)}</div></a></li>'
        )

    header = f'<div class="brf-header-bottom-text"><span>{title}</span></div>' if title else ""
    return (
        "<html><body>"
        f"{header}"
        f'<div class="regionname">{region_name}</div>'
        f'<ul class="itemlist">{"".join(rows)}</ul>'
        "</body></html>"
    )


class FakeClock:
    """Controllable clock returning timezone-aware datetimes."""

    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def two_item_page():
    """Page with one item dated today and one dated yesterday."""
    return build_page(
        [
            ("/nyheter/arsstamma/", "Årsstämma", swedish_date(NOW), "Välkommen till årsstämman."),
            (
                "https://www.hsb.se/nyheter/tvattstuga/",
                "Ny tvättstuga",
                swedish_date(NOW - timedelta(days=1)),
                "Tvättstugan är renoverad.",
            ),
        ]
    )


@pytest.fixture
def fake_fetcher():
    """Fetcher mock serving whatever HTML is in ``fake_fetcher.html``."""
    fetcher = MagicMock()
    fetcher.html = build_page([])
    fetcher.fetch.side_effect = lambda url: BeautifulSoup(fetcher.html, "html.parser")
    return fetcher
