"""Parsing of the source blog's paginated listing pages."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from article_enricher.discovery.config import (
    CARD_AUTHOR_SELECTORS,
    CARD_DATE_SELECTORS,
    CARD_SELECTORS,
    CARD_TITLE_SELECTORS,
    DATE_FORMATS,
)

_PAGE_NUMBER = re.compile(r"page/(\d+)")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ListingEntry:
    """One article card on a listing page."""

    title: str
    link: str
    date_text: Optional[str] = None
    author: str = ""


def listing_path(base_url: str) -> str:
    """Path prefix shared by the listing and its articles, e.g. ``/blogs/``."""
    path = urlparse(base_url).path or "/"
    return path if path.endswith("/") else path + "/"


def listing_page_url(base_url: str, page: int) -> str:
    """URL of listing page ``page``; page 1 is the base URL itself.

    >>> listing_page_url("https://example.com/blogs/", 3)
    'https://example.com/blogs/page/3/'
    """
    if page <= 1:
        return base_url
    return urljoin(base_url.rstrip("/") + "/", f"page/{page}/")


def find_last_page(html: str, path: str = "/") -> int:
    """Highest page number linked from the pagination, 1 if none.

    A link counts when its href contains ``path``; its number comes from a
    ``page/N`` segment in the href, else from purely numeric link text.
    """
    soup = BeautifulSoup(html, "html.parser")
    numbers: list[int] = []
    for link in soup.select(f'a[href*="{path}"]'):
        match = _PAGE_NUMBER.search(link.get("href") or "")
        if match:
            numbers.append(int(match.group(1)))
            continue
        text = link.get_text(strip=True)
        if text.isdigit():
            numbers.append(int(text))
    return max(numbers, default=1)


def _clean(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def parse_listing(html: str, base_url: str) -> list[ListingEntry]:
    """Article cards of one listing page, in document order, unique by link.

    Cards without both a title and an article link are ignored.  Nested
    card matches (a ``.post`` inside an ``article``) collapse into one
    entry through the link de-duplication.
    """
    soup = BeautifulSoup(html, "html.parser")
    path = listing_path(base_url)
    entries: list[ListingEntry] = []
    seen: set[str] = set()

    for card in soup.select(CARD_SELECTORS):
        title_el = card.select_one(CARD_TITLE_SELECTORS)
        title = _clean(title_el.get_text(" ")) if title_el is not None else ""

        link_el = card.select_one(f'a[href*="{path}"]') or card.find_parent("a")
        href = link_el.get("href") if link_el is not None else None
        if not title or not href:
            continue
        link = urljoin(base_url, href)
        if link in seen:
            continue
        seen.add(link)

        date_el = card.select_one(CARD_DATE_SELECTORS)
        date_text = None
        if date_el is not None:
            date_text = date_el.get("datetime") or _clean(date_el.get_text(" ")) or None

        author_el = card.select_one(CARD_AUTHOR_SELECTORS)
        author = _clean(author_el.get_text(" ")) if author_el is not None else ""

        entries.append(ListingEntry(title=title, link=link, date_text=date_text, author=author))
    return entries


def parse_published_date(text: Optional[str]) -> Optional[datetime]:
    """Parse a listing or metadata date; ``None`` if unrecognised.

    Naive results are taken as UTC.

    >>> parse_published_date("March 4, 2023").isoformat()
    '2023-03-04T00:00:00+00:00'
    """
    if not text:
        return None
    text = _clean(text)

    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
