"""Constants for source discovery."""

from __future__ import annotations

#: Number of oldest listing entries imported per run.
DISCOVERY_COUNT: int = 5

#: Below this many entries on the last page the previous page is added.
DISCOVERY_MIN_ENTRIES: int = 5

#: Delay between successive listing page loads and article creations (seconds).
DISCOVERY_DELAY: float = 2.0

#: Card selectors on a listing page.
CARD_SELECTORS: str = 'article, .post, .blog-post, [class*="article"], [class*="blog"]'
CARD_TITLE_SELECTORS: str = 'h1, h2, h3, .title, .post-title, [class*="title"]'
CARD_DATE_SELECTORS: str = 'time, .date, [class*="date"], [class*="published"]'
CARD_AUTHOR_SELECTORS: str = '.author, [class*="author"], [rel="author"]'

#: strptime formats tried for listing dates after ISO 8601.
DATE_FORMATS: tuple[str, ...] = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d %Y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
)
