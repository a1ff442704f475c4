"""Source discovery: import the oldest articles of the source blog.

Selection::

    page 1           -> last page number from the pagination
    last page        -> entries
    fewer than five  -> previous page's entries prepended
    still none       -> page 1's entries
    oldest five      -> the last five entries, oldest first

Each selected entry is skipped when its slug already exists, otherwise
extracted and stored with ``original_content`` equal to its content.
Re-running discovery is therefore a no-op for articles already imported.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from article_enricher.core.article_store import ArticleStore
from article_enricher.core.exceptions import DuplicateArticleError, ExtractionError
from article_enricher.core.schemas.article import ArticleCreate
from article_enricher.core.slug import slugify
from article_enricher.discovery.config import (
    DISCOVERY_COUNT,
    DISCOVERY_DELAY,
    DISCOVERY_MIN_ENTRIES,
)
from article_enricher.discovery.listing import (
    ListingEntry,
    find_last_page,
    listing_page_url,
    listing_path,
    parse_listing,
    parse_published_date,
)
from article_enricher.scraper.extractor import ArticleExtractor

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class DiscoveryReport:
    """Slugs created or already present, and links that failed."""

    created: list[str] = field(default_factory=list)
    existing: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "created": list(self.created),
            "existing": list(self.existing),
            "failed": dict(self.failed),
        }


class SourceDiscovery:
    """Import the oldest articles from a paginated blog listing.

    Args:
        store: Article persistence.
        extractor: Loads listing pages and extracts articles.
        base_url: First listing page, e.g. ``https://example.com/blogs/``.
        count: Number of oldest entries imported per run.
        sleep: Awaitable delay, replaced in tests.
        clock: Fallback publication date source.
    """

    def __init__(
        self,
        store: ArticleStore,
        extractor: ArticleExtractor,
        *,
        base_url: str,
        count: int = DISCOVERY_COUNT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._extractor = extractor
        self._base_url = base_url
        self._count = count
        self._sleep = sleep
        self._clock = clock

    async def discover(self) -> DiscoveryReport:
        """Import the oldest listing entries not yet in the store.

        Raises:
            ExtractionError: If the first listing page cannot be loaded.
        """
        entries = await self.collect_entries()
        oldest = list(reversed(entries[-self._count:]))
        logger.info("discovery: %d listing entries, processing %d oldest", len(entries), len(oldest))

        report = DiscoveryReport()
        for entry in oldest:
            try:
                slug, created = await self._ingest(entry)
            except Exception as exc:  # noqa: BLE001
                logger.warning("discovery: failed to import %s: %s", entry.link, exc, exc_info=True)
                report.failed[entry.link] = str(exc)
                continue

            if created:
                report.created.append(slug)
                await self._sleep(DISCOVERY_DELAY)
            else:
                report.existing.append(slug)

        logger.info(
            "discovery: done: %d created, %d existing, %d failed",
            len(report.created),
            len(report.existing),
            len(report.failed),
        )
        return report

    async def collect_entries(self) -> list[ListingEntry]:
        """Listing entries oldest-page-last, as the selection rules need them."""
        first_html = await self._extractor.load_page(self._base_url)
        if first_html is None:
            raise ExtractionError("could not load the source listing", url=self._base_url)

        last_page = find_last_page(first_html, listing_path(self._base_url))
        logger.info("discovery: last listing page is %d", last_page)

        entries = await self._page_entries(last_page, first_html)
        if len(entries) < DISCOVERY_MIN_ENTRIES and last_page > 1:
            previous = await self._page_entries(last_page - 1, first_html)
            known = {entry.link for entry in entries}
            entries = [entry for entry in previous if entry.link not in known] + entries

        if not entries and last_page > 1:
            logger.info("discovery: no entries on the last pages; falling back to page 1")
            entries = parse_listing(first_html, self._base_url)
        return entries

    async def _page_entries(self, page: int, first_html: str) -> list[ListingEntry]:
        if page <= 1:
            return parse_listing(first_html, self._base_url)
        await self._sleep(DISCOVERY_DELAY)
        url = listing_page_url(self._base_url, page)
        html = await self._extractor.load_page(url)
        if html is None:
            logger.warning("discovery: listing page %s could not be loaded", url)
            return []
        return parse_listing(html, self._base_url)

    async def _ingest(self, entry: ListingEntry) -> tuple[str, bool]:
        """Store ``entry`` unless present.  Returns ``(slug, created)``."""
        slug = slugify(entry.title)
        if not slug:
            raise ValueError(f"title {entry.title!r} yields an empty slug")
        if await self._store.get_by_slug(slug) is not None:
            logger.info("discovery: %s already imported", slug)
            return slug, False

        extracted = await self._extractor.extract(entry.link)
        if extracted.is_empty:
            logger.warning("discovery: no content for %s; storing title as placeholder", entry.link)
            body = entry.title
        else:
            body = extracted.html_content or extracted.text_content

        published: Optional[datetime] = (
            parse_published_date(entry.date_text)
            or parse_published_date(extracted.published)
            or self._clock()
        )
        data = ArticleCreate(
            title=entry.title,
            slug=slug,
            content=body,
            original_content=body,
            source_url=entry.link,
            author=entry.author or extracted.author,
            published_date=published,
        )
        try:
            await self._store.create(data)
        except DuplicateArticleError:
            logger.info("discovery: %s was imported concurrently", slug)
            return slug, False
        logger.info("discovery: imported %s", slug)
        return slug, True
