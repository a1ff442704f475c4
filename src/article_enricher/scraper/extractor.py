"""Two-path article extractor: rendered first, static fallback.

:class:`ArticleExtractor` is what the enrichment coordinator and source
discovery call.  It never raises for a single bad page; every failure ends
in :meth:`ExtractedContent.empty`.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from article_enricher.scraper.config import NAVIGATION_TIMEOUT
from article_enricher.scraper.content_extractor import (
    RENDERED_PROFILE,
    STATIC_PROFILE,
    ExtractedContent,
    SelectorProfile,
    extract_from_html,
)
from article_enricher.scraper.http_fetcher import FetchResult, fetch_url
from article_enricher.scraper.playwright_fetcher import fetch_url_playwright

logger = logging.getLogger(__name__)


class ArticleExtractor:
    """Fetch a page and extract its main article content.

    Args:
        client: Shared :class:`httpx.AsyncClient` for the static path.  When
            omitted a short-lived client is opened per static fetch.
        respect_robots: Honour robots.txt on the static path.
    """

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        respect_robots: bool = False,
    ) -> None:
        self._client = client
        self._respect_robots = respect_robots
        self._robots_cache: dict = {}

    async def extract(self, url: str) -> ExtractedContent:
        """Extract ``url``, falling back to a static fetch.

        The static path runs when rendering fails or the rendered page
        yields no text.

        Returns:
            The first non-empty extraction, else ``ExtractedContent.empty()``.
        """
        rendered = await fetch_url_playwright(url)
        if rendered.ok:
            content = self._parse(rendered, url, RENDERED_PROFILE)
            if not content.is_empty:
                return content
            logger.info("scraper: rendered page for %s had no content; trying static fetch", url)
        else:
            logger.info("scraper: rendering %s failed (%s); trying static fetch", url, rendered.error)

        static = await self._fetch_static(url)
        if static.ok:
            content = self._parse(static, url, STATIC_PROFILE)
            if not content.is_empty:
                return content

        logger.warning("scraper: no extractable content at %s", url)
        return ExtractedContent.empty()

    async def load_page(self, url: str) -> Optional[str]:
        """Return the page HTML, rendered if possible, else static.

        Used for listing pages, which are parsed by the caller rather than
        run through the article profiles.
        """
        rendered = await fetch_url_playwright(url)
        if rendered.ok:
            return rendered.html
        static = await self._fetch_static(url)
        if static.ok:
            return static.html
        logger.warning("scraper: could not load %s (%s)", url, static.error)
        return None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_static(self, url: str) -> FetchResult:
        if self._client is not None:
            return await self._static_get(self._client, url)
        async with httpx.AsyncClient() as client:
            return await self._static_get(client, url)

    async def _static_get(self, client: httpx.AsyncClient, url: str) -> FetchResult:
        return await fetch_url(
            url,
            client=client,
            timeout=NAVIGATION_TIMEOUT,
            respect_robots=self._respect_robots,
            robots_cache=self._robots_cache,
        )

    @staticmethod
    def _parse(result: FetchResult, url: str, profile: SelectorProfile) -> ExtractedContent:
        try:
            return extract_from_html(result.html or "", result.final_url or url, profile)
        except Exception as exc:  # noqa: BLE001
            logger.warning("scraper: %s extraction failed for %s: %s", profile.name, url, exc)
            return ExtractedContent.empty()
