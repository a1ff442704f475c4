"""Interchangeable web search backends.

Every backend subclasses :class:`SearchStrategy` and returns raw
:class:`SearchHit` candidates or raises a
:class:`~article_enricher.core.exceptions.SearchBackendError`.  Filtering,
de-duplication and fallback between backends are the finder's job.

Example usage::

    from article_enricher.references.strategies import DuckDuckGoStrategy

    hits = await DuckDuckGoStrategy().search("customer support chatbots")
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import parse_qs, urlencode, urlparse

import httpx
from bs4 import BeautifulSoup

from article_enricher.core.exceptions import (
    SearchAuthError,
    SearchBackendError,
    SearchRateLimitError,
)
from article_enricher.references.config import (
    DUCKDUCKGO_HTML_URL,
    GOOGLE_CSE_URL,
    GOOGLE_SEARCH_URL,
    GOOGLE_SETTLE_MS,
    SEARCH_RESULTS_PER_QUERY,
    SEARCH_TIMEOUT,
)
from article_enricher.scraper.http_fetcher import fetch_url, retry_after_seconds
from article_enricher.scraper.playwright_fetcher import fetch_url_playwright

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchHit:
    """One raw search result."""

    url: str
    title: str


def resolve_redirect(href: str) -> str:
    """Unwrap search-engine redirect links.

    ``/url?q=<target>`` (Google) and ``…?uddg=<target>`` (DuckDuckGo) yield
    the decoded target; any other href is returned unchanged.

    >>> resolve_redirect("/url?q=https://example.com/a&sa=U")
    'https://example.com/a'
    """
    parsed = urlparse(href)
    query = parse_qs(parsed.query)
    if parsed.path.startswith("/url") and query.get("q"):
        return query["q"][0]
    if query.get("uddg"):
        return query["uddg"][0]
    return href


def _raise_for_status(response: httpx.Response, backend: str) -> None:
    """Map HTTP error statuses onto the search exception hierarchy."""
    code = response.status_code
    if code < 400:
        return
    if code == 429:
        retry_after = retry_after_seconds(response.headers)
        raise SearchRateLimitError(
            f"{backend}: HTTP 429 — rate limited",
            retry_after=retry_after,
            backend=backend,
        )
    if code in (401, 403):
        raise SearchAuthError(
            f"{backend}: HTTP {code} — credential rejected",
            backend=backend,
        )
    raise SearchBackendError(
        f"{backend}: HTTP {code} — {response.text[:200]}",
        backend=backend,
    )


class SearchStrategy(ABC):
    """Abstract base for one search backend.

    Subclasses set :attr:`name` and implement :meth:`search`.  A backend
    that cannot run in the current configuration overrides
    :meth:`is_available`; the finder skips it without calling it.
    """

    name: str = ""

    def is_available(self) -> bool:
        return True

    @abstractmethod
    async def search(self, query: str) -> list[SearchHit]:
        """Return raw candidates for ``query``, best first.

        Raises:
            SearchBackendError: On any backend failure.
        """


class GoogleCustomSearchStrategy(SearchStrategy):
    """Google Custom Search JSON API.

    Args:
        api_key: Custom Search API key.
        cx: Programmable Search Engine ID.
        client: Optional shared HTTP client.
    """

    name = "google_api"

    def __init__(
        self,
        api_key: Optional[str],
        cx: Optional[str],
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._cx = cx
        self._client = client

    def is_available(self) -> bool:
        return bool(self._api_key and self._cx)

    async def search(self, query: str) -> list[SearchHit]:
        params = {
            "key": self._api_key or "",
            "cx": self._cx or "",
            "q": query,
            "num": str(SEARCH_RESULTS_PER_QUERY),
        }
        if self._client is not None:
            data = await self._get(self._client, params)
        else:
            async with httpx.AsyncClient(timeout=SEARCH_TIMEOUT) as client:
                data = await self._get(client, params)

        return [
            SearchHit(url=item["link"], title=(item.get("title") or "").strip())
            for item in data.get("items") or []
            if item.get("link")
        ]

    async def _get(self, client: httpx.AsyncClient, params: dict[str, str]) -> dict[str, Any]:
        try:
            response = await client.get(GOOGLE_CSE_URL, params=params, timeout=SEARCH_TIMEOUT)
        except httpx.RequestError as exc:
            raise SearchBackendError(
                f"{self.name}: network error — {exc}", backend=self.name
            ) from exc
        _raise_for_status(response, self.name)
        return response.json()


def parse_google_results(html: str) -> list[SearchHit]:
    """Extract ``(url, title)`` pairs from a rendered Google results page."""
    soup = BeautifulSoup(html, "html.parser")
    hits: list[SearchHit] = []
    for block in soup.select("div.g, div[data-ved]"):
        link = block.select_one('a[href^="http"], a[href^="/url"]')
        if link is None:
            continue
        url = resolve_redirect(link.get("href") or "")
        title_el = block.select_one("h3, h2, .LC20lb")
        title = title_el.get_text(" ", strip=True) if title_el is not None else ""
        if url.startswith("http") and title:
            hits.append(SearchHit(url=url, title=title))
    return hits


class GoogleScrapeStrategy(SearchStrategy):
    """Google's public results page rendered in headless Chromium."""

    name = "google_scrape"

    async def search(self, query: str) -> list[SearchHit]:
        url = f"{GOOGLE_SEARCH_URL}?{urlencode({'q': query, 'num': SEARCH_RESULTS_PER_QUERY})}"
        result = await fetch_url_playwright(
            url,
            wait_for_selector=None,
            settle_ms=GOOGLE_SETTLE_MS,
        )
        if not result.ok:
            raise SearchBackendError(
                f"{self.name}: {result.error or 'empty page'}", backend=self.name
            )
        return parse_google_results(result.html or "")


def parse_duckduckgo_results(html: str) -> list[SearchHit]:
    """Extract ``(url, title)`` pairs from DuckDuckGo's HTML results page."""
    soup = BeautifulSoup(html, "html.parser")
    hits: list[SearchHit] = []
    for link in soup.select("a.result__a"):
        url = resolve_redirect(link.get("href") or "")
        title = link.get_text(" ", strip=True)
        if url and title:
            hits.append(SearchHit(url=url, title=title))
    return hits


class DuckDuckGoStrategy(SearchStrategy):
    """DuckDuckGo's JavaScript-free HTML endpoint.

    Args:
        client: Optional shared HTTP client.
    """

    name = "duckduckgo"

    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        self._client = client

    async def search(self, query: str) -> list[SearchHit]:
        if self._client is not None:
            result = await fetch_url(
                DUCKDUCKGO_HTML_URL, client=self._client, params={"q": query}
            )
        else:
            async with httpx.AsyncClient() as client:
                result = await fetch_url(
                    DUCKDUCKGO_HTML_URL, client=client, params={"q": query}
                )

        if result.status_code == 429:
            raise SearchRateLimitError(f"{self.name}: HTTP 429 — rate limited", backend=self.name)
        if not result.ok:
            raise SearchBackendError(
                f"{self.name}: {result.error or 'empty page'}", backend=self.name
            )
        return parse_duckduckgo_results(result.html or "")
