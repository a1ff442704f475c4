"""Static page fetcher built on httpx.

Used as the fallback path of the extractor when headless rendering fails,
and directly by the DuckDuckGo search strategy.  Never raises for network
or HTTP errors: failures are reported through :attr:`FetchResult.error`.
"""

from __future__ import annotations

import logging
import urllib.parse
import urllib.robotparser
from dataclasses import dataclass
from typing import Optional

import httpx

from article_enricher.scraper.config import (
    BINARY_CONTENT_TYPES,
    NAVIGATION_TIMEOUT,
    ROBOTS_USER_AGENT,
    ROBOTS_USER_AGENT_FALLBACK,
    USER_AGENT,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class FetchResult:
    """Result of a single fetch attempt, static or rendered.

    Attributes:
        html: Page HTML, or ``None`` if the fetch failed or was skipped.
        status_code: HTTP status code, or ``None`` on network error.
        final_url: URL after following redirects.
        error: Human-readable error description, or ``None`` on success.
    """

    html: Optional[str]
    status_code: Optional[int]
    final_url: Optional[str]
    error: Optional[str]

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.html)


# ---------------------------------------------------------------------------
# robots.txt helpers
# ---------------------------------------------------------------------------


async def _is_allowed_by_robots(
    url: str,
    *,
    client: httpx.AsyncClient,
    robots_cache: dict[str, Optional[urllib.robotparser.RobotFileParser]],
    timeout: int,
) -> bool:
    """Return ``True`` if the URL is allowed by the site's robots.txt.

    Parsed rules are cached per origin.  A missing or unreachable robots.txt
    allows everything.
    """
    parsed = urllib.parse.urlparse(url)
    origin = f"{parsed.scheme}://{parsed.netloc}"

    if origin not in robots_cache:
        parser: Optional[urllib.robotparser.RobotFileParser] = None
        try:
            response = await client.get(
                f"{origin}/robots.txt",
                timeout=timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            )
            if response.status_code < 400:
                parser = urllib.robotparser.RobotFileParser()
                parser.parse(response.text.splitlines())
        except httpx.HTTPError as exc:
            logger.debug("scraper: robots.txt fetch failed for %s: %s; allowing", origin, exc)
        robots_cache[origin] = parser

    parser = robots_cache[origin]
    if parser is None:
        return True
    return parser.can_fetch(ROBOTS_USER_AGENT, url) and parser.can_fetch(
        ROBOTS_USER_AGENT_FALLBACK, url
    )


def _is_binary_content_type(content_type: str) -> bool:
    """Return ``True`` if the Content-Type indicates a non-text binary resource."""
    ct = content_type.lower().split(";")[0].strip()
    return any(ct.startswith(prefix) for prefix in BINARY_CONTENT_TYPES)


def retry_after_seconds(headers: httpx.Headers, default: float = 60.0) -> float:
    """Read a ``Retry-After`` header given in seconds.

    The HTTP-date form and any other unparseable value yield ``default``.
    """
    value = headers.get("Retry-After")
    if value is None:
        return default
    try:
        return max(float(value), 0.0)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Public fetch function
# ---------------------------------------------------------------------------


async def fetch_url(
    url: str,
    *,
    client: httpx.AsyncClient,
    timeout: int = NAVIGATION_TIMEOUT,
    respect_robots: bool = False,
    robots_cache: Optional[dict] = None,
    params: Optional[dict[str, str]] = None,
) -> FetchResult:
    """GET ``url`` with a browser user-agent.

    Checks, in order: robots.txt (only when ``respect_robots``), transport
    errors, HTTP status >= 400, binary Content-Type.

    Args:
        url: Target URL to fetch.
        client: Shared :class:`httpx.AsyncClient` instance.
        timeout: Request timeout in seconds.
        respect_robots: Whether to honour robots.txt disallow rules.
        robots_cache: Per-origin robots.txt cache shared across calls.
        params: Optional query parameters.

    Returns:
        A :class:`FetchResult` instance.
    """
    if respect_robots:
        cache = robots_cache if robots_cache is not None else {}
        allowed = await _is_allowed_by_robots(
            url, client=client, robots_cache=cache, timeout=timeout
        )
        if not allowed:
            logger.info("scraper: robots.txt disallows %s", url)
            return FetchResult(
                html=None, status_code=None, final_url=url, error="robots.txt disallowed"
            )

    try:
        response = await client.get(
            url,
            params=params,
            timeout=timeout,
            follow_redirects=True,
            headers={
                "User-Agent": USER_AGENT,
                "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
            },
        )
    except httpx.TimeoutException:
        logger.warning("scraper: timeout fetching %s", url)
        return FetchResult(html=None, status_code=None, final_url=url, error="timeout")
    except httpx.TooManyRedirects:
        logger.warning("scraper: too many redirects for %s", url)
        return FetchResult(
            html=None, status_code=None, final_url=url, error="too many redirects"
        )
    except httpx.RequestError as exc:
        logger.warning("scraper: request error for %s: %s", url, exc)
        return FetchResult(
            html=None, status_code=None, final_url=url, error=f"request error: {exc}"
        )

    final_url = str(response.url)

    if response.status_code >= 400:
        logger.info("scraper: HTTP %d for %s", response.status_code, url)
        return FetchResult(
            html=None,
            status_code=response.status_code,
            final_url=final_url,
            error=f"HTTP {response.status_code}",
        )

    content_type = response.headers.get("content-type", "")
    if _is_binary_content_type(content_type):
        logger.info("scraper: skipping binary content-type '%s' for %s", content_type, url)
        return FetchResult(
            html=None,
            status_code=response.status_code,
            final_url=final_url,
            error=f"binary content-type: {content_type}",
        )

    return FetchResult(
        html=response.text,
        status_code=response.status_code,
        final_url=final_url,
        error=None,
    )
