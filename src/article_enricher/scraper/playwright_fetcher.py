"""Headless Chromium fetcher for JavaScript-rendered pages.

Both the extractor's primary path and the Google results scrape go through
:func:`fetch_url_playwright`.  A fresh browser is launched per call and
always closed in a ``finally`` block, so a crashed page never leaks a
Chromium process.

The Chromium binary must be installed once per machine::

    playwright install chromium
"""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import async_playwright

from article_enricher.scraper.config import (
    ELEMENT_WAIT_TIMEOUT,
    NAVIGATION_TIMEOUT,
    USER_AGENT,
    VIEWPORT,
)
from article_enricher.scraper.http_fetcher import FetchResult

logger = logging.getLogger(__name__)


async def fetch_url_playwright(
    url: str,
    *,
    timeout: int = NAVIGATION_TIMEOUT,
    wait_for_selector: Optional[str] = "body",
    wait_timeout: int = ELEMENT_WAIT_TIMEOUT,
    settle_ms: int = 0,
    wait_until: str = "networkidle",
) -> FetchResult:
    """Render ``url`` in headless Chromium and return the resulting HTML.

    Navigates with ``wait_until`` (``"networkidle"`` by default), then waits
    up to ``wait_timeout`` seconds for ``wait_for_selector`` and finally
    sleeps ``settle_ms`` milliseconds for late client-side rendering.

    Args:
        url: Target URL.
        timeout: Navigation timeout in seconds.
        wait_for_selector: CSS selector that must appear before the HTML is
            captured, or ``None`` to skip the wait.
        wait_timeout: Seconds to wait for ``wait_for_selector``.
        settle_ms: Extra delay after the selector wait.
        wait_until: Playwright navigation lifecycle event.

    Returns:
        A :class:`~article_enricher.scraper.http_fetcher.FetchResult`.  Any
        Playwright error (timeout, navigation failure, missing browser) is
        reported through ``error`` rather than raised.
    """
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(
                headless=True,
                args=["--no-sandbox", "--disable-setuid-sandbox"],
            )
            try:
                context = await browser.new_context(
                    user_agent=USER_AGENT,
                    viewport=VIEWPORT,
                )
                page = await context.new_page()
                try:
                    response = await page.goto(
                        url,
                        timeout=timeout * 1000,
                        wait_until=wait_until,
                    )
                    if wait_for_selector:
                        await page.wait_for_selector(
                            wait_for_selector, timeout=wait_timeout * 1000
                        )
                    if settle_ms:
                        await page.wait_for_timeout(settle_ms)
                    html = await page.content()
                    return FetchResult(
                        html=html,
                        status_code=response.status if response else None,
                        final_url=page.url,
                        error=None,
                    )
                finally:
                    await page.close()
                    await context.close()
            finally:
                await browser.close()

    except Exception as exc:  # noqa: BLE001
        logger.warning("scraper: playwright fetch failed for %s: %s", url, exc)
        return FetchResult(
            html=None,
            status_code=None,
            final_url=url,
            error=f"playwright error: {exc}",
        )
