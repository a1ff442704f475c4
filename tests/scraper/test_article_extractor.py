"""Unit tests for the two-path ArticleExtractor.

Both fetchers are patched, so no browser and no network are needed.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from article_enricher.scraper.content_extractor import RENDERED_PROFILE, STATIC_PROFILE
from article_enricher.scraper.extractor import ArticleExtractor
from article_enricher.scraper.http_fetcher import FetchResult

_ARTICLE_HTML = (
    "<html><head><title>Rendered</title></head><body><article>"
    "<h1>Reference article</h1><p>Plenty of readable article text for the test.</p>"
    "</article></body></html>"
)

_EMPTY_SHELL_HTML = "<html><body><div id='root'></div></body></html>"


def _ok(html: str, url: str = "https://example.com/post") -> FetchResult:
    return FetchResult(html=html, status_code=200, final_url=url, error=None)


def _failed(error: str = "playwright error: boom") -> FetchResult:
    return FetchResult(html=None, status_code=None, final_url="https://example.com/post", error=error)


@pytest.mark.asyncio
class TestExtract:
    async def test_rendered_success_skips_static(self) -> None:
        with (
            patch(
                "article_enricher.scraper.extractor.fetch_url_playwright",
                new=AsyncMock(return_value=_ok(_ARTICLE_HTML)),
            ),
            patch("article_enricher.scraper.extractor.fetch_url", new=AsyncMock()) as static,
        ):
            result = await ArticleExtractor().extract("https://example.com/post")

        assert result.title == "Reference article"
        assert "readable article text" in result.text_content
        static.assert_not_called()

    async def test_render_failure_falls_back_to_static(self) -> None:
        with (
            patch(
                "article_enricher.scraper.extractor.fetch_url_playwright",
                new=AsyncMock(return_value=_failed()),
            ),
            patch(
                "article_enricher.scraper.extractor.fetch_url",
                new=AsyncMock(return_value=_ok(_ARTICLE_HTML)),
            ) as static,
        ):
            result = await ArticleExtractor().extract("https://example.com/post")

        assert not result.is_empty
        static.assert_awaited_once()

    async def test_empty_render_falls_back_to_static(self) -> None:
        with (
            patch(
                "article_enricher.scraper.extractor.fetch_url_playwright",
                new=AsyncMock(return_value=_ok(_EMPTY_SHELL_HTML)),
            ),
            patch(
                "article_enricher.scraper.extractor.fetch_url",
                new=AsyncMock(return_value=_ok(_ARTICLE_HTML)),
            ),
        ):
            result = await ArticleExtractor().extract("https://example.com/post")

        assert "readable article text" in result.text_content

    async def test_both_paths_failing_returns_empty(self) -> None:
        with (
            patch(
                "article_enricher.scraper.extractor.fetch_url_playwright",
                new=AsyncMock(return_value=_failed()),
            ),
            patch(
                "article_enricher.scraper.extractor.fetch_url",
                new=AsyncMock(return_value=_failed("HTTP 503")),
            ),
        ):
            result = await ArticleExtractor().extract("https://example.com/post")

        assert result.is_empty

    async def test_parser_exception_returns_empty(self) -> None:
        with (
            patch(
                "article_enricher.scraper.extractor.fetch_url_playwright",
                new=AsyncMock(return_value=_ok(_ARTICLE_HTML)),
            ),
            patch(
                "article_enricher.scraper.extractor.fetch_url",
                new=AsyncMock(return_value=_ok(_ARTICLE_HTML)),
            ),
            patch(
                "article_enricher.scraper.extractor.extract_from_html",
                side_effect=RuntimeError("parser crashed"),
            ),
        ):
            result = await ArticleExtractor().extract("https://example.com/post")

        assert result.is_empty

    async def test_profiles_per_path(self) -> None:
        with (
            patch(
                "article_enricher.scraper.extractor.fetch_url_playwright",
                new=AsyncMock(return_value=_ok(_EMPTY_SHELL_HTML)),
            ),
            patch(
                "article_enricher.scraper.extractor.fetch_url",
                new=AsyncMock(return_value=_ok(_EMPTY_SHELL_HTML)),
            ),
            patch("article_enricher.scraper.extractor.extract_from_html") as parse,
        ):
            parse.return_value.is_empty = True
            await ArticleExtractor().extract("https://example.com/post")

        profiles = [call.args[2] for call in parse.call_args_list]
        assert profiles == [RENDERED_PROFILE, STATIC_PROFILE]


@pytest.mark.asyncio
class TestLoadPage:
    async def test_rendered_html_returned(self) -> None:
        with patch(
            "article_enricher.scraper.extractor.fetch_url_playwright",
            new=AsyncMock(return_value=_ok("<html>listing</html>")),
        ):
            assert await ArticleExtractor().load_page("https://example.com/blogs/") == "<html>listing</html>"

    async def test_static_fallback(self) -> None:
        with (
            patch(
                "article_enricher.scraper.extractor.fetch_url_playwright",
                new=AsyncMock(return_value=_failed()),
            ),
            patch(
                "article_enricher.scraper.extractor.fetch_url",
                new=AsyncMock(return_value=_ok("<html>static</html>")),
            ),
        ):
            assert await ArticleExtractor().load_page("https://example.com/blogs/") == "<html>static</html>"

    async def test_unloadable_page_is_none(self) -> None:
        with (
            patch(
                "article_enricher.scraper.extractor.fetch_url_playwright",
                new=AsyncMock(return_value=_failed()),
            ),
            patch(
                "article_enricher.scraper.extractor.fetch_url",
                new=AsyncMock(return_value=_failed("timeout")),
            ),
        ):
            assert await ArticleExtractor().load_page("https://example.com/blogs/") is None
