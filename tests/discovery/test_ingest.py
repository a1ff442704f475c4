"""Tests for SourceDiscovery selection and import."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from article_enricher.core.exceptions import ExtractionError
from article_enricher.core.slug import slugify
from article_enricher.discovery.config import DISCOVERY_DELAY
from article_enricher.discovery.ingest import DiscoveryReport, SourceDiscovery
from article_enricher.scraper.content_extractor import ExtractedContent
from tests.factories.articles import ArticleFactory, InMemoryArticleStore

BASE = "https://beyondchats.com/blogs/"
NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _listing(titles: list[str], last_page: int = 1) -> str:
    cards = "".join(
        f'<article><h2><a href="/blogs/{slugify(t)}/">{t}</a></h2>'
        f"<time>March {i + 1}, 2023</time></article>"
        for i, t in enumerate(titles)
    )
    pages = "".join(f'<a href="/blogs/page/{n}/">{n}</a>' for n in range(2, last_page + 1))
    return f"<html><body><main>{cards}</main><nav>{pages}</nav></body></html>"


def _extractor(pages: dict[str, str], failing: frozenset[str] = frozenset()) -> MagicMock:
    async def extract(url: str) -> ExtractedContent:
        if url in failing:
            raise RuntimeError("render crashed")
        return ExtractedContent(
            title="ignored",
            text_content=f"Body of {url}",
            html_content=f"<p>Body of {url}</p>",
            author="Page Author",
        )

    extractor = MagicMock()
    extractor.load_page = AsyncMock(side_effect=lambda url: pages.get(url))
    extractor.extract = AsyncMock(side_effect=extract)
    return extractor


def _discovery(store, extractor, sleep=None) -> SourceDiscovery:
    return SourceDiscovery(
        store,
        extractor,
        base_url=BASE,
        sleep=sleep or AsyncMock(return_value=None),
        clock=lambda: NOW,
    )


PAGED = {
    BASE: _listing(["Newest post", "Second newest"], last_page=3),
    f"{BASE}page/2/": _listing(["Post a", "Post b", "Post c", "Post d"]),
    f"{BASE}page/3/": _listing(["Post e", "Post f"]),
}


@pytest.mark.asyncio
class TestCollectEntries:
    async def test_short_last_page_extended_with_previous(self) -> None:
        discovery = _discovery(InMemoryArticleStore(), _extractor(PAGED))

        entries = await discovery.collect_entries()

        assert [e.title for e in entries] == [
            "Post a", "Post b", "Post c", "Post d", "Post e", "Post f",
        ]

    async def test_single_page_listing(self) -> None:
        pages = {BASE: _listing(["One", "Two"])}
        discovery = _discovery(InMemoryArticleStore(), _extractor(pages))

        entries = await discovery.collect_entries()

        assert [e.title for e in entries] == ["One", "Two"]

    async def test_unloadable_last_pages_fall_back_to_first(self) -> None:
        pages = {BASE: _listing(["Front page post"], last_page=4)}
        discovery = _discovery(InMemoryArticleStore(), _extractor(pages))

        entries = await discovery.collect_entries()

        assert [e.title for e in entries] == ["Front page post"]

    async def test_first_page_failure_raises(self) -> None:
        discovery = _discovery(InMemoryArticleStore(), _extractor({}))

        with pytest.raises(ExtractionError):
            await discovery.collect_entries()


@pytest.mark.asyncio
class TestDiscover:
    async def test_imports_five_oldest_oldest_first(self, store: InMemoryArticleStore) -> None:
        sleep = AsyncMock(return_value=None)
        discovery = _discovery(store, _extractor(PAGED), sleep=sleep)

        report = await discovery.discover()

        assert report.created == ["post-f", "post-e", "post-d", "post-c", "post-b"]
        assert report.existing == []
        assert report.failed == {}
        assert len(store.articles) == 5
        # two listing pages plus five creations
        assert [c.args[0] for c in sleep.await_args_list] == [DISCOVERY_DELAY] * 7

        imported = await store.get_by_slug("post-f")
        assert imported.source_url == "https://beyondchats.com/blogs/post-f/"
        assert imported.content == "<p>Body of https://beyondchats.com/blogs/post-f/</p>"
        assert imported.original_content == imported.content
        assert imported.author == "Page Author"
        assert imported.published_date == datetime(2023, 3, 2, tzinfo=timezone.utc)
        assert imported.is_updated is False

    async def test_rerun_is_noop(self, store: InMemoryArticleStore) -> None:
        extractor = _extractor(PAGED)
        await _discovery(store, extractor).discover()
        extractor.extract.reset_mock()

        report = await _discovery(store, extractor).discover()

        assert report.created == []
        assert len(report.existing) == 5
        assert len(store.articles) == 5
        extractor.extract.assert_not_awaited()

    async def test_existing_slug_not_refetched(self, store: InMemoryArticleStore) -> None:
        store.add(ArticleFactory.build(title="Post e", slug="post-e"))
        extractor = _extractor(PAGED)

        report = await _discovery(store, extractor).discover()

        assert report.existing == ["post-e"]
        assert "post-e" not in report.created
        urls = [c.args[0] for c in extractor.extract.await_args_list]
        assert "https://beyondchats.com/blogs/post-e/" not in urls

    async def test_failed_entry_reported_and_run_continues(
        self, store: InMemoryArticleStore
    ) -> None:
        failing = frozenset({"https://beyondchats.com/blogs/post-d/"})
        report = await _discovery(store, _extractor(PAGED, failing)).discover()

        assert list(report.failed) == ["https://beyondchats.com/blogs/post-d/"]
        assert "render crashed" in report.failed["https://beyondchats.com/blogs/post-d/"]
        assert len(report.created) == 4

    async def test_empty_extraction_stores_title(self, store: InMemoryArticleStore) -> None:
        extractor = _extractor({BASE: _listing(["Only post"])})
        extractor.extract = AsyncMock(return_value=ExtractedContent.empty())

        report = await _discovery(store, extractor).discover()

        assert report.created == ["only-post"]
        imported = await store.get_by_slug("only-post")
        assert imported.content == "Only post"

    async def test_undated_entry_uses_clock(self, store: InMemoryArticleStore) -> None:
        html = '<article><h2><a href="/blogs/undated/">Undated</a></h2></article>'
        extractor = _extractor({BASE: html})

        await _discovery(store, extractor).discover()

        imported = await store.get_by_slug("undated")
        assert imported.published_date == NOW

    async def test_report_as_dict(self) -> None:
        report = DiscoveryReport(created=["a"], existing=["b"], failed={"u": "boom"})
        assert report.as_dict() == {"created": ["a"], "existing": ["b"], "failed": {"u": "boom"}}
