"""Route tests for /api/articles.

The app runs against the in-memory store from ``conftest.py``.  Routes that
need a coordinator or a discovery service get one built from mocks through
``app.dependency_overrides``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from article_enricher.api.dependencies import get_coordinator, get_discovery
from article_enricher.core.exceptions import GenerationError
from article_enricher.core.schemas.article import ReferenceArticle
from article_enricher.discovery.ingest import DiscoveryReport
from article_enricher.enrichment.coordinator import EnrichmentCoordinator
from article_enricher.rewriter.orchestrator import RewriteOrchestrator
from article_enricher.scraper.content_extractor import ExtractedContent
from tests.factories.articles import ArticleFactory, InMemoryArticleStore

_REF = ReferenceArticle(url="https://www.zendesk.com/blog/chatbots/", title="Zendesk")


def _coordinator(
    store: InMemoryArticleStore,
    *,
    references: list[ReferenceArticle] | None = None,
    answer: object = "<h2>Improved</h2><p>Body</p>",
) -> EnrichmentCoordinator:
    finder = MagicMock()
    finder.find = AsyncMock(return_value=references if references is not None else [_REF])
    extractor = MagicMock()
    extractor.extract = AsyncMock(
        return_value=ExtractedContent(title="Zendesk", text_content="Reference text")
    )
    client = AsyncMock()
    if isinstance(answer, Exception):
        client.generate.side_effect = answer
    else:
        client.generate.return_value = answer
    return EnrichmentCoordinator(
        store,
        finder,
        extractor,
        RewriteOrchestrator(client),
        sleep=AsyncMock(return_value=None),
    )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestArticleCrud:
    async def test_create(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/articles",
            json={"title": "Chatbots: A Guide", "content": "<p>Hello</p>"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "chatbots-a-guide"
        assert body["original_content"] == "<p>Hello</p>"
        assert body["is_updated"] is False
        assert "X-Request-ID" in response.headers

    async def test_create_duplicate_slug(self, client: AsyncClient) -> None:
        payload = {"title": "Same title", "content": "<p>x</p>"}
        await client.post("/api/articles", json=payload)

        response = await client.post("/api/articles", json=payload)

        assert response.status_code == 409
        assert "same-title" in response.json()["detail"]

    async def test_create_requires_title(self, client: AsyncClient) -> None:
        response = await client.post("/api/articles", json={"title": "", "content": "x"})
        assert response.status_code == 422

    async def test_create_normalises_given_slug(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/articles",
            json={"title": "Chatbots", "slug": "Chatbots For You!", "content": "<p>x</p>"},
        )

        assert response.status_code == 201
        assert response.json()["slug"] == "chatbots-for-you"

    async def test_create_rejects_empty_slug(self, client: AsyncClient) -> None:
        response = await client.post("/api/articles", json={"title": "???", "content": "x"})
        assert response.status_code == 422

    async def test_list_newest_first_paginated(
        self, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        articles = [
            store.add(ArticleFactory.build(published_date=datetime(2023, m, 1, tzinfo=timezone.utc)))
            for m in (1, 2, 3)
        ]

        response = await client.get("/api/articles", params={"page": 1, "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["pages"] == 2
        assert body["page"] == 1
        assert [item["id"] for item in body["items"]] == [
            str(articles[2].id),
            str(articles[1].id),
        ]

    async def test_list_empty(self, client: AsyncClient) -> None:
        body = (await client.get("/api/articles")).json()
        assert body == {"items": [], "total": 0, "page": 1, "limit": 10, "pages": 0}

    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}])
    async def test_list_rejects_bad_pagination(self, client: AsyncClient, params: dict) -> None:
        response = await client.get("/api/articles", params=params)
        assert response.status_code == 422

    async def test_get_and_missing(self, client: AsyncClient, store: InMemoryArticleStore) -> None:
        article = store.add(ArticleFactory.build())

        found = await client.get(f"/api/articles/{article.id}")
        missing = await client.get(f"/api/articles/{uuid.uuid4()}")

        assert found.status_code == 200
        assert found.json()["title"] == article.title
        assert missing.status_code == 404

    async def test_get_reports_lifecycle_state(
        self, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        fresh = store.add(ArticleFactory.build())
        enhanced = store.add(ArticleFactory.build(is_updated=True))
        claimed = store.add(ArticleFactory.build(enhancing_since=datetime.now(tz=timezone.utc)))

        states = [
            (await client.get(f"/api/articles/{a.id}")).json()["state"]
            for a in (fresh, enhanced, claimed)
        ]

        assert states == ["new", "enhanced", "enhancing"]

    async def test_update_metadata_only(
        self, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        article = store.add(ArticleFactory.build())

        response = await client.put(f"/api/articles/{article.id}", json={"author": "New Author"})

        assert response.status_code == 200
        body = response.json()
        assert body["author"] == "New Author"
        assert body["is_updated"] is False
        assert body["content"] == article.content

    async def test_update_content_keeps_original(
        self, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        article = store.add(ArticleFactory.build())

        response = await client.put(
            f"/api/articles/{article.id}", json={"content": "<p>Edited by hand</p>"}
        )

        body = response.json()
        assert body["content"] == "<p>Edited by hand</p>"
        assert body["original_content"] == article.original_content
        assert body["is_updated"] is True
        assert body["updated_at"] is not None

    async def test_update_content_without_references_keeps_them(
        self, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        article = store.add(ArticleFactory.build(is_updated=True, reference_articles=[_REF]))

        response = await client.put(
            f"/api/articles/{article.id}", json={"content": "<p>Edited again</p>"}
        )

        assert response.json()["reference_articles"] == [
            {"url": _REF.url, "title": _REF.title}
        ]
        assert store.articles[article.id].reference_articles == [_REF]

    async def test_update_missing(self, client: AsyncClient) -> None:
        response = await client.put(f"/api/articles/{uuid.uuid4()}", json={"author": "x"})
        assert response.status_code == 404

    async def test_delete(self, client: AsyncClient, store: InMemoryArticleStore) -> None:
        article = store.add(ArticleFactory.build())

        response = await client.delete(f"/api/articles/{article.id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Article deleted successfully"}
        assert (await client.get(f"/api/articles/{article.id}")).status_code == 404
        assert (await client.delete(f"/api/articles/{article.id}")).status_code == 404


# ---------------------------------------------------------------------------
# Comparison views
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestComparisonViews:
    async def test_original_view(self, client: AsyncClient, store: InMemoryArticleStore) -> None:
        article = store.add(
            ArticleFactory.build(
                content="<p>Rewritten</p>",
                original_content="<p>Imported</p>",
                is_updated=True,
            )
        )

        body = (await client.get(f"/api/articles/{article.id}/original")).json()

        assert body["content"] == "<p>Imported</p>"
        assert body["source_url"] == article.source_url

    async def test_updated_view_before_enhancement(
        self, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        article = store.add(ArticleFactory.build())

        response = await client.get(f"/api/articles/{article.id}/updated")

        assert response.status_code == 400
        assert response.json()["detail"] == "Article has not been updated yet"

    async def test_updated_view(self, client: AsyncClient, store: InMemoryArticleStore) -> None:
        article = store.add(
            ArticleFactory.build(
                content="<p>Rewritten</p>",
                original_content="<p>Imported</p>",
                is_updated=True,
                updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
                reference_articles=[_REF],
            )
        )

        body = (await client.get(f"/api/articles/{article.id}/updated")).json()

        assert body["content"] == "<p>Rewritten</p>"
        assert body["original_content"] == "<p>Imported</p>"
        assert body["reference_articles"] == [{"url": _REF.url, "title": "Zendesk"}]

    async def test_views_missing_article(self, client: AsyncClient) -> None:
        missing = uuid.uuid4()
        assert (await client.get(f"/api/articles/{missing}/original")).status_code == 404
        assert (await client.get(f"/api/articles/{missing}/updated")).status_code == 404


# ---------------------------------------------------------------------------
# Single enhancement
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestEnhanceRoute:
    async def test_enhance(self, app, client: AsyncClient, store: InMemoryArticleStore) -> None:
        article = store.add(ArticleFactory.build())
        app.dependency_overrides[get_coordinator] = lambda: _coordinator(store)

        response = await client.post(f"/api/articles/{article.id}/enhance")

        assert response.status_code == 200
        body = response.json()
        assert body["had_references"] is True
        assert body["reference_count"] == 1
        assert body["article"]["is_updated"] is True
        assert body["article"]["content"].startswith("<h2>Improved</h2><p>Body</p>")

    async def test_enhance_without_references(
        self, app, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        article = store.add(ArticleFactory.build())
        app.dependency_overrides[get_coordinator] = lambda: _coordinator(store, references=[])

        body = (await client.post(f"/api/articles/{article.id}/enhance")).json()

        assert body["had_references"] is False
        assert body["reference_count"] == 0

    async def test_enhance_missing_article(
        self, app, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        app.dependency_overrides[get_coordinator] = lambda: _coordinator(store)

        response = await client.post(f"/api/articles/{uuid.uuid4()}/enhance")

        assert response.status_code == 404

    async def test_enhance_in_progress(
        self, app, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        article = store.add(ArticleFactory.build(enhancing_since=datetime.now(tz=timezone.utc)))
        app.dependency_overrides[get_coordinator] = lambda: _coordinator(store)

        response = await client.post(f"/api/articles/{article.id}/enhance")

        assert response.status_code == 409

    async def test_generation_failure(
        self, app, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        article = store.add(ArticleFactory.build())
        app.dependency_overrides[get_coordinator] = lambda: _coordinator(
            store, answer=GenerationError("gemini: HTTP 500")
        )

        response = await client.post(f"/api/articles/{article.id}/enhance")

        assert response.status_code == 502
        assert store.articles[article.id].is_updated is False
        assert store.articles[article.id].enhancing_since is None

    async def test_missing_api_key(self, client: AsyncClient, store: InMemoryArticleStore) -> None:
        article = store.add(ArticleFactory.build())

        response = await client.post(f"/api/articles/{article.id}/enhance")

        assert response.status_code == 500
        assert "GEMINI_API_KEY" in response.json()["detail"]
        assert store.articles[article.id].enhancing_since is None


# ---------------------------------------------------------------------------
# Background triggers
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestBackgroundTriggers:
    async def test_scrape_queues_discovery(self, app, client: AsyncClient) -> None:
        discovery = MagicMock()
        discovery.discover = AsyncMock(return_value=DiscoveryReport(created=["a-post"]))
        app.dependency_overrides[get_discovery] = lambda: discovery

        response = await client.post("/api/articles/scrape")
        await app.state.job_queue.join()

        assert response.status_code == 202
        assert response.json()["accepted"] is True
        discovery.discover.assert_awaited_once()
        status = (await client.get("/api/articles/enhance/status")).json()
        assert status["recent"][0]["key"] == "discovery"
        assert status["recent"][0]["result"] == {
            "created": ["a-post"],
            "existing": [],
            "failed": {},
        }

    async def test_enhance_all_with_nothing_pending(
        self, app, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        store.add(ArticleFactory.build(is_updated=True))
        app.dependency_overrides[get_coordinator] = lambda: _coordinator(store)

        response = await client.post("/api/articles/enhance/all")

        assert response.status_code == 202
        assert response.json() == {
            "message": "No articles to enhance",
            "accepted": False,
            "job_id": None,
            "count": 0,
        }

    async def test_enhance_all_queues_batch(
        self, app, client: AsyncClient, store: InMemoryArticleStore
    ) -> None:
        pending = [store.add(ArticleFactory.build()) for _ in range(3)]
        app.dependency_overrides[get_coordinator] = lambda: _coordinator(store, references=[])

        response = await client.post("/api/articles/enhance/all")
        await app.state.job_queue.join()

        body = response.json()
        assert response.status_code == 202
        assert body["accepted"] is True
        assert body["count"] == 3
        assert body["message"].startswith("Enhancement started for 3 articles")
        assert all(store.articles[a.id].is_updated for a in pending)

    async def test_status_idle(self, client: AsyncClient) -> None:
        response = await client.get("/api/articles/enhance/status")

        assert response.status_code == 200
        assert response.json() == {"pending": 0, "running": None, "recent": []}


@pytest.mark.asyncio
class TestLiveness:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
