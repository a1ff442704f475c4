"""Unit tests for the Celery tasks.

The pipeline builders and the engine disposal are patched, so each task runs
its async flow against mocks.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from article_enricher.core.schemas.article import ReferenceArticle
from article_enricher.discovery.ingest import DiscoveryReport
from article_enricher.enrichment.coordinator import BatchReport, EnhancementResult
from article_enricher.workers.tasks import (
    discover_articles_task,
    enhance_article_task,
    enhance_pending_articles_task,
    enqueue_discovery,
    enqueue_enhancement,
)
from tests.factories.articles import ArticleFactory

_TASKS = "article_enricher.workers.tasks"


class TestDiscoverArticlesTask:
    def test_returns_report_and_disposes_engine(self) -> None:
        discovery = MagicMock()
        discovery.discover = AsyncMock(return_value=DiscoveryReport(created=["new-post"]))
        dispose = AsyncMock()

        with patch(f"{_TASKS}.build_discovery", return_value=discovery), patch(
            f"{_TASKS}.dispose_engine", dispose
        ):
            result = discover_articles_task()

        assert result == {"created": ["new-post"], "existing": [], "failed": {}}
        dispose.assert_awaited_once()


class TestEnhanceArticleTask:
    def test_enhances_by_string_id(self) -> None:
        article = ArticleFactory.build(is_updated=True)
        coordinator = MagicMock()
        coordinator.enhance_article = AsyncMock(
            return_value=EnhancementResult(
                article=article,
                references=[ReferenceArticle(url="https://a.example/x", title="A")],
            )
        )

        with patch(f"{_TASKS}.build_coordinator", return_value=coordinator), patch(
            f"{_TASKS}.dispose_engine", AsyncMock()
        ):
            result = enhance_article_task(str(article.id))

        coordinator.enhance_article.assert_awaited_once_with(article.id)
        assert result == {"article_id": str(article.id), "references": 1}

    def test_engine_disposed_on_failure(self) -> None:
        coordinator = MagicMock()
        coordinator.enhance_article = AsyncMock(side_effect=RuntimeError("boom"))
        dispose = AsyncMock()

        with patch(f"{_TASKS}.build_coordinator", return_value=coordinator), patch(
            f"{_TASKS}.dispose_engine", dispose
        ):
            with pytest.raises(RuntimeError):
                enhance_article_task(str(uuid.uuid4()))

        dispose.assert_awaited_once()


class TestEnhancePendingArticlesTask:
    def test_returns_batch_report(self) -> None:
        done = uuid.uuid4()
        coordinator = MagicMock()
        coordinator.enhance_pending = AsyncMock(
            return_value=BatchReport(selected=1, enhanced=[done])
        )

        with patch(f"{_TASKS}.build_coordinator", return_value=coordinator), patch(
            f"{_TASKS}.dispose_engine", AsyncMock()
        ):
            result = enhance_pending_articles_task()

        assert result["enhanced"] == [str(done)]
        assert result["selected"] == 1


class TestProducers:
    def test_enqueue_single_article(self) -> None:
        article_id = uuid.uuid4()
        with patch.object(
            enhance_article_task, "delay", return_value=MagicMock(id="task-1")
        ) as delay:
            assert enqueue_enhancement(article_id) == "task-1"
        delay.assert_called_once_with(str(article_id))

    def test_enqueue_batch(self) -> None:
        with patch.object(
            enhance_pending_articles_task, "delay", return_value=MagicMock(id="task-2")
        ) as delay:
            assert enqueue_enhancement() == "task-2"
        delay.assert_called_once_with()

    def test_enqueue_discovery(self) -> None:
        with patch.object(
            discover_articles_task, "delay", return_value=MagicMock(id="task-3")
        ) as delay:
            assert enqueue_discovery() == "task-3"
        delay.assert_called_once_with()
