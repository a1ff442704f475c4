"""Tests for the derived enrichment lifecycle state."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from article_enricher.enrichment.state import ArticleState, article_state
from tests.factories.articles import ArticleFactory

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestArticleState:
    def test_new(self) -> None:
        assert article_state(ArticleFactory.build(), NOW) is ArticleState.NEW

    def test_enhanced(self) -> None:
        article = ArticleFactory.build(is_updated=True, updated_at=NOW)
        assert article_state(article, NOW) is ArticleState.ENHANCED

    def test_live_claim_is_enhancing(self) -> None:
        article = ArticleFactory.build(is_updated=True, enhancing_since=NOW - timedelta(minutes=2))
        assert article_state(article, NOW) is ArticleState.ENHANCING

    def test_stale_claim_ignored(self) -> None:
        article = ArticleFactory.build(enhancing_since=NOW - timedelta(hours=1))
        assert article_state(article, NOW) is ArticleState.NEW
