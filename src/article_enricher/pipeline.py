"""Wiring of the pipeline components from settings.

The API dependencies, the Celery tasks and the scripts all build their
collaborators here so that each entry point runs the same configuration.

Usage::

    from article_enricher.config import get_settings
    from article_enricher.pipeline import build_coordinator

    coordinator = build_coordinator(get_settings())
"""

from __future__ import annotations

from typing import Optional

from article_enricher.config.settings import Settings
from article_enricher.core.article_store import ArticleStore, SqlArticleStore
from article_enricher.core.database import get_session_factory
from article_enricher.discovery.ingest import SourceDiscovery
from article_enricher.enrichment.coordinator import EnrichmentCoordinator
from article_enricher.references.finder import ReferenceFinder
from article_enricher.rewriter._gemini import build_generative_client
from article_enricher.rewriter.orchestrator import RewriteOrchestrator
from article_enricher.scraper.extractor import ArticleExtractor


def build_store() -> SqlArticleStore:
    return SqlArticleStore(get_session_factory())


def build_extractor(settings: Settings) -> ArticleExtractor:
    return ArticleExtractor(respect_robots=settings.respect_robots_txt)


def build_coordinator(
    settings: Settings,
    store: Optional[ArticleStore] = None,
) -> EnrichmentCoordinator:
    """Return a coordinator wired from ``settings``.

    Raises:
        ConfigurationError: If ``GEMINI_API_KEY`` is missing.  Raised here,
            before any article is touched.
    """
    orchestrator = RewriteOrchestrator(build_generative_client(settings))
    return EnrichmentCoordinator(
        store if store is not None else build_store(),
        ReferenceFinder.from_settings(settings),
        build_extractor(settings),
        orchestrator,
    )


def build_discovery(
    settings: Settings,
    store: Optional[ArticleStore] = None,
) -> SourceDiscovery:
    return SourceDiscovery(
        store if store is not None else build_store(),
        build_extractor(settings),
        base_url=settings.source_blog_url,
    )
