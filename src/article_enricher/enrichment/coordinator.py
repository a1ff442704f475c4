"""Enrichment coordinator: one article through search, extraction and rewrite.

Lifecycle per attempt::

    load article            -> ArticleNotFoundError
    claim (enhancing_since) -> EnhancementInProgressError
    find references         (full title, then shortened title; never raises)
    extract up to two       (sequential, paced; empty extracts are dropped)
    rewrite                 (reference mode iff any extract survived)
    apply_enhancement       (one statement; releases the claim)

Any failure between claim and apply releases the claim and re-raises with
the article untouched, so a failed attempt leaves no trace besides logs.

Usage::

    coordinator = build_coordinator(get_settings())  # article_enricher.pipeline
    result = await coordinator.enhance_article(article_id)
    report = await coordinator.enhance_pending()
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Sequence

from article_enricher.core.article_store import ArticleStore
from article_enricher.core.exceptions import (
    ArticleNotFoundError,
    EnhancementInProgressError,
)
from article_enricher.core.logging_config import bind_article_context
from article_enricher.core.schemas.article import ArticleRead, ReferenceArticle
from article_enricher.enrichment.config import (
    ARTICLE_DELAY,
    BATCH_SIZE,
    ENHANCING_CLAIM_TTL,
    MAX_REFERENCE_EXTRACTS,
    REFERENCE_FETCH_DELAY,
)
from article_enricher.references.finder import ReferenceFinder, shorten_topic
from article_enricher.rewriter.orchestrator import ReferenceExtract, RewriteOrchestrator
from article_enricher.scraper.extractor import ArticleExtractor

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class EnhancementResult:
    """Outcome of one successful enhancement."""

    article: ArticleRead
    references: list[ReferenceArticle]

    @property
    def had_references(self) -> bool:
        return bool(self.references)


@dataclass
class BatchReport:
    """Per-article outcome of one batch run."""

    selected: int = 0
    enhanced: list[uuid.UUID] = field(default_factory=list)
    skipped: list[uuid.UUID] = field(default_factory=list)
    failed: dict[uuid.UUID, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "selected": self.selected,
            "enhanced": [str(i) for i in self.enhanced],
            "skipped": [str(i) for i in self.skipped],
            "failed": {str(k): v for k, v in self.failed.items()},
        }


class EnrichmentCoordinator:
    """Drive articles through the enrichment pipeline.

    Args:
        store: Article persistence.
        finder: Reference search.
        extractor: Page extractor for reference candidates.
        orchestrator: Rewrite step.
        sleep: Awaitable delay, replaced in tests.
        clock: Source of "now" for claims and ``updated_at``.
    """

    def __init__(
        self,
        store: ArticleStore,
        finder: ReferenceFinder,
        extractor: ArticleExtractor,
        orchestrator: RewriteOrchestrator,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._finder = finder
        self._extractor = extractor
        self._orchestrator = orchestrator
        self._sleep = sleep
        self._clock = clock

    # ------------------------------------------------------------------
    # Single article
    # ------------------------------------------------------------------

    async def enhance_article(self, article_id: uuid.UUID) -> EnhancementResult:
        """Run one enhancement attempt and persist the result.

        Enhanced articles may be enhanced again; the new rewrite replaces
        ``content`` and ``updated_at`` while ``original_content`` stays.
        ``reference_articles`` is only replaced when references were used.

        Raises:
            ArticleNotFoundError: If the article does not exist.
            EnhancementInProgressError: If another attempt holds the claim.
            GenerationError: If the rewrite fails; nothing is persisted.
        """
        with bind_article_context(article_id):
            article = await self._store.get(article_id)
            if article is None:
                raise ArticleNotFoundError(article_id)

            claimed = await self._store.try_claim(
                article_id, now=self._clock(), stale_after=ENHANCING_CLAIM_TTL
            )
            if not claimed:
                raise EnhancementInProgressError(article_id)

            try:
                candidates = await self._find_references(article.title)
                extracts = await self._extract_references(candidates)
                content = await self._orchestrator.rewrite(
                    article.original_content or article.content,
                    article.title,
                    extracts,
                )
                references = [extract.as_reference() for extract in extracts]
                updated = await self._store.apply_enhancement(
                    article_id,
                    content=content,
                    reference_articles=references or None,
                    updated_at=self._clock(),
                )
            except Exception:
                logger.warning("enrichment: attempt failed for %s; releasing claim", article_id)
                await self._store.release_claim(article_id)
                raise

            logger.info(
                "enrichment: enhanced %s with %d reference(s)", article_id, len(references)
            )
            return EnhancementResult(article=updated, references=references)

    async def _find_references(self, title: str) -> list[ReferenceArticle]:
        references = await self._finder.find(title)
        if references:
            return references
        short = shorten_topic(title)
        if short is None:
            return []
        logger.info("enrichment: retrying reference search with %r", short)
        return await self._finder.find(short)

    async def _extract_references(
        self, candidates: Sequence[ReferenceArticle]
    ) -> list[ReferenceExtract]:
        extracts: list[ReferenceExtract] = []
        for index, candidate in enumerate(candidates[:MAX_REFERENCE_EXTRACTS]):
            if index:
                await self._sleep(REFERENCE_FETCH_DELAY)
            content = await self._extractor.extract(candidate.url)
            if content.is_empty:
                logger.info("enrichment: dropping reference %s (no content)", candidate.url)
                continue
            extracts.append(
                ReferenceExtract(
                    url=candidate.url,
                    title=candidate.title or content.title,
                    text_content=content.text_content,
                    html_content=content.html_content,
                    structure_signature=content.structure_signature,
                )
            )
        return extracts

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def select_batch(self, limit: int = BATCH_SIZE) -> list[uuid.UUID]:
        """Ids of up to ``limit`` not-yet-enhanced articles, oldest first.

        ``limit`` is capped at ``BATCH_SIZE``; zero or less selects nothing.
        """
        limit = min(limit, BATCH_SIZE)
        if limit <= 0:
            return []
        items, _ = await self._store.list_articles(
            is_updated=False, limit=limit, oldest_first=True
        )
        return [article.id for article in items]

    async def run_batch(self, article_ids: Sequence[uuid.UUID]) -> BatchReport:
        """Enhance ``article_ids`` one after another.

        Articles already enhanced by the time their turn comes are skipped.
        A failing article is logged and counted; the batch continues.
        """
        report = BatchReport(selected=len(article_ids))
        for index, article_id in enumerate(article_ids):
            if index:
                await self._sleep(ARTICLE_DELAY)

            current = await self._store.get(article_id)
            if current is None or current.is_updated:
                logger.info("enrichment: skipping %s (missing or already enhanced)", article_id)
                report.skipped.append(article_id)
                continue

            try:
                await self.enhance_article(article_id)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "enrichment: batch item %s failed: %s", article_id, exc, exc_info=True
                )
                report.failed[article_id] = str(exc)
            else:
                report.enhanced.append(article_id)

        logger.info(
            "enrichment: batch done: %d enhanced, %d skipped, %d failed",
            len(report.enhanced),
            len(report.skipped),
            len(report.failed),
        )
        return report

    async def enhance_pending(self, limit: Optional[int] = None) -> BatchReport:
        """Select the pending batch and run it."""
        article_ids = await self.select_batch(BATCH_SIZE if limit is None else limit)
        if not article_ids:
            logger.info("enrichment: no pending articles")
        return await self.run_batch(article_ids)
