"""Celery tasks for discovery and enhancement.

Task naming convention::

    article_enricher.workers.tasks.<action>

Retry policy:
    Every task mutates articles and already handles per-article failures,
    so ``max_retries=0``.  A failed single-article task leaves the article
    unmodified; re-queue it by hand.

Each task runs the async flow via ``asyncio.run()`` and disposes the
database engine before that loop closes.

Producers::

    enqueue_enhancement(article_id)   one article
    enqueue_enhancement()             the next pending batch
    enqueue_discovery()               source discovery

The batch and discovery tasks are also scheduled by Celery Beat, see
``workers/beat_schedule.py``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Optional, TypeVar

from article_enricher.config.settings import get_settings
from article_enricher.core.database import dispose_engine
from article_enricher.pipeline import build_coordinator, build_discovery
from article_enricher.workers.celery_app import celery_app

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _run(flow: Callable[[], Awaitable[T]]) -> T:
    async def _with_cleanup() -> T:
        try:
            return await flow()
        finally:
            await dispose_engine()

    return asyncio.run(_with_cleanup())


@celery_app.task(
    name="article_enricher.workers.tasks.discover_articles_task",
    acks_late=True,
    max_retries=0,
)
def discover_articles_task() -> dict[str, Any]:
    """Import the oldest source articles not yet in the store."""
    logger.info("tasks: discovery started")
    discovery = build_discovery(get_settings())
    report = _run(discovery.discover)
    return report.as_dict()


@celery_app.task(
    name="article_enricher.workers.tasks.enhance_article_task",
    acks_late=True,
    max_retries=0,
)
def enhance_article_task(article_id: str) -> dict[str, Any]:
    """Enhance one article.

    Args:
        article_id: UUID string of the article.

    Returns:
        Dict with ``article_id`` and the number of references used.
    """
    logger.info("tasks: enhancement started for %s", article_id)
    coordinator = build_coordinator(get_settings())
    result = _run(lambda: coordinator.enhance_article(uuid.UUID(article_id)))
    return {"article_id": article_id, "references": len(result.references)}


@celery_app.task(
    name="article_enricher.workers.tasks.enhance_pending_articles_task",
    acks_late=True,
    max_retries=0,
)
def enhance_pending_articles_task() -> dict[str, Any]:
    """Enhance the next batch of not-yet-enhanced articles."""
    logger.info("tasks: batch enhancement started")
    coordinator = build_coordinator(get_settings())
    report = _run(coordinator.enhance_pending)
    return report.as_dict()


# ---------------------------------------------------------------------------
# Producers
# ---------------------------------------------------------------------------


def enqueue_enhancement(article_id: Optional[uuid.UUID] = None) -> str:
    """Queue one article, or the next pending batch when ``article_id`` is ``None``.

    Returns:
        The Celery task id.
    """
    if article_id is None:
        result = enhance_pending_articles_task.delay()
    else:
        result = enhance_article_task.delay(str(article_id))
    logger.info("tasks: queued enhancement %s (article=%s)", result.id, article_id or "batch")
    return result.id


def enqueue_discovery() -> str:
    """Queue source discovery and return the Celery task id."""
    result = discover_articles_task.delay()
    logger.info("tasks: queued discovery %s", result.id)
    return result.id
