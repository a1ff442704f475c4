"""Article CRUD, comparison and pipeline-trigger routes.

Routes (mounted under ``/api/articles``)::

    GET    ""                 paginated list, newest first
    POST   ""                 create (409 on duplicate slug)
    POST   /scrape            queue source discovery
    POST   /enhance/all       queue a batch of pending articles
    GET    /enhance/status    job queue status
    GET    /{id}              one article
    PUT    /{id}              metadata and/or manual content update
    DELETE /{id}              delete
    GET    /{id}/original     imported version
    GET    /{id}/updated      enhanced version (400 until enhanced)
    POST   /{id}/enhance      run one enhancement attempt and wait for it

Domain exceptions raised here (not found, duplicate, in progress,
configuration, generation) are translated to HTTP responses by the handler
registered in ``api/main.py``.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from article_enricher.api.dependencies import (
    PaginationParams,
    get_coordinator,
    get_discovery,
    get_job_queue,
    get_pagination,
    get_store,
)
from article_enricher.core.article_store import ArticleStore
from article_enricher.core.exceptions import ArticleNotFoundError
from article_enricher.core.schemas.article import (
    ArticleCreate,
    ArticleEnhancedView,
    ArticleList,
    ArticleOriginalView,
    ArticleRead,
    ArticleUpdate,
    EnhanceResponse,
    JobAccepted,
)
from article_enricher.discovery.ingest import SourceDiscovery
from article_enricher.enrichment.coordinator import EnrichmentCoordinator
from article_enricher.workers.job_queue import JobQueue

logger = structlog.get_logger(__name__)

router = APIRouter()

DISCOVERY_JOB_KEY = "discovery"
BATCH_JOB_KEY = "enhance-batch"

Store = Annotated[ArticleStore, Depends(get_store)]
Queue = Annotated[JobQueue, Depends(get_job_queue)]


async def _get_or_404(store: ArticleStore, article_id: uuid.UUID) -> ArticleRead:
    article = await store.get(article_id)
    if article is None:
        raise ArticleNotFoundError(article_id)
    return article


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@router.get("", response_model=ArticleList)
async def list_articles(
    store: Store,
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
) -> ArticleList:
    """Return one page of articles, newest publication date first."""
    items, total = await store.list_articles(offset=pagination.offset, limit=pagination.limit)
    return ArticleList(
        items=items,
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        pages=math.ceil(total / pagination.limit) if total else 0,
    )


@router.post("", response_model=ArticleRead, status_code=status.HTTP_201_CREATED)
async def create_article(payload: ArticleCreate, store: Store) -> ArticleRead:
    """Create an article.

    ``slug`` defaults to the slugified title and ``original_content`` to
    ``content``.  A taken slug answers 409.
    """
    article = await store.create(payload)
    logger.info("article_created", article_id=str(article.id), slug=article.slug)
    return article


# ---------------------------------------------------------------------------
# Pipeline triggers (declared before the ``/{article_id}`` routes)
# ---------------------------------------------------------------------------


@router.post("/scrape", response_model=JobAccepted, status_code=status.HTTP_202_ACCEPTED)
async def trigger_discovery(
    queue: Queue,
    discovery: Annotated[SourceDiscovery, Depends(get_discovery)],
) -> JobAccepted:
    """Queue an import of the oldest source articles and return at once."""

    async def work() -> dict[str, Any]:
        report = await discovery.discover()
        return report.as_dict()

    record = queue.submit(DISCOVERY_JOB_KEY, work)
    if not record.accepted:
        return JobAccepted(
            message="Discovery is already running.",
            accepted=False,
            job_id=record.job_id,
        )
    logger.info("discovery_scheduled", job_id=record.job_id)
    return JobAccepted(
        message=(
            "Scraping started. This may take a few minutes. "
            "Check the articles list to see new articles."
        ),
        accepted=True,
        job_id=record.job_id,
    )


@router.post("/enhance/all", response_model=JobAccepted, status_code=status.HTTP_202_ACCEPTED)
async def trigger_batch_enhancement(
    queue: Queue,
    coordinator: Annotated[EnrichmentCoordinator, Depends(get_coordinator)],
) -> JobAccepted:
    """Queue enhancement of up to ten pending articles, oldest first.

    The selection is made now so the response can report its size; the
    articles are then enhanced one after another in the background.
    """
    article_ids = await coordinator.select_batch()
    if not article_ids:
        return JobAccepted(message="No articles to enhance", accepted=False, count=0)

    async def work() -> dict[str, Any]:
        report = await coordinator.run_batch(article_ids)
        return report.as_dict()

    record = queue.submit(BATCH_JOB_KEY, work)
    if not record.accepted:
        return JobAccepted(
            message="Batch enhancement is already running.",
            accepted=False,
            job_id=record.job_id,
        )
    logger.info("batch_scheduled", job_id=record.job_id, count=len(article_ids))
    return JobAccepted(
        message=(
            f"Enhancement started for {len(article_ids)} articles. "
            "This may take several minutes."
        ),
        accepted=True,
        job_id=record.job_id,
        count=len(article_ids),
    )


@router.get("/enhance/status")
async def enhancement_status(queue: Queue) -> dict[str, Any]:
    """Pending count, the running job and recently finished jobs."""
    return queue.status()


# ---------------------------------------------------------------------------
# Single article
# ---------------------------------------------------------------------------


@router.get("/{article_id}", response_model=ArticleRead)
async def get_article(article_id: uuid.UUID, store: Store) -> ArticleRead:
    return await _get_or_404(store, article_id)


@router.put("/{article_id}", response_model=ArticleRead)
async def update_article(
    article_id: uuid.UUID,
    payload: ArticleUpdate,
    store: Store,
) -> ArticleRead:
    """Update metadata and, when ``content`` is given, the content.

    Content goes through the same write as an enhancement: the imported
    version is kept in ``original_content`` and the article is marked
    updated.  Omitted ``reference_articles`` keep their current value.
    """
    article = await store.update(article_id, payload.metadata_fields())
    if payload.content is None:
        return article

    updated = await store.apply_enhancement(
        article_id,
        content=payload.content,
        reference_articles=payload.reference_articles,
        updated_at=datetime.now(tz=timezone.utc),
    )
    logger.info("article_content_replaced", article_id=str(article_id))
    return updated


@router.delete("/{article_id}")
async def delete_article(article_id: uuid.UUID, store: Store) -> dict[str, str]:
    await store.delete(article_id)
    logger.info("article_deleted", article_id=str(article_id))
    return {"message": "Article deleted successfully"}


@router.get("/{article_id}/original", response_model=ArticleOriginalView)
async def get_original_version(article_id: uuid.UUID, store: Store) -> ArticleOriginalView:
    """The article as imported, for the left side of a comparison."""
    article = await _get_or_404(store, article_id)
    return ArticleOriginalView(
        id=article.id,
        title=article.title,
        content=article.original_content or article.content,
        published_date=article.published_date,
        author=article.author,
        source_url=article.source_url,
    )


@router.get("/{article_id}/updated", response_model=ArticleEnhancedView)
async def get_updated_version(article_id: uuid.UUID, store: Store) -> ArticleEnhancedView:
    """The enhanced article and its references.

    Raises:
        HTTPException 400: If the article has not been enhanced yet.
    """
    article = await _get_or_404(store, article_id)
    if not article.is_updated:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Article has not been updated yet",
        )
    return ArticleEnhancedView(
        id=article.id,
        title=article.title,
        content=article.content,
        updated_at=article.updated_at,
        reference_articles=article.reference_articles,
        original_content=article.original_content,
    )


@router.post("/{article_id}/enhance", response_model=EnhanceResponse)
async def enhance_article(
    article_id: uuid.UUID,
    coordinator: Annotated[EnrichmentCoordinator, Depends(get_coordinator)],
) -> EnhanceResponse:
    """Run one enhancement attempt and return the result.

    Answers 409 while another attempt on the same article is running and
    502 when the generative service fails; the article is then unchanged.
    """
    result = await coordinator.enhance_article(article_id)
    logger.info(
        "article_enhanced",
        article_id=str(article_id),
        reference_count=len(result.references),
    )
    return EnhanceResponse(
        article=result.article,
        had_references=result.had_references,
        reference_count=len(result.references),
    )
