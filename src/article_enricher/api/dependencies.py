"""FastAPI dependency injection providers.

Every collaborator a route needs is resolved here, so tests can replace
any of them through ``app.dependency_overrides``.

Dependency graph::

    get_settings ─┬─> get_coordinator
    get_store ────┤
                  └─> get_discovery
    get_job_queue     (the queue owned by the running app)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from article_enricher.config.settings import Settings, get_settings
from article_enricher.core.article_store import ArticleStore
from article_enricher.discovery.ingest import SourceDiscovery
from article_enricher.enrichment.coordinator import EnrichmentCoordinator
from article_enricher.pipeline import build_coordinator, build_discovery, build_store
from article_enricher.workers.job_queue import JobQueue

_MAX_LIMIT = 100


def get_store() -> ArticleStore:
    return build_store()


def get_job_queue(request: Request) -> JobQueue:
    return request.app.state.job_queue


def get_coordinator(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[ArticleStore, Depends(get_store)],
) -> EnrichmentCoordinator:
    """Coordinator for the request.

    Raises:
        ConfigurationError: If ``GEMINI_API_KEY`` is missing, before the
            route body runs.
    """
    return build_coordinator(settings, store)


def get_discovery(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[ArticleStore, Depends(get_store)],
) -> SourceDiscovery:
    return build_discovery(settings, store)


# ---------------------------------------------------------------------------
# Pagination parameters
# ---------------------------------------------------------------------------


@dataclass
class PaginationParams:
    """Page-number pagination shared by list endpoints.

    Attributes:
        page: 1-based page number.
        limit: Items per page (1-100).
    """

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_pagination(page: int = 1, limit: int = 10) -> PaginationParams:
    """Parse and validate pagination query parameters.

    Raises:
        HTTPException 422: If ``page`` is below 1 or ``limit`` is outside
            1-100.
    """
    if page < 1:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="page must be at least 1.",
        )
    if not 1 <= limit <= _MAX_LIMIT:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"limit must be between 1 and {_MAX_LIMIT}.",
        )
    return PaginationParams(page=page, limit=limit)
