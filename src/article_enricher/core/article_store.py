"""Article persistence for the enrichment pipeline.

The pipeline only ever talks to the :class:`ArticleStore` protocol and gets
plain :class:`~article_enricher.core.schemas.article.ArticleRead` values
back.  :class:`SqlArticleStore` is the PostgreSQL implementation; tests use
an in-memory fake with the same semantics.

Two operations carry the pipeline's write invariants and are therefore
single UPDATE statements rather than read-modify-write sequences:

- :meth:`SqlArticleStore.apply_enhancement` captures ``original_content``
  from the pre-update ``content`` only while it is still empty.
- :meth:`SqlArticleStore.try_claim` sets ``enhancing_since`` only when no
  live claim exists, so two overlapping attempts cannot both proceed.

Usage::

    from article_enricher.core.article_store import SqlArticleStore
    from article_enricher.core.database import get_session_factory

    store = SqlArticleStore(get_session_factory())
    article = await store.get(article_id)
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol, Sequence

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from article_enricher.core.exceptions import (
    ArticleNotFoundError,
    DuplicateArticleError,
)
from article_enricher.core.models.article import Article
from article_enricher.core.schemas.article import (
    ArticleCreate,
    ArticleRead,
    ReferenceArticle,
)

logger = logging.getLogger(__name__)

#: Columns :meth:`ArticleStore.update` may write.  Enrichment state is only
#: changed through :meth:`ArticleStore.apply_enhancement`.
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"title", "author", "source_url", "published_date"}
)


class ArticleStore(Protocol):
    """Persistence operations the pipeline and the API depend on."""

    async def get(self, article_id: uuid.UUID) -> Optional[ArticleRead]: ...

    async def get_by_slug(self, slug: str) -> Optional[ArticleRead]: ...

    async def list_articles(
        self,
        *,
        is_updated: Optional[bool] = None,
        offset: int = 0,
        limit: int = 20,
        oldest_first: bool = False,
    ) -> tuple[list[ArticleRead], int]: ...

    async def create(self, data: ArticleCreate) -> ArticleRead: ...

    async def update(self, article_id: uuid.UUID, fields: dict[str, Any]) -> ArticleRead: ...

    async def apply_enhancement(
        self,
        article_id: uuid.UUID,
        *,
        content: str,
        reference_articles: Optional[Sequence[ReferenceArticle]],
        updated_at: datetime,
    ) -> ArticleRead: ...

    async def delete(self, article_id: uuid.UUID) -> None: ...

    async def try_claim(
        self,
        article_id: uuid.UUID,
        *,
        now: datetime,
        stale_after: timedelta,
    ) -> bool: ...

    async def release_claim(self, article_id: uuid.UUID) -> None: ...


class SqlArticleStore:
    """:class:`ArticleStore` backed by the ``articles`` table.

    Each method opens and commits its own session, so a single instance can
    be shared by the API, the job queue and Celery tasks.

    Args:
        session_factory: Factory returned by
            :func:`~article_enricher.core.database.get_session_factory`.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, article_id: uuid.UUID) -> Optional[ArticleRead]:
        async with self._session_factory() as session:
            row = await session.get(Article, article_id)
            return ArticleRead.model_validate(row) if row is not None else None

    async def get_by_slug(self, slug: str) -> Optional[ArticleRead]:
        async with self._session_factory() as session:
            result = await session.execute(select(Article).where(Article.slug == slug))
            row = result.scalar_one_or_none()
            return ArticleRead.model_validate(row) if row is not None else None

    async def list_articles(
        self,
        *,
        is_updated: Optional[bool] = None,
        offset: int = 0,
        limit: int = 20,
        oldest_first: bool = False,
    ) -> tuple[list[ArticleRead], int]:
        """Return one page of articles and the total matching count.

        Args:
            is_updated: Restrict to enhanced (``True``) or not-yet-enhanced
                (``False``) articles.  ``None`` means all.
            offset: Rows to skip.
            limit: Maximum rows to return.
            oldest_first: Order by ascending ``published_date`` instead of
                newest first.
        """
        filters = []
        if is_updated is not None:
            filters.append(Article.is_updated.is_(is_updated))

        if oldest_first:
            ordering = (Article.published_date.asc(), Article.created_at.asc())
        else:
            ordering = (Article.published_date.desc(), Article.created_at.desc())

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(Article).where(*filters)
            )
            result = await session.execute(
                select(Article)
                .where(*filters)
                .order_by(*ordering)
                .offset(offset)
                .limit(limit)
            )
            items = [ArticleRead.model_validate(row) for row in result.scalars()]
        return items, int(total or 0)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, data: ArticleCreate) -> ArticleRead:
        """Insert a new article.

        Raises:
            DuplicateArticleError: If the slug is already taken.
        """
        row = Article(
            title=data.title,
            slug=data.slug,
            content=data.content,
            original_content=data.original_content or "",
            source_url=data.source_url,
            author=data.author,
            published_date=data.published_date or datetime.now(tz=timezone.utc),
            is_updated=False,
            reference_articles=[],
        )
        async with self._session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateArticleError(data.slug or "") from exc
            await session.refresh(row)
            logger.info("store: created article %s (slug=%s)", row.id, row.slug)
            return ArticleRead.model_validate(row)

    async def update(self, article_id: uuid.UUID, fields: dict[str, Any]) -> ArticleRead:
        """Write metadata fields of an article.

        Raises:
            ValueError: If ``fields`` names a column outside
                :data:`UPDATABLE_FIELDS`.
            ArticleNotFoundError: If the article does not exist.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        async with self._session_factory() as session:
            if fields:
                stmt = (
                    update(Article)
                    .where(Article.id == article_id)
                    .values(**fields)
                    .returning(Article)
                )
            else:
                stmt = select(Article).where(Article.id == article_id)
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()
            if row is None:
                raise ArticleNotFoundError(article_id)
            article = ArticleRead.model_validate(row)
            await session.commit()
            return article

    async def apply_enhancement(
        self,
        article_id: uuid.UUID,
        *,
        content: str,
        reference_articles: Optional[Sequence[ReferenceArticle]],
        updated_at: datetime,
    ) -> ArticleRead:
        """Persist a successful enhancement and release the claim.

        ``original_content`` is assigned the pre-update ``content`` only when
        it is still empty.  PostgreSQL evaluates every SET expression against
        the old row, so the capture and the overwrite happen in one statement.
        ``reference_articles=None`` leaves the stored references as they are.

        Raises:
            ArticleNotFoundError: If the article does not exist.
        """
        values: dict[str, Any] = {
            "original_content": case(
                (Article.original_content == "", Article.content),
                else_=Article.original_content,
            ),
            "content": content,
            "is_updated": True,
            "updated_at": updated_at,
            "enhancing_since": None,
        }
        if reference_articles is not None:
            values["reference_articles"] = [ref.model_dump() for ref in reference_articles]
        stmt = update(Article).where(Article.id == article_id).values(**values).returning(Article)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()
            if row is None:
                raise ArticleNotFoundError(article_id)
            article = ArticleRead.model_validate(row)
            await session.commit()
            return article

    async def delete(self, article_id: uuid.UUID) -> None:
        """Delete an article.

        Raises:
            ArticleNotFoundError: If the article does not exist.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                delete(Article).where(Article.id == article_id).returning(Article.id)
            )
            if result.scalar_one_or_none() is None:
                raise ArticleNotFoundError(article_id)
            await session.commit()
            logger.info("store: deleted article %s", article_id)

    # ------------------------------------------------------------------
    # Enhancement claim
    # ------------------------------------------------------------------

    async def try_claim(
        self,
        article_id: uuid.UUID,
        *,
        now: datetime,
        stale_after: timedelta,
    ) -> bool:
        """Mark the article as being enhanced unless a live claim exists.

        A claim older than ``stale_after`` is considered abandoned (a worker
        that died mid-attempt) and may be taken over.

        Returns:
            ``True`` if this caller now holds the claim.
        """
        stmt = (
            update(Article)
            .where(
                Article.id == article_id,
                or_(
                    Article.enhancing_since.is_(None),
                    Article.enhancing_since < now - stale_after,
                ),
            )
            .values(enhancing_since=now)
            .returning(Article.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            claimed = result.scalar_one_or_none() is not None
            await session.commit()
        return claimed

    async def release_claim(self, article_id: uuid.UUID) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(Article)
                .where(Article.id == article_id)
                .values(enhancing_since=None)
            )
            await session.commit()
