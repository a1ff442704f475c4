"""SQLAlchemy ORM model for imported articles.

An ``Article`` is the unit of work of the enrichment pipeline: created once
by source discovery, rewritten by each successful enhancement, never deleted
by the pipeline itself.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from article_enricher.core.models.base import Base


class Article(Base):
    """An imported article, original plus possibly enhanced.

    Attributes:
        id: UUID primary key.
        title: Article title as published on the source.
        slug: Unique identifier derived from ``title``
            (see :func:`article_enricher.core.slug.slugify`).
        content: Current content; HTML after an enhancement.
        original_content: Snapshot of the first content ever assigned.  Set
            at import time, or captured from ``content`` by the first
            enhancement when empty.  Never changed afterwards.
        source_url: Where the article was imported from.
        author: Author name, empty when unknown.
        published_date: Publication timestamp on the source.
        is_updated: ``True`` once an enhancement has succeeded.
        updated_at: Timestamp of the latest enhancement; ``None`` before.
        reference_articles: JSON list of ``{"url", "title"}`` objects the
            latest enhancement was modelled on.
        enhancing_since: Claim timestamp held while an enhancement attempt
            is in flight; ``None`` when idle.
        created_at: Row creation timestamp.
    """

    __tablename__ = "articles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=sa.text("gen_random_uuid()"),
    )
    title: Mapped[str] = mapped_column(sa.Text, nullable=False)
    slug: Mapped[str] = mapped_column(sa.String(512), nullable=False, unique=True)
    content: Mapped[str] = mapped_column(sa.Text, nullable=False)
    original_content: Mapped[str] = mapped_column(
        sa.Text,
        nullable=False,
        default="",
        server_default=sa.text("''"),
    )
    source_url: Mapped[str] = mapped_column(sa.Text, nullable=False)
    author: Mapped[str] = mapped_column(
        sa.String(255),
        nullable=False,
        default="",
        server_default=sa.text("''"),
    )
    published_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.text("NOW()"),
    )

    # Enrichment state
    is_updated: Mapped[bool] = mapped_column(
        sa.Boolean,
        nullable=False,
        default=False,
        server_default=sa.text("false"),
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
    )
    reference_articles: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=sa.text("'[]'::jsonb"),
    )
    enhancing_since: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.text("NOW()"),
    )

    __table_args__ = (
        sa.Index("idx_articles_is_updated", "is_updated"),
        sa.Index("idx_articles_published_date", sa.text("published_date DESC")),
    )

    def __repr__(self) -> str:
        return f"<Article id={self.id} slug={self.slug!r} is_updated={self.is_updated}>"
