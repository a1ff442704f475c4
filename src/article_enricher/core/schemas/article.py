"""Pydantic request/response schemas for articles.

Kept separate from the SQLAlchemy model in ``core/models/article.py`` so the
enrichment pipeline can pass plain values around without touching the ORM.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from article_enricher.core.slug import slugify
from article_enricher.enrichment.state import ArticleState, article_state


class ReferenceArticle(BaseModel):
    """A competing article the rewrite was modelled on."""

    url: str
    title: str = ""

    model_config = ConfigDict(frozen=True)


class ArticleCreate(BaseModel):
    """Payload for creating an article.

    ``slug`` is normalised with :func:`slugify`, or derived from ``title``
    when omitted.  ``original_content`` defaults to ``content``, so a newly
    created article always carries its comparison baseline.
    """

    title: str = Field(..., min_length=1)
    content: str = ""
    slug: Optional[str] = None
    original_content: Optional[str] = None
    source_url: str = ""
    author: str = ""
    published_date: Optional[datetime] = None

    @model_validator(mode="after")
    def _fill_derived_fields(self) -> "ArticleCreate":
        source = self.slug or self.title
        self.slug = slugify(source)
        if not self.slug:
            raise ValueError(f"{source!r} yields an empty slug")
        if self.original_content is None:
            self.original_content = self.content
        return self


class ArticleUpdate(BaseModel):
    """Payload for ``PUT /api/articles/{id}``.

    Metadata fields are written as given.  A ``content`` value is applied the
    same way an enhancement is: the original is preserved and the article is
    marked updated.
    """

    title: Optional[str] = Field(default=None, min_length=1)
    author: Optional[str] = None
    source_url: Optional[str] = None
    published_date: Optional[datetime] = None
    content: Optional[str] = None
    reference_articles: Optional[list[ReferenceArticle]] = None

    def metadata_fields(self) -> dict:
        """Return the non-content fields that were explicitly set."""
        return self.model_dump(
            exclude_unset=True,
            exclude={"content", "reference_articles"},
        )


class ArticleRead(BaseModel):
    """Full representation of a persisted article."""

    id: uuid.UUID
    title: str
    slug: str
    content: str
    original_content: str
    source_url: str
    author: str
    published_date: datetime
    is_updated: bool
    updated_at: Optional[datetime] = None
    reference_articles: list[ReferenceArticle] = Field(default_factory=list)
    enhancing_since: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def state(self) -> ArticleState:
        """Lifecycle state derived from ``is_updated`` and the enhancement claim."""
        return article_state(self)


class ArticleList(BaseModel):
    """One page of articles plus pagination metadata."""

    items: list[ArticleRead]
    total: int
    page: int
    limit: int
    pages: int


class ArticleOriginalView(BaseModel):
    """The article as it was imported, for side-by-side comparison."""

    id: uuid.UUID
    title: str
    content: str
    published_date: datetime
    author: str
    source_url: str


class ArticleEnhancedView(BaseModel):
    """The enhanced article with the references it was modelled on."""

    id: uuid.UUID
    title: str
    content: str
    updated_at: Optional[datetime]
    reference_articles: list[ReferenceArticle]
    original_content: str


class EnhanceResponse(BaseModel):
    """Response of a single synchronous enhancement."""

    article: ArticleRead
    had_references: bool
    reference_count: int


class JobAccepted(BaseModel):
    """Acknowledgement for work handed to the background queue."""

    message: str
    accepted: bool
    job_id: Optional[str] = None
    count: Optional[int] = None
