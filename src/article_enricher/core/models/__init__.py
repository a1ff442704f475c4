"""SQLAlchemy ORM models for Article Enricher.

All models are imported here so that Alembic autogenerate can discover them
via ``Base.metadata``.
"""

from __future__ import annotations

from article_enricher.core.models.base import Base
from article_enricher.core.models.article import Article

__all__ = [
    "Article",
    "Base",
]
