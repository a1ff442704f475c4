"""Enrichment lifecycle of an article."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from article_enricher.enrichment.config import ENHANCING_CLAIM_TTL

if TYPE_CHECKING:
    from article_enricher.core.schemas.article import ArticleRead


class ArticleState(str, Enum):
    """Where an article is in the enrichment lifecycle.

    Attributes:
        NEW: Imported, never successfully enhanced.
        ENHANCING: An attempt holds a live claim on the article.
        ENHANCED: At least one enhancement succeeded.  Re-enhancing is
            allowed and returns here.
    """

    NEW = "new"
    ENHANCING = "enhancing"
    ENHANCED = "enhanced"


def article_state(article: "ArticleRead", now: Optional[datetime] = None) -> ArticleState:
    """Derive the lifecycle state from the persisted fields.

    A failed attempt releases its claim without touching ``is_updated``, so
    it lands back in whichever of NEW or ENHANCED the article was in.
    """
    now = now or datetime.now(tz=timezone.utc)
    if article.enhancing_since is not None and now - article.enhancing_since < ENHANCING_CLAIM_TTL:
        return ArticleState.ENHANCING
    return ArticleState.ENHANCED if article.is_updated else ArticleState.NEW
