"""Test data factories and fakes.

Available helpers
-----------------
ArticleFactory          — ``ArticleRead`` with imported-article defaults
ArticleCreateFactory    — ``ArticleCreate`` payload
InMemoryArticleStore    — dict-backed ``ArticleStore`` with the same
                          claim and original-capture semantics as the SQL store
"""

from __future__ import annotations

from tests.factories.articles import (
    ArticleCreateFactory,
    ArticleFactory,
    InMemoryArticleStore,
)

__all__ = [
    "ArticleCreateFactory",
    "ArticleFactory",
    "InMemoryArticleStore",
]
