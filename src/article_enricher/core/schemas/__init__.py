"""Pydantic schemas for request/response validation.

Sub-modules:
    article — ArticleCreate/Update/Read, ReferenceArticle, comparison views
"""

from __future__ import annotations
