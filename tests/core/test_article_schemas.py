"""Tests for the article request schemas."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from article_enricher.core.schemas.article import ArticleCreate, ArticleUpdate, ReferenceArticle


class TestArticleCreate:
    def test_slug_and_original_derived(self) -> None:
        data = ArticleCreate(title="Chatbots: Why Now?", content="<p>Body</p>")
        assert data.slug == "chatbots-why-now"
        assert data.original_content == "<p>Body</p>"

    def test_explicit_values_kept(self) -> None:
        data = ArticleCreate(
            title="Chatbots", content="<p>New</p>", slug="custom-slug", original_content="<p>Old</p>"
        )
        assert data.slug == "custom-slug"
        assert data.original_content == "<p>Old</p>"

    def test_blank_title_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ArticleCreate(title="")

    def test_given_slug_normalised(self) -> None:
        data = ArticleCreate(title="Chatbots", slug="  My Custom Slug! ")
        assert data.slug == "my-custom-slug"

    def test_title_without_slug_characters_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ArticleCreate(title="!!! ???")


class TestArticleUpdate:
    def test_metadata_fields_only_set_values(self) -> None:
        update = ArticleUpdate(
            author="Ann",
            content="<p>x</p>",
            reference_articles=[ReferenceArticle(url="https://a.example/")],
        )
        assert update.metadata_fields() == {"author": "Ann"}

    def test_empty_update(self) -> None:
        assert ArticleUpdate().metadata_fields() == {}
