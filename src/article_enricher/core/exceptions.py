"""Application-wide exception hierarchy for Article Enricher.

All custom exceptions subclass ``ArticleEnricherError``, enabling
consistent error handling and structured logging across the application.

Hierarchy::

    ArticleEnricherError
    ├── ConfigurationError
    ├── ArticleNotFoundError
    ├── DuplicateArticleError
    ├── EnhancementInProgressError
    ├── ExtractionError
    ├── SearchBackendError
    │   ├── SearchRateLimitError     (retry_after: float)
    │   └── SearchAuthError
    └── GenerationError
        ├── GenerationRateLimitError (retry_after: float)
        └── GenerationAuthError
"""

from __future__ import annotations


class ArticleEnricherError(Exception):
    """Base class for all Article Enricher exceptions.

    All application-specific exceptions inherit from this class so that
    callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(ArticleEnricherError):
    """Raised when a required credential or setting is missing.

    Always raised before any pipeline work starts, so no partial attempt is
    ever made.

    Args:
        message: Human-readable description of the problem.
        setting: Name of the offending settings field.
    """

    def __init__(self, message: str, setting: str | None = None) -> None:
        super().__init__(message)
        self.setting = setting


# ---------------------------------------------------------------------------
# Article store exceptions
# ---------------------------------------------------------------------------


class ArticleNotFoundError(ArticleEnricherError):
    """Raised when an article id does not exist in the store.

    Args:
        article_id: The id that was looked up.
    """

    def __init__(self, article_id: object) -> None:
        super().__init__(f"Article '{article_id}' not found")
        self.article_id = article_id


class DuplicateArticleError(ArticleEnricherError):
    """Raised when creating an article whose slug already exists.

    Discovery treats this as "already imported" rather than a failure.

    Args:
        slug: The colliding slug.
    """

    def __init__(self, slug: str) -> None:
        super().__init__(f"Article with slug '{slug}' already exists")
        self.slug = slug


class EnhancementInProgressError(ArticleEnricherError):
    """Raised when another enhancement attempt holds the article's claim.

    Args:
        article_id: The article that is currently being enhanced.
    """

    def __init__(self, article_id: object) -> None:
        super().__init__(f"Article '{article_id}' is already being enhanced")
        self.article_id = article_id


# ---------------------------------------------------------------------------
# Fetch / extraction
# ---------------------------------------------------------------------------


class ExtractionError(ArticleEnricherError):
    """Raised when a page cannot be fetched or parsed.

    Never escapes :class:`~article_enricher.scraper.extractor.ArticleExtractor`;
    the extractor converts it into an empty result.

    Args:
        message: Description of the failure.
        url: The page URL.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


# ---------------------------------------------------------------------------
# Search backends
# ---------------------------------------------------------------------------


class SearchBackendError(ArticleEnricherError):
    """Raised when a reference search backend fails.

    The reference finder treats it as zero results for that backend.

    Args:
        message: Human-readable description of the failure.
        backend: Name of the search strategy (e.g. ``"google_api"``).
    """

    def __init__(self, message: str, backend: str | None = None) -> None:
        super().__init__(message)
        self.backend = backend


class SearchRateLimitError(SearchBackendError):
    """Raised when a search backend answers HTTP 429.

    Args:
        message: Human-readable description of the rate limit.
        retry_after: Seconds the backend asked us to wait. Defaults to 60.
        backend: Name of the search strategy.
    """

    def __init__(
        self,
        message: str,
        retry_after: float = 60.0,
        backend: str | None = None,
    ) -> None:
        super().__init__(message, backend=backend)
        self.retry_after = retry_after


class SearchAuthError(SearchBackendError):
    """Raised when a search backend rejects the configured credential."""


# ---------------------------------------------------------------------------
# Generative service
# ---------------------------------------------------------------------------


class GenerationError(ArticleEnricherError):
    """Raised when the generative rewrite service fails.

    Fatal to a single enhancement attempt: the article is left unmodified.

    Args:
        message: Human-readable description of the failure.
        model: Model identifier that was called.
    """

    def __init__(self, message: str, model: str | None = None) -> None:
        super().__init__(message)
        self.model = model


class GenerationRateLimitError(GenerationError):
    """Raised when the generative service answers HTTP 429.

    Args:
        message: Human-readable description of the rate limit.
        retry_after: Seconds to wait before retrying. Defaults to 60.
        model: Model identifier that was called.
    """

    def __init__(
        self,
        message: str,
        retry_after: float = 60.0,
        model: str | None = None,
    ) -> None:
        super().__init__(message, model=model)
        self.retry_after = retry_after


class GenerationAuthError(GenerationError):
    """Raised when the generative service rejects the API key."""
