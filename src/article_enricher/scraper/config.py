"""Constants and tuning parameters for page fetching and extraction."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Fetch timing
# ---------------------------------------------------------------------------

#: Navigation timeout for both the rendered and the static fetch (seconds).
NAVIGATION_TIMEOUT: int = 30

#: How long to wait for the ``body`` element after navigation (seconds).
ELEMENT_WAIT_TIMEOUT: int = 10

#: Viewport used for every rendered page.
VIEWPORT: dict[str, int] = {"width": 1920, "height": 1080}

# ---------------------------------------------------------------------------
# Content size guards
# ---------------------------------------------------------------------------

#: Maximum extracted text size (bytes).  Article text is stored in a
#: PostgreSQL text column and passed to the rewrite prompt.
MAX_CONTENT_BYTES: int = 900 * 1024  # 900 KB

#: Minimum stripped text length for a block element to count towards the
#: structure signature.
SIGNATURE_MIN_TEXT: int = 20

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

#: Desktop browser user-agent.  Blog hosts and search engines serve
#: degraded or blocked pages to obvious bots.
USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

#: Content-Type prefixes that indicate binary/non-text resources that should
#: be skipped without attempting extraction.
BINARY_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/zip",
        "application/octet-stream",
        "application/x-executable",
        "application/vnd.",
        "image/",
        "video/",
        "audio/",
        "font/",
    }
)

# ---------------------------------------------------------------------------
# robots.txt
# ---------------------------------------------------------------------------

#: robots.txt user-agent token to check against.
ROBOTS_USER_AGENT: str = "ArticleEnricher"

#: Fallback user-agent token if a site has no entry for ``ROBOTS_USER_AGENT``.
ROBOTS_USER_AGENT_FALLBACK: str = "*"
