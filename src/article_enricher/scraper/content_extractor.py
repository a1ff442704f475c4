"""Article content extraction from page HTML.

Everything here is a pure function over a parsed BeautifulSoup tree and
does not care whether the HTML came from headless Chromium or a plain GET.
The two :class:`SelectorProfile` instances differ only in how many title
and container selectors they try; the boilerplate rules are shared.

Pipeline for one page::

    title      <- first matching title selector, else <title>
    container  <- first matching container selector, else <main>, else <body>
    strip unconditional boilerplate (scripts, nav, sidebars, ...)
    cut trailing "follow us" section; strip social icons if a cut happened
    signature  <- tag names of substantial block elements
    text/html  <- normalised text and inner HTML of what survives

Page metadata (author, publication date) is read with trafilatura.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

import trafilatura
from bs4 import BeautifulSoup, NavigableString, Tag

from article_enricher.scraper.config import MAX_CONTENT_BYTES, SIGNATURE_MIN_TEXT

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Output dataclass
# ---------------------------------------------------------------------------


@dataclass
class ExtractedContent:
    """Result of extracting article content from one page.

    Attributes:
        title: Article title, empty if not detected.
        text_content: Whitespace-normalised visible text of the container.
        html_content: Inner HTML of the cleaned container.
        structure_signature: Comma-separated tag names of substantial block
            elements, e.g. ``"h2, p, p, ul"``.
        author: Author from page metadata, empty if unknown.
        published: Publication date string from page metadata, if any.
    """

    title: str = ""
    text_content: str = ""
    html_content: str = ""
    structure_signature: str = ""
    author: str = ""
    published: Optional[str] = None

    @classmethod
    def empty(cls) -> "ExtractedContent":
        """The value returned when a page could not be extracted."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.text_content.strip()


# ---------------------------------------------------------------------------
# Selector profiles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SelectorProfile:
    """Ordered selector strategies for one fetch path.

    ``<title>`` is always tried after ``title_selectors`` and ``main`` then
    ``body`` after ``container_selectors``.
    """

    name: str
    title_selectors: tuple[str, ...]
    container_selectors: tuple[str, ...]


_CONTAINER_SELECTORS: tuple[str, ...] = (
    "article .entry-content",
    "article .post-content",
    "article .content",
    ".entry-content",
    ".post-content",
    "main article",
    "article",
    '[role="article"]',
    ".article-body",
    '[class*="content"]',
    '[class*="post-body"]',
)

RENDERED_PROFILE = SelectorProfile(
    name="rendered",
    title_selectors=(
        "h1.entry-title",
        "h1.post-title",
        "article h1",
        "h1",
        ".article-title",
        '[class*="title"]',
    ),
    container_selectors=_CONTAINER_SELECTORS,
)

STATIC_PROFILE = SelectorProfile(
    name="static",
    title_selectors=("h1",),
    container_selectors=_CONTAINER_SELECTORS[:8],
)

_FALLBACK_CONTAINERS: tuple[str, ...] = ("main", "body")

# ---------------------------------------------------------------------------
# Boilerplate rules
# ---------------------------------------------------------------------------

#: Removed from the container unconditionally.
BOILERPLATE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "nav",
    "header",
    "footer",
    "aside",
    "iframe",
    ".sidebar",
    ".comments",
    "#comments",
    ".share",
    ".social-share",
    ".author-box",
    ".advertisement",
    ".ads",
)

#: Once a trailing "follow us" section has been cut, any element whose class
#: or src contains one of these is removed.
SOCIAL_KEYWORDS: tuple[str, ...] = (
    "social",
    "share",
    "icon",
    "follow",
    "facebook",
    "twitter",
    "linkedin",
    "instagram",
    "youtube",
    "tiktok",
    "pinterest",
    "whatsapp",
)

SIGNATURE_TAGS: tuple[str, ...] = ("p", "h2", "h3", "h4", "ul", "ol", "blockquote")

_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def _text_of(el: Tag) -> str:
    return _WHITESPACE.sub(" ", el.get_text(" ")).strip()


def find_title(soup: BeautifulSoup, profile: SelectorProfile) -> str:
    """Return the first non-blank title found by ``profile``'s selectors."""
    for selector in profile.title_selectors:
        el = soup.select_one(selector)
        if el is not None:
            text = _text_of(el)
            if text:
                return text
    if soup.title is not None:
        return _text_of(soup.title)
    return ""


def find_container(soup: BeautifulSoup, profile: SelectorProfile) -> Optional[Tag]:
    """Return the first selector match that has visible text.

    Falls back to ``<main>`` and then ``<body>``; returns ``None`` only for
    a document with neither.
    """
    for selector in profile.container_selectors + _FALLBACK_CONTAINERS:
        el = soup.select_one(selector)
        if el is not None and el.get_text(strip=True):
            return el
    return soup.body


def _remove(elements: list[Tag]) -> None:
    for el in elements:
        # A node inside an already removed subtree is decomposed with it.
        if not el.decomposed:
            el.decompose()


def strip_boilerplate(container: Tag) -> None:
    """Remove scripts, navigation, sidebars, comments, ads and share widgets."""
    for selector in BOILERPLATE_SELECTORS:
        _remove(container.select(selector))


def _marker_text(el: Tag) -> str:
    # Inline children are joined as the browser would, "Follow <a>us</a>!" -> "follow us!".
    return _WHITESPACE.sub(" ", el.get_text()).strip().lower()


def _is_follow_us(el: Tag) -> bool:
    text = _marker_text(el)
    if "follow us here" in text or "follow us!" in text:
        return True
    return "follow us" in text and any(
        word in text for word in ("social", "icon", "here")
    )


def find_follow_us_node(container: Tag) -> Optional[Tag]:
    """Return the innermost element of the first "follow us" branch.

    The first matching descendant in document order is the outermost node
    of its branch; descend through matching children until none match.
    """
    node = next((el for el in container.find_all(True) if _is_follow_us(el)), None)
    if node is None:
        return None
    while True:
        child = next(
            (c for c in node.children if isinstance(c, Tag) and _is_follow_us(c)),
            None,
        )
        if child is None:
            return node
        node = child


def cut_trailing_boilerplate(container: Tag) -> bool:
    """Delete the "follow us" section and everything after it.

    Removes the cut node, its following siblings and, when its parent is
    not the container itself, the parent's following siblings.

    Returns:
        ``True`` if a cut was made.
    """
    node = find_follow_us_node(container)
    if node is None:
        return False

    doomed = [node, *node.next_siblings]
    parent = node.parent
    if parent is not None and parent is not container:
        doomed.extend(parent.next_siblings)

    for el in doomed:
        if isinstance(el, NavigableString):
            el.extract()
        elif not el.decomposed:
            el.decompose()
    return True


def _mentions_social(el: Tag) -> bool:
    classes = el.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    haystack = " ".join([*classes, el.get("src") or ""]).lower()
    return any(keyword in haystack for keyword in SOCIAL_KEYWORDS)


def strip_social_icons(container: Tag) -> None:
    """Remove every element whose class or src names a social platform or widget."""
    _remove([el for el in container.find_all(True) if _mentions_social(el)])


def structure_signature(container: Tag) -> str:
    """Comma-separated tag names of block elements with more than 20 characters of text."""
    return ", ".join(
        el.name
        for el in container.find_all(list(SIGNATURE_TAGS))
        if len(el.get_text(strip=True)) > SIGNATURE_MIN_TEXT
    )


def _cap_text(text: str, url: str) -> str:
    # Remove NUL bytes (PostgreSQL rejects them in text columns)
    text = text.replace("\x00", "")
    encoded = text.encode("utf-8")
    if len(encoded) > MAX_CONTENT_BYTES:
        text = encoded[:MAX_CONTENT_BYTES].decode("utf-8", errors="ignore")
        logger.debug("scraper: truncated extracted text to %d bytes for %s", MAX_CONTENT_BYTES, url)
    return text


def _read_metadata(html: str, url: str) -> tuple[str, Optional[str]]:
    """Return ``(author, date)`` from trafilatura's metadata extractor."""
    try:
        meta = trafilatura.extract_metadata(html, default_url=url)
    except Exception as exc:  # noqa: BLE001
        logger.debug("scraper: metadata extraction failed for %s: %s", url, exc)
        return "", None
    if meta is None:
        return "", None
    return (getattr(meta, "author", None) or ""), (getattr(meta, "date", None) or None)


# ---------------------------------------------------------------------------
# Public extraction function
# ---------------------------------------------------------------------------


def extract_from_html(
    html: str,
    url: str,
    profile: SelectorProfile = RENDERED_PROFILE,
) -> ExtractedContent:
    """Extract title, cleaned content and structure from page HTML.

    Args:
        html: Page HTML (may be partial or malformed).
        url: Page URL, used for metadata heuristics and logging.
        profile: Selector set for the fetch path that produced ``html``.

    Returns:
        An :class:`ExtractedContent`; :attr:`~ExtractedContent.is_empty`
        when no container text survived cleaning.
    """
    soup = BeautifulSoup(html, "html.parser")
    title = find_title(soup, profile)

    container = find_container(soup, profile)
    if container is None:
        logger.info("scraper: no content container on %s (%s profile)", url, profile.name)
        return ExtractedContent(title=title)

    strip_boilerplate(container)
    if cut_trailing_boilerplate(container):
        strip_social_icons(container)

    author, published = _read_metadata(html, url)

    return ExtractedContent(
        title=title,
        text_content=_cap_text(_text_of(container), url),
        html_content=container.decode_contents().strip(),
        structure_signature=structure_signature(container),
        author=author,
        published=published,
    )
