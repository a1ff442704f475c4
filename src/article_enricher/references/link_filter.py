"""Heuristic filter deciding whether a search result is an article.

Search engines return videos, social posts, shops, encyclopaedia entries
and their own redirect pages alongside articles.  :func:`is_article_link`
rejects those by host and path, accepts URLs that look like blog or news
articles, and otherwise accepts any reasonably long http(s) URL that is not
a file download.

Hosts are compared on label boundaries: ``x.com`` rejects ``x.com`` and
``mobile.x.com`` but not ``dropbox.com``.
"""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import urlparse

_REJECTED_SCHEMES: tuple[str, ...] = ("mailto:", "tel:", "javascript:", "chrome-extension:")

_SOCIAL_HOSTS: tuple[str, ...] = (
    "youtube.com",
    "youtu.be",
    "facebook.com",
    "twitter.com",
    "x.com",
    "linkedin.com",
    "instagram.com",
    "pinterest.com",
    "reddit.com",
    "tiktok.com",
    "vimeo.com",
)

_MISC_REJECTED_HOSTS: tuple[str, ...] = (
    "wikipedia.org",
    "play.google.com",
    "apps.apple.com",
    "duckduckgo.com",
)

#: Rejected whenever one of these is a label of the host (amazon.de, ebay.co.uk).
_COMMERCE_LABELS: frozenset[str] = frozenset({"amazon", "ebay", "etsy", "aliexpress"})

_GOV_EDU_HOST = re.compile(r"\.(?:gov|edu)$|\.(?:gov|edu|ac)\.[a-z]{2}$")

_DOCUMENT_PATH = re.compile(r"\.(?:pdf|docx?)$", re.IGNORECASE)

_DOWNLOAD_URL = re.compile(
    r"\.(?:jpe?g|png|gif|svg|ico|webp|zip|rar|7z|gz|exe|dmg)$", re.IGNORECASE
)

_ARTICLE_PATH = re.compile(
    r"/(?:blog|article|post|news|guide|tutorial|how-to)/|/\d{4}/\d{2}/"
)

_PUBLISHING_HOSTS: tuple[str, ...] = (
    "medium.com",
    "dev.to",
    "hashnode.com",
    "hashnode.dev",
    "wordpress.com",
    "blogger.com",
    "blogspot.com",
    "forbes.com",
    "techcrunch.com",
    "wired.com",
    "theverge.com",
    "mashable.com",
    "entrepreneur.com",
    "inc.com",
    "businessinsider.com",
    "hubspot.com",
    "marketingland.com",
    "searchengineland.com",
    "moz.com",
    "semrush.com",
    "ahrefs.com",
)

MIN_URL_LENGTH: int = 20


def host_matches(host: str, domains: Iterable[str]) -> bool:
    """Return ``True`` if ``host`` is one of ``domains`` or a subdomain of one."""
    return any(host == d or host.endswith("." + d) for d in domains)


def _is_search_redirect(host: str, path: str) -> bool:
    labels = host.split(".")
    if "google" in labels and (path.startswith("/search") or path.startswith("/url")):
        return True
    return host_matches(host, ("bing.com",)) and path.startswith("/search")


def is_article_link(url: object, excluded_domains: Iterable[str] = ()) -> bool:
    """Return ``True`` if ``url`` plausibly points at an article.

    Args:
        url: Candidate URL.  Anything other than a non-empty string is
            rejected.
        excluded_domains: Extra domains to reject, typically the source
            blog's own domain.
    """
    if not isinstance(url, str) or not url.strip():
        return False
    url = url.strip()
    if url.lower().startswith(_REJECTED_SCHEMES):
        return False

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False

    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    path = parsed.path or "/"

    if host_matches(host, _SOCIAL_HOSTS) or host_matches(host, _MISC_REJECTED_HOSTS):
        return False
    if host_matches(host, [d.lower() for d in excluded_domains]):
        return False
    if _COMMERCE_LABELS.intersection(host.split(".")):
        return False
    if _GOV_EDU_HOST.search(host):
        return False
    if _is_search_redirect(host, path):
        return False
    if _DOCUMENT_PATH.search(path):
        return False

    if _ARTICLE_PATH.search(path):
        return True
    if host_matches(host, _PUBLISHING_HOSTS) or host.endswith(".blog"):
        return True

    if len(url) < MIN_URL_LENGTH:
        return False
    return not _DOWNLOAD_URL.search(path)
