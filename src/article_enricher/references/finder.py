"""Reference finder: ordered search strategies with graceful degradation."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

import httpx

from article_enricher.config.settings import Settings
from article_enricher.core.schemas.article import ReferenceArticle
from article_enricher.references.config import MAX_REFERENCES, SHORT_TOPIC_MIN_LENGTH
from article_enricher.references.link_filter import is_article_link
from article_enricher.references.strategies import (
    DuckDuckGoStrategy,
    GoogleCustomSearchStrategy,
    GoogleScrapeStrategy,
    SearchHit,
    SearchStrategy,
)

logger = logging.getLogger(__name__)


def shorten_topic(title: str) -> Optional[str]:
    """Return a shorter search topic derived from ``title``, if useful.

    Takes the text before the first ``:`` and then before the first ``-``.
    Returns ``None`` when the result is 10 characters or shorter or equals
    the title.

    >>> shorten_topic("Chatbots for Clinics: A Complete Guide")
    'Chatbots for Clinics'
    >>> shorten_topic("AI Chatbots") is None
    True
    """
    short = title.split(":", 1)[0].split("-", 1)[0].strip()
    if len(short) > SHORT_TOPIC_MIN_LENGTH and short != title.strip():
        return short
    return None


class ReferenceFinder:
    """Find up to two article links for a topic.

    Strategies are tried in order.  Unavailable ones are skipped, failures
    count as zero results, and the first strategy that yields at least one
    accepted link wins.

    Args:
        strategies: Search backends, most preferred first.
        excluded_domains: Domains never returned (the source blog).
        limit: Maximum number of references returned.
    """

    def __init__(
        self,
        strategies: Sequence[SearchStrategy],
        *,
        excluded_domains: Iterable[str] = (),
        limit: int = MAX_REFERENCES,
    ) -> None:
        self._strategies = list(strategies)
        self._excluded = tuple(excluded_domains)
        self._limit = limit

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "ReferenceFinder":
        """Build the default Google API → Google page → DuckDuckGo chain."""
        return cls(
            [
                GoogleCustomSearchStrategy(settings.google_api_key, settings.google_cx, client),
                GoogleScrapeStrategy(),
                DuckDuckGoStrategy(client),
            ],
            excluded_domains=settings.reference_exclusions,
        )

    async def find(self, topic: str) -> list[ReferenceArticle]:
        """Return at most ``limit`` references for ``topic``.  Never raises."""
        for strategy in self._strategies:
            if not strategy.is_available():
                logger.debug("references: %s not configured; skipping", strategy.name)
                continue
            try:
                hits = await strategy.search(topic)
            except Exception as exc:  # noqa: BLE001
                logger.warning("references: %s failed for %r: %s", strategy.name, topic, exc)
                continue

            references = self._accept(hits)
            if references:
                logger.info(
                    "references: %s found %d reference(s) for %r",
                    strategy.name,
                    len(references),
                    topic,
                )
                return references
            logger.info("references: %s returned no article links for %r", strategy.name, topic)

        logger.info("references: no references found for %r", topic)
        return []

    def _accept(self, hits: Iterable[SearchHit]) -> list[ReferenceArticle]:
        seen: set[str] = set()
        accepted: list[ReferenceArticle] = []
        for hit in hits:
            if hit.url in seen or not is_article_link(hit.url, self._excluded):
                continue
            seen.add(hit.url)
            accepted.append(ReferenceArticle(url=hit.url, title=hit.title))
            if len(accepted) >= self._limit:
                break
        return accepted
