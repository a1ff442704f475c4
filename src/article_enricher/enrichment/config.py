"""Pacing and sizing constants for enrichment."""

from __future__ import annotations

from datetime import timedelta

#: Maximum number of articles selected for one batch.
BATCH_SIZE: int = 10

#: Reference candidates extracted per article.
MAX_REFERENCE_EXTRACTS: int = 2

#: Delay between two reference extractions for the same article (seconds).
REFERENCE_FETCH_DELAY: float = 2.0

#: Delay between two articles of a batch (seconds).
ARTICLE_DELAY: float = 5.0

#: Age after which an unreleased enhancement claim is treated as abandoned.
#: Comfortably above the worst case of one attempt (two renders plus one
#: generation).
ENHANCING_CLAIM_TTL: timedelta = timedelta(minutes=15)
