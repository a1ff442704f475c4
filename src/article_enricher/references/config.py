"""Constants for reference search."""

from __future__ import annotations

#: Number of reference articles the finder returns at most.
MAX_REFERENCES: int = 2

#: Results requested from each search backend before filtering.
SEARCH_RESULTS_PER_QUERY: int = 10

#: Minimum length of a shortened topic to be worth a second search.
SHORT_TOPIC_MIN_LENGTH: int = 10

GOOGLE_CSE_URL: str = "https://www.googleapis.com/customsearch/v1"
GOOGLE_SEARCH_URL: str = "https://www.google.com/search"
DUCKDUCKGO_HTML_URL: str = "https://html.duckduckgo.com/html/"

#: Settle time after the Google results page reports network idle.
GOOGLE_SETTLE_MS: int = 2000

#: Request timeout for the search APIs (seconds).
SEARCH_TIMEOUT: int = 30
