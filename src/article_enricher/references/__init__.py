"""Reference article search with graceful degradation.

:class:`~article_enricher.references.finder.ReferenceFinder` tries an
ordered list of search strategies (Google Custom Search API, a rendered
Google results page, DuckDuckGo's HTML endpoint) and returns at most two
links that look like articles.  It never raises.
"""
