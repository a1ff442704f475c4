"""Import of the oldest articles from the source blog.

:class:`~article_enricher.discovery.ingest.SourceDiscovery` walks the
blog's paginated listing to its last page, picks the oldest entries,
extracts each article and stores the ones not yet imported.
"""
