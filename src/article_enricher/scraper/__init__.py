"""Boilerplate-aware article extraction.

Renders a page with Playwright (falling back to a plain httpx fetch), locates
the main content container with ordered selector strategies, strips
boilerplate and trailing "follow us" sections, and returns text, HTML and a
structure signature.

Public entry point: :class:`~article_enricher.scraper.extractor.ArticleExtractor`.
"""
