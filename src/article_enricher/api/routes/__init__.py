"""Route modules mounted by :func:`article_enricher.api.main.create_app`."""
