"""Configuration package for Article Enricher.

Re-exports the settings symbols so that callers can write::

    from article_enricher.config import get_settings
"""

from __future__ import annotations

from article_enricher.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
