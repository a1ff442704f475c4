#!/usr/bin/env python
"""Import the oldest articles of the source blog.

Runs the same discovery as ``POST /api/articles/scrape``, in the
foreground.  Articles whose slug already exists are left untouched, so the
script can be re-run safely.

Usage::

    python scripts/discover_articles.py
    python scripts/discover_articles.py --count 3
    python scripts/discover_articles.py --via-celery   # hand it to the worker

Environment variables (via .env or shell)::

    SOURCE_BLOG_URL   First listing page of the source blog.
    DATABASE_URL      Target database.

Exit codes:
    0 - Discovery ran (individual articles may still have failed).
    1 - The listing could not be loaded.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Ensure the src layout is on sys.path when running as a standalone script.
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
_SRC_DIR = os.path.join(os.path.dirname(_SCRIPT_DIR), "src")
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)


async def _discover(count: int) -> int:
    from article_enricher.config.settings import get_settings  # noqa: PLC0415
    from article_enricher.core.article_store import SqlArticleStore  # noqa: PLC0415
    from article_enricher.core.database import dispose_engine, get_session_factory  # noqa: PLC0415
    from article_enricher.core.exceptions import ExtractionError  # noqa: PLC0415
    from article_enricher.discovery.ingest import SourceDiscovery  # noqa: PLC0415
    from article_enricher.pipeline import build_extractor  # noqa: PLC0415

    settings = get_settings()
    discovery = SourceDiscovery(
        SqlArticleStore(get_session_factory()),
        build_extractor(settings),
        base_url=settings.source_blog_url,
        count=count,
    )
    try:
        report = await discovery.discover()
    except ExtractionError as exc:
        print(f"[discover_articles] ERROR: {exc} ({exc.url})", file=sys.stderr)
        return 1
    finally:
        await dispose_engine()

    for slug in report.created:
        print(f"[discover_articles] Created '{slug}'.")
    for slug in report.existing:
        print(f"[discover_articles] '{slug}' already exists.  Nothing to do.")
    for link, error in report.failed.items():
        print(f"[discover_articles] Failed {link}: {error}", file=sys.stderr)
    print("[discover_articles] Done.")
    return 0


def main() -> None:
    """Entry point."""
    parser = argparse.ArgumentParser(description="Import the oldest source blog articles")
    parser.add_argument(
        "--count",
        type=int,
        default=5,
        help="Number of oldest articles to import (default: 5)",
    )
    parser.add_argument(
        "--via-celery",
        action="store_true",
        help="Queue discovery for the Celery worker instead of running it here",
    )
    args = parser.parse_args()
    if args.via_celery and args.count != 5:
        parser.error("--count is not supported with --via-celery")

    from article_enricher.config.settings import get_settings  # noqa: PLC0415
    from article_enricher.core.logging_config import configure_logging  # noqa: PLC0415

    configure_logging(get_settings().log_level)
    if args.via_celery:
        from article_enricher.workers.tasks import enqueue_discovery  # noqa: PLC0415

        print(f"[discover_articles] Queued Celery task {enqueue_discovery()}.")
        sys.exit(0)
    sys.exit(asyncio.run(_discover(args.count)))


if __name__ == "__main__":
    main()
