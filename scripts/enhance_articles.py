#!/usr/bin/env python
"""Enhance articles from the command line.

Runs the same pipeline as ``POST /api/articles/{id}/enhance`` and
``POST /api/articles/enhance/all``, in the foreground.

Usage::

    python scripts/enhance_articles.py --article-id 3f1c...   # one article
    python scripts/enhance_articles.py --all                  # next batch of ten
    python scripts/enhance_articles.py --all --limit 3
    python scripts/enhance_articles.py --all --via-celery    # hand the batch to the worker

Exit codes:
    0 - Success (batch: every selected article enhanced or skipped; with
        --via-celery: the task was queued).
    1 - Configuration error, unknown article or failed attempt(s).
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
import uuid

# Ensure the src layout is on sys.path when running as a standalone script.
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
_SRC_DIR = os.path.join(os.path.dirname(_SCRIPT_DIR), "src")
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)


async def _enhance_one(article_id: uuid.UUID) -> int:
    from article_enricher.config.settings import get_settings  # noqa: PLC0415
    from article_enricher.core.database import dispose_engine  # noqa: PLC0415
    from article_enricher.core.exceptions import ArticleEnricherError  # noqa: PLC0415
    from article_enricher.pipeline import build_coordinator  # noqa: PLC0415

    try:
        coordinator = build_coordinator(get_settings())
        result = await coordinator.enhance_article(article_id)
    except ArticleEnricherError as exc:
        print(f"[enhance_articles] ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        await dispose_engine()

    print(f"[enhance_articles] Enhanced '{result.article.title}'.")
    if result.had_references:
        for ref in result.references:
            print(f"  reference: {ref.url}")
    else:
        print("  no references found; rewritten without references")
    return 0


async def _enhance_batch(limit: int) -> int:
    from article_enricher.config.settings import get_settings  # noqa: PLC0415
    from article_enricher.core.database import dispose_engine  # noqa: PLC0415
    from article_enricher.core.exceptions import ConfigurationError  # noqa: PLC0415
    from article_enricher.pipeline import build_coordinator  # noqa: PLC0415

    try:
        coordinator = build_coordinator(get_settings())
        report = await coordinator.enhance_pending(limit)
    except ConfigurationError as exc:
        print(f"[enhance_articles] ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        await dispose_engine()

    print(
        f"[enhance_articles] {len(report.enhanced)} enhanced, "
        f"{len(report.skipped)} skipped, {len(report.failed)} failed "
        f"of {report.selected} selected."
    )
    for article_id, error in report.failed.items():
        print(f"  failed {article_id}: {error}", file=sys.stderr)
    return 1 if report.failed else 0


def main() -> None:
    """Entry point."""
    parser = argparse.ArgumentParser(description="Enhance articles with reference-guided rewrites")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--article-id", type=uuid.UUID, help="Enhance this article only")
    target.add_argument("--all", action="store_true", help="Enhance the next pending batch")
    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Batch size with --all (default: 10)",
    )
    parser.add_argument(
        "--via-celery",
        action="store_true",
        help="Queue the work for the Celery worker instead of running it here",
    )
    args = parser.parse_args()
    if not 1 <= args.limit <= 10:
        parser.error("--limit must be between 1 and 10")
    if args.via_celery and args.limit != 10:
        parser.error("--limit is not supported with --via-celery")

    from article_enricher.config.settings import get_settings  # noqa: PLC0415
    from article_enricher.core.logging_config import configure_logging  # noqa: PLC0415

    configure_logging(get_settings().log_level)

    if args.via_celery:
        from article_enricher.workers.tasks import enqueue_enhancement  # noqa: PLC0415

        task_id = enqueue_enhancement(args.article_id)
        print(f"[enhance_articles] Queued Celery task {task_id}.")
        sys.exit(0)
    if args.article_id is not None:
        sys.exit(asyncio.run(_enhance_one(args.article_id)))
    sys.exit(asyncio.run(_enhance_batch(args.limit)))


if __name__ == "__main__":
    main()
