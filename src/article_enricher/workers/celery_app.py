"""Celery application for out-of-process enrichment runs.

All configuration values are sourced from ``Settings``.  Enrichment is
sequential by design, so run exactly one worker process on the
``enrichment`` queue::

    celery -A article_enricher.workers.celery_app worker -Q enrichment --concurrency=1 --loglevel=info

Usage (within application code)::

    from article_enricher.workers.tasks import enqueue_enhancement

    enqueue_enhancement(article_id)
"""

from __future__ import annotations

import logging

from celery import Celery
from celery.signals import setup_logging, worker_process_init
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Worker processes are started outside the API, so make .env visible to
# pydantic-settings and to anything reading os.environ.
load_dotenv()

from article_enricher.config.settings import get_settings  # noqa: E402

settings = get_settings()

#: The global Celery application instance.
celery_app = Celery(
    "article_enricher",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["article_enricher.workers.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # Acknowledge only after completion so a crashed worker's task is redelivered.
    task_acks_late=True,
    # One long-running enhancement at a time per worker.
    worker_prefetch_multiplier=1,
    result_expires=86_400,
    # A batch is ten articles, each with two renders and one generation.
    task_soft_time_limit=3_600,
    task_time_limit=4_200,
    task_default_queue="enrichment",
    task_routes={
        "article_enricher.workers.tasks.*": {"queue": "enrichment"},
    },
    beat_schedule_filename="celerybeat-schedule",
)

from article_enricher.workers.beat_schedule import beat_schedule  # noqa: E402

celery_app.conf.beat_schedule = beat_schedule


@setup_logging.connect
def _configure_worker_logging(**kwargs: object) -> None:  # noqa: ARG001
    """Replace Celery's logging setup with the application's structlog chain."""
    from article_enricher.core.logging_config import configure_logging  # noqa: PLC0415

    configure_logging(settings.log_level)


# ---------------------------------------------------------------------------
# Engine reset on fork: asyncpg connections cannot cross processes or loops.
# Each task also disposes the engine before its asyncio.run() loop closes.
# ---------------------------------------------------------------------------
@worker_process_init.connect
def _reset_engine_on_fork(**kwargs: object) -> None:  # noqa: ARG001
    from article_enricher.core import database as _db  # noqa: PLC0415

    _db.get_session_factory.cache_clear()
    _db.get_engine.cache_clear()

