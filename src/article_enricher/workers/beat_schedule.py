"""Celery Beat periodic task schedule.

Applied to ``celery_app.conf.beat_schedule`` in ``celery_app.py``.  Only
takes effect when a beat process runs next to the worker::

    celery -A article_enricher.workers.celery_app beat --loglevel=info

Schedule overview:

+---------------------------+---------------------+-----------------------------+
| Entry                     | Schedule            | Purpose                     |
+===========================+=====================+=============================+
| daily_discovery           | 02:00 UTC           | Import the oldest source    |
|                           |                     | articles not yet stored.    |
+---------------------------+---------------------+-----------------------------+
| hourly_enhancement        | Every hour at :15   | Enhance the next batch of   |
|                           |                     | pending articles.           |
+---------------------------+---------------------+-----------------------------+
"""

from __future__ import annotations

from celery.schedules import crontab

beat_schedule: dict[str, dict] = {  # type: ignore[type-arg]
    "daily_discovery": {
        "task": "article_enricher.workers.tasks.discover_articles_task",
        "schedule": crontab(hour=2, minute=0),
        "options": {
            "queue": "enrichment",
            "expires": 3_600,  # discard if not started within 1 hour
        },
    },
    "hourly_enhancement": {
        "task": "article_enricher.workers.tasks.enhance_pending_articles_task",
        "schedule": crontab(minute=15),
        "options": {
            "queue": "enrichment",
            "expires": 3_000,  # discard if not started within 50 minutes
        },
    },
}
