"""Tests for the Celery Beat schedule."""

from __future__ import annotations

from article_enricher.workers import tasks  # noqa: F401  registers the tasks
from article_enricher.workers.beat_schedule import beat_schedule
from article_enricher.workers.celery_app import celery_app


class TestBeatSchedule:
    def test_applied_to_app(self) -> None:
        assert celery_app.conf.beat_schedule == beat_schedule

    def test_every_entry_names_a_registered_task(self) -> None:
        for entry in beat_schedule.values():
            assert entry["task"] in celery_app.tasks

    def test_batch_and_discovery_scheduled(self) -> None:
        scheduled = {entry["task"] for entry in beat_schedule.values()}
        assert scheduled == {
            "article_enricher.workers.tasks.discover_articles_task",
            "article_enricher.workers.tasks.enhance_pending_articles_task",
        }
