"""Background execution: the in-process job queue and the Celery tasks."""
