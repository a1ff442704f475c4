"""In-process background job queue.

The API hands long-running work (discovery, batch enhancement) to a
:class:`JobQueue` and answers immediately.  A single consumer task drains
the queue, so jobs never overlap, and a job whose key is already pending or
running is not queued a second time.

Usage::

    queue = JobQueue()
    queue.start()
    record = queue.submit("enhance-batch", lambda: coordinator.enhance_pending())
    ...
    await queue.stop()
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Work = Callable[[], Awaitable[Any]]

#: Finished job records kept for :meth:`JobQueue.get`.
DEFAULT_HISTORY: int = 50


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class JobRecord:
    """Bookkeeping for one submitted job.

    Attributes:
        key: De-duplication key, e.g. ``"discovery"``.
        accepted: ``False`` on the copy returned for a duplicate submission.
        result: Return value of the work coroutine once it succeeded.
        error: ``"<ExceptionType>: <message>"`` once it failed.
    """

    key: str
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.PENDING
    submitted_at: datetime = field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    result: Any = None
    error: Optional[str] = None
    accepted: bool = True

    def as_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "key": self.key,
            "status": self.status.value,
            "submitted_at": self.submitted_at,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "error": self.error,
        }


class JobQueue:
    """Sequential asyncio job queue with key de-duplication.

    Args:
        history: Number of finished records kept for lookup.
    """

    def __init__(self, *, history: int = DEFAULT_HISTORY) -> None:
        self._queue: asyncio.Queue[tuple[JobRecord, Work]] = asyncio.Queue()
        self._active: dict[str, JobRecord] = {}
        self._finished: OrderedDict[str, JobRecord] = OrderedDict()
        self._history = history
        self._current: Optional[JobRecord] = None
        self._consumer: Optional[asyncio.Task[None]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the consumer task on the running loop (idempotent)."""
        if self._consumer is None or self._consumer.done():
            self._consumer = asyncio.get_running_loop().create_task(
                self._consume(), name="job-queue-consumer"
            )

    async def stop(self) -> None:
        """Cancel the consumer.  Pending jobs are dropped."""
        if self._consumer is None:
            return
        self._consumer.cancel()
        try:
            await self._consumer
        except asyncio.CancelledError:
            pass
        self._consumer = None

    async def join(self) -> None:
        """Wait until every submitted job has finished."""
        await self._queue.join()

    # ------------------------------------------------------------------
    # Submission and inspection
    # ------------------------------------------------------------------

    def submit(self, key: str, work: Work) -> JobRecord:
        """Queue ``work`` under ``key`` and return immediately.

        If a job with the same key is pending or running, nothing is queued
        and a copy of that job's record is returned with ``accepted=False``.
        """
        existing = self._active.get(key)
        if existing is not None:
            logger.info("jobs: %s already %s; not queued again", key, existing.status.value)
            return dataclasses.replace(existing, accepted=False)

        record = JobRecord(key=key)
        self._active[key] = record
        self._queue.put_nowait((record, work))
        self.start()
        logger.info("jobs: queued %s (job_id=%s)", key, record.job_id)
        return record

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def in_flight(self) -> Optional[JobRecord]:
        return self._current

    def get(self, job_id: str) -> Optional[JobRecord]:
        """Active or recently finished record with ``job_id``."""
        for record in self._active.values():
            if record.job_id == job_id:
                return record
        return self._finished.get(job_id)

    def status(self) -> dict[str, Any]:
        return {
            "pending": self.pending_count,
            "running": self._current.as_dict() if self._current is not None else None,
            "recent": [record.as_dict() for record in reversed(self._finished.values())],
        }

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    async def _consume(self) -> None:
        while True:
            record, work = await self._queue.get()
            self._current = record
            record.status = JobStatus.RUNNING
            record.started_at = _utcnow()
            try:
                record.result = await work()
                record.status = JobStatus.SUCCEEDED
                logger.info("jobs: %s finished (job_id=%s)", record.key, record.job_id)
            except asyncio.CancelledError:
                record.status = JobStatus.FAILED
                record.error = "cancelled"
                raise
            except Exception as exc:  # noqa: BLE001
                record.status = JobStatus.FAILED
                record.error = f"{type(exc).__name__}: {exc}"
                logger.error(
                    "jobs: %s failed (job_id=%s): %s",
                    record.key,
                    record.job_id,
                    exc,
                    exc_info=True,
                )
            finally:
                record.finished_at = _utcnow()
                self._current = None
                self._active.pop(record.key, None)
                self._finished[record.job_id] = record
                while len(self._finished) > self._history:
                    self._finished.popitem(last=False)
                self._queue.task_done()
