"""Tests for the in-process JobQueue."""

from __future__ import annotations

import asyncio

import pytest

from article_enricher.workers.job_queue import JobQueue, JobStatus


@pytest.mark.asyncio
class TestJobQueue:
    async def test_job_runs_and_records_result(self) -> None:
        queue = JobQueue()
        record = queue.submit("discovery", lambda: asyncio.sleep(0, result={"created": ["a"]}))
        await queue.join()

        assert record.accepted is True
        assert record.status is JobStatus.SUCCEEDED
        assert record.result == {"created": ["a"]}
        assert record.started_at is not None
        assert record.finished_at is not None
        assert queue.get(record.job_id) is record
        await queue.stop()

    async def test_duplicate_key_not_queued(self) -> None:
        queue = JobQueue()
        release = asyncio.Event()
        runs: list[str] = []

        async def work() -> None:
            runs.append("run")
            await release.wait()

        first = queue.submit("enhance-batch", work)
        second = queue.submit("enhance-batch", work)

        assert second.accepted is False
        assert second.job_id == first.job_id

        release.set()
        await queue.join()
        assert runs == ["run"]

        third = queue.submit("enhance-batch", work)
        assert third.accepted is True
        assert third.job_id != first.job_id
        await queue.join()
        await queue.stop()

    async def test_jobs_run_one_at_a_time(self) -> None:
        queue = JobQueue()
        order: list[str] = []

        def job(name: str):
            async def work() -> None:
                order.append(f"{name}-start")
                await asyncio.sleep(0)
                order.append(f"{name}-end")

            return work

        queue.submit("a", job("a"))
        queue.submit("b", job("b"))
        await queue.join()

        assert order == ["a-start", "a-end", "b-start", "b-end"]
        await queue.stop()

    async def test_failure_recorded_and_consumer_survives(self) -> None:
        queue = JobQueue()

        async def broken() -> None:
            raise RuntimeError("listing unavailable")

        failed = queue.submit("discovery", broken)
        ok = queue.submit("enhance-batch", lambda: asyncio.sleep(0, result=1))
        await queue.join()

        assert failed.status is JobStatus.FAILED
        assert failed.error == "RuntimeError: listing unavailable"
        assert ok.status is JobStatus.SUCCEEDED
        await queue.stop()

    async def test_status_while_running(self) -> None:
        queue = JobQueue()
        started = asyncio.Event()
        release = asyncio.Event()

        async def work() -> None:
            started.set()
            await release.wait()

        record = queue.submit("discovery", work)
        queue.submit("enhance-batch", lambda: asyncio.sleep(0))
        await started.wait()

        status = queue.status()
        assert status["pending"] == 1
        assert status["running"]["job_id"] == record.job_id
        assert status["running"]["status"] == "running"
        assert status["recent"] == []

        release.set()
        await queue.join()
        status = queue.status()
        assert status["running"] is None
        assert [r["key"] for r in status["recent"]] == ["enhance-batch", "discovery"]
        await queue.stop()

    async def test_history_bounded(self) -> None:
        queue = JobQueue(history=2)
        records = [queue.submit(f"job-{i}", lambda: asyncio.sleep(0)) for i in range(3)]
        await queue.join()

        assert queue.get(records[0].job_id) is None
        assert queue.get(records[2].job_id) is records[2]
        await queue.stop()

    async def test_stop_without_start(self) -> None:
        await JobQueue().stop()
