"""Testes da fila priorizada de jobs."""

from __future__ import annotations

import asyncio
from collections import deque
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from app.domain.change_event import ChangeKind, Provider
from app.domain.job import Job, JobKind, JobPriority, JobStatus, SyncJobPayload
from app.infra.monitoring import LogMonitoringSink
from app.infra.stores import MemoryJobStore
from app.protocols.monitoring import MonitoringEventType
from app.queue import JobDispatcher, PriorityJobQueue
from config.settings.queue import QueueSettings
from utils.errors import (
    CircuitOpenError,
    PermanentProviderError,
    RateLimitError,
    TransientProviderError,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


class _RecordingHandler:
    """Registra a ordem de execução e aplica desfechos roteirizados."""

    def __init__(self, outcomes: list[Exception | None] | None = None) -> None:
        self.seen: list[str] = []
        self._outcomes: deque[Exception | None] = deque(outcomes or [])

    async def handle(self, job: Job) -> dict[str, Any]:
        self.seen.append(job.payload.external_id)
        if self._outcomes:
            outcome = self._outcomes.popleft()
            if outcome is not None:
                raise outcome
        return {"outcome": "ok", "external_id": job.payload.external_id}


class _BlockingHandler:
    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def handle(self, job: Job) -> dict[str, Any]:
        self.started.set()
        await asyncio.Event().wait()
        return {}


def _job(external_id: str, priority: JobPriority = JobPriority.MEDIUM, webhook_id: str = "") -> Job:
    payload = SyncJobPayload(
        provider=Provider.GOOGLE_CALENDAR,
        external_id=external_id,
        change_kind=ChangeKind.UPDATED,
        correlation_key="channel-1",
        fingerprint=f"fp-{external_id}",
        integration_id="int-1",
        user_id="user-1",
    )
    return Job(payload=payload, priority=priority, webhook_id=webhook_id)


def _queue(
    handler: object,
    settings: QueueSettings | None = None,
) -> tuple[PriorityJobQueue, MemoryJobStore, LogMonitoringSink]:
    store = MemoryJobStore()
    monitoring = LogMonitoringSink(keep_last=20)
    queue = PriorityJobQueue(
        store,
        JobDispatcher({JobKind.SYNC: handler}),
        monitoring,
        settings=settings or QueueSettings(concurrency=1),
        now=lambda: NOW,
    )
    return queue, store, monitoring


class TestOrdering:
    """Prioridade estrita e FIFO dentro do bucket."""

    @pytest.mark.asyncio
    async def test_high_before_medium_before_low(self) -> None:
        handler = _RecordingHandler()
        queue, _, _ = _queue(handler)
        await queue.enqueue(_job("low-1", JobPriority.LOW))
        await queue.enqueue(_job("medium-1", JobPriority.MEDIUM))
        await queue.enqueue(_job("high-1", JobPriority.HIGH))
        await queue.enqueue(_job("high-2", JobPriority.HIGH))

        processed = await queue.run_until_idle()

        assert processed == 4
        assert handler.seen == ["high-1", "high-2", "medium-1", "low-1"]

    @pytest.mark.asyncio
    async def test_pool_respects_concurrency(self) -> None:
        handler = _BlockingHandler()
        queue, _, _ = _queue(handler, QueueSettings(concurrency=2))
        for index in range(3):
            await queue.enqueue(_job(f"evt-{index}"))

        started = await queue.poll_once()

        assert started == 2
        assert queue.in_flight == 2
        stats = await queue.get_stats()
        assert stats["health"]["saturated"] is True
        assert stats["health"]["status"] == "overwhelmed"
        await queue.drain(timeout_seconds=0.01)


class TestOutcomes:
    """Sucesso, retentativa com backoff e falha terminal."""

    @pytest.mark.asyncio
    async def test_success_marks_completed(self) -> None:
        queue, _, _ = _queue(_RecordingHandler())
        job_id = await queue.enqueue(_job("evt-1"))

        await queue.run_until_idle()

        job = await queue.get_job(job_id)
        assert job is not None
        assert job.status == JobStatus.COMPLETED
        assert job.attempts == 1
        assert job.result == {"outcome": "ok", "external_id": "evt-1"}
        assert job.completed_at == NOW

    @pytest.mark.asyncio
    async def test_transient_failures_back_off_then_fail(self) -> None:
        error = TransientProviderError("503", status_code=503)
        queue, _, monitoring = _queue(_RecordingHandler([error, error, error]))
        job_id = await queue.enqueue(_job("evt-1"))

        await queue.run_until_idle()
        job = await queue.get_job(job_id)
        assert job.status == JobStatus.RETRY
        assert job.next_retry_at == NOW + timedelta(seconds=1)

        assert await queue.retry_sweep(NOW) == 0
        assert await queue.retry_sweep(NOW + timedelta(seconds=1)) == 1
        await queue.run_until_idle()
        job = await queue.get_job(job_id)
        assert job.attempts == 2
        assert job.next_retry_at == NOW + timedelta(seconds=2)

        await queue.retry_sweep(NOW + timedelta(seconds=2))
        await queue.run_until_idle()
        job = await queue.get_job(job_id)
        assert job.status == JobStatus.FAILED
        assert job.attempts == 3
        assert job.last_error.startswith("TransientProviderError")

        failures = monitoring.events_of(MonitoringEventType.JOB_FAILED)
        assert failures[0]["job_id"] == job_id
        assert failures[0]["permanent"] is False

    @pytest.mark.asyncio
    async def test_permanent_failure_is_terminal_immediately(self) -> None:
        queue, _, monitoring = _queue(_RecordingHandler([PermanentProviderError("403", 403)]))
        job_id = await queue.enqueue(_job("evt-1"))

        await queue.run_until_idle()

        job = await queue.get_job(job_id)
        assert job.status == JobStatus.FAILED
        assert job.attempts == 1
        assert monitoring.events_of(MonitoringEventType.JOB_FAILED)[0]["permanent"] is True

    @pytest.mark.asyncio
    async def test_rate_limit_retry_honours_retry_after(self) -> None:
        queue, _, _ = _queue(_RecordingHandler([RateLimitError("limite", retry_after=10.0)]))
        job_id = await queue.enqueue(_job("evt-1"))

        await queue.run_until_idle()

        job = await queue.get_job(job_id)
        assert job.next_retry_at == NOW + timedelta(seconds=10)

    @pytest.mark.asyncio
    async def test_open_breaker_retry_waits_for_reset(self) -> None:
        reset_time = NOW.timestamp() + 20
        queue, _, _ = _queue(_RecordingHandler([CircuitOpenError("google_calendar", reset_time)]))
        job_id = await queue.enqueue(_job("evt-1"))

        await queue.run_until_idle()

        job = await queue.get_job(job_id)
        assert job.status == JobStatus.RETRY
        assert job.next_retry_at == NOW + timedelta(seconds=20)

    @pytest.mark.asyncio
    async def test_timeout_counts_as_transient_failure(self) -> None:
        settings = QueueSettings(concurrency=1, job_timeout_seconds=0.01)
        queue, _, _ = _queue(_BlockingHandler(), settings)
        job_id = await queue.enqueue(_job("evt-1"))

        await queue.run_until_idle()

        job = await queue.get_job(job_id)
        assert job.status == JobStatus.RETRY
        assert "Tempo máximo" in job.last_error

    @pytest.mark.asyncio
    async def test_missing_handler_fails_job(self) -> None:
        queue = PriorityJobQueue(
            MemoryJobStore(),
            JobDispatcher({}),
            LogMonitoringSink(),
            settings=QueueSettings(concurrency=1),
            now=lambda: NOW,
        )
        job_id = await queue.enqueue(_job("evt-1"))

        await queue.run_until_idle()

        job = await queue.get_job(job_id)
        assert job.status == JobStatus.FAILED
        assert job.last_error.startswith("ValidationError")


class TestMaintenance:
    """Limpeza, estatísticas, consulta e shutdown."""

    @pytest.mark.asyncio
    async def test_cleanup_purges_old_terminal_jobs(self) -> None:
        queue, _, _ = _queue(_RecordingHandler(), QueueSettings(concurrency=1, retention_seconds=60))
        await queue.enqueue(_job("evt-1"))
        await queue.run_until_idle()
        await queue.enqueue(_job("evt-2"))

        assert await queue.cleanup(NOW + timedelta(seconds=30)) == 0
        assert await queue.cleanup(NOW + timedelta(seconds=61)) == 1

        stats = await queue.get_stats()
        assert stats["counts"]["pending"] == 1
        assert stats["counts"]["completed"] == 0

    @pytest.mark.asyncio
    async def test_sweep_reclaims_job_of_dead_worker(self) -> None:
        queue, store, _ = _queue(_RecordingHandler(), QueueSettings(concurrency=1, job_timeout_seconds=30))
        job_id = await queue.enqueue(_job("evt-1"))
        # Claim sem save: worker morreu com o job em mãos
        assert await store.claim_next() is not None

        await queue.retry_sweep(datetime.now(UTC) - timedelta(seconds=1))
        assert (await queue.get_job(job_id)).status == JobStatus.PROCESSING

        await queue.retry_sweep(datetime.now(UTC) + timedelta(minutes=5))

        job = await queue.get_job(job_id)
        assert job.status == JobStatus.RETRY
        assert job.attempts == 1
        assert "Claim expirado" in job.last_error
        assert await store.reclaim_stale(datetime.now(UTC) + timedelta(minutes=5), NOW) == []

    @pytest.mark.asyncio
    async def test_reclaimed_job_out_of_attempts_fails(self) -> None:
        queue, store, monitoring = _queue(_RecordingHandler())
        job = _job("evt-1")
        job.max_attempts = 1
        job_id = await queue.enqueue(job)
        await store.claim_next()

        await queue.retry_sweep(datetime.now(UTC) + timedelta(hours=1))

        assert (await queue.get_job(job_id)).status == JobStatus.FAILED
        [failure] = monitoring.events_of(MonitoringEventType.JOB_FAILED)
        assert failure["job_id"] == job_id

    @pytest.mark.asyncio
    async def test_stats_report_depth_by_priority(self) -> None:
        queue, _, _ = _queue(_RecordingHandler(), QueueSettings(overwhelmed_threshold=2))
        await queue.enqueue(_job("a", JobPriority.HIGH))
        await queue.enqueue(_job("b", JobPriority.LOW))
        await queue.enqueue(_job("c", JobPriority.LOW))

        stats = await queue.get_stats()

        assert stats["depth"] == {"high": 1, "medium": 0, "low": 2}
        assert stats["in_flight"] == 0
        assert stats["health"]["queued"] == 3
        assert stats["health"]["overwhelmed"] is True

    @pytest.mark.asyncio
    async def test_empty_queue_is_healthy(self) -> None:
        queue, _, _ = _queue(_RecordingHandler())

        stats = await queue.get_stats()

        assert stats["health"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_jobs_listed_by_webhook(self) -> None:
        queue, _, _ = _queue(_RecordingHandler())
        await queue.enqueue(_job("a", webhook_id="wh_1"))
        await queue.enqueue(_job("b", webhook_id="wh_2"))
        await queue.enqueue(_job("c", webhook_id="wh_1"))

        jobs = await queue.list_jobs_for_webhook("wh_1")

        assert [job.payload.external_id for job in jobs] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_drain_releases_cancelled_job_without_consuming_attempt(self) -> None:
        handler = _BlockingHandler()
        queue, _, _ = _queue(handler)
        job_id = await queue.enqueue(_job("evt-1"))
        await queue.poll_once()
        await handler.started.wait()

        await queue.drain(timeout_seconds=0.01)

        job = await queue.get_job(job_id)
        assert job.status == JobStatus.RETRY
        assert job.attempts == 0
        assert job.next_retry_at == NOW
        assert queue.in_flight == 0

    @pytest.mark.asyncio
    async def test_worker_loop_processes_until_stopped(self) -> None:
        handler = _RecordingHandler()
        queue, _, _ = _queue(handler, QueueSettings(concurrency=1, poll_interval_seconds=0.01))
        job_id = await queue.enqueue(_job("evt-1"))
        stop = asyncio.Event()

        worker = asyncio.create_task(queue.run_worker(stop))
        for _ in range(100):
            job = await queue.get_job(job_id)
            if job.status == JobStatus.COMPLETED:
                break
            await asyncio.sleep(0.01)
        stop.set()
        await asyncio.wait_for(worker, timeout=1.0)

        assert handler.seen == ["evt-1"]
        assert (await queue.get_job(job_id)).status == JobStatus.COMPLETED
