"""Fila priorizada de jobs com pool de workers.

Responsabilidades:
- enqueue: persiste como pending, nunca espera por workers
- worker: polling da store, claim atômico, concorrência global limitada
- sucesso → completed; falha → retry com backoff ou failed (terminal)
- sweep de retry (inclui claims órfãos) e limpeza de terminais, periódicos
- estatísticas não bloqueantes para health check

Prioridade estrita (high > medium > low), FIFO por criação no bucket. A
ordenação vem da store; a fila só decide quantos claims cabem no pool.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from app.domain.job import JobStatus
from app.observability import (
    bind_webhook_context,
    record_job_outcome,
    record_queue_depth,
    reset_webhook_context,
)
from app.protocols.monitoring import MonitoringEventType
from config.settings.queue import QueueSettings
from utils.errors import (
    CircuitOpenError,
    ConflictUnresolvedError,
    InfrastructureError,
    PermanentProviderError,
    RateLimitError,
    TransientProviderError,
    ValidationError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.job import Job
    from app.protocols.job_store import JobStoreProtocol
    from app.protocols.monitoring import MonitoringSinkProtocol
    from app.queue.dispatcher import JobDispatcher

logger = logging.getLogger(__name__)

# Falhas que nenhuma retentativa resolve
_NON_RETRYABLE = (PermanentProviderError, ValidationError, ConflictUnresolvedError)

_MAX_ERROR_LENGTH = 500

# Claim sem save após este múltiplo do timeout = worker morto
_STALE_CLAIM_TIMEOUTS = 2


def _utc_now() -> datetime:
    return datetime.now(UTC)


class PriorityJobQueue:
    """Fila priorizada com retentativa e pool de workers de tamanho fixo.

    Args:
        store: Persistência de jobs (memória ou Redis)
        dispatcher: Roteia job → handler por tipo
        monitoring: Recebe falhas terminais
        settings: Concorrência, intervalos, backoff e retenção
        now: Relógio UTC (injetável em testes)
    """

    def __init__(
        self,
        store: JobStoreProtocol,
        dispatcher: JobDispatcher,
        monitoring: MonitoringSinkProtocol,
        settings: QueueSettings | None = None,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._monitoring = monitoring
        self._settings = settings or QueueSettings()
        self._now = now
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def settings(self) -> QueueSettings:
        return self._settings

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    # ──────────────────────────────────────────────────────────────
    # Produtor
    # ──────────────────────────────────────────────────────────────

    async def enqueue(self, job: Job) -> str:
        """Persiste o job como pending e o torna visível aos workers.

        Raises:
            InfrastructureError: Falha da store.
        """
        job.status = JobStatus.PENDING
        job.updated_at = self._now()
        await self._store.add(job)
        logger.info(
            "job_enqueued",
            extra={
                "job_id": job.id,
                "job_kind": job.kind.value,
                "priority": job.priority.value,
                "provider": job.payload.provider.value,
                "webhook_id": job.webhook_id,
            },
        )
        return job.id

    # ──────────────────────────────────────────────────────────────
    # Consumidor
    # ──────────────────────────────────────────────────────────────

    async def poll_once(self) -> int:
        """Reivindica jobs até encher o pool ou esvaziar a fila.

        Returns:
            Quantidade de jobs iniciados.
        """
        started = 0
        while len(self._tasks) < self._settings.concurrency:
            job = await self._store.claim_next()
            if job is None:
                break
            self._spawn(job)
            started += 1
        return started

    async def run_worker(self, stop_event: asyncio.Event) -> None:
        """Loop do worker até `stop_event`; falha de um job nunca para o loop."""
        logger.info(
            "job_worker_started",
            extra={
                "concurrency": self._settings.concurrency,
                "poll_interval_seconds": self._settings.poll_interval_seconds,
            },
        )
        while not stop_event.is_set():
            try:
                await self.poll_once()
            except InfrastructureError as exc:
                logger.error(
                    "job_worker_poll_failed",
                    extra={"error_type": type(exc).__name__, "error": str(exc)},
                )
            await self._idle(stop_event)
        logger.info("job_worker_stopped", extra={"in_flight": len(self._tasks)})

    async def run_until_idle(self) -> int:
        """Processa até não haver job elegível nem em execução.

        Jobs em retry só voltam após `retry_sweep`. Útil em testes e scripts.

        Returns:
            Quantidade de jobs processados.
        """
        processed = 0
        while True:
            processed += await self.poll_once()
            if not self._tasks:
                return processed
            await asyncio.wait(set(self._tasks), return_when=asyncio.FIRST_COMPLETED)

    async def _idle(self, stop_event: asyncio.Event) -> None:
        """Espera o intervalo de polling, o stop ou (pool cheio) um job terminar."""
        stop_waiter = asyncio.ensure_future(stop_event.wait())
        waiters: set[asyncio.Future[Any]] = {stop_waiter}
        if len(self._tasks) >= self._settings.concurrency:
            waiters |= set(self._tasks)
        try:
            await asyncio.wait(
                waiters,
                timeout=self._settings.poll_interval_seconds,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            if not stop_waiter.done():
                stop_waiter.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await stop_waiter

    def _spawn(self, job: Job) -> None:
        task = asyncio.create_task(self._process(job), name=f"job:{job.id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "job_task_failed",
                extra={"error_type": type(exc).__name__, "in_flight": len(self._tasks)},
            )

    async def _process(self, job: Job) -> None:
        tokens = bind_webhook_context(job.webhook_id or job.id, job.payload.provider.value)
        start = time.perf_counter()
        try:
            try:
                result = await asyncio.wait_for(
                    self._dispatcher.dispatch(job),
                    timeout=self._settings.job_timeout_seconds,
                )
            except asyncio.CancelledError:
                await self._release_cancelled(job)
                raise
            except TimeoutError:
                await self._on_failure(
                    job,
                    TransientProviderError(
                        f"Tempo máximo de processamento excedido ({self._settings.job_timeout_seconds}s)"
                    ),
                    start,
                )
            except Exception as exc:
                await self._on_failure(job, exc, start)
            else:
                await self._on_success(job, result, start)
        finally:
            reset_webhook_context(tokens)

    async def _on_success(self, job: Job, result: dict[str, Any], start: float) -> None:
        now = self._now()
        job.attempts += 1
        job.status = JobStatus.COMPLETED
        job.result = result
        job.last_error = None
        job.next_retry_at = None
        job.completed_at = now
        job.updated_at = now
        await self._store.save(job)

        duration_ms = (time.perf_counter() - start) * 1000
        record_job_outcome(job.kind.value, job.priority.value, "completed", job.attempts, duration_ms)
        logger.info(
            "job_completed",
            extra={"job_id": job.id, "job_kind": job.kind.value, "attempts": job.attempts},
        )

    async def _on_failure(self, job: Job, exc: Exception, start: float) -> None:
        now = self._now()
        job.attempts += 1
        job.last_error = f"{type(exc).__name__}: {exc}"[:_MAX_ERROR_LENGTH]
        job.updated_at = now
        duration_ms = (time.perf_counter() - start) * 1000

        permanent = isinstance(exc, _NON_RETRYABLE)
        if permanent or job.attempts >= job.max_attempts:
            job.status = JobStatus.FAILED
            job.next_retry_at = None
            job.completed_at = now
            await self._store.save(job)
            record_job_outcome(job.kind.value, job.priority.value, "failed", job.attempts, duration_ms)
            logger.error(
                "job_failed",
                extra={
                    "job_id": job.id,
                    "job_kind": job.kind.value,
                    "attempts": job.attempts,
                    "permanent": permanent,
                    "error_type": type(exc).__name__,
                },
            )
            await self._monitoring.record(
                MonitoringEventType.JOB_FAILED,
                {
                    "job_id": job.id,
                    "job_kind": job.kind.value,
                    "priority": job.priority.value,
                    "provider": job.payload.provider.value,
                    "attempts": job.attempts,
                    "error_type": type(exc).__name__,
                    "permanent": permanent,
                    "webhook_id": job.webhook_id,
                },
            )
            return

        delay = self._retry_delay(job.attempts, exc, now)
        job.status = JobStatus.RETRY
        job.next_retry_at = now + timedelta(seconds=delay)
        await self._store.save(job)
        record_job_outcome(job.kind.value, job.priority.value, "retry", job.attempts, duration_ms)
        logger.warning(
            "job_retry_scheduled",
            extra={
                "job_id": job.id,
                "job_kind": job.kind.value,
                "attempts": job.attempts,
                "retry_in_seconds": round(delay, 3),
                "error_type": type(exc).__name__,
            },
        )

    def _retry_delay(self, attempts: int, exc: Exception, now: datetime) -> float:
        """Backoff exponencial; respeita o reset anunciado por rate limit/breaker."""
        delay = self._settings.backoff_seconds(attempts)
        if isinstance(exc, RateLimitError):
            delay = max(delay, exc.retry_after)
        elif isinstance(exc, CircuitOpenError):
            delay = max(delay, exc.reset_time - now.timestamp())
        return delay

    async def _release_cancelled(self, job: Job) -> None:
        """Devolve job interrompido (shutdown) para retry imediato, sem consumir tentativa."""
        now = self._now()
        job.status = JobStatus.RETRY
        job.next_retry_at = now
        job.updated_at = now
        try:
            await self._store.save(job)
        except InfrastructureError as exc:
            logger.error(
                "job_release_failed",
                extra={"job_id": job.id, "error_type": type(exc).__name__},
            )
        logger.warning("job_cancelled_released", extra={"job_id": job.id})

    # ──────────────────────────────────────────────────────────────
    # Manutenção
    # ──────────────────────────────────────────────────────────────

    async def retry_sweep(self, now: datetime | None = None) -> int:
        """Move jobs em retry com next_retry_at vencido de volta para pending.

        Depois retoma claims órfãos: cada um conta como tentativa falha e
        segue o caminho normal de retry/failed.
        """
        now = now or self._now()
        moved = await self._store.requeue_due_retries(now)
        if moved:
            logger.info("job_retry_sweep", extra={"requeued": moved})
        await self._reclaim_stale(now)
        return moved

    async def _reclaim_stale(self, now: datetime) -> int:
        timeout = self._settings.job_timeout_seconds
        cutoff = now - timedelta(seconds=timeout * _STALE_CLAIM_TIMEOUTS)
        stale = await self._store.reclaim_stale(cutoff, now)
        for job in stale:
            logger.warning(
                "job_claim_expired",
                extra={"job_id": job.id, "job_kind": job.kind.value, "attempts": job.attempts},
            )
            await self._on_failure(
                job,
                TransientProviderError(f"Claim expirado sem conclusão (> {timeout}s)"),
                time.perf_counter(),
            )
        return len(stale)

    async def cleanup(self, now: datetime | None = None) -> int:
        """Remove jobs terminais além da janela de retenção."""
        cutoff = (now or self._now()) - timedelta(seconds=self._settings.retention_seconds)
        purged = await self._store.purge_terminal(cutoff)
        if purged:
            logger.info("job_cleanup", extra={"purged": purged})
        return purged

    async def drain(self, timeout_seconds: float = 30.0) -> None:
        """Aguarda jobs em execução durante o shutdown; cancela o que sobrar."""
        if not self._tasks:
            return

        pending_now = list(self._tasks)
        logger.info(
            "job_queue_shutdown_wait",
            extra={"pending_tasks": len(pending_now), "timeout_seconds": timeout_seconds},
        )
        _, pending = await asyncio.wait(pending_now, timeout=timeout_seconds)
        if not pending:
            return

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        logger.warning("job_queue_shutdown_cancelled", extra={"cancelled_tasks": len(pending)})

    # ──────────────────────────────────────────────────────────────
    # Consulta
    # ──────────────────────────────────────────────────────────────

    async def get_stats(self) -> dict[str, Any]:
        """Profundidade por prioridade, jobs em execução e resumo de saúde."""
        depth = await self._store.depth_by_priority()
        counts = await self._store.count_by_status()
        in_flight = len(self._tasks)
        queued = sum(depth.values())
        saturated = in_flight >= self._settings.concurrency
        overwhelmed = queued > self._settings.overwhelmed_threshold or (saturated and queued > 0)

        record_queue_depth(depth, in_flight)
        return {
            "depth": depth,
            "in_flight": in_flight,
            "counts": counts,
            "concurrency": self._settings.concurrency,
            "health": {
                "status": "overwhelmed" if overwhelmed else "healthy",
                "overwhelmed": overwhelmed,
                "saturated": saturated,
                "queued": queued,
            },
        }

    async def get_job(self, job_id: str) -> Job | None:
        return await self._store.get(job_id)

    async def list_jobs_for_webhook(self, webhook_id: str) -> list[Job]:
        return await self._store.list_by_webhook(webhook_id)


__all__ = ["PriorityJobQueue"]
