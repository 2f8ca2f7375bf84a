"""Redis Job Store: fila priorizada compartilhada entre processos.

Layout de chaves:
    jobs:data:{id}            JSON do job
    jobs:pending:{priority}   ZSET (score = created_at) por bucket
    jobs:retry                ZSET (score = next_retry_at)
    jobs:completed/failed     ZSET (score = completed_at) para limpeza
    jobs:processing           ZSET (score = instante do claim) em processamento
    jobs:webhook:{webhook_id} SET de IDs derivados de uma entrega

O claim usa script Lua (ZPOPMIN por bucket, em ordem de prioridade) para
garantir dono único. Sweep e limpeza usam ZREM como prova de posse. Claims
mais velhos que o corte (worker morto) são retomados por script Lua que
renova o score, de modo que só um sweeper os recebe e uma falha ao salvar
apenas adia a nova retomada.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.job import PRIORITY_ORDER, Job, JobStatus
from app.protocols.job_store import JobStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

JOBS_PREFIX = "jobs:"

# KEYS: pending:high, pending:medium, pending:low, processing; ARGV: claimed_at
CLAIM_LUA_SCRIPT = """
local processing = KEYS[#KEYS]
for i = 1, #KEYS - 1 do
    local popped = redis.call('ZPOPMIN', KEYS[i])
    if #popped > 0 then
        redis.call('ZADD', processing, ARGV[1], popped[1])
        return popped[1]
    end
end
return false
"""

# KEYS: processing; ARGV: corte, agora
RECLAIM_LUA_SCRIPT = """
local stale = redis.call('ZRANGEBYSCORE', KEYS[1], '-inf', ARGV[1])
for _, job_id in ipairs(stale) do
    redis.call('ZADD', KEYS[1], ARGV[2], job_id)
end
return stale
"""


def _decode(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


def _ts(value: datetime | None) -> float:
    return (value or datetime.now(UTC)).timestamp()


class RedisJobStore(JobStoreProtocol):
    """Store de jobs usando Redis.

    Args:
        async_redis_client: Cliente Redis assíncrono
        retention_seconds: TTL dos índices por webhook
    """

    def __init__(self, async_redis_client: AsyncRedis[bytes], retention_seconds: int = 86400) -> None:
        self._redis = async_redis_client
        self._retention_seconds = retention_seconds

    # ──────────────────────────────────────────────────────────────
    # Chaves
    # ──────────────────────────────────────────────────────────────

    @staticmethod
    def _data_key(job_id: str) -> str:
        return f"{JOBS_PREFIX}data:{job_id}"

    @staticmethod
    def _pending_key(priority: str) -> str:
        return f"{JOBS_PREFIX}pending:{priority}"

    @staticmethod
    def _webhook_key(webhook_id: str) -> str:
        return f"{JOBS_PREFIX}webhook:{webhook_id}"

    _retry_key = f"{JOBS_PREFIX}retry"
    _processing_key = f"{JOBS_PREFIX}processing"
    _terminal_keys = {
        JobStatus.COMPLETED: f"{JOBS_PREFIX}completed",
        JobStatus.FAILED: f"{JOBS_PREFIX}failed",
    }

    # ──────────────────────────────────────────────────────────────
    # API (JobStoreProtocol)
    # ──────────────────────────────────────────────────────────────

    async def add(self, job: Job) -> None:
        job.status = JobStatus.PENDING
        try:
            pipeline = self._redis.pipeline()
            pipeline.set(self._data_key(job.id), json.dumps(job.to_dict()))
            pipeline.zadd(self._pending_key(job.priority.value), {job.id: _ts(job.created_at)})
            if job.webhook_id:
                pipeline.sadd(self._webhook_key(job.webhook_id), job.id)
                pipeline.expire(self._webhook_key(job.webhook_id), self._retention_seconds)
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao enfileirar job no Redis") from exc

    async def claim_next(self) -> Job | None:
        keys = [self._pending_key(p.value) for p in PRIORITY_ORDER] + [self._processing_key]
        try:
            raw_id = await self._redis.eval(
                CLAIM_LUA_SCRIPT, len(keys), *keys, datetime.now(UTC).timestamp()
            )
        except Exception as exc:
            raise RedisConnectionError("Falha ao reivindicar job no Redis") from exc
        if not raw_id:
            return None

        job_id = _decode(raw_id)
        job = await self.get(job_id)
        if job is None:
            # Índice sem dados (purgado em paralelo); descarta a posse.
            await self._redis.zrem(self._processing_key, job_id)
            logger.warning("job_claim_orphan_index", extra={"job_id": job_id})
            return None

        job.status = JobStatus.PROCESSING
        job.updated_at = datetime.now(UTC)
        try:
            await self._redis.set(self._data_key(job.id), json.dumps(job.to_dict()))
        except Exception as exc:
            raise RedisConnectionError("Falha ao marcar job em processamento") from exc
        return job

    async def save(self, job: Job) -> None:
        try:
            pipeline = self._redis.pipeline()
            pipeline.set(self._data_key(job.id), json.dumps(job.to_dict()))
            pipeline.zrem(self._processing_key, job.id)
            if job.status == JobStatus.RETRY:
                pipeline.zadd(self._retry_key, {job.id: _ts(job.next_retry_at)})
            elif job.status.is_terminal:
                pipeline.zadd(self._terminal_keys[job.status], {job.id: _ts(job.completed_at)})
            elif job.status == JobStatus.PENDING:
                pipeline.zadd(self._pending_key(job.priority.value), {job.id: _ts(job.created_at)})
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao salvar job no Redis") from exc

    async def get(self, job_id: str) -> Job | None:
        try:
            raw = await self._redis.get(self._data_key(job_id))
        except Exception as exc:
            raise RedisConnectionError("Falha ao ler job no Redis") from exc
        if raw is None:
            return None
        return Job.from_dict(json.loads(_decode(raw)))

    async def requeue_due_retries(self, now: datetime) -> int:
        try:
            due_ids = await self._redis.zrangebyscore(self._retry_key, 0, now.timestamp())
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar retries no Redis") from exc

        moved = 0
        for raw_id in due_ids:
            job_id = _decode(raw_id)
            try:
                # ZREM bem-sucedido = este processo é dono da transição
                if not await self._redis.zrem(self._retry_key, job_id):
                    continue
            except Exception as exc:
                raise RedisConnectionError("Falha ao reivindicar retry no Redis") from exc

            try:
                job = await self.get(job_id)
                if job is None:
                    continue
                job.status = JobStatus.PENDING
                job.updated_at = now
                await self.save(job)
            except Exception as exc:
                await self._restore_retry(job_id, now)
                raise RedisConnectionError("Falha ao mover retry para pending no Redis") from exc
            moved += 1
        return moved

    async def _restore_retry(self, job_id: str, now: datetime) -> None:
        """Devolve ao índice de retry um job removido cuja transição falhou."""
        try:
            await self._redis.zadd(self._retry_key, {job_id: now.timestamp()})
        except Exception as exc:
            logger.error(
                "job_retry_restore_failed",
                extra={"job_id": job_id, "error_type": type(exc).__name__},
            )

    async def reclaim_stale(self, claimed_before: datetime, now: datetime) -> list[Job]:
        try:
            raw_ids = await self._redis.eval(
                RECLAIM_LUA_SCRIPT,
                1,
                self._processing_key,
                claimed_before.timestamp(),
                now.timestamp(),
            )
        except Exception as exc:
            raise RedisConnectionError("Falha ao retomar claims expirados no Redis") from exc

        jobs: list[Job] = []
        try:
            for raw_id in raw_ids or []:
                job_id = _decode(raw_id)
                job = await self.get(job_id)
                if job is None:
                    await self._redis.zrem(self._processing_key, job_id)
                    continue
                jobs.append(job)
        except Exception as exc:
            # Claims renovados voltam a expirar no próximo corte
            raise RedisConnectionError("Falha ao ler claims expirados no Redis") from exc
        return jobs

    async def purge_terminal(self, older_than: datetime) -> int:
        purged = 0
        try:
            for key in self._terminal_keys.values():
                expired_ids = await self._redis.zrangebyscore(key, 0, older_than.timestamp())
                if not expired_ids:
                    continue
                pipeline = self._redis.pipeline()
                for raw_id in expired_ids:
                    pipeline.delete(self._data_key(_decode(raw_id)))
                pipeline.zremrangebyscore(key, 0, older_than.timestamp())
                await pipeline.execute()
                purged += len(expired_ids)
        except Exception as exc:
            raise RedisConnectionError("Falha ao limpar jobs no Redis") from exc
        return purged

    async def depth_by_priority(self) -> dict[str, int]:
        try:
            pipeline = self._redis.pipeline()
            for priority in PRIORITY_ORDER:
                pipeline.zcard(self._pending_key(priority.value))
            counts = await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar profundidade no Redis") from exc
        return {p.value: int(c) for p, c in zip(PRIORITY_ORDER, counts, strict=True)}

    async def count_by_status(self) -> dict[str, int]:
        depth = await self.depth_by_priority()
        try:
            pipeline = self._redis.pipeline()
            pipeline.zcard(self._processing_key)
            pipeline.zcard(self._retry_key)
            pipeline.zcard(self._terminal_keys[JobStatus.COMPLETED])
            pipeline.zcard(self._terminal_keys[JobStatus.FAILED])
            processing, retry, completed, failed = await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar status no Redis") from exc
        return {
            JobStatus.PENDING.value: sum(depth.values()),
            JobStatus.PROCESSING.value: int(processing),
            JobStatus.RETRY.value: int(retry),
            JobStatus.COMPLETED.value: int(completed),
            JobStatus.FAILED.value: int(failed),
        }

    async def list_by_webhook(self, webhook_id: str) -> list[Job]:
        try:
            raw_ids = await self._redis.smembers(self._webhook_key(webhook_id))
            if not raw_ids:
                return []
            keys = [self._data_key(_decode(raw_id)) for raw_id in raw_ids]
            raw_jobs = await self._redis.mget(keys)
        except Exception as exc:
            raise RedisConnectionError("Falha ao listar jobs do webhook no Redis") from exc
        jobs = [Job.from_dict(json.loads(_decode(raw))) for raw in raw_jobs if raw is not None]
        return sorted(jobs, key=lambda job: job.created_at)
