"""Stores em memória: apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios e
sem compartilhamento entre processos.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from app.domain.conflict import PendingStatus
from app.domain.job import PRIORITY_ORDER, JobStatus
from app.protocols.commitment_store import CommitmentStoreProtocol
from app.protocols.dedupe import AsyncDedupeProtocol
from app.protocols.integration_directory import Integration, IntegrationDirectoryProtocol
from app.protocols.job_store import JobStoreProtocol
from app.protocols.pending_resolution_store import PendingResolutionStoreProtocol

if TYPE_CHECKING:
    from app.domain.commitment import Commitment
    from app.domain.conflict import PendingResolution
    from app.domain.job import Job


class MemoryDedupeStore(AsyncDedupeProtocol):
    """Fingerprints aplicados em memória: apenas para dev/test."""

    def __init__(self) -> None:
        self._store: dict[str, float] = {}  # key -> expires_at

    def _cleanup_expired(self) -> None:
        """Remove entradas expiradas."""
        now = time.time()
        expired = [k for k, v in self._store.items() if v <= now]
        for k in expired:
            del self._store[k]

    async def is_duplicate(self, key: str) -> bool:
        """Verifica se fingerprint já foi aplicado."""
        self._cleanup_expired()
        return key in self._store

    async def mark_processed(self, key: str, ttl: int = 86400) -> None:
        """Marca fingerprint como aplicado."""
        self._store[key] = time.time() + ttl


class MemoryJobStore(JobStoreProtocol):
    """Fila de jobs em memória: apenas para dev/test.

    Guarda cópias dos jobs: quem lê nunca compartilha a instância com a store,
    preservando o dono único do claim.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._sequence: dict[str, int] = {}
        self._counter = itertools.count()
        self._claimed_at: dict[str, datetime] = {}
        self._lock = asyncio.Lock()

    async def add(self, job: Job) -> None:
        async with self._lock:
            job.status = JobStatus.PENDING
            self._jobs[job.id] = job.copy()
            self._sequence[job.id] = next(self._counter)

    async def claim_next(self) -> Job | None:
        async with self._lock:
            for priority in PRIORITY_ORDER:
                candidates = [
                    job
                    for job in self._jobs.values()
                    if job.status == JobStatus.PENDING and job.priority == priority
                ]
                if not candidates:
                    continue
                job = min(candidates, key=lambda j: (j.created_at, self._sequence[j.id]))
                job.status = JobStatus.PROCESSING
                self._claimed_at[job.id] = datetime.now(UTC)
                return job.copy()
            return None

    async def save(self, job: Job) -> None:
        async with self._lock:
            self._jobs[job.id] = job.copy()
            self._claimed_at.pop(job.id, None)
            self._sequence.setdefault(job.id, next(self._counter))

    async def get(self, job_id: str) -> Job | None:
        job = self._jobs.get(job_id)
        return job.copy() if job else None

    async def requeue_due_retries(self, now: datetime) -> int:
        async with self._lock:
            moved = 0
            for job in self._jobs.values():
                if job.status != JobStatus.RETRY:
                    continue
                if job.next_retry_at is not None and job.next_retry_at > now:
                    continue
                job.status = JobStatus.PENDING
                job.updated_at = now
                moved += 1
            return moved

    async def reclaim_stale(self, claimed_before: datetime, now: datetime) -> list[Job]:
        async with self._lock:
            stale: list[Job] = []
            for job_id, claimed_at in self._claimed_at.items():
                job = self._jobs.get(job_id)
                if claimed_at < claimed_before and job is not None and job.status == JobStatus.PROCESSING:
                    stale.append(job.copy())
            for job in stale:
                self._claimed_at[job.id] = now
            return stale

    async def purge_terminal(self, older_than: datetime) -> int:
        async with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.status.is_terminal and (job.completed_at or job.updated_at) < older_than
            ]
            for job_id in expired:
                del self._jobs[job_id]
                self._sequence.pop(job_id, None)
            return len(expired)

    async def depth_by_priority(self) -> dict[str, int]:
        depth = {priority.value: 0 for priority in PRIORITY_ORDER}
        for job in self._jobs.values():
            if job.status == JobStatus.PENDING:
                depth[job.priority.value] += 1
        return depth

    async def count_by_status(self) -> dict[str, int]:
        counts = {status.value: 0 for status in JobStatus}
        for job in self._jobs.values():
            counts[job.status.value] += 1
        return counts

    async def list_by_webhook(self, webhook_id: str) -> list[Job]:
        return [
            job.copy()
            for job in sorted(self._jobs.values(), key=lambda j: self._sequence[j.id])
            if job.webhook_id == webhook_id
        ]


class MemoryCommitmentStore(CommitmentStoreProtocol):
    """Compromissos em memória: apenas para dev/test."""

    def __init__(self, commitments: list[Commitment] | None = None) -> None:
        self._items: dict[str, Commitment] = {}
        for commitment in commitments or []:
            self._items[commitment.id] = commitment

    async def list_for_user(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> list[Commitment]:
        return [
            item
            for item in self._items.values()
            if item.user_id == user_id
            and not item.is_cancelled
            and item.start < window_end
            and item.end > window_start
        ]

    async def get_by_external(self, provider: str, external_id: str) -> Commitment | None:
        for item in self._items.values():
            if item.provider == provider and item.external_id == external_id:
                return item
        return None

    async def upsert(self, commitment: Commitment) -> None:
        self._items[commitment.id] = commitment

    async def list_by_meeting(self, meeting_id: str) -> list[Commitment]:
        return [item for item in self._items.values() if item.meeting_id == meeting_id]

    def all(self) -> list[Commitment]:
        """Retorna todos os compromissos (apenas para testes)."""
        return list(self._items.values())


class MemoryIntegrationDirectory(IntegrationDirectoryProtocol):
    """Diretório de integrações em memória: apenas para dev/test."""

    def __init__(self, integrations: list[Integration] | None = None) -> None:
        self._by_key: dict[tuple[str, str], Integration] = {}
        for integration in integrations or []:
            self.register(integration)

    def register(self, integration: Integration) -> None:
        self._by_key[(integration.provider, integration.correlation_key)] = integration

    async def resolve(self, provider: str, correlation_key: str) -> Integration | None:
        return self._by_key.get((provider, correlation_key))


class MemoryPendingResolutionStore(PendingResolutionStoreProtocol):
    """Resoluções pendentes em memória: apenas para dev/test."""

    def __init__(self) -> None:
        self._items: dict[str, PendingResolution] = {}

    async def save(self, pending: PendingResolution) -> None:
        self._items[pending.candidate_id] = pending

    async def get(self, candidate_id: str) -> PendingResolution | None:
        return self._items.get(candidate_id)

    async def list_expired(self, now: datetime) -> list[PendingResolution]:
        return [
            item
            for item in self._items.values()
            if item.status == PendingStatus.PENDING and item.is_expired(now)
        ]
