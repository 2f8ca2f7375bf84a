"""Protocolo de persistência da fila de jobs.

A store é compartilhável entre processos; por isso o claim precisa ser
atômico e o worker faz polling em vez de espera bloqueante.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.job import Job


class JobStoreProtocol(ABC):
    """Contrato assíncrono para stores de jobs."""

    @abstractmethod
    async def add(self, job: Job) -> None:
        """Persiste job novo (status pending) e o torna visível aos workers."""

    @abstractmethod
    async def claim_next(self) -> Job | None:
        """Reivindica atomicamente o próximo job elegível.

        Ordem: bucket de maior prioridade não vazio; dentro do bucket, o mais
        antigo por criação. O job retornado já está em `processing` e fica
        invisível aos demais workers.
        """

    @abstractmethod
    async def save(self, job: Job) -> None:
        """Persiste o estado do job após processamento (dono do claim)."""

    @abstractmethod
    async def get(self, job_id: str) -> Job | None:
        """Busca job por ID."""

    @abstractmethod
    async def requeue_due_retries(self, now: datetime) -> int:
        """Move jobs em retry com next_retry_at <= now de volta para pending."""

    @abstractmethod
    async def reclaim_stale(self, claimed_before: datetime, now: datetime) -> list[Job]:
        """Retoma jobs em processing reivindicados antes de `claimed_before`.

        Cobre workers que morreram com o job em mãos. Cada job é entregue a
        um único chamador, que passa a ser o dono e registra a falha.
        """

    @abstractmethod
    async def purge_terminal(self, older_than: datetime) -> int:
        """Remove jobs terminais concluídos antes de `older_than`."""

    @abstractmethod
    async def depth_by_priority(self) -> dict[str, int]:
        """Jobs pending por bucket de prioridade."""

    @abstractmethod
    async def count_by_status(self) -> dict[str, int]:
        """Contagem de jobs por status."""

    @abstractmethod
    async def list_by_webhook(self, webhook_id: str) -> list[Job]:
        """Jobs derivados de uma entrega de webhook."""
