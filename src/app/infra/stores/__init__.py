"""Stores: implementações concretas de persistência.

Módulos disponíveis:
    - redis_job_store: fila priorizada compartilhada (Redis)
    - redis_dedupe_store: fingerprints de mudanças aplicadas (Redis)
    - redis_pending_resolution_store: decisões de conflito pendentes (Redis)
    - firestore_commitment_store: compromissos e integrações (Firestore)
    - memory_stores: Stores em memória para desenvolvimento/testes
"""

from __future__ import annotations

from app.infra.stores.firestore_commitment_store import (
    FirestoreCommitmentStore,
    FirestoreIntegrationDirectory,
)
from app.infra.stores.memory_stores import (
    MemoryCommitmentStore,
    MemoryDedupeStore,
    MemoryIntegrationDirectory,
    MemoryJobStore,
    MemoryPendingResolutionStore,
)
from app.infra.stores.redis_dedupe_store import RedisDedupeStore
from app.infra.stores.redis_job_store import RedisJobStore
from app.infra.stores.redis_pending_resolution_store import RedisPendingResolutionStore

__all__ = [
    # Firestore
    "FirestoreCommitmentStore",
    "FirestoreIntegrationDirectory",
    # Memory (dev/test)
    "MemoryCommitmentStore",
    "MemoryDedupeStore",
    "MemoryIntegrationDirectory",
    "MemoryJobStore",
    "MemoryPendingResolutionStore",
    # Redis
    "RedisDedupeStore",
    "RedisJobStore",
    "RedisPendingResolutionStore",
]
