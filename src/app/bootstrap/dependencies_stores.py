"""Factories de stores e infra baseadas em configuração de ambiente."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.infra.monitoring import FirestoreMonitoringSink, LogMonitoringSink
from app.infra.rate_limit import MemoryRateLimiter, RedisRateLimiter
from app.infra.stores import (
    FirestoreCommitmentStore,
    FirestoreIntegrationDirectory,
    MemoryCommitmentStore,
    MemoryDedupeStore,
    MemoryIntegrationDirectory,
    MemoryJobStore,
    MemoryPendingResolutionStore,
    RedisDedupeStore,
    RedisJobStore,
    RedisPendingResolutionStore,
)

if TYPE_CHECKING:
    from app.protocols.commitment_store import CommitmentStoreProtocol
    from app.protocols.dedupe import AsyncDedupeProtocol
    from app.protocols.integration_directory import IntegrationDirectoryProtocol
    from app.protocols.job_store import JobStoreProtocol
    from app.protocols.monitoring import MonitoringSinkProtocol
    from app.protocols.pending_resolution_store import PendingResolutionStoreProtocol
    from app.protocols.rate_limiter import RateLimiterProtocol
    from config.settings import (
        DedupeSettings,
        FirestoreSettings,
        QueueSettings,
        WebhookSettings,
    )

logger = logging.getLogger(__name__)


def _runtime_environment() -> str:
    return os.getenv("ENVIRONMENT", "development").lower()


def _warn_memory_in_non_dev(component: str) -> None:
    environment = _runtime_environment()
    if environment not in ("development", "test"):
        logger.warning(
            "memory_backend_in_non_dev",
            extra={"component": component, "backend": "memory", "environment": environment},
        )


def create_job_store(settings: QueueSettings) -> JobStoreProtocol:
    """Cria store de jobs (QUEUE_BACKEND=memory|redis)."""
    if settings.backend == "redis":
        store: JobStoreProtocol = RedisJobStore(
            create_async_redis_client(),
            retention_seconds=settings.retention_seconds,
        )
    else:
        _warn_memory_in_non_dev("job_store")
        store = MemoryJobStore()
    logger.info("job_store_created", extra={"backend": settings.backend})
    return store


def create_dedupe_store(settings: DedupeSettings) -> AsyncDedupeProtocol:
    """Cria store de fingerprints aplicados (DEDUPE_BACKEND=memory|redis)."""
    if settings.backend == "redis":
        store: AsyncDedupeProtocol = RedisDedupeStore(create_async_redis_client())
    else:
        _warn_memory_in_non_dev("dedupe_store")
        store = MemoryDedupeStore()
    logger.info("dedupe_store_created", extra={"backend": settings.backend})
    return store


def create_pending_resolution_store(redis_backed: bool) -> PendingResolutionStoreProtocol:
    """Resoluções pendentes seguem o backend da fila."""
    if redis_backed:
        store: PendingResolutionStoreProtocol = RedisPendingResolutionStore(
            create_async_redis_client()
        )
    else:
        store = MemoryPendingResolutionStore()
    logger.info(
        "pending_resolution_store_created",
        extra={"backend": "redis" if redis_backed else "memory"},
    )
    return store


def create_rate_limiter(settings: WebhookSettings) -> RateLimiterProtocol:
    """Rate limiter compartilhado por gateway (entrada) e proteção (saída)."""
    if settings.rate_limit_backend == "redis":
        limiter: RateLimiterProtocol = RedisRateLimiter(create_async_redis_client())
    else:
        limiter = MemoryRateLimiter()
    logger.info("rate_limiter_created", extra={"backend": settings.rate_limit_backend})
    return limiter


def create_monitoring_sink(settings: FirestoreSettings) -> MonitoringSinkProtocol:
    """Sink de monitoramento (MONITORING_BACKEND=log|firestore)."""
    if settings.monitoring_backend == "firestore":
        sink: MonitoringSinkProtocol = FirestoreMonitoringSink(
            create_firestore_client(),
            collection_name=settings.collection_audit,
        )
    else:
        sink = LogMonitoringSink()
    logger.info("monitoring_sink_created", extra={"backend": settings.monitoring_backend})
    return sink


def create_commitment_store(settings: FirestoreSettings) -> CommitmentStoreProtocol:
    """Compromissos do usuário (DIRECTORY_BACKEND=memory|firestore)."""
    if settings.directory_backend == "firestore":
        store: CommitmentStoreProtocol = FirestoreCommitmentStore(
            create_firestore_client(),
            collection_name=settings.collection_commitments,
        )
    else:
        _warn_memory_in_non_dev("commitment_store")
        store = MemoryCommitmentStore()
    logger.info("commitment_store_created", extra={"backend": settings.directory_backend})
    return store


def create_integration_directory(settings: FirestoreSettings) -> IntegrationDirectoryProtocol:
    """Integrações por chave de correlação (DIRECTORY_BACKEND=memory|firestore)."""
    if settings.directory_backend == "firestore":
        directory: IntegrationDirectoryProtocol = FirestoreIntegrationDirectory(
            create_firestore_client(),
            collection_name=settings.collection_integrations,
        )
    else:
        _warn_memory_in_non_dev("integration_directory")
        directory = MemoryIntegrationDirectory()
    logger.info("integration_directory_created", extra={"backend": settings.directory_backend})
    return directory
