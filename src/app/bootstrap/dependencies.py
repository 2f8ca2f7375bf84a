"""Container da aplicação: conecta implementações concretas aos serviços.

Um único container por processo: gateway e worker compartilham a mesma
fila, stores e camada de proteção.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.bootstrap.clients import create_provider_clients
from app.bootstrap.dependencies_services import (
    create_conflict_detector,
    create_conflict_resolver,
    create_pending_resolution_service,
    create_protection_service,
)
from app.bootstrap.dependencies_stores import (
    create_commitment_store,
    create_dedupe_store,
    create_integration_directory,
    create_job_store,
    create_monitoring_sink,
    create_pending_resolution_store,
    create_rate_limiter,
)
from app.coordinators.webhooks import WebhookGateway
from app.domain.conflict import ResolutionStrategy
from app.domain.job import JobKind
from app.queue import JobDispatcher, PriorityJobQueue
from app.use_cases.sync import ProcessMeetingEventJobUseCase, ProcessSyncJobUseCase
from config.settings import (
    get_conflict_settings,
    get_dedupe_settings,
    get_firestore_settings,
    get_protection_settings,
    get_provider_client_settings,
    get_queue_settings,
    get_webhook_settings,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.conflicts import ConflictDetector, ConflictResolver, PendingResolutionService
    from app.domain.change_event import Provider
    from app.protection import OutboundProtectionService
    from app.protocols.commitment_store import CommitmentStoreProtocol
    from app.protocols.dedupe import AsyncDedupeProtocol
    from app.protocols.integration_directory import IntegrationDirectoryProtocol
    from app.protocols.monitoring import MonitoringSinkProtocol
    from app.protocols.provider_client import ProviderClientProtocol
    from app.protocols.rate_limiter import RateLimiterProtocol
    from config.settings import (
        ConflictSettings,
        DedupeSettings,
        FirestoreSettings,
        ProtectionSettings,
        QueueSettings,
        WebhookSettings,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:
    """Serviços montados para o processo."""

    gateway: WebhookGateway
    queue: PriorityJobQueue
    protection: OutboundProtectionService
    detector: ConflictDetector
    resolver: ConflictResolver
    pending: PendingResolutionService
    commitments: CommitmentStoreProtocol
    integrations: IntegrationDirectoryProtocol
    dedupe: AsyncDedupeProtocol
    rate_limiter: RateLimiterProtocol
    monitoring: MonitoringSinkProtocol
    protection_settings: ProtectionSettings
    conflict_settings: ConflictSettings


def build_container(
    *,
    webhook_settings: WebhookSettings | None = None,
    queue_settings: QueueSettings | None = None,
    protection_settings: ProtectionSettings | None = None,
    conflict_settings: ConflictSettings | None = None,
    dedupe_settings: DedupeSettings | None = None,
    firestore_settings: FirestoreSettings | None = None,
    provider_clients: Mapping[Provider, ProviderClientProtocol] | None = None,
) -> AppContainer:
    """Monta o grafo de dependências.

    Settings omitidas são lidas do ambiente; `provider_clients` omitido cria
    os clientes configurados via env.
    """
    webhook_settings = webhook_settings or get_webhook_settings()
    queue_settings = queue_settings or get_queue_settings()
    protection_settings = protection_settings or get_protection_settings()
    conflict_settings = conflict_settings or get_conflict_settings()
    dedupe_settings = dedupe_settings or get_dedupe_settings()
    firestore_settings = firestore_settings or get_firestore_settings()
    if provider_clients is None:
        provider_clients = create_provider_clients(get_provider_client_settings())

    monitoring = create_monitoring_sink(firestore_settings)
    rate_limiter = create_rate_limiter(webhook_settings)
    commitments = create_commitment_store(firestore_settings)
    integrations = create_integration_directory(firestore_settings)
    dedupe = create_dedupe_store(dedupe_settings)

    protection = create_protection_service(
        protection_settings,
        clients=provider_clients,
        rate_limiter=rate_limiter,
        monitoring=monitoring,
    )
    detector = create_conflict_detector(conflict_settings, commitments)
    resolver = create_conflict_resolver(conflict_settings)
    pending = create_pending_resolution_service(
        conflict_settings,
        store=create_pending_resolution_store(queue_settings.backend == "redis"),
        monitoring=monitoring,
    )

    dispatcher = JobDispatcher(
        {
            JobKind.SYNC: ProcessSyncJobUseCase(
                protection=protection,
                commitments=commitments,
                dedupe=dedupe,
                detector=detector,
                resolver=resolver,
                pending=pending,
                strategy=ResolutionStrategy(conflict_settings.default_strategy),
                applied_ttl_seconds=dedupe_settings.ttl_seconds,
            ),
            JobKind.MEETING_EVENT: ProcessMeetingEventJobUseCase(
                commitments=commitments,
                dedupe=dedupe,
                applied_ttl_seconds=dedupe_settings.ttl_seconds,
            ),
        }
    )
    queue = PriorityJobQueue(
        create_job_store(queue_settings),
        dispatcher,
        monitoring,
        settings=queue_settings,
    )
    gateway = WebhookGateway(
        queue=queue,
        rate_limiter=rate_limiter,
        integrations=integrations,
        monitoring=monitoring,
        settings=webhook_settings,
    )

    logger.info(
        "app_container_built",
        extra={
            "component": "bootstrap",
            "queue_backend": queue_settings.backend,
            "dedupe_backend": dedupe_settings.backend,
            "directory_backend": firestore_settings.directory_backend,
        },
    )
    return AppContainer(
        gateway=gateway,
        queue=queue,
        protection=protection,
        detector=detector,
        resolver=resolver,
        pending=pending,
        commitments=commitments,
        integrations=integrations,
        dedupe=dedupe,
        rate_limiter=rate_limiter,
        monitoring=monitoring,
        protection_settings=protection_settings,
        conflict_settings=conflict_settings,
    )


__all__ = ["AppContainer", "build_container"]
