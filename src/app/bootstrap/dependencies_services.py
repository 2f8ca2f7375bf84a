"""Factories dos serviços de domínio: proteção de saída e motor de conflitos."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from app.conflicts import (
    ConflictDetector,
    ConflictResolver,
    PendingResolutionService,
)
from app.domain.protection import BreakerConfig, ThrottleConfig
from app.protection import BypassTokenRegistry, OutboundProtectionService, ProviderRegistry

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.domain.change_event import Provider
    from app.protocols.commitment_store import CommitmentStoreProtocol
    from app.protocols.monitoring import MonitoringSinkProtocol
    from app.protocols.pending_resolution_store import PendingResolutionStoreProtocol
    from app.protocols.provider_client import ProviderClientProtocol
    from app.protocols.rate_limiter import RateLimiterProtocol
    from config.settings import ConflictSettings, ProtectionSettings

logger = logging.getLogger(__name__)


def create_protection_service(
    settings: ProtectionSettings,
    *,
    clients: Mapping[Provider, ProviderClientProtocol],
    rate_limiter: RateLimiterProtocol,
    monitoring: MonitoringSinkProtocol,
) -> OutboundProtectionService:
    """Cria OutboundProtectionService com os limiares configurados."""
    service = OutboundProtectionService(
        registry=ProviderRegistry(),
        clients=clients,
        rate_limiter=rate_limiter,
        monitoring=monitoring,
        bypass_tokens=BypassTokenRegistry(default_ttl_seconds=settings.bypass_token_ttl_seconds),
        breaker_config=BreakerConfig(
            failure_threshold=settings.failure_threshold,
            volume_threshold=settings.volume_threshold,
            recovery_timeout_seconds=settings.recovery_timeout_seconds,
            success_threshold=settings.success_threshold,
        ),
        throttle_config=ThrottleConfig(
            base_throttle_ms=settings.base_throttle_ms,
            max_throttle_ms=settings.max_throttle_ms,
            adaptation_factor=settings.adaptation_factor,
            recovery_factor=settings.recovery_factor,
            error_threshold=settings.error_threshold,
        ),
        outbound_limits=settings.outbound_limits_per_minute,
        call_timeout_seconds=settings.call_timeout_seconds,
    )
    logger.info(
        "protection_service_created",
        extra={"component": "bootstrap", "providers": sorted(p.value for p in clients)},
    )
    return service


def create_conflict_detector(
    settings: ConflictSettings,
    commitments: CommitmentStoreProtocol,
) -> ConflictDetector:
    return ConflictDetector(commitments, default_buffer_minutes=settings.default_buffer_minutes)


def create_conflict_resolver(settings: ConflictSettings) -> ConflictResolver:
    return ConflictResolver(clock_skew_tolerance_seconds=settings.clock_skew_tolerance_seconds)


def create_pending_resolution_service(
    settings: ConflictSettings,
    *,
    store: PendingResolutionStoreProtocol,
    monitoring: MonitoringSinkProtocol,
) -> PendingResolutionService:
    return PendingResolutionService(
        store,
        monitoring,
        decision_window=timedelta(hours=settings.decision_window_hours),
    )
