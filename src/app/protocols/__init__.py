"""Protocolos e contratos do core da aplicação."""

from .commitment_store import CommitmentStoreProtocol
from .dedupe import AsyncDedupeProtocol
from .integration_directory import Integration, IntegrationDirectoryProtocol
from .job_handler import JobHandlerProtocol
from .job_store import JobStoreProtocol
from .monitoring import MonitoringEventType, MonitoringSinkProtocol
from .pending_resolution_store import PendingResolutionStoreProtocol
from .provider_client import (
    ProviderClientProtocol,
    ProviderOperation,
    ProviderRequest,
    ProviderResponse,
)
from .rate_limiter import RateLimitDecision, RateLimiterProtocol

__all__ = [
    "AsyncDedupeProtocol",
    "CommitmentStoreProtocol",
    "Integration",
    "IntegrationDirectoryProtocol",
    "JobHandlerProtocol",
    "JobStoreProtocol",
    "MonitoringEventType",
    "MonitoringSinkProtocol",
    "PendingResolutionStoreProtocol",
    "ProviderClientProtocol",
    "ProviderOperation",
    "ProviderRequest",
    "ProviderResponse",
    "RateLimitDecision",
    "RateLimiterProtocol",
]
