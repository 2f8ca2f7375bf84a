"""Protocolo do coletor de monitoramento/auditoria.

Recebe: violações de segurança, transições de breaker, falhas terminais de
job, conflitos abandonados, uso de bypass token e decisões de notificar o
usuário.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class MonitoringEventType(str, Enum):
    SECURITY_VIOLATION = "security_violation"
    BREAKER_TRANSITION = "breaker_transition"
    JOB_FAILED = "job_failed"
    CONFLICT_ABANDONED = "conflict_abandoned"
    BYPASS_USED = "bypass_used"
    NOTIFICATION_REQUIRED = "notification_required"


class MonitoringSinkProtocol(ABC):
    """Contrato de sink de monitoramento (nunca deve quebrar o fluxo principal)."""

    @abstractmethod
    async def record(self, event_type: MonitoringEventType, data: dict[str, Any]) -> None:
        """Registra evento de monitoramento (sem PII, sem segredos)."""
