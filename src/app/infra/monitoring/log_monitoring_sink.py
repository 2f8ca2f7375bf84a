"""Sink de monitoramento baseado em logs estruturados.

Default em dev/test e fallback quando Firestore não está habilitado.
Opcionalmente retém os últimos eventos em memória (usado em testes e no
endpoint de protection status).
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any

from app.protocols.monitoring import MonitoringEventType, MonitoringSinkProtocol

logger = logging.getLogger(__name__)

# Eventos que sempre merecem atenção de operação
_WARNING_EVENTS = frozenset(
    {
        MonitoringEventType.SECURITY_VIOLATION,
        MonitoringEventType.JOB_FAILED,
        MonitoringEventType.CONFLICT_ABANDONED,
        MonitoringEventType.BYPASS_USED,
    }
)


class LogMonitoringSink(MonitoringSinkProtocol):
    """Registra eventos de monitoramento como logs.

    Args:
        keep_last: Quantos eventos reter em memória (0 = nenhum)
    """

    def __init__(self, keep_last: int = 0) -> None:
        self._events: deque[tuple[MonitoringEventType, dict[str, Any]]] = deque(
            maxlen=keep_last or None
        )
        self._keep = keep_last > 0

    async def record(self, event_type: MonitoringEventType, data: dict[str, Any]) -> None:
        level = logging.WARNING if event_type in _WARNING_EVENTS else logging.INFO
        logger.log(
            level,
            "monitoring_%s",
            event_type.value,
            extra={"monitoring_event": event_type.value, **data},
        )
        if self._keep:
            self._events.append((event_type, dict(data)))

    @property
    def events(self) -> list[tuple[MonitoringEventType, dict[str, Any]]]:
        """Eventos retidos, do mais antigo para o mais recente."""
        return list(self._events)

    def events_of(self, event_type: MonitoringEventType) -> list[dict[str, Any]]:
        return [data for kind, data in self._events if kind == event_type]
