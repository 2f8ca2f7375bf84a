"""Resoluções de conflito aguardando decisão humana.

Fluxo:
    record_pending  → grava com expiração (+24h) e emite decisão de notificar
    resolve_pending → registra a escolha; após a janela levanta
                      ConflictUnresolvedError
    expire_pending  → marca vencidas como abandonadas e reporta ao monitoramento
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from app.domain.conflict import PendingResolution, PendingStatus
from app.protocols.monitoring import MonitoringEventType
from utils.errors import ConflictUnresolvedError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.conflict import Conflict
    from app.protocols.monitoring import MonitoringSinkProtocol
    from app.protocols.pending_resolution_store import PendingResolutionStoreProtocol

logger = logging.getLogger(__name__)

DEFAULT_DECISION_WINDOW = timedelta(hours=24)

# Ação sempre aceita: usuário mantém os dois compromissos como estão
DISMISS_ACTION = "dismiss"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class PendingResolutionService:
    """Ciclo de vida das resoluções pendentes.

    Args:
        store: Persistência das resoluções
        monitoring: Recebe notificações e abandonos
        decision_window: Prazo para decisão humana
        now: Relógio UTC (injetável em testes)
    """

    def __init__(
        self,
        store: PendingResolutionStoreProtocol,
        monitoring: MonitoringSinkProtocol,
        decision_window: timedelta = DEFAULT_DECISION_WINDOW,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._monitoring = monitoring
        self._window = decision_window
        self._now = now

    async def record_pending(
        self,
        *,
        candidate_id: str,
        user_id: str,
        conflicts: list[Conflict],
        metadata: dict[str, Any] | None = None,
    ) -> PendingResolution:
        """Grava a pendência e emite a decisão de notificar o usuário."""
        now = self._now()
        pending = PendingResolution(
            candidate_id=candidate_id,
            user_id=user_id,
            conflicts=list(conflicts),
            created_at=now,
            expires_at=now + self._window,
            metadata=dict(metadata or {}),
        )
        await self._store.save(pending)

        await self._monitoring.record(
            MonitoringEventType.NOTIFICATION_REQUIRED,
            {
                "reason": "conflict_decision_required",
                "candidate_id": candidate_id,
                "user_id": user_id,
                "conflict_count": len(conflicts),
                "conflict_types": [conflict.type.value for conflict in conflicts],
                "expires_at": pending.expires_at.isoformat(),
            },
        )
        logger.info(
            "conflict_pending_recorded",
            extra={"candidate_id": candidate_id, "conflict_count": len(conflicts)},
        )
        return pending

    async def get_pending(self, candidate_id: str) -> PendingResolution | None:
        return await self._store.get(candidate_id)

    async def resolve_pending(self, candidate_id: str, chosen_action: str) -> PendingResolution | None:
        """Registra a escolha humana.

        Returns:
            Registro atualizado, ou None se não existir.

        Raises:
            ValidationError: Já decidido ou ação fora das sugestões.
            ConflictUnresolvedError: Janela de decisão expirada.
        """
        pending = await self._store.get(candidate_id)
        if pending is None:
            return None

        now = self._now()
        if pending.status == PendingStatus.PENDING and pending.is_expired(now):
            await self._abandon(pending, now)

        if pending.status == PendingStatus.ABANDONED:
            raise ConflictUnresolvedError(candidate_id, pending.expires_at.isoformat())
        if pending.status != PendingStatus.PENDING:
            raise ValidationError(f"Resolução {candidate_id} já decidida")

        allowed = {DISMISS_ACTION} | {
            suggestion.action
            for conflict in pending.conflicts
            for suggestion in conflict.resolution_suggestions
        }
        if chosen_action not in allowed:
            raise ValidationError(f"Ação não sugerida para este conflito: {chosen_action}")

        pending.status = PendingStatus.RESOLVED
        pending.chosen_action = chosen_action
        pending.decided_at = now
        await self._store.save(pending)
        logger.info(
            "conflict_pending_resolved",
            extra={"candidate_id": candidate_id, "chosen_action": chosen_action},
        )
        return pending

    async def expire_pending(self, now: datetime | None = None) -> int:
        """Marca pendências vencidas como abandonadas.

        Returns:
            Quantidade abandonada nesta varredura.
        """
        now = now or self._now()
        expired = await self._store.list_expired(now)
        for pending in expired:
            await self._abandon(pending, now)
        if expired:
            logger.warning("conflict_pending_expired", extra={"abandoned": len(expired)})
        return len(expired)

    async def _abandon(self, pending: PendingResolution, now: datetime) -> None:
        pending.status = PendingStatus.ABANDONED
        pending.decided_at = now
        await self._store.save(pending)
        await self._monitoring.record(
            MonitoringEventType.CONFLICT_ABANDONED,
            {
                "candidate_id": pending.candidate_id,
                "user_id": pending.user_id,
                "conflict_count": len(pending.conflicts),
                "expired_at": pending.expires_at.isoformat(),
            },
        )


__all__ = ["DEFAULT_DECISION_WINDOW", "DISMISS_ACTION", "PendingResolutionService"]
