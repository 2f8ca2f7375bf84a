"""Use case: processar job de sincronização de calendário.

Efeito idempotente por fingerprint da mudança:
    - fingerprint já aplicado → no-op, nenhuma chamada de saída
    - deleted → espelho local cancelado
    - created/updated → lê o evento no provider (via proteção), compara com o
      espelho, detecta conflitos e grava o espelho ou uma resolução pendente
    - calendar_level → relista calendários no provider (via proteção)
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from app.conflicts.resolution import ResolutionContext
from app.domain.change_event import ChangeKind
from app.domain.commitment import Commitment, ProviderEvent
from app.domain.conflict import ResolutionStatus, ResolutionStrategy
from app.domain.job import SyncJobPayload
from app.protocols.provider_client import ProviderOperation, ProviderRequest
from utils.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.conflicts.detection import ConflictDetector
    from app.conflicts.pending import PendingResolutionService
    from app.conflicts.resolution import ConflictResolver
    from app.domain.job import Job
    from app.protection.service import OutboundProtectionService
    from app.protocols.commitment_store import CommitmentStoreProtocol
    from app.protocols.dedupe import AsyncDedupeProtocol

logger = logging.getLogger(__name__)

DEFAULT_APPLIED_TTL_SECONDS = 86400


def _utc_now() -> datetime:
    return datetime.now(UTC)


def commitment_id_for(provider: str, external_id: str) -> str:
    """ID interno estável do espelho de um evento externo."""
    return f"{provider}:{external_id}"


class ProcessSyncJobUseCase:
    """Handler de jobs `sync`.

    Args:
        protection: Única via de chamada ao provider
        commitments: Compromissos do usuário (espelhos incluídos)
        dedupe: Fingerprints de mudanças já aplicadas
        detector: Detector de conflitos
        resolver: Estratégias de resolução
        pending: Resoluções aguardando o usuário
        strategy: Estratégia aplicada quando há conflito
        applied_ttl_seconds: Retenção dos fingerprints aplicados
    """

    def __init__(
        self,
        *,
        protection: OutboundProtectionService,
        commitments: CommitmentStoreProtocol,
        dedupe: AsyncDedupeProtocol,
        detector: ConflictDetector,
        resolver: ConflictResolver,
        pending: PendingResolutionService,
        strategy: ResolutionStrategy = ResolutionStrategy.USER_CHOICE,
        applied_ttl_seconds: int = DEFAULT_APPLIED_TTL_SECONDS,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._protection = protection
        self._commitments = commitments
        self._dedupe = dedupe
        self._detector = detector
        self._resolver = resolver
        self._pending = pending
        self._strategy = strategy
        self._applied_ttl = applied_ttl_seconds
        self._now = now

    async def handle(self, job: Job) -> dict[str, Any]:
        payload = job.payload
        if not isinstance(payload, SyncJobPayload):
            raise ValidationError(f"Payload inesperado para job sync: {type(payload).__name__}")

        if payload.fingerprint and await self._dedupe.is_duplicate(payload.fingerprint):
            logger.info(
                "sync_change_already_applied",
                extra={"job_id": job.id, "provider": payload.provider.value},
            )
            return {"outcome": "already_applied", "outbound_calls": 0}

        if payload.change_kind == ChangeKind.DELETED:
            result = await self._apply_deletion(payload)
        elif payload.change_kind == ChangeKind.CALENDAR_LEVEL:
            result = await self._refresh_calendars(payload)
        else:
            result = await self._apply_change(payload)

        if payload.fingerprint:
            await self._dedupe.mark_processed(payload.fingerprint, ttl=self._applied_ttl)

        logger.info(
            "sync_job_applied",
            extra={
                "job_id": job.id,
                "provider": payload.provider.value,
                "change_kind": payload.change_kind.value,
                "outcome": result["outcome"],
            },
        )
        return result

    async def _apply_deletion(self, payload: SyncJobPayload, outbound_calls: int = 0) -> dict[str, Any]:
        mirror = await self._commitments.get_by_external(payload.provider.value, payload.external_id)
        if mirror is None:
            return {"outcome": "not_mirrored", "outbound_calls": outbound_calls}
        if mirror.is_cancelled:
            return {"outcome": "unchanged", "outbound_calls": outbound_calls}

        await self._commitments.upsert(
            mirror.model_copy(update={"status": "cancelled", "updated_at": self._now()})
        )
        return {"outcome": "cancelled", "commitment_id": mirror.id, "outbound_calls": outbound_calls}

    async def _refresh_calendars(self, payload: SyncJobPayload) -> dict[str, Any]:
        response = await self._protection.execute(
            payload.provider,
            ProviderRequest(
                operation=ProviderOperation.LIST_CALENDARS,
                integration_id=payload.integration_id,
            ),
        )
        calendars = response.data.get("calendars", [])
        return {
            "outcome": "calendars_refreshed",
            "calendar_count": len(calendars),
            "outbound_calls": 1,
        }

    async def _fetch_event(self, payload: SyncJobPayload) -> ProviderEvent | None:
        response = await self._protection.execute(
            payload.provider,
            ProviderRequest(
                operation=ProviderOperation.GET_EVENT,
                integration_id=payload.integration_id,
                external_id=payload.external_id,
            ),
        )
        if not response.found:
            return None
        try:
            return ProviderEvent.model_validate(response.data)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Evento inválido retornado por {payload.provider.value}: {exc.error_count()} erro(s)"
            ) from exc

    async def _apply_change(self, payload: SyncJobPayload) -> dict[str, Any]:
        event = await self._fetch_event(payload)
        if event is None or event.status == "cancelled":
            return await self._apply_deletion(payload, outbound_calls=1)

        mirror = await self._commitments.get_by_external(payload.provider.value, payload.external_id)
        if mirror is not None and event.same_state_as(mirror):
            return {"outcome": "unchanged", "commitment_id": mirror.id, "outbound_calls": 1}

        now = self._now()
        metadata = dict(mirror.metadata) if mirror else {}
        metadata["integration_id"] = payload.integration_id
        candidate = Commitment(
            id=mirror.id if mirror else commitment_id_for(payload.provider.value, payload.external_id),
            user_id=payload.user_id,
            kind="calendar_event",
            start=event.start,
            end=event.end,
            title=event.title,
            location=event.location,
            meeting_type=mirror.meeting_type if mirror else None,
            status="confirmed",
            provider=payload.provider.value,
            external_id=payload.external_id,
            meeting_id=mirror.meeting_id if mirror else None,
            priority=mirror.priority if mirror else 0,
            created_at=(mirror.created_at if mirror else None) or now,
            updated_at=event.last_modified or now,
            metadata=metadata,
        )

        conflicts = await self._detector.detect_conflicts(payload.user_id, candidate)
        outcome = "updated" if mirror else "created"
        if not conflicts:
            await self._commitments.upsert(candidate)
            return {"outcome": outcome, "commitment_id": candidate.id, "outbound_calls": 1}

        window_start, window_end = self._detector.search_window(candidate)
        existing = {
            item.id: item
            for item in await self._commitments.list_for_user(payload.user_id, window_start, window_end)
        }
        results = self._resolver.resolve_conflicts(
            conflicts,
            self._strategy,
            ResolutionContext(candidate=candidate, existing=existing),
        )

        if any(result.status != ResolutionStatus.RESOLVED for result in results):
            await self._pending.record_pending(
                candidate_id=candidate.id,
                user_id=payload.user_id,
                conflicts=conflicts,
                metadata={
                    "provider": payload.provider.value,
                    "external_id": payload.external_id,
                    "integration_id": payload.integration_id,
                    "strategy": self._strategy.value,
                },
            )
            return {
                "outcome": "pending_resolution",
                "commitment_id": candidate.id,
                "conflicts": len(conflicts),
                "outbound_calls": 1,
            }

        actions = [result.resolution.action for result in results if result.resolution]
        await self._commitments.upsert(
            candidate.model_copy(
                update={"metadata": {**candidate.metadata, "conflict_resolutions": actions}}
            )
        )
        return {
            "outcome": f"{outcome}_with_resolution",
            "commitment_id": candidate.id,
            "resolutions": actions,
            "outbound_calls": 1,
        }


__all__ = ["ProcessSyncJobUseCase", "commitment_id_for"]
