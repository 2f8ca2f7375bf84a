"""Use case: aplicar evento de reunião online aos agendamentos vinculados.

Eventos Zoom não exigem leitura no provider: o payload já traz o estado.
Efeito idempotente por fingerprint; entradas de participantes também são
deduplicadas dentro do próprio compromisso.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.job import MeetingEventJobPayload
from utils.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.commitment import Commitment
    from app.domain.job import Job
    from app.protocols.commitment_store import CommitmentStoreProtocol
    from app.protocols.dedupe import AsyncDedupeProtocol

logger = logging.getLogger(__name__)

DEFAULT_APPLIED_TTL_SECONDS = 86400

MEETING_STARTED = "meeting.started"
MEETING_ENDED = "meeting.ended"
PARTICIPANT_JOINED = "meeting.participant_joined"
PARTICIPANT_LEFT = "meeting.participant_left"

_PARTICIPANT_EVENTS = {
    PARTICIPANT_JOINED: "joined",
    PARTICIPANT_LEFT: "left",
}


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ProcessMeetingEventJobUseCase:
    """Handler de jobs `meeting_event`.

    Args:
        commitments: Store de compromissos (busca por meeting_id)
        dedupe: Fingerprints de eventos já aplicados
        applied_ttl_seconds: Retenção dos fingerprints
    """

    def __init__(
        self,
        *,
        commitments: CommitmentStoreProtocol,
        dedupe: AsyncDedupeProtocol,
        applied_ttl_seconds: int = DEFAULT_APPLIED_TTL_SECONDS,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._commitments = commitments
        self._dedupe = dedupe
        self._applied_ttl = applied_ttl_seconds
        self._now = now

    async def handle(self, job: Job) -> dict[str, Any]:
        payload = job.payload
        if not isinstance(payload, MeetingEventJobPayload):
            raise ValidationError(
                f"Payload inesperado para job meeting_event: {type(payload).__name__}"
            )

        if payload.fingerprint and await self._dedupe.is_duplicate(payload.fingerprint):
            return {"outcome": "already_applied", "updated": 0, "outbound_calls": 0}

        linked = await self._commitments.list_by_meeting(payload.meeting_id)
        updated = 0
        for commitment in linked:
            changed = self._apply(commitment, payload)
            if changed is not None:
                await self._commitments.upsert(changed)
                updated += 1

        if payload.fingerprint:
            await self._dedupe.mark_processed(payload.fingerprint, ttl=self._applied_ttl)

        logger.info(
            "meeting_event_applied",
            extra={
                "job_id": job.id,
                "meeting_event": payload.event_type,
                "linked": len(linked),
                "updated": updated,
            },
        )
        return {
            "outcome": "applied" if linked else "no_linked_commitments",
            "updated": updated,
            "outbound_calls": 0,
        }

    def _apply(self, commitment: Commitment, payload: MeetingEventJobPayload) -> Commitment | None:
        data = payload.event_data
        at = str(data.get("timestamp") or self._now().isoformat())
        metadata = dict(commitment.metadata)
        update: dict[str, Any] = {}

        if payload.event_type == MEETING_STARTED:
            if commitment.status == "in_progress":
                return None
            update["status"] = "in_progress"
            metadata["started_at"] = at
        elif payload.event_type == MEETING_ENDED:
            if commitment.status == "completed":
                return None
            update["status"] = "completed"
            metadata["ended_at"] = at
        elif payload.event_type in _PARTICIPANT_EVENTS:
            entry = {
                "participant_id": str(data.get("participant_id", "")),
                "name": str(data.get("participant_name", "")),
                "event": _PARTICIPANT_EVENTS[payload.event_type],
                "at": at,
            }
            participants = list(metadata.get("participants", []))
            key = (entry["participant_id"], entry["event"], entry["at"])
            if any((p.get("participant_id"), p.get("event"), p.get("at")) == key for p in participants):
                return None
            participants.append(entry)
            metadata["participants"] = participants
        else:
            metadata["last_meeting_event"] = {"type": payload.event_type, "at": at}

        update["metadata"] = metadata
        update["updated_at"] = self._now()
        return commitment.model_copy(update=update)


__all__ = [
    "MEETING_ENDED",
    "MEETING_STARTED",
    "PARTICIPANT_JOINED",
    "PARTICIPANT_LEFT",
    "ProcessMeetingEventJobUseCase",
]
