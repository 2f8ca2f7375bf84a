"""Modelo de Job da fila priorizada.

O payload é uma variante por tipo de job (sync | meeting_event), de modo que
cada tipo carrega somente os campos que exige.

Ciclo de vida:
    pending → processing → completed
                         → retry → pending (sweep) → ...
                         → failed (terminal)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from app.domain.change_event import ChangeKind, Provider

DEFAULT_MAX_ATTEMPTS = 3


class JobKind(str, Enum):
    """Tipo de trabalho enfileirado."""

    SYNC = "sync"
    MEETING_EVENT = "meeting_event"


class JobPriority(str, Enum):
    """Bucket de prioridade (ordem estrita high > medium > low)."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {JobPriority.HIGH: 0, JobPriority.MEDIUM: 1, JobPriority.LOW: 2}

PRIORITY_ORDER: tuple[JobPriority, ...] = (
    JobPriority.HIGH,
    JobPriority.MEDIUM,
    JobPriority.LOW,
)


class JobStatus(str, Enum):
    """Estado do job na fila."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    RETRY = "retry"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass(frozen=True, slots=True)
class SyncJobPayload:
    """Sincronização de recurso de calendário (Google, Graph, CalDAV)."""

    provider: Provider
    external_id: str
    change_kind: ChangeKind
    correlation_key: str
    fingerprint: str
    integration_id: str
    user_id: str
    resource_uri: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider.value,
            "external_id": self.external_id,
            "change_kind": self.change_kind.value,
            "correlation_key": self.correlation_key,
            "fingerprint": self.fingerprint,
            "integration_id": self.integration_id,
            "user_id": self.user_id,
            "resource_uri": self.resource_uri,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncJobPayload:
        return cls(
            provider=Provider(data["provider"]),
            external_id=data["external_id"],
            change_kind=ChangeKind(data["change_kind"]),
            correlation_key=data.get("correlation_key", ""),
            fingerprint=data.get("fingerprint", ""),
            integration_id=data.get("integration_id", ""),
            user_id=data.get("user_id", ""),
            resource_uri=data.get("resource_uri", ""),
        )


@dataclass(frozen=True, slots=True)
class MeetingEventJobPayload:
    """Evento de reunião em tempo real (Zoom: started, ended, participantes)."""

    provider: Provider
    meeting_id: str
    event_type: str
    fingerprint: str
    event_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider.value,
            "meeting_id": self.meeting_id,
            "event_type": self.event_type,
            "fingerprint": self.fingerprint,
            "event_data": dict(self.event_data),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MeetingEventJobPayload:
        return cls(
            provider=Provider(data["provider"]),
            meeting_id=data["meeting_id"],
            event_type=data.get("event_type", ""),
            fingerprint=data.get("fingerprint", ""),
            event_data=data.get("event_data") or {},
        )


JobPayload = SyncJobPayload | MeetingEventJobPayload

_PAYLOAD_BY_KIND: dict[JobKind, type[SyncJobPayload] | type[MeetingEventJobPayload]] = {
    JobKind.SYNC: SyncJobPayload,
    JobKind.MEETING_EVENT: MeetingEventJobPayload,
}


def _now() -> datetime:
    return datetime.now(UTC)


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass(slots=True)
class Job:
    """Unidade de trabalho enfileirada.

    Mutável apenas pelo worker que detém o claim (single-writer).

    Atributos:
        id: Identificador único
        payload: Variante tipada por kind
        priority: Fixada na criação
        status: Estado atual
        attempts: Tentativas já executadas
        max_attempts: Limite de tentativas (default 3)
        created_at: Momento de criação (ordenação FIFO no bucket)
        next_retry_at: Quando o job volta a ser elegível (status retry)
        webhook_id: Correlation id da entrega que originou o job
    """

    payload: JobPayload
    priority: JobPriority
    id: str = field(default_factory=lambda: f"job_{uuid.uuid4().hex}")
    status: JobStatus = JobStatus.PENDING
    attempts: int = 0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    next_retry_at: datetime | None = None
    completed_at: datetime | None = None
    last_error: str | None = None
    result: dict[str, Any] | None = None
    webhook_id: str = ""

    @property
    def kind(self) -> JobKind:
        if isinstance(self.payload, MeetingEventJobPayload):
            return JobKind.MEETING_EVENT
        return JobKind.SYNC

    def copy(self) -> Job:
        """Cópia rasa para stores em memória não compartilharem a instância."""
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Serializa para persistência."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "priority": self.priority.value,
            "payload": self.payload.to_dict(),
            "status": self.status.value,
            "attempts": self.attempts,
            "max_attempts": self.max_attempts,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "next_retry_at": self.next_retry_at.isoformat() if self.next_retry_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "last_error": self.last_error,
            "result": self.result,
            "webhook_id": self.webhook_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Job:
        """Deserializa de persistência."""
        payload_cls = _PAYLOAD_BY_KIND[JobKind(data.get("kind", JobKind.SYNC.value))]
        return cls(
            id=data["id"],
            payload=payload_cls.from_dict(data["payload"]),
            priority=JobPriority(data["priority"]),
            status=JobStatus(data.get("status", JobStatus.PENDING.value)),
            attempts=int(data.get("attempts", 0)),
            max_attempts=int(data.get("max_attempts", DEFAULT_MAX_ATTEMPTS)),
            created_at=_parse_dt(data.get("created_at")) or _now(),
            updated_at=_parse_dt(data.get("updated_at")) or _now(),
            next_retry_at=_parse_dt(data.get("next_retry_at")),
            completed_at=_parse_dt(data.get("completed_at")),
            last_error=data.get("last_error"),
            result=data.get("result"),
            webhook_id=data.get("webhook_id", ""),
        )


__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "PRIORITY_ORDER",
    "Job",
    "JobKind",
    "JobPayload",
    "JobPriority",
    "JobStatus",
    "MeetingEventJobPayload",
    "SyncJobPayload",
]
