"""Modelos de conflito de agenda e de resolução.

Conflitos são efêmeros: calculados sob demanda e persistidos apenas como
PendingResolution quando a decisão aguarda um humano.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ConflictType(str, Enum):
    TIME_OVERLAP = "time_overlap"
    BUFFER_VIOLATION = "buffer_violation"
    VENUE_CONFLICT = "venue_conflict"
    DOUBLE_BOOKING = "double_booking"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def weight(self) -> int:
        return _SEVERITY_WEIGHT[self]


_SEVERITY_WEIGHT = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class ResolutionStrategy(str, Enum):
    """Estratégias de resolução selecionadas pelo chamador."""

    USER_CHOICE = "user_choice"
    PRIORITY_BASED = "priority_based"
    TIME_BASED = "time_based"
    AUTOMATIC = "automatic"
    NEWEST_WINS = "newest_wins"


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    AWAITING_USER = "awaiting_user"
    FAILED = "failed"


class PendingStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    ABANDONED = "abandoned"


@dataclass(frozen=True, slots=True)
class ConflictingItem:
    """Referência ao compromisso que colide com o candidato.

    Para double booking, `kind` é "multiple" e `item_ids` lista todos.
    """

    id: str
    kind: str
    start: datetime
    end: datetime
    title: str = ""
    item_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "title": self.title,
            "item_ids": list(self.item_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConflictingItem:
        return cls(
            id=data["id"],
            kind=data["kind"],
            start=datetime.fromisoformat(data["start"]),
            end=datetime.fromisoformat(data["end"]),
            title=data.get("title", ""),
            item_ids=tuple(data.get("item_ids", ())),
        )


@dataclass(frozen=True, slots=True)
class ResolutionSuggestion:
    """Ação proposta para resolver um conflito."""

    action: str
    description: str
    impact: str = "medium"
    automated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "description": self.description,
            "impact": self.impact,
            "automated": self.automated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResolutionSuggestion:
        return cls(
            action=data["action"],
            description=data.get("description", ""),
            impact=data.get("impact", "medium"),
            automated=bool(data.get("automated", False)),
        )


@dataclass(frozen=True, slots=True)
class Conflict:
    """Colisão entre candidato e compromisso existente."""

    type: ConflictType
    severity: Severity
    conflicting_item: ConflictingItem
    overlap_minutes: int = 0
    resolution_suggestions: tuple[ResolutionSuggestion, ...] = ()
    message: str = ""
    buffer_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "conflicting_item": self.conflicting_item.to_dict(),
            "overlap_minutes": self.overlap_minutes,
            "resolution_suggestions": [s.to_dict() for s in self.resolution_suggestions],
            "message": self.message,
            "buffer_type": self.buffer_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Conflict:
        return cls(
            type=ConflictType(data["type"]),
            severity=Severity(data["severity"]),
            conflicting_item=ConflictingItem.from_dict(data["conflicting_item"]),
            overlap_minutes=int(data.get("overlap_minutes", 0)),
            resolution_suggestions=tuple(
                ResolutionSuggestion.from_dict(s) for s in data.get("resolution_suggestions", ())
            ),
            message=data.get("message", ""),
            buffer_type=data.get("buffer_type"),
        )


@dataclass(frozen=True, slots=True)
class Resolution:
    """Decisão (ou opções) produzida por uma estratégia."""

    action: str
    description: str
    automated: bool
    options: tuple[ResolutionSuggestion, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "description": self.description,
            "automated": self.automated,
            "options": [o.to_dict() for o in self.options],
        }


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Resultado por conflito: sempre exatamente um por conflito recebido."""

    conflict: Conflict
    strategy: ResolutionStrategy
    status: ResolutionStatus
    resolution: Resolution | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "conflict": self.conflict.to_dict(),
            "strategy": self.strategy.value,
            "status": self.status.value,
            "resolution": self.resolution.to_dict() if self.resolution else None,
            "error": self.error,
        }


@dataclass(slots=True)
class PendingResolution:
    """Decisão de conflito aguardando escolha humana."""

    candidate_id: str
    user_id: str
    conflicts: list[Conflict]
    created_at: datetime
    expires_at: datetime
    status: PendingStatus = PendingStatus.PENDING
    chosen_action: str | None = None
    decided_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "user_id": self.user_id,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "status": self.status.value,
            "chosen_action": self.chosen_action,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingResolution:
        decided_at = data.get("decided_at")
        return cls(
            candidate_id=data["candidate_id"],
            user_id=data["user_id"],
            conflicts=[Conflict.from_dict(c) for c in data.get("conflicts", [])],
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
            status=PendingStatus(data.get("status", PendingStatus.PENDING.value)),
            chosen_action=data.get("chosen_action"),
            decided_at=datetime.fromisoformat(decided_at) if decided_at else None,
            metadata=data.get("metadata") or {},
        )


__all__ = [
    "Conflict",
    "ConflictType",
    "ConflictingItem",
    "PendingResolution",
    "PendingStatus",
    "Resolution",
    "ResolutionResult",
    "ResolutionStatus",
    "ResolutionStrategy",
    "ResolutionSuggestion",
    "Severity",
]
