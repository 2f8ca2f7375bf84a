"""Detecção de conflitos de agenda.

Quatro passagens independentes contra os compromissos não cancelados do
usuário:
    1. time_overlap     : um conflito por item sobreposto
    2. buffer_violation : itens dentro do buffer mas fora do intervalo
    3. venue_conflict   : presenciais sobrepostos (candidato presencial)
    4. double_booking   : um conflito agregando todos os sobrepostos

Resultado ordenado por severidade decrescente, estável para empates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from app.conflicts import suggestions
from app.conflicts.intervals import has_overlap, overlap_minutes, overlap_severity
from app.domain.conflict import Conflict, ConflictingItem, ConflictType, Severity

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.commitment import Commitment
    from app.protocols.commitment_store import CommitmentStoreProtocol

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_MINUTES = 15


@dataclass(frozen=True, slots=True)
class DetectionOptions:
    """Passagens habilitadas e buffer (em minutos) solicitado.

    `buffer_minutes=None` usa o default do detector; 0 desliga o buffer.
    """

    buffer_minutes: int | None = None
    check_time_overlap: bool = True
    check_buffer: bool = True
    check_venue: bool = True
    check_double_booking: bool = True


def _item(commitment: Commitment) -> ConflictingItem:
    return ConflictingItem(
        id=commitment.id,
        kind=commitment.kind,
        start=commitment.start,
        end=commitment.end,
        title=commitment.title,
    )


def _is_same(candidate: Commitment, other: Commitment) -> bool:
    if other.id == candidate.id:
        return True
    return bool(
        candidate.external_id
        and other.external_id == candidate.external_id
        and other.provider == candidate.provider
    )


def sort_by_severity(conflicts: list[Conflict]) -> list[Conflict]:
    """Severidade decrescente; `sorted` é estável, preservando a ordem de detecção."""
    return sorted(conflicts, key=lambda conflict: -conflict.severity.weight)


class ConflictDetector:
    """Detector de conflitos para um candidato.

    Args:
        commitments: Store de compromissos do usuário
        default_buffer_minutes: Buffer quando as opções não informam outro
    """

    def __init__(
        self,
        commitments: CommitmentStoreProtocol,
        default_buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
    ) -> None:
        self._commitments = commitments
        self._default_buffer = default_buffer_minutes

    def _buffer_for(self, options: DetectionOptions) -> int:
        if not options.check_buffer:
            return 0
        buffer = self._default_buffer if options.buffer_minutes is None else options.buffer_minutes
        return max(buffer, 0)

    def search_window(
        self,
        candidate: Commitment,
        options: DetectionOptions | None = None,
    ) -> tuple[datetime, datetime]:
        """Janela consultada na store: intervalo do candidato expandido pelo buffer."""
        margin = timedelta(minutes=self._buffer_for(options or DetectionOptions()))
        return candidate.start - margin, candidate.end + margin

    async def detect_conflicts(
        self,
        user_id: str,
        candidate: Commitment,
        options: DetectionOptions | None = None,
    ) -> list[Conflict]:
        """Detecta conflitos do candidato na agenda do usuário."""
        options = options or DetectionOptions()
        buffer = self._buffer_for(options)
        window_start, window_end = self.search_window(candidate, options)
        existing = [
            item
            for item in await self._commitments.list_for_user(user_id, window_start, window_end)
            if not item.is_cancelled and not _is_same(candidate, item)
        ]

        conflicts: list[Conflict] = []
        if options.check_time_overlap:
            conflicts.extend(self._time_overlaps(candidate, existing))
        if buffer > 0:
            conflicts.extend(self._buffer_violations(candidate, existing, buffer))
        if options.check_venue and candidate.in_person:
            conflicts.extend(self._venue_conflicts(candidate, existing))
        if options.check_double_booking:
            conflicts.extend(self._double_booking(candidate, existing))

        ordered = sort_by_severity(conflicts)
        logger.info(
            "conflict_detection_complete",
            extra={
                "candidate_id": candidate.id,
                "checked": len(existing),
                "conflicts_found": len(ordered),
                "conflict_types": [conflict.type.value for conflict in ordered],
            },
        )
        return ordered

    @staticmethod
    def _time_overlaps(candidate: Commitment, existing: list[Commitment]) -> list[Conflict]:
        conflicts: list[Conflict] = []
        for item in existing:
            if not has_overlap(candidate.start, candidate.end, item.start, item.end):
                continue
            minutes = overlap_minutes(candidate.start, candidate.end, item.start, item.end)
            conflicts.append(
                Conflict(
                    type=ConflictType.TIME_OVERLAP,
                    severity=overlap_severity(minutes),
                    conflicting_item=_item(item),
                    overlap_minutes=minutes,
                    resolution_suggestions=suggestions.time_overlap_suggestions(
                        in_person=candidate.in_person or item.in_person
                    ),
                    message=f"Sobreposição de {minutes} min com '{item.title}'",
                )
            )
        return conflicts

    @staticmethod
    def _buffer_violations(
        candidate: Commitment,
        existing: list[Commitment],
        buffer_minutes: int,
    ) -> list[Conflict]:
        margin = timedelta(minutes=buffer_minutes)
        window_start = candidate.start - margin
        window_end = candidate.end + margin

        conflicts: list[Conflict] = []
        for item in existing:
            if has_overlap(candidate.start, candidate.end, item.start, item.end):
                continue
            before = window_start < item.end <= candidate.start
            after = candidate.end <= item.start < window_end
            if not (before or after):
                continue
            buffer_type = "before" if before else "after"
            conflicts.append(
                Conflict(
                    type=ConflictType.BUFFER_VIOLATION,
                    severity=Severity.MEDIUM,
                    conflicting_item=_item(item),
                    resolution_suggestions=suggestions.buffer_suggestions(buffer_minutes),
                    message=f"Intervalo menor que {buffer_minutes} min ({buffer_type}) com '{item.title}'",
                    buffer_type=buffer_type,
                )
            )
        return conflicts

    @staticmethod
    def _venue_conflicts(candidate: Commitment, existing: list[Commitment]) -> list[Conflict]:
        conflicts: list[Conflict] = []
        for item in existing:
            if not item.in_person:
                continue
            if not has_overlap(candidate.start, candidate.end, item.start, item.end):
                continue
            conflicts.append(
                Conflict(
                    type=ConflictType.VENUE_CONFLICT,
                    severity=Severity.HIGH,
                    conflicting_item=_item(item),
                    overlap_minutes=overlap_minutes(
                        candidate.start, candidate.end, item.start, item.end
                    ),
                    resolution_suggestions=suggestions.venue_suggestions(),
                    message=f"Dois encontros presenciais no mesmo horário ('{item.title}')",
                )
            )
        return conflicts

    @staticmethod
    def _double_booking(candidate: Commitment, existing: list[Commitment]) -> list[Conflict]:
        concurrent = [
            item
            for item in existing
            if has_overlap(candidate.start, candidate.end, item.start, item.end)
        ]
        if not concurrent:
            return []

        count = len(concurrent)
        return [
            Conflict(
                type=ConflictType.DOUBLE_BOOKING,
                severity=Severity.CRITICAL if count > 1 else Severity.HIGH,
                conflicting_item=ConflictingItem(
                    id=concurrent[0].id,
                    kind="multiple",
                    start=min(item.start for item in concurrent),
                    end=max(item.end for item in concurrent),
                    title=f"{count} compromisso(s) simultâneo(s)",
                    item_ids=tuple(item.id for item in concurrent),
                ),
                overlap_minutes=max(
                    overlap_minutes(candidate.start, candidate.end, item.start, item.end)
                    for item in concurrent
                ),
                resolution_suggestions=suggestions.double_booking_suggestions(),
                message=f"{count} compromisso(s) no mesmo horário",
            )
        ]


__all__ = ["DEFAULT_BUFFER_MINUTES", "ConflictDetector", "DetectionOptions", "sort_by_severity"]
