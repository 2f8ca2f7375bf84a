"""Estratégias de resolução de conflitos.

Contrato: exatamente um ResolutionResult por conflito recebido, sucesso ou
falha explícita, e mesmo resultado para entradas idênticas (sem relógio nem
aleatoriedade).

Ações das estratégias que escolhem um vencedor:
    keep_new       o candidato prevalece; o existente deve ser remanejado
    keep_existing  o existente prevalece; o candidato deve ser remanejado
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.domain.conflict import (
    Resolution,
    ResolutionResult,
    ResolutionStatus,
    ResolutionStrategy,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from app.domain.commitment import Commitment
    from app.domain.conflict import Conflict

logger = logging.getLogger(__name__)

DEFAULT_CLOCK_SKEW_SECONDS = 5.0

KEEP_NEW = "keep_new"
KEEP_EXISTING = "keep_existing"
USER_CHOICE_REQUIRED = "user_choice_required"


class ResolutionFailure(Exception):
    """Estratégia não conseguiu decidir para este conflito."""


@dataclass(frozen=True, slots=True)
class ResolutionContext:
    """Dados que as estratégias automáticas consultam.

    Atributos:
        candidate: Compromisso candidato
        existing: Compromissos existentes por id (itens dos conflitos)
        preferences: Preferências do usuário (ex.: avoid_actions)
    """

    candidate: Commitment | None = None
    existing: Mapping[str, Commitment] = field(default_factory=dict)
    preferences: Mapping[str, Any] = field(default_factory=dict)

    def items_of(self, conflict: Conflict) -> list[Commitment]:
        ids = conflict.conflicting_item.item_ids or (conflict.conflicting_item.id,)
        return [self.existing[item_id] for item_id in ids if item_id in self.existing]


class ConflictResolver:
    """Aplica a estratégia escolhida a cada conflito.

    Args:
        clock_skew_tolerance_seconds: Diferença de relógio tratada como empate
            em newest_wins (empate cai para user_choice)
    """

    def __init__(self, clock_skew_tolerance_seconds: float = DEFAULT_CLOCK_SKEW_SECONDS) -> None:
        self._skew = clock_skew_tolerance_seconds
        self._strategies: dict[
            ResolutionStrategy, Callable[[Conflict, ResolutionContext], tuple[Resolution, ResolutionStatus]]
        ] = {
            ResolutionStrategy.USER_CHOICE: self._user_choice,
            ResolutionStrategy.PRIORITY_BASED: self._priority_based,
            ResolutionStrategy.TIME_BASED: self._time_based,
            ResolutionStrategy.AUTOMATIC: self._automatic,
            ResolutionStrategy.NEWEST_WINS: self._newest_wins,
        }

    def resolve_conflicts(
        self,
        conflicts: list[Conflict],
        strategy: ResolutionStrategy = ResolutionStrategy.USER_CHOICE,
        context: ResolutionContext | None = None,
    ) -> list[ResolutionResult]:
        context = context or ResolutionContext()
        handler = self._strategies[strategy]
        results: list[ResolutionResult] = []

        for conflict in conflicts:
            try:
                resolution, status = handler(conflict, context)
            except ResolutionFailure as exc:
                results.append(
                    ResolutionResult(
                        conflict=conflict,
                        strategy=strategy,
                        status=ResolutionStatus.FAILED,
                        error=str(exc),
                    )
                )
                logger.warning(
                    "conflict_resolution_failed",
                    extra={
                        "conflict_type": conflict.type.value,
                        "strategy": strategy.value,
                        "error": str(exc),
                    },
                )
                continue

            results.append(
                ResolutionResult(
                    conflict=conflict,
                    strategy=strategy,
                    status=status,
                    resolution=resolution,
                )
            )
            logger.info(
                "conflict_resolved",
                extra={
                    "conflict_type": conflict.type.value,
                    "strategy": strategy.value,
                    "status": status.value,
                    "action": resolution.action,
                },
            )
        return results

    # ──────────────────────────────────────────────────────────────
    # Estratégias
    # ──────────────────────────────────────────────────────────────

    @staticmethod
    def _user_choice(
        conflict: Conflict,
        context: ResolutionContext,
        description: str = "Decisão do usuário necessária",
    ) -> tuple[Resolution, ResolutionStatus]:
        return (
            Resolution(
                action=USER_CHOICE_REQUIRED,
                description=description,
                automated=False,
                options=conflict.resolution_suggestions,
            ),
            ResolutionStatus.AWAITING_USER,
        )

    @staticmethod
    def _winner(candidate_wins: bool, description: str) -> tuple[Resolution, ResolutionStatus]:
        return (
            Resolution(
                action=KEEP_NEW if candidate_wins else KEEP_EXISTING,
                description=description,
                automated=True,
            ),
            ResolutionStatus.RESOLVED,
        )

    def _priority_based(
        self,
        conflict: Conflict,
        context: ResolutionContext,
    ) -> tuple[Resolution, ResolutionStatus]:
        items = context.items_of(conflict)
        if context.candidate is None or not items:
            raise ResolutionFailure("priority_context_missing")
        existing_priority = max(item.priority for item in items)
        candidate_wins = context.candidate.priority > existing_priority
        return self._winner(
            candidate_wins,
            f"Prioridade do novo ({context.candidate.priority}) vs existente ({existing_priority})",
        )

    def _time_based(
        self,
        conflict: Conflict,
        context: ResolutionContext,
    ) -> tuple[Resolution, ResolutionStatus]:
        items = context.items_of(conflict)
        candidate_created = context.candidate.created_at if context.candidate else None
        existing_created = [item.created_at for item in items if item.created_at is not None]
        if candidate_created is None or not existing_created:
            # Sem datas, o candidato é o recém-chegado
            return self._winner(False, "Primeiro a agendar prevalece (candidato é o mais recente)")
        candidate_wins = candidate_created < min(existing_created)
        return self._winner(candidate_wins, "Primeiro a agendar prevalece")

    @staticmethod
    def _automatic(
        conflict: Conflict,
        context: ResolutionContext,
    ) -> tuple[Resolution, ResolutionStatus]:
        avoid = set(context.preferences.get("avoid_actions", ()))
        for suggestion in conflict.resolution_suggestions:
            if suggestion.automated and suggestion.action not in avoid:
                return (
                    Resolution(
                        action=suggestion.action,
                        description=suggestion.description,
                        automated=True,
                    ),
                    ResolutionStatus.RESOLVED,
                )
        raise ResolutionFailure("no_automated_suggestion")

    def _newest_wins(
        self,
        conflict: Conflict,
        context: ResolutionContext,
    ) -> tuple[Resolution, ResolutionStatus]:
        items = context.items_of(conflict)
        candidate_modified = context.candidate.updated_at if context.candidate else None
        existing_modified = [item.updated_at for item in items if item.updated_at is not None]
        if candidate_modified is None or not existing_modified:
            raise ResolutionFailure("modification_time_missing")

        newest_existing = max(existing_modified)
        delta = (candidate_modified - newest_existing).total_seconds()
        if abs(delta) <= self._skew:
            # Relógios distintos (interno x provider): diferença pequena é empate
            return self._user_choice(
                conflict,
                context,
                f"Alterações com diferença de {abs(delta):.1f}s; decisão do usuário necessária",
            )
        return self._winner(delta > 0, "Versão modificada por último prevalece")


__all__ = [
    "DEFAULT_CLOCK_SKEW_SECONDS",
    "KEEP_EXISTING",
    "KEEP_NEW",
    "USER_CHOICE_REQUIRED",
    "ConflictResolver",
    "ResolutionContext",
    "ResolutionFailure",
]
