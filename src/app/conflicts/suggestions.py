"""Sugestões de resolução por tipo de conflito.

A ordem importa: é a ordem exibida ao usuário e a usada pela estratégia
automática (primeira sugestão automatizável).
"""

from __future__ import annotations

from app.domain.conflict import ResolutionSuggestion

RESCHEDULE_NEW = ResolutionSuggestion(
    action="reschedule_new",
    description="Mover o novo compromisso para outro horário",
    impact="low",
    automated=True,
)
RESCHEDULE_EXISTING = ResolutionSuggestion(
    action="reschedule_existing",
    description="Mover o compromisso existente para outro horário",
    impact="medium",
    automated=False,
)
CHANGE_TO_VIRTUAL = ResolutionSuggestion(
    action="change_to_virtual",
    description="Converter um dos encontros para virtual",
    impact="low",
    automated=True,
)
SHORTEN_DURATION = ResolutionSuggestion(
    action="shorten_duration",
    description="Reduzir a duração de um ou ambos os compromissos",
    impact="medium",
    automated=False,
)
ADJUST_BUFFER = ResolutionSuggestion(
    action="adjust_buffer",
    description="Reduzir o intervalo mínimo exigido entre compromissos",
    impact="low",
    automated=True,
)
RESCHEDULE_VENUE = ResolutionSuggestion(
    action="reschedule_venue",
    description="Mover um dos encontros presenciais para outro horário",
    impact="medium",
    automated=False,
)
CANCEL_NEW = ResolutionSuggestion(
    action="cancel_new",
    description="Cancelar o novo compromisso",
    impact="high",
    automated=False,
)
RESCHEDULE_ALL = ResolutionSuggestion(
    action="reschedule_all",
    description="Buscar novos horários para todos os compromissos em conflito",
    impact="high",
    automated=True,
)


def time_overlap_suggestions(*, in_person: bool) -> tuple[ResolutionSuggestion, ...]:
    if in_person:
        return (RESCHEDULE_NEW, RESCHEDULE_EXISTING, CHANGE_TO_VIRTUAL, SHORTEN_DURATION)
    return (RESCHEDULE_NEW, RESCHEDULE_EXISTING, SHORTEN_DURATION)


def buffer_suggestions(buffer_minutes: int) -> tuple[ResolutionSuggestion, ...]:
    return (
        ADJUST_BUFFER,
        ResolutionSuggestion(
            action="reschedule_for_buffer",
            description=f"Mover o compromisso para manter {buffer_minutes} min de intervalo",
            impact="medium",
            automated=True,
        ),
    )


def venue_suggestions() -> tuple[ResolutionSuggestion, ...]:
    return (CHANGE_TO_VIRTUAL, RESCHEDULE_VENUE)


def double_booking_suggestions() -> tuple[ResolutionSuggestion, ...]:
    return (CANCEL_NEW, RESCHEDULE_ALL)
