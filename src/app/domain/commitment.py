"""Modelos de dominio para compromissos do usuario.

Um compromisso e um agendamento interno ou um evento externo espelhado de
um provider. A deteccao de conflitos compara um candidato contra os
compromissos existentes sem conhecer detalhes do provider.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - usado em runtime pelo schema do Pydantic
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

CommitmentKind = Literal["appointment", "calendar_event"]
MeetingType = Literal["in_person", "virtual", "phone"]


class Commitment(BaseModel):
    """Compromisso existente (ou candidato) na agenda de um usuario."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Identificador interno do compromisso.")
    user_id: str = Field(..., description="Usuario dono da agenda.")
    kind: CommitmentKind = Field(
        default="appointment",
        description="Agendamento interno ou evento externo espelhado.",
    )
    start: datetime = Field(..., description="Inicio do intervalo (inclusivo).")
    end: datetime = Field(..., description="Fim do intervalo (exclusivo).")
    title: str = Field(default="", description="Titulo exibido ao usuario.")
    location: str = Field(default="", description="Local fisico, quando houver.")
    meeting_type: MeetingType | None = Field(default=None, description="Formato do encontro.")
    status: str = Field(default="confirmed", description="Status atual do compromisso.")
    provider: str | None = Field(default=None, description="Provider de origem, se externo.")
    external_id: str | None = Field(default=None, description="ID do recurso no provider.")
    meeting_id: str | None = Field(default=None, description="ID da reuniao online vinculada.")
    priority: int = Field(default=0, description="Prioridade de negocio (maior vence).")
    created_at: datetime | None = Field(default=None, description="Criacao no sistema interno.")
    updated_at: datetime | None = Field(
        default=None,
        description="Ultima alteracao (relogio interno ou do provider).",
    )
    metadata: dict[str, Any] = Field(default_factory=dict, description="Dados de integracao.")

    @model_validator(mode="after")
    def _check_interval(self) -> Commitment:
        if self.end <= self.start:
            raise ValueError("end_must_be_after_start")
        return self

    @property
    def in_person(self) -> bool:
        """Encontro presencial ou com local definido."""
        return self.meeting_type == "in_person" or bool(self.location.strip())

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60


class ProviderEvent(BaseModel):
    """Estado atual de um evento lido no provider."""

    model_config = ConfigDict(extra="ignore")

    external_id: str = Field(..., description="ID do evento no provider.")
    start: datetime = Field(..., description="Inicio do evento.")
    end: datetime = Field(..., description="Fim do evento.")
    title: str = Field(default="", description="Titulo do evento.")
    location: str = Field(default="", description="Local do evento.")
    status: str = Field(default="confirmed", description="Status no provider.")
    last_modified: datetime | None = Field(
        default=None,
        description="Ultima alteracao segundo o relogio do provider.",
    )

    def same_state_as(self, commitment: Commitment) -> bool:
        """True quando o espelho local ja reflete este estado."""
        return (
            commitment.start == self.start
            and commitment.end == self.end
            and commitment.title == self.title
            and commitment.location == self.location
            and commitment.is_cancelled == (self.status == "cancelled")
        )


__all__ = ["Commitment", "CommitmentKind", "MeetingType", "ProviderEvent"]
