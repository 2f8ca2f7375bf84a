"""Protocolo de acesso aos compromissos do usuário.

Implementado pela camada de persistência do sistema de agendamento; aqui só
o que o motor de conflitos e os handlers de sync precisam.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.commitment import Commitment


class CommitmentStoreProtocol(ABC):
    """Contrato assíncrono de compromissos."""

    @abstractmethod
    async def list_for_user(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> list[Commitment]:
        """Compromissos não cancelados que intersectam a janela."""

    @abstractmethod
    async def get_by_external(self, provider: str, external_id: str) -> Commitment | None:
        """Espelho local de um evento externo."""

    @abstractmethod
    async def upsert(self, commitment: Commitment) -> None:
        """Cria ou substitui o compromisso (idempotente por id)."""

    @abstractmethod
    async def list_by_meeting(self, meeting_id: str) -> list[Commitment]:
        """Agendamentos vinculados a uma reunião online."""
