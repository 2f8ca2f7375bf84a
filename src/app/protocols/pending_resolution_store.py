"""Protocolo de persistência de resoluções de conflito pendentes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.conflict import PendingResolution


class PendingResolutionStoreProtocol(ABC):
    """Contrato assíncrono, chaveado pelo ID do evento candidato."""

    @abstractmethod
    async def save(self, pending: PendingResolution) -> None:
        """Cria ou substitui o registro."""

    @abstractmethod
    async def get(self, candidate_id: str) -> PendingResolution | None:
        """Busca registro pelo candidato."""

    @abstractmethod
    async def list_expired(self, now: datetime) -> list[PendingResolution]:
        """Registros ainda pendentes cuja janela de decisão venceu."""
