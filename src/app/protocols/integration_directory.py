"""Protocolo de resolução de integração a partir da chave de correlação.

Channel id (Google), subscription id (Graph) ou URL de calendário (CalDAV)
identificam qual integração/usuário recebeu a notificação.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Integration:
    """Integração ativa de um usuário com um provider."""

    integration_id: str
    user_id: str
    provider: str
    correlation_key: str


class IntegrationDirectoryProtocol(ABC):
    """Contrato assíncrono de diretório de integrações."""

    @abstractmethod
    async def resolve(self, provider: str, correlation_key: str) -> Integration | None:
        """Retorna a integração dona da chave, ou None se desconhecida."""
