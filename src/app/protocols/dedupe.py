"""Protocolo de registro de mudanças já aplicadas.

Providers podem reentregar notificações; a idempotência fica no efeito do
job: o fingerprint da mudança é marcado após aplicação e consultado antes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AsyncDedupeProtocol(ABC):
    """Contrato assíncrono para fingerprints aplicados.

    Métodos:
    - is_duplicate(key) -> bool: True se a mudança já foi aplicada.
    - mark_processed(key, ttl): registra a mudança aplicada com TTL.
    """

    @abstractmethod
    async def is_duplicate(self, key: str) -> bool:
        """Verifica se o fingerprint já foi aplicado.

        Args:
            key: Fingerprint da mudança (hash opaco, sem PII)
        """

    @abstractmethod
    async def mark_processed(self, key: str, ttl: int = 86400) -> None:
        """Marca o fingerprint como aplicado.

        Args:
            key: Fingerprint da mudança
            ttl: Janela de retenção em segundos
        """
