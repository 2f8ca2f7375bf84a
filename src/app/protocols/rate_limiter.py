"""Protocolo de rate limit por janela deslizante."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Resultado de uma checagem de limite.

    Atributos:
        allowed: Requisição consumiu um slot
        remaining: Slots restantes na janela
        reset_after_seconds: Tempo até liberar o slot mais antigo
    """

    allowed: bool
    remaining: int
    reset_after_seconds: float


class RateLimiterProtocol(ABC):
    """Contrato assíncrono de rate limiter."""

    @abstractmethod
    async def check(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        """Consome um slot de `key` se houver capacidade na janela."""
