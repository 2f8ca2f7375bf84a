"""Bypass tokens para operações críticas.

Token de uso único e curta duração que permite a uma chamada específica
ignorar breaker, throttle e rate limit de saída. Expiração verificada no
acesso (ExpiringCache), sem timers.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.infra.cache import ExpiringCache

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_BYPASS_TTL_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class BypassGrant:
    """Metadados de um token emitido (o token em si nunca é logado)."""

    reason: str
    provider: str | None
    issued_at: float
    expires_at: float


def token_hint(token: str) -> str:
    """Prefixo seguro para logs/auditoria."""
    return token[:12] + "..."


class BypassTokenRegistry:
    """Emissão e consumo de bypass tokens.

    Args:
        default_ttl_seconds: Validade default (5 minutos)
        clock: Fonte de tempo (injetável em testes)
    """

    def __init__(
        self,
        default_ttl_seconds: float = DEFAULT_BYPASS_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self._tokens: ExpiringCache[BypassGrant] = ExpiringCache(
            default_ttl_seconds=default_ttl_seconds,
            clock=clock,
        )
        self._default_ttl = default_ttl_seconds

    def issue(
        self,
        reason: str,
        *,
        provider: str | None = None,
        ttl_seconds: float | None = None,
    ) -> str:
        """Emite token para uma operação crítica.

        Args:
            reason: Motivo de negócio (auditado)
            provider: Restringe o token a um provider (None = qualquer)
            ttl_seconds: Validade; default do registry se None
        """
        if not reason:
            raise ValueError("reason é obrigatório para emitir bypass token")
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        token = f"bypass_{secrets.token_urlsafe(24)}"
        now = self._clock()
        grant = BypassGrant(reason=reason, provider=provider, issued_at=now, expires_at=now + ttl)
        self._tokens.put(token, grant, ttl_seconds=ttl)
        logger.info(
            "bypass_token_issued",
            extra={"reason": reason, "provider": provider or "*", "ttl_seconds": ttl},
        )
        return token

    def consume(self, token: str, provider: str | None = None) -> BypassGrant | None:
        """Consome o token (uso único).

        Returns:
            BypassGrant se válido para o provider, senão None. Token de outro
            provider não é consumido.
        """
        grant = self._tokens.get(token)
        if grant is None:
            return None
        if grant.provider is not None and provider is not None and grant.provider != provider:
            return None
        return self._tokens.pop(token)

    def evict_expired(self) -> int:
        return self._tokens.evict_expired()

    def __len__(self) -> int:
        return len(self._tokens)


__all__ = ["BypassGrant", "BypassTokenRegistry", "token_hint"]
