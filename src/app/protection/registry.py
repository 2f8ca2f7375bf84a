"""Registro explícito de estado de proteção por provider.

Um par (CircuitBreakerState, ProviderHealth) por provider, cada um com seu
próprio asyncio.Lock. Injetado no serviço de proteção e consultado pelo
health check e pelo dashboard.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from app.domain.change_event import Provider
from app.domain.protection import CircuitBreakerState, ProviderHealth


@dataclass(slots=True)
class ProviderEntry:
    """Estado mutável de um provider (mutar somente sob `lock`)."""

    provider: Provider
    breaker: CircuitBreakerState = field(default_factory=CircuitBreakerState)
    health: ProviderHealth = field(default_factory=ProviderHealth)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class ProviderRegistry:
    """Entradas por provider, criadas para todo o enum na construção."""

    def __init__(self, providers: tuple[Provider, ...] | None = None) -> None:
        self._entries: dict[Provider, ProviderEntry] = {
            provider: ProviderEntry(provider=provider) for provider in (providers or tuple(Provider))
        }

    def get(self, provider: Provider) -> ProviderEntry:
        try:
            return self._entries[provider]
        except KeyError as exc:
            raise KeyError(f"Provider não registrado: {provider}") from exc

    def providers(self) -> tuple[Provider, ...]:
        return tuple(self._entries)

    def entries(self) -> list[ProviderEntry]:
        return list(self._entries.values())


__all__ = ["ProviderEntry", "ProviderRegistry"]
