"""Cache em memória com expiração verificada no acesso.

Nenhum timer de remoção: cada leitura confere `expires_at`, e
`evict_expired()` pode ser chamado periodicamente para liberar memória.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class ExpiringCache(Generic[V]):
    """Cache chave → valor com TTL por entrada.

    Args:
        default_ttl_seconds: TTL usado quando `put` não informa outro.
        clock: Fonte de tempo (injetável em testes).
    """

    def __init__(
        self,
        default_ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry[V]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> V | None:
        """Retorna o valor se presente e não expirado."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: V, ttl_seconds: float | None = None) -> float:
        """Armazena valor e retorna o instante de expiração."""
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        expires_at = self._clock() + ttl
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=expires_at)
        return expires_at

    def pop(self, key: str) -> V | None:
        """Remove e retorna o valor se presente e não expirado."""
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None or self._clock() >= entry.expires_at:
                return None
            return entry.value

    def evict_expired(self) -> int:
        """Remove entradas vencidas e retorna quantas saíram."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
