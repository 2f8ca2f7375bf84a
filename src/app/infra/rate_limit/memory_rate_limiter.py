"""Rate limiter em memória por janela deslizante: dev/test e limite local.

Guarda os timestamps de cada chave; o slot mais antigo determina o reset.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Callable

from app.protocols.rate_limiter import RateLimitDecision, RateLimiterProtocol


class MemoryRateLimiter(RateLimiterProtocol):
    """Sliding window em memória (não compartilhado entre processos).

    Args:
        clock: Fonte de tempo em segundos (injetável em testes).
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()

    async def check(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        async with self._lock:
            now = self._clock()
            window = self._windows.setdefault(key, deque())
            while window and window[0] <= now - window_seconds:
                window.popleft()

            if len(window) >= limit:
                reset_after = max(0.0, window[0] + window_seconds - now)
                return RateLimitDecision(allowed=False, remaining=0, reset_after_seconds=reset_after)

            window.append(now)
            return RateLimitDecision(
                allowed=True,
                remaining=max(0, limit - len(window)),
                reset_after_seconds=0.0,
            )
