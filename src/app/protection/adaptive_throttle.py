"""Throttle adaptativo por provider.

Independente do breaker: usado quando o rate limit de saída sinaliza
saturação. Delays em milissegundos.
"""

from __future__ import annotations

from app.domain.protection import ProviderHealth, ThrottleConfig


def _error_driven_delay(error_rate: float, config: ThrottleConfig) -> float:
    multiplier = min(
        error_rate * config.adaptation_factor,
        config.max_throttle_ms / config.base_throttle_ms,
    )
    return min(config.base_throttle_ms * multiplier, config.max_throttle_ms)


def calculate_delay(health: ProviderHealth, config: ThrottleConfig) -> float:
    """Delay a aplicar antes de repetir uma chamada limitada.

    Taxa de erro acima do limiar gera delay proporcional ao erro; abaixo, o
    throttle corrente (ou o base, se ainda zerado) decai pelo fator de
    recuperação.
    """
    if health.error_rate > config.error_threshold:
        return _error_driven_delay(health.error_rate, config)
    current = health.current_throttle_ms or config.base_throttle_ms
    return max(current * config.recovery_factor, 0.0)


def adjust(health: ProviderHealth, config: ThrottleConfig) -> float:
    """Ciclo periódico de ajuste: cresce com erro, senão decai rumo a zero."""
    if health.error_rate > config.error_threshold:
        health.current_throttle_ms = _error_driven_delay(health.error_rate, config)
    else:
        health.current_throttle_ms = max(health.current_throttle_ms * config.recovery_factor, 0.0)
        if health.current_throttle_ms < 1.0:
            health.current_throttle_ms = 0.0
    return health.current_throttle_ms


__all__ = ["adjust", "calculate_delay"]
