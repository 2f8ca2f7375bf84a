"""Estado de proteção de chamadas de saída por provider.

CircuitBreakerState e ProviderHealth são mantidos pelo ProviderRegistry,
um par por provider, e mutados apenas sob o lock daquele provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class CircuitState(str, Enum):
    """Estados do circuit breaker."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True, slots=True)
class BreakerConfig:
    """Limiares do circuit breaker.

    Atributos:
        failure_threshold: Falhas para abrir o circuito
        volume_threshold: Requisições mínimas antes de avaliar falhas
        recovery_timeout_seconds: Tempo em open antes de liberar half-open
        success_threshold: Sucessos em half-open para fechar
        half_open_max_in_flight: Sondas simultâneas permitidas em half-open
    """

    failure_threshold: int = 5
    volume_threshold: int = 10
    recovery_timeout_seconds: float = 30.0
    success_threshold: int = 3
    half_open_max_in_flight: int = 1


@dataclass(frozen=True, slots=True)
class ThrottleConfig:
    """Parâmetros do throttle adaptativo (em milissegundos)."""

    base_throttle_ms: float = 1000.0
    max_throttle_ms: float = 30000.0
    adaptation_factor: float = 1.5
    recovery_factor: float = 0.8
    error_threshold: float = 0.1


@dataclass(slots=True)
class CircuitBreakerState:
    """Estado mutável do breaker de um provider."""

    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    success_count: int = 0
    total_requests: int = 0
    last_failure_time: float | None = None
    last_state_change: float = 0.0
    half_open_in_flight: int = 0

    def reset_counters(self) -> None:
        self.failure_count = 0
        self.success_count = 0
        self.total_requests = 0

    def reset_time(self, recovery_timeout_seconds: float) -> float | None:
        """Momento em que o breaker aberto libera a próxima chamada."""
        if self.state != CircuitState.OPEN or self.last_failure_time is None:
            return None
        return self.last_failure_time + recovery_timeout_seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "total_requests": self.total_requests,
            "last_failure_time": self.last_failure_time,
            "last_state_change": self.last_state_change,
        }


@dataclass(slots=True)
class ProviderHealth:
    """Estimativa de saúde/throttle do provider, independente do breaker."""

    requests: int = 0
    successes: int = 0
    failures: int = 0
    avg_response_time_ms: float = 0.0
    current_throttle_ms: float = 0.0
    health_score: float = 1.0

    @property
    def error_rate(self) -> float:
        return self.failures / max(self.requests, 1)

    def record(self, *, success: bool, response_time_ms: float) -> None:
        """Registra resultado e recalcula média e score."""
        self.requests += 1
        if success:
            self.successes += 1
        else:
            self.failures += 1
        if self.avg_response_time_ms:
            self.avg_response_time_ms = (self.avg_response_time_ms + response_time_ms) / 2
        else:
            self.avg_response_time_ms = response_time_ms
        latency_penalty = min(self.avg_response_time_ms / 5000.0, 1.0) * 0.5
        self.health_score = max(0.0, 1.0 - self.error_rate - latency_penalty)

    def reset_period(self) -> None:
        """Zera contadores do período (decaimento periódico)."""
        self.requests = 0
        self.successes = 0
        self.failures = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "requests": self.requests,
            "successes": self.successes,
            "failures": self.failures,
            "error_rate": round(self.error_rate, 4),
            "avg_response_time_ms": round(self.avg_response_time_ms, 2),
            "current_throttle_ms": round(self.current_throttle_ms, 2),
            "health_score": round(self.health_score, 4),
        }


__all__ = [
    "BreakerConfig",
    "CircuitBreakerState",
    "CircuitState",
    "ProviderHealth",
    "ThrottleConfig",
]
