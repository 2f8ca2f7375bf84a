"""Settings da proteção de chamadas de saída.

Circuit breaker, throttle adaptativo, rate limit de saída e bypass tokens.
Tempos do throttle em milissegundos; demais em segundos.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

DEFAULT_OUTBOUND_LIMITS_PER_MINUTE: dict[str, int] = {
    "google_calendar": 100,
    "microsoft_graph": 120,
    "zoom": 80,
    "caldav": 60,
}


@dataclass(frozen=True)
class ProtectionSettings:
    """Configurações da camada de proteção.

    Attributes:
        failure_threshold: Falhas para abrir o breaker
        volume_threshold: Volume mínimo antes de avaliar falhas
        recovery_timeout_seconds: Espera em open antes de half-open
        success_threshold: Sucessos em half-open para fechar
        base_throttle_ms: Delay base do throttle
        max_throttle_ms: Delay máximo do throttle
        adaptation_factor: Multiplicador sobre a taxa de erro
        recovery_factor: Decaimento do throttle por ciclo
        error_threshold: Taxa de erro acima da qual o throttle cresce
        throttle_adjust_interval_seconds: Ciclo de ajuste do throttle
        health_reset_interval_seconds: Período de reset de ProviderHealth
        bypass_token_ttl_seconds: Validade de bypass tokens
        call_timeout_seconds: Timeout de uma chamada ao provider
        outbound_limits_per_minute: Limite de saída por provider
    """

    failure_threshold: int = 5
    volume_threshold: int = 10
    recovery_timeout_seconds: float = 30.0
    success_threshold: int = 3
    base_throttle_ms: float = 1000.0
    max_throttle_ms: float = 30000.0
    adaptation_factor: float = 1.5
    recovery_factor: float = 0.8
    error_threshold: float = 0.1
    throttle_adjust_interval_seconds: float = 60.0
    health_reset_interval_seconds: float = 300.0
    bypass_token_ttl_seconds: float = 300.0
    call_timeout_seconds: float = 20.0
    outbound_limits_per_minute: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_OUTBOUND_LIMITS_PER_MINUTE)
    )

    def validate(self) -> list[str]:
        """Valida limiares.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.failure_threshold <= 0:
            errors.append("BREAKER_FAILURE_THRESHOLD deve ser > 0")
        if self.volume_threshold < self.failure_threshold:
            errors.append("BREAKER_VOLUME_THRESHOLD deve ser >= BREAKER_FAILURE_THRESHOLD")
        if self.success_threshold <= 0:
            errors.append("BREAKER_SUCCESS_THRESHOLD deve ser > 0")
        if self.max_throttle_ms < self.base_throttle_ms:
            errors.append("THROTTLE_MAX_MS deve ser >= THROTTLE_BASE_MS")
        if not 0 < self.recovery_factor < 1:
            errors.append("THROTTLE_RECOVERY_FACTOR deve estar entre 0 e 1")
        if self.bypass_token_ttl_seconds <= 0:
            errors.append("BYPASS_TOKEN_TTL_SECONDS deve ser > 0")

        return errors


def _load_protection_from_env() -> ProtectionSettings:
    """Carrega ProtectionSettings de variáveis de ambiente."""
    limits = dict(DEFAULT_OUTBOUND_LIMITS_PER_MINUTE)
    for provider in limits:
        raw = os.getenv(f"OUTBOUND_RATE_LIMIT_{provider.upper()}")
        if raw:
            limits[provider] = int(raw)
    return ProtectionSettings(
        failure_threshold=int(os.getenv("BREAKER_FAILURE_THRESHOLD", "5")),
        volume_threshold=int(os.getenv("BREAKER_VOLUME_THRESHOLD", "10")),
        recovery_timeout_seconds=float(os.getenv("BREAKER_RECOVERY_TIMEOUT_SECONDS", "30")),
        success_threshold=int(os.getenv("BREAKER_SUCCESS_THRESHOLD", "3")),
        base_throttle_ms=float(os.getenv("THROTTLE_BASE_MS", "1000")),
        max_throttle_ms=float(os.getenv("THROTTLE_MAX_MS", "30000")),
        adaptation_factor=float(os.getenv("THROTTLE_ADAPTATION_FACTOR", "1.5")),
        recovery_factor=float(os.getenv("THROTTLE_RECOVERY_FACTOR", "0.8")),
        error_threshold=float(os.getenv("THROTTLE_ERROR_THRESHOLD", "0.1")),
        throttle_adjust_interval_seconds=float(os.getenv("THROTTLE_ADJUST_INTERVAL_SECONDS", "60")),
        health_reset_interval_seconds=float(os.getenv("HEALTH_RESET_INTERVAL_SECONDS", "300")),
        bypass_token_ttl_seconds=float(os.getenv("BYPASS_TOKEN_TTL_SECONDS", "300")),
        call_timeout_seconds=float(os.getenv("PROVIDER_CALL_TIMEOUT_SECONDS", "20")),
        outbound_limits_per_minute=limits,
    )


@lru_cache(maxsize=1)
def get_protection_settings() -> ProtectionSettings:
    """Retorna instância cacheada de ProtectionSettings."""
    return _load_protection_from_env()
