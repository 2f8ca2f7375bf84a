"""Settings da fila priorizada de jobs.

Intervalos em segundos. Defaults espelham o comportamento de produção:
polling a cada 5s, sweep de retry a cada 30s, limpeza horária com
retenção de 24h.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

JobStoreBackend = Literal["memory", "redis"]


@dataclass(frozen=True)
class QueueSettings:
    """Configurações da fila e do pool de workers.

    Attributes:
        backend: Store de jobs (memory|redis)
        concurrency: Jobs simultâneos no pool
        poll_interval_seconds: Intervalo de polling do worker
        retry_sweep_interval_seconds: Intervalo do sweep de retry
        cleanup_interval_seconds: Intervalo da limpeza de terminais
        retention_seconds: Retenção de jobs terminais
        max_attempts: Tentativas por job
        job_timeout_seconds: Tempo máximo de processamento por job
        backoff_initial_seconds: Delay da primeira retentativa
        backoff_multiplier: Fator exponencial do backoff
        backoff_max_seconds: Teto do backoff
        overwhelmed_threshold: Jobs enfileirados acima dos quais a fila é sobrecarregada
    """

    backend: JobStoreBackend = "memory"
    concurrency: int = 5
    poll_interval_seconds: float = 5.0
    retry_sweep_interval_seconds: float = 30.0
    cleanup_interval_seconds: float = 3600.0
    retention_seconds: int = 86400
    max_attempts: int = 3
    job_timeout_seconds: float = 30.0
    backoff_initial_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    backoff_max_seconds: float = 30.0
    overwhelmed_threshold: int = 100

    def backoff_seconds(self, attempts: int) -> float:
        """Delay antes da próxima tentativa após `attempts` falhas."""
        exponent = max(attempts - 1, 0)
        delay = self.backoff_initial_seconds * (self.backoff_multiplier**exponent)
        return min(delay, self.backoff_max_seconds)

    def validate(self, redis_url: str = "") -> list[str]:
        """Valida configurações da fila.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.backend not in ("memory", "redis"):
            errors.append(f"QUEUE_BACKEND inválido: {self.backend}")
        if self.backend == "redis" and not redis_url:
            errors.append("QUEUE_BACKEND=redis requer REDIS_URL configurado")
        if self.concurrency <= 0:
            errors.append("QUEUE_CONCURRENCY deve ser > 0")
        if self.max_attempts <= 0:
            errors.append("QUEUE_MAX_ATTEMPTS deve ser > 0")
        if self.job_timeout_seconds <= 0:
            errors.append("QUEUE_JOB_TIMEOUT_SECONDS deve ser > 0")
        if self.backoff_max_seconds < self.backoff_initial_seconds:
            errors.append("QUEUE_BACKOFF_MAX_SECONDS deve ser >= QUEUE_BACKOFF_INITIAL_SECONDS")

        return errors


def _load_queue_from_env() -> QueueSettings:
    """Carrega QueueSettings de variáveis de ambiente."""
    backend_str = os.getenv("QUEUE_BACKEND", "memory").lower()
    backend: JobStoreBackend = "redis" if backend_str == "redis" else "memory"
    return QueueSettings(
        backend=backend,
        concurrency=int(os.getenv("QUEUE_CONCURRENCY", "5")),
        poll_interval_seconds=float(os.getenv("QUEUE_POLL_INTERVAL_SECONDS", "5")),
        retry_sweep_interval_seconds=float(os.getenv("QUEUE_RETRY_SWEEP_SECONDS", "30")),
        cleanup_interval_seconds=float(os.getenv("QUEUE_CLEANUP_INTERVAL_SECONDS", "3600")),
        retention_seconds=int(os.getenv("QUEUE_RETENTION_SECONDS", "86400")),
        max_attempts=int(os.getenv("QUEUE_MAX_ATTEMPTS", "3")),
        job_timeout_seconds=float(os.getenv("QUEUE_JOB_TIMEOUT_SECONDS", "30")),
        backoff_initial_seconds=float(os.getenv("QUEUE_BACKOFF_INITIAL_SECONDS", "1")),
        backoff_multiplier=float(os.getenv("QUEUE_BACKOFF_MULTIPLIER", "2")),
        backoff_max_seconds=float(os.getenv("QUEUE_BACKOFF_MAX_SECONDS", "30")),
        overwhelmed_threshold=int(os.getenv("QUEUE_OVERWHELMED_THRESHOLD", "100")),
    )


@lru_cache(maxsize=1)
def get_queue_settings() -> QueueSettings:
    """Retorna instância cacheada de QueueSettings."""
    return _load_queue_from_env()
