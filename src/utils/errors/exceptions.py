"""Exceções de domínio compartilhadas pelo gateway, fila e camada de proteção.

Taxonomia:
    - AuthenticationError: assinatura/token inválido (401, nunca reprocessado)
    - ValidationError: payload malformado (400, nunca reprocessado)
    - RateLimitError: limite excedido (429, retry após reset)
    - TransientProviderError: rede/5xx do provider (reprocessado pela fila)
    - PermanentProviderError: 4xx do provider (job vai direto para failed)
    - ConflictUnresolvedError: conflito em user_choice expirou sem decisão
    - InfrastructureError: falhas de Redis/Firestore
"""

from __future__ import annotations


class AuthenticationError(Exception):
    """Notificação sem assinatura/token válido."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ValidationError(ValueError):
    """Payload autenticado porém estruturalmente inválido."""


class RateLimitError(Exception):
    """Limite de requisições excedido.

    Attributes:
        retry_after: Segundos até o próximo slot disponível.
    """

    def __init__(self, message: str, retry_after: float = 0.0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ProviderError(Exception):
    """Base para falhas em chamadas de saída para providers."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientProviderError(ProviderError):
    """Falha recuperável (rede, timeout, 5xx, 429)."""


class PermanentProviderError(ProviderError):
    """Falha definitiva (4xx exceto rate limit)."""


class CircuitOpenError(TransientProviderError):
    """Chamada rejeitada sem execução porque o breaker está aberto."""

    def __init__(self, provider: str, reset_time: float) -> None:
        super().__init__(f"circuit_open:{provider}")
        self.provider = provider
        self.reset_time = reset_time


class ConflictUnresolvedError(Exception):
    """Resolução pendente ultrapassou a janela de decisão."""

    def __init__(self, candidate_id: str, expired_at: str) -> None:
        super().__init__(f"conflict_unresolved:{candidate_id}")
        self.candidate_id = candidate_id
        self.expired_at = expired_at


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias."""


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis."""


class FirestoreUnavailableError(InfrastructureError):
    """Falha de indisponibilidade ao acessar Firestore."""


def classify_http_status(status_code: int) -> type[ProviderError]:
    """Classifica status HTTP de provider como transitório ou permanente.

    Transitórios: 408, 429 e 5xx. Demais 4xx são permanentes.
    """
    if status_code in {408, 429} or status_code >= 500:
        return TransientProviderError
    return PermanentProviderError
