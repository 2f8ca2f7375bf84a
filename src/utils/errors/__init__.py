"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    AuthenticationError,
    CircuitOpenError,
    ConflictUnresolvedError,
    FirestoreUnavailableError,
    InfrastructureError,
    PermanentProviderError,
    ProviderError,
    RateLimitError,
    RedisConnectionError,
    TransientProviderError,
    ValidationError,
    classify_http_status,
)

__all__ = [
    "AuthenticationError",
    "CircuitOpenError",
    "ConflictUnresolvedError",
    "FirestoreUnavailableError",
    "InfrastructureError",
    "PermanentProviderError",
    "ProviderError",
    "RateLimitError",
    "RedisConnectionError",
    "TransientProviderError",
    "ValidationError",
    "classify_http_status",
]
