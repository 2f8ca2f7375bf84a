"""Contexto de rastreamento por entrega de webhook.

O webhookId gerado pelo gateway é o correlation_id de todos os logs da
entrega e dos jobs derivados dela. O provider corrente também fica em
contexto para enriquecer logs. Usa ContextVar (async-safe).

Uso:
    from app.observability import bind_webhook_context, reset_webhook_context

    tokens = bind_webhook_context(generate_webhook_id(), provider="zoom")
    try:
        # processar entrega
    finally:
        reset_webhook_context(tokens)
"""

from __future__ import annotations

import secrets
import time
from contextvars import ContextVar, Token

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_provider: ContextVar[str] = ContextVar("provider", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id do contexto atual (string vazia se ausente)."""
    return _correlation_id.get()


def get_current_provider() -> str:
    """Retorna o provider do contexto atual (string vazia se ausente)."""
    return _provider.get()


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o correlation_id no contexto atual.

    Args:
        correlation_id: ID a definir. Se None, gera um novo webhookId.

    Returns:
        Token para reset posterior via reset_correlation_id().
    """
    return _correlation_id.set(correlation_id or generate_webhook_id())


def reset_correlation_id(token: Token[str]) -> None:
    """Restaura o correlation_id ao valor anterior."""
    _correlation_id.reset(token)


def bind_webhook_context(
    correlation_id: str,
    provider: str = "",
) -> tuple[Token[str], Token[str]]:
    """Define correlation_id e provider de uma vez."""
    return _correlation_id.set(correlation_id), _provider.set(provider)


def reset_webhook_context(tokens: tuple[Token[str], Token[str]]) -> None:
    """Restaura contexto definido por bind_webhook_context()."""
    correlation_token, provider_token = tokens
    _provider.reset(provider_token)
    _correlation_id.reset(correlation_token)


def generate_webhook_id() -> str:
    """Gera webhookId no formato webhook_<epoch_ms>_<aleatório>."""
    return f"webhook_{int(time.time() * 1000)}_{secrets.token_hex(4)}"
